"""
app/api/routers package marker.
"""

from app.api.routers.descents import router as descents_router
from app.api.routers.imports import router as imports_router

__all__ = [
    "descents_router",
    "imports_router",
]
