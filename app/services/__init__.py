"""
app/services package marker.
"""

from app.services.descent_service import DescentService, build_descent_service
from app.services.import_service import ImportService, build_import_service

__all__ = [
    "DescentService",
    "ImportService",
    "build_descent_service",
    "build_import_service",
]
