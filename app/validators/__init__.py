"""
app/validators package marker.
"""

from app.validators.kpi_validator import KPIRowValidator

__all__ = [
    "KPIRowValidator",
]
