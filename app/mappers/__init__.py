"""
app/mappers package marker.
"""

from app.mappers.header_mapper import (
    CATALOG_COLUMN_ALIASES,
    KPI_COLUMN_ALIASES,
    KPI_FIELDS,
    map_kpi_record,
    normalize_header,
)

__all__ = [
    "CATALOG_COLUMN_ALIASES",
    "KPI_COLUMN_ALIASES",
    "KPI_FIELDS",
    "map_kpi_record",
    "normalize_header",
]
