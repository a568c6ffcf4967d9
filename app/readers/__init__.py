"""
app/readers package marker.
"""

from app.readers.tabular_reader import (
    NoQualifyingSheetError,
    SheetNotFoundError,
    TabularFormatError,
    UnsupportedFormatError,
    read_catalog_records,
    read_kpi_records,
)

__all__ = [
    "NoQualifyingSheetError",
    "SheetNotFoundError",
    "TabularFormatError",
    "UnsupportedFormatError",
    "read_catalog_records",
    "read_kpi_records",
]
