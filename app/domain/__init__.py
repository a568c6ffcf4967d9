"""
app/domain package marker.
"""

from app.domain.imports import (
    Actor,
    CatalogImportResult,
    CatalogImportSummary,
    CellValue,
    KpiImportResult,
    KpiImportSummary,
    KpiParseResult,
    KpiRow,
    OrderCatalogRow,
    RawRecord,
    UpsertCounts,
)

__all__ = [
    "Actor",
    "CatalogImportResult",
    "CatalogImportSummary",
    "CellValue",
    "KpiImportResult",
    "KpiImportSummary",
    "KpiParseResult",
    "KpiRow",
    "OrderCatalogRow",
    "RawRecord",
    "UpsertCounts",
]
