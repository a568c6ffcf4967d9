"""
app/schemas package marker.
"""

from app.schemas.descents import CatalogEntryResponse, DescentCreateRequest, DescentResponse
from app.schemas.imports import (
    CatalogImportResponse,
    CatalogImportSummaryResponse,
    ImportBatchResponse,
    KpiImportResponse,
    KpiImportSummaryResponse,
)

__all__ = [
    "CatalogEntryResponse",
    "CatalogImportResponse",
    "CatalogImportSummaryResponse",
    "DescentCreateRequest",
    "DescentResponse",
    "ImportBatchResponse",
    "KpiImportResponse",
    "KpiImportSummaryResponse",
]
