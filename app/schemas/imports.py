"""
app/schemas/imports.py

Response schemas for import endpoints.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class KpiImportSummaryResponse(BaseModel):
    processed_rows: int = Field(..., ge=0)
    inserted_rows: int = Field(..., ge=0)
    updated_rows: int = Field(..., ge=0)
    rejected_rows: int = Field(..., ge=0)


class KpiImportResponse(BaseModel):
    """
    API response model for a KPI import.
    """

    import_id: str
    summary: KpiImportSummaryResponse
    preview: list[dict[str, Any]] = Field(default_factory=list)
    rejections: list[str] = Field(default_factory=list)


class CatalogImportSummaryResponse(BaseModel):
    processed_rows: int = Field(..., ge=0)
    inserted_rows: int = Field(..., ge=0)
    updated_rows: int = Field(..., ge=0)
    rejected_rows: int = Field(..., ge=0)
    skipped_rows: int = Field(..., ge=0)
    consolidated_descents: int = Field(..., ge=0)


class CatalogImportResponse(BaseModel):
    """
    API response model for a Base (catalog) import.
    """

    import_id: str
    summary: CatalogImportSummaryResponse


class ImportBatchResponse(BaseModel):
    """
    Stored import batch, including its verbatim rejection report.
    """

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    filename: str
    file_hash: str
    import_type: str
    status: str
    processed_rows: int
    inserted_rows: int
    updated_rows: int
    rejected_rows: int
    skipped_rows: int
    consolidated_descents: int
    rejection_report: Any
    error_message: str | None = None
    imported_by_user_id: str | None = None
    imported_at: datetime | None = None
