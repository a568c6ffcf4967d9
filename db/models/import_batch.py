"""
db/models/import_batch.py

One execution of the KPI or Base importer.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


class ImportType:
    KPI = "kpi"
    BASE = "base"


class ImportStatus:
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


class ImportBatch(Base):
    """
    Lifecycle: created as ``processing`` before any row is written, then
    finalized exactly once as ``success`` or ``failed``.
    """

    __tablename__ = "imports"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    filename: Mapped[str] = mapped_column(Text, nullable=False)
    file_hash: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        comment="SHA-256 of the raw KPI file; 'base-import' for catalog imports",
    )
    import_type: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=ImportType.KPI,
        comment="kpi, base",
    )
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=ImportStatus.PROCESSING,
    )
    processed_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    inserted_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rejected_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    skipped_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    consolidated_descents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rejection_report: Mapped[Any] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        comment="Per-row rejection strings (KPI) or a type marker object (catalog)",
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    imported_by_user_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    imported_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_imports_imported_at", "imported_at"),
        Index("ix_imports_status", "status"),
    )

    @property
    def is_finalized(self) -> bool:
        return self.status != ImportStatus.PROCESSING
