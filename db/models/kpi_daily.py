"""
db/models/kpi_daily.py

Per-worker, per-day productivity totals.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

KPI_UPSERT_CONSTRAINT = "uq_kpi_daily_user_work_date"


class KpiDaily(Base, TimestampMixin):
    """
    The unique ``(user_name, work_date)`` pair drives upsert semantics:
    a later import for the same worker-day replaces every measured field.
    """

    __tablename__ = "kpi_daily"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_name: Mapped[str] = mapped_column(Text, nullable=False)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    orders_count: Mapped[int] = mapped_column(Integer, nullable=False)
    boxes_count: Mapped[int] = mapped_column(Integer, nullable=False)
    weight_kg: Mapped[Decimal] = mapped_column(nullable=False)
    source_import_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("imports.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        UniqueConstraint("user_name", "work_date", name=KPI_UPSERT_CONSTRAINT),
        Index("ix_kpi_daily_work_date", "work_date"),
    )
