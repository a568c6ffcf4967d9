"""
db/models/descent.py

One recorded unpacking event for an order.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Index, Integer, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, CreatedAtMixin


class Descent(Base, CreatedAtMixin):
    """
    Catalog attributes are copied at creation time. ``order_number`` is not a
    foreign key: catalog imports may arrive later and backfill missing values.
    """

    __tablename__ = "descents"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    order_number: Mapped[str] = mapped_column(Text, nullable=False)
    descended_by_user_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    descended_by_name: Mapped[str] = mapped_column(Text, nullable=False)
    pen_color: Mapped[str] = mapped_column(Text, nullable=False)
    product_image_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    lot: Mapped[str | None] = mapped_column(Text, nullable=True)
    volume: Mapped[int | None] = mapped_column(Integer, nullable=True)
    weight_kg: Mapped[Decimal | None] = mapped_column(nullable=True)
    route: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_descents_order_number", "order_number"),
        Index("ix_descents_work_date", "work_date"),
    )
