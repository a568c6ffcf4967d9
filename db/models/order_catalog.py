"""
db/models/order_catalog.py

Authoritative order attributes ("Base"), keyed by order number.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Integer, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class OrderCatalog(Base, TimestampMixin):
    __tablename__ = "order_catalog"

    order_number: Mapped[str] = mapped_column(Text, primary_key=True)
    lot: Mapped[str | None] = mapped_column(Text, nullable=True)
    volume: Mapped[int | None] = mapped_column(Integer, nullable=True)
    weight_kg: Mapped[Decimal | None] = mapped_column(nullable=True)
    route: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    base_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    source_import_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("imports.id", ondelete="SET NULL"),
        nullable=True,
    )

    @property
    def is_complete(self) -> bool:
        """True when every attribute a descent needs is present."""
        return bool(
            self.lot
            and self.volume is not None
            and self.weight_kg is not None
            and self.route
            and self.description
        )
