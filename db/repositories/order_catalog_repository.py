"""
db/repositories/order_catalog_repository.py

Chunk-level persistence primitives for the order catalog.

Counting and chunking live in the reconciliation engine; every method here
issues exactly one statement and never commits.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from app.domain.imports import OrderCatalogRow
from db.models.order_catalog import OrderCatalog


class OrderCatalogRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, order_number: str) -> OrderCatalog | None:
        return self._session.get(OrderCatalog, order_number)

    def count_existing(self, order_numbers: Sequence[str]) -> int:
        if not order_numbers:
            return 0
        stmt = (
            select(func.count())
            .select_from(OrderCatalog)
            .where(OrderCatalog.order_number.in_(list(order_numbers)))
        )
        return int(self._session.execute(stmt).scalar_one() or 0)

    def upsert_rows(self, rows: Sequence[OrderCatalogRow], *, import_id: uuid.UUID) -> int:
        """
        Insert rows, overwriting every non-key column on conflict.
        Returns the number of rows the statement reported back.
        """
        if not rows:
            return 0
        stmt = insert(OrderCatalog).values(self._payloads(rows, import_id))
        stmt = stmt.on_conflict_do_update(
            index_elements=[OrderCatalog.order_number],
            set_={
                "lot": stmt.excluded.lot,
                "volume": stmt.excluded.volume,
                "weight_kg": stmt.excluded.weight_kg,
                "route": stmt.excluded.route,
                "description": stmt.excluded.description,
                "base_date": stmt.excluded.base_date,
                "source_import_id": stmt.excluded.source_import_id,
                "updated_at": func.now(),
            },
        ).returning(OrderCatalog.order_number)
        return len(self._session.scalars(stmt).all())

    def insert_missing_rows(self, rows: Sequence[OrderCatalogRow], *, import_id: uuid.UUID) -> int:
        """
        Insert rows whose order number is not stored yet; existing rows are
        left untouched. Returns the number of rows actually inserted.
        """
        if not rows:
            return 0
        stmt = (
            insert(OrderCatalog)
            .values(self._payloads(rows, import_id))
            .on_conflict_do_nothing(index_elements=[OrderCatalog.order_number])
            .returning(OrderCatalog.order_number)
        )
        return len(self._session.scalars(stmt).all())

    @staticmethod
    def _payloads(rows: Sequence[OrderCatalogRow], import_id: uuid.UUID) -> list[dict[str, Any]]:
        return [{**row.to_payload(), "source_import_id": import_id} for row in rows]
