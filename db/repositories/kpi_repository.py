"""
db/repositories/kpi_repository.py

Persistence layer for daily KPI rows.

The caller controls commit/rollback; this repository never commits on its own.
"""

from __future__ import annotations

import uuid

from sqlalchemy import func, literal_column
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from app.domain.imports import KpiRow
from db.models.kpi_daily import KPI_UPSERT_CONSTRAINT, KpiDaily


class KpiDailyRepository:
    """
    Upsert semantics: a row whose ``(user_name, work_date)`` already exists
    has every measured field replaced and ``updated_at`` refreshed.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def upsert_row(self, row: KpiRow, *, import_id: uuid.UUID) -> bool:
        """
        Upsert one KPI row.

        Returns
        -------
        bool
            True when PostgreSQL inserted a fresh row, False when it updated
            an existing one (``xmax = 0`` only holds for fresh tuples).
        """
        stmt = insert(KpiDaily).values(
            id=uuid.uuid4(),
            user_name=row.user_name,
            work_date=row.work_date,
            orders_count=row.orders_count,
            boxes_count=row.boxes_count,
            weight_kg=row.weight_kg,
            source_import_id=import_id,
        )
        stmt = stmt.on_conflict_do_update(
            constraint=KPI_UPSERT_CONSTRAINT,
            set_={
                "orders_count": stmt.excluded.orders_count,
                "boxes_count": stmt.excluded.boxes_count,
                "weight_kg": stmt.excluded.weight_kg,
                "source_import_id": stmt.excluded.source_import_id,
                "updated_at": func.now(),
            },
        ).returning(literal_column("(xmax = 0)").label("inserted"))
        return bool(self._session.execute(stmt).scalar_one())
