"""
db/repositories/descent_repository.py

Persistence layer for descent events.
"""

from __future__ import annotations

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from db.models.descent import Descent
from db.models.order_catalog import OrderCatalog


class DescentRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, descent: Descent) -> Descent:
        self._session.add(descent)
        self._session.flush()
        return descent

    def latest_for_order(self, order_number: str) -> Descent | None:
        stmt = (
            select(Descent)
            .where(Descent.order_number == order_number)
            .order_by(Descent.created_at.desc())
            .limit(1)
        )
        return self._session.scalars(stmt).first()

    def backfill_from_catalog(self) -> int:
        """
        Fill null lot/volume/weight/route on descents from the catalog row with
        the same order number. Populated values are never overwritten.

        Returns the number of descent rows touched.
        """
        stmt = (
            update(Descent)
            .where(
                Descent.order_number == OrderCatalog.order_number,
                or_(
                    Descent.lot.is_(None),
                    Descent.volume.is_(None),
                    Descent.weight_kg.is_(None),
                    Descent.route.is_(None),
                ),
            )
            .values(
                lot=func.coalesce(Descent.lot, OrderCatalog.lot),
                volume=func.coalesce(Descent.volume, OrderCatalog.volume),
                weight_kg=func.coalesce(Descent.weight_kg, OrderCatalog.weight_kg),
                route=func.coalesce(Descent.route, OrderCatalog.route),
            )
            .returning(Descent.id)
            .execution_options(synchronize_session=False)
        )
        return len(self._session.scalars(stmt).all())
