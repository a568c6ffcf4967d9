"""
app/services/reconciliation_service.py

Reconciles parsed import rows against stored state.

The engine never commits: the import service owns the transaction and
every method here runs inside it. Conflict resolution is delegated to the
storage layer (``ON CONFLICT``), so no in-process locking is needed.

Insert/update counts for the catalog upsert path are an estimate derived
from a pre-count of existing order numbers per chunk:

    inserted = max(0, affected - preexisting)
    updated  = min(preexisting, affected)

This is exact whenever every upserted row is reported back by the
statement. The KPI path reports per row instead and is always exact.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator, Sequence
from typing import Protocol, TypeVar

from sqlalchemy.orm import Session

from app.domain.imports import KpiRow, OrderCatalogRow, UpsertCounts
from db.repositories.descent_repository import DescentRepository
from db.repositories.kpi_repository import KpiDailyRepository
from db.repositories.order_catalog_repository import OrderCatalogRepository

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000

T = TypeVar("T")


class KpiStore(Protocol):
    def upsert_row(self, row: KpiRow, *, import_id: uuid.UUID) -> bool:
        ...


class CatalogStore(Protocol):
    def count_existing(self, order_numbers: Sequence[str]) -> int:
        ...

    def upsert_rows(self, rows: Sequence[OrderCatalogRow], *, import_id: uuid.UUID) -> int:
        ...

    def insert_missing_rows(self, rows: Sequence[OrderCatalogRow], *, import_id: uuid.UUID) -> int:
        ...


class DescentStore(Protocol):
    def backfill_from_catalog(self) -> int:
        ...


def iter_chunks(rows: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    step = max(1, size)
    for start in range(0, len(rows), step):
        yield rows[start : start + step]


class ReconciliationEngine:
    """
    Persists imported rows with upsert / insert-only semantics and backfills
    descents from the catalog.
    """

    def __init__(
        self,
        *,
        kpi_store: KpiStore,
        catalog_store: CatalogStore,
        descent_store: DescentStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self._kpi_store = kpi_store
        self._catalog_store = catalog_store
        self._descent_store = descent_store
        self._batch_size = max(1, batch_size)

    @classmethod
    def for_session(cls, session: Session, *, batch_size: int = DEFAULT_BATCH_SIZE) -> ReconciliationEngine:
        return cls(
            kpi_store=KpiDailyRepository(session),
            catalog_store=OrderCatalogRepository(session),
            descent_store=DescentRepository(session),
            batch_size=batch_size,
        )

    def persist_kpi_rows(self, rows: Sequence[KpiRow], *, import_id: uuid.UUID) -> UpsertCounts:
        """
        Upsert KPI rows one by one on ``(user_name, work_date)``.
        """

        inserted = 0
        updated = 0
        for row in rows:
            if self._kpi_store.upsert_row(row, import_id=import_id):
                inserted += 1
            else:
                updated += 1

        logger.info(
            "KPI rows reconciled import_id=%s inserted=%s updated=%s",
            import_id,
            inserted,
            updated,
        )
        return UpsertCounts(inserted=inserted, updated=updated)

    def upsert_catalog_rows(
        self,
        rows: Sequence[OrderCatalogRow],
        *,
        import_id: uuid.UUID,
    ) -> UpsertCounts:
        """
        Insert or overwrite catalog rows chunk by chunk.
        """

        inserted = 0
        updated = 0
        for chunk in iter_chunks(rows, self._batch_size):
            existing = self._catalog_store.count_existing([row.order_number for row in chunk])
            affected = self._catalog_store.upsert_rows(chunk, import_id=import_id)
            inserted += max(0, affected - existing)
            updated += min(existing, affected)

        logger.info(
            "Catalog rows upserted import_id=%s inserted=%s updated=%s",
            import_id,
            inserted,
            updated,
        )
        return UpsertCounts(inserted=inserted, updated=updated)

    def insert_only_catalog_rows(
        self,
        rows: Sequence[OrderCatalogRow],
        *,
        import_id: uuid.UUID,
    ) -> UpsertCounts:
        """
        Insert catalog rows that are not stored yet; existing order numbers are
        counted as skipped and left untouched.
        """

        inserted = 0
        skipped = 0
        for chunk in iter_chunks(rows, self._batch_size):
            existing = self._catalog_store.count_existing([row.order_number for row in chunk])
            inserted += self._catalog_store.insert_missing_rows(chunk, import_id=import_id)
            skipped += existing

        logger.info(
            "Catalog rows inserted import_id=%s inserted=%s skipped=%s",
            import_id,
            inserted,
            skipped,
        )
        return UpsertCounts(inserted=inserted, updated=0, skipped=skipped)

    def backfill_descents(self) -> int:
        touched = self._descent_store.backfill_from_catalog()
        logger.info("Descents backfilled from catalog count=%s", touched)
        return touched
