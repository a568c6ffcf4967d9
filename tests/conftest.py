"""
tests/conftest.py

In-memory stand-ins for the session, repositories and audit logger so the
import and descent flows run without a database.
"""

from __future__ import annotations

import io
import uuid
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from typing import Any, Sequence

import pytest
import xlrd
from openpyxl import Workbook
from xlrd.sheet import Cell

from app.domain.imports import KpiRow, OrderCatalogRow
from app.services.reconciliation_service import ReconciliationEngine
from db.models.import_batch import ImportStatus
from db.repositories.errors import ImportBatchStateError


class FakeSession:
    def __init__(self) -> None:
        self.commits = 0
        self.rollbacks = 0
        self.closed = False
        self.added: list[Any] = []

    def add(self, obj: Any) -> None:
        self.added.append(obj)

    def flush(self) -> None:
        pass

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> FakeSession:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class RecordingAuditLogger:
    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    def log(self, *, action: str, user_id: str | None = None, meta: dict[str, Any] | None = None) -> None:
        self.events.append({"action": action, "user_id": user_id, "meta": dict(meta or {})})

    @property
    def actions(self) -> list[str]:
        return [event["action"] for event in self.events]


class InMemoryBatchRepository:
    """Shared across sessions so a test can inspect stored batches."""

    def __init__(self) -> None:
        self.batches: dict[uuid.UUID, SimpleNamespace] = {}

    def __call__(self, _session: Any) -> InMemoryBatchRepository:
        return self

    def create_batch(
        self,
        *,
        filename: str,
        file_hash: str,
        import_type: str,
        rejection_report: Any,
        imported_by_user_id: str | None = None,
    ) -> SimpleNamespace:
        batch = SimpleNamespace(
            id=uuid.uuid4(),
            filename=filename,
            file_hash=file_hash,
            import_type=import_type,
            status=ImportStatus.PROCESSING,
            processed_rows=0,
            inserted_rows=0,
            updated_rows=0,
            rejected_rows=0,
            skipped_rows=0,
            consolidated_descents=0,
            rejection_report=rejection_report,
            error_message=None,
            imported_by_user_id=imported_by_user_id,
            imported_at=None,
        )
        self.batches[batch.id] = batch
        return batch

    def get_batch(self, batch_id: uuid.UUID) -> SimpleNamespace | None:
        return self.batches.get(batch_id)

    def list_batches(self, *, limit: int = 50, import_type: str | None = None) -> list[SimpleNamespace]:
        batches = [b for b in self.batches.values() if import_type in (None, b.import_type)]
        return list(reversed(batches))[:limit]

    def mark_success(self, *, batch_id: uuid.UUID, **counts: Any) -> SimpleNamespace:
        batch = self._open(batch_id)
        batch.status = ImportStatus.SUCCESS
        for key, value in counts.items():
            setattr(batch, key, value)
        return batch

    def mark_failed(self, *, batch_id: uuid.UUID, error_message: str) -> SimpleNamespace:
        batch = self._open(batch_id)
        batch.status = ImportStatus.FAILED
        batch.error_message = error_message
        return batch

    def _open(self, batch_id: uuid.UUID) -> SimpleNamespace:
        batch = self.batches[batch_id]
        if batch.status != ImportStatus.PROCESSING:
            raise ImportBatchStateError(f"Import batch {batch_id} is already finalized.")
        return batch


class InMemoryKpiStore:
    def __init__(self) -> None:
        self.rows: dict[tuple[str, date], KpiRow] = {}

    def upsert_row(self, row: KpiRow, *, import_id: uuid.UUID) -> bool:
        key = (row.user_name, row.work_date)
        inserted = key not in self.rows
        self.rows[key] = row
        return inserted


class InMemoryCatalogStore:
    def __init__(self, existing: Sequence[OrderCatalogRow] = ()) -> None:
        self.rows: dict[str, OrderCatalogRow] = {row.order_number: row for row in existing}

    def count_existing(self, order_numbers: Sequence[str]) -> int:
        return sum(1 for number in order_numbers if number in self.rows)

    def upsert_rows(self, rows: Sequence[OrderCatalogRow], *, import_id: uuid.UUID) -> int:
        for row in rows:
            self.rows[row.order_number] = row
        return len(rows)

    def insert_missing_rows(self, rows: Sequence[OrderCatalogRow], *, import_id: uuid.UUID) -> int:
        inserted = 0
        for row in rows:
            if row.order_number not in self.rows:
                self.rows[row.order_number] = row
                inserted += 1
        return inserted


class InMemoryDescentStore:
    BACKFILLED = ("lot", "volume", "weight_kg", "route")

    def __init__(self, catalog: InMemoryCatalogStore, descents: Sequence[dict[str, Any]] = ()) -> None:
        self.catalog = catalog
        self.descents = [dict(d) for d in descents]

    def backfill_from_catalog(self) -> int:
        touched = 0
        for descent in self.descents:
            entry = self.catalog.rows.get(descent["order_number"])
            if entry is None:
                continue
            if all(descent.get(name) is not None for name in self.BACKFILLED):
                continue
            for name in self.BACKFILLED:
                if descent.get(name) is None:
                    descent[name] = getattr(entry, name)
            touched += 1
        return touched


class FailingKpiStore(InMemoryKpiStore):
    def __init__(self, exc: Exception) -> None:
        super().__init__()
        self.exc = exc

    def upsert_row(self, row: KpiRow, *, import_id: uuid.UUID) -> bool:
        raise self.exc


def build_engine(
    *,
    kpi_store: Any = None,
    catalog_store: InMemoryCatalogStore | None = None,
    descents: Sequence[dict[str, Any]] = (),
    batch_size: int = 1000,
) -> ReconciliationEngine:
    catalog_store = catalog_store or InMemoryCatalogStore()
    return ReconciliationEngine(
        kpi_store=kpi_store or InMemoryKpiStore(),
        catalog_store=catalog_store,
        descent_store=InMemoryDescentStore(catalog_store, descents),
        batch_size=batch_size,
    )


def xlsx_bytes(sheets: dict[str, list[list[Any]]]) -> bytes:
    """Build an in-memory XLSX workbook from ``{sheet: rows}``."""
    workbook = Workbook()
    workbook.remove(workbook.active)
    for title, rows in sheets.items():
        sheet = workbook.create_sheet(title)
        for row in rows:
            sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


class FakeXlsBook:
    """
    Stands in for an ``xlrd.Book``; each sheet is a list of rows of
    ``(ctype, value)`` pairs.
    """

    def __init__(self, sheets: dict[str, list[list[tuple[int, Any]]]], datemode: int = 0) -> None:
        self._sheets = sheets
        self.datemode = datemode
        self.released = False

    def sheet_names(self) -> list[str]:
        return list(self._sheets)

    def sheet_by_name(self, name: str) -> SimpleNamespace:
        rows = [[Cell(ctype, value) for ctype, value in row] for row in self._sheets[name]]
        return SimpleNamespace(nrows=len(rows), row=lambda index: rows[index])

    def release_resources(self) -> None:
        self.released = True


def xls_text_row(values: Sequence[str]) -> list[tuple[int, Any]]:
    return [(xlrd.XL_CELL_TEXT, value) for value in values]


def install_xls_book(monkeypatch: pytest.MonkeyPatch, book: FakeXlsBook) -> list[bytes]:
    """Route ``xlrd.open_workbook`` to ``book``; returns the contents it was handed."""
    received: list[bytes] = []

    def open_workbook(*, file_contents: bytes) -> FakeXlsBook:
        received.append(file_contents)
        return book

    monkeypatch.setattr(xlrd, "open_workbook", open_workbook)
    return received


KPI_HEADER = ["Usuário", "Data", "Pedidos", "Volume", "Peso"]

THREE_ROW_KPI_CSV = (
    "Usuário,Data,Pedidos,Volume,Peso\n"
    'Ana,05/03/2024,10,4,"12,5"\n'
    "Bruno,not-a-date,3,2,1\n"
    "Carla,2024-03-05,7,3,8.25\n"
).encode("utf-8")

NEGATIVE_COUNT_KPI_CSV = (
    "Usuário,Data,Pedidos,Volume,Peso\n"
    'Ana,05/03/2024,10,4,"12,5"\n'
    "Bruno,05/03/2024,-3,2,1\n"
    "Carla,2024-03-05,7,3,8.25\n"
).encode("utf-8")


def catalog_row(order_number: str, **fields: Any) -> OrderCatalogRow:
    defaults: dict[str, Any] = {
        "lot": "L1",
        "volume": 2,
        "weight_kg": Decimal("3.5"),
        "route": "R9",
        "description": "Widget",
    }
    defaults.update(fields)
    return OrderCatalogRow(order_number=order_number, **defaults)


@pytest.fixture()
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture()
def audit() -> RecordingAuditLogger:
    return RecordingAuditLogger()


@pytest.fixture()
def batch_repository() -> InMemoryBatchRepository:
    return InMemoryBatchRepository()
