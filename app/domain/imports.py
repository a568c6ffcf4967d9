"""
app/domain/imports.py

Domain models used by the KPI and catalog import flows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Union

# A raw spreadsheet/CSV cell as handed over by the tabular reader.
CellValue = Union[str, int, float, datetime, date, None]
RawRecord = dict[str, CellValue]


@dataclass(frozen=True)
class KpiRow:
    """
    One validated worker-day productivity record.
    """

    user_name: str
    work_date: date
    orders_count: int
    boxes_count: int
    weight_kg: Decimal


@dataclass(frozen=True)
class OrderCatalogRow:
    """
    One shaped order catalog ("Base") record.
    """

    order_number: str
    lot: str | None = None
    volume: int | None = None
    weight_kg: Decimal | None = None
    route: str | None = None
    description: str | None = None
    base_date: date | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "order_number": self.order_number,
            "lot": self.lot,
            "volume": self.volume,
            "weight_kg": self.weight_kg,
            "route": self.route,
            "description": self.description,
            "base_date": self.base_date,
        }


@dataclass(frozen=True)
class KpiParseResult:
    """
    Output of the KPI parse pipeline, before anything is persisted.
    """

    rows: list[KpiRow]
    rejection_reasons: list[str]
    preview: list[dict[str, Any]]
    file_hash: str

    @property
    def processed_rows(self) -> int:
        return len(self.rows) + len(self.rejection_reasons)


@dataclass(frozen=True)
class UpsertCounts:
    inserted: int = 0
    updated: int = 0
    skipped: int = 0


@dataclass(frozen=True)
class KpiImportSummary:
    processed_rows: int
    inserted_rows: int
    updated_rows: int
    rejected_rows: int


@dataclass(frozen=True)
class KpiImportResult:
    import_id: str
    summary: KpiImportSummary
    preview: list[dict[str, Any]] = field(default_factory=list)
    rejections: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CatalogImportSummary:
    processed_rows: int
    inserted_rows: int
    updated_rows: int
    skipped_rows: int
    consolidated_descents: int
    rejected_rows: int = 0


@dataclass(frozen=True)
class CatalogImportResult:
    import_id: str
    summary: CatalogImportSummary


@dataclass(frozen=True)
class Actor:
    """
    Caller identity supplied by the authentication collaborator.
    """

    user_id: str | None = None
    name: str | None = None
    pen_color: str | None = None
