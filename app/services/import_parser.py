"""
app/services/import_parser.py

Pure parse pipelines for the KPI and order catalog ("Base") feeds.

Reader -> header mapping -> coercion -> validation. Nothing here touches
the database; persistence lives in the reconciliation engine.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import date, datetime
from functools import lru_cache
from typing import Any, Mapping

from app.config import get_import_settings
from app.domain.imports import KpiParseResult, KpiRow, OrderCatalogRow, RawRecord
from app.mappers.header_mapper import first_present, map_kpi_record, normalize_record
from app.readers.tabular_reader import read_catalog_records, read_kpi_records
from app.validators.coercers import (
    normalize_nullable_int,
    normalize_nullable_number,
    normalize_nullable_string,
    normalize_order_number,
    parse_date_value,
)
from app.validators.kpi_validator import KPIRowValidator

logger = logging.getLogger(__name__)


class KPIImportParser:
    """
    Turns a raw KPI upload into valid rows, rejection lines, and a preview.
    """

    def __init__(
        self,
        *,
        preview_rows: int = 20,
        log_rejections: bool = True,
        validator: KPIRowValidator | None = None,
    ) -> None:
        self._preview_rows = max(0, preview_rows)
        self._log_rejections = log_rejections
        self._validator = validator or KPIRowValidator()

    def parse(
        self,
        *,
        filename: str,
        content: bytes,
        sheet_name: str | None = None,
    ) -> KpiParseResult:
        """
        Parse one KPI file.

        Raises a ``TabularFormatError`` subclass when the file itself is
        unusable; malformed rows never raise and are reported instead.
        """

        records = read_kpi_records(filename, content, sheet_name)

        valid_rows: list[KpiRow] = []
        rejection_reasons: list[str] = []

        for index, record in enumerate(records):
            mapped = map_kpi_record(record)
            if self._validator.is_empty_row(mapped):
                continue

            row, errors = self._validator.validate_mapped_row(mapped_row=mapped)
            if errors:
                rejection = self._validator.format_rejection(index, errors)
                if self._log_rejections:
                    logger.warning("KPI row rejected filename=%r %s", filename, rejection)
                rejection_reasons.append(rejection)
                continue
            if row is not None:
                valid_rows.append(row)

        return KpiParseResult(
            rows=valid_rows,
            rejection_reasons=rejection_reasons,
            preview=[_preview_record(record) for record in records[: self._preview_rows]],
            file_hash=hashlib.sha256(content).hexdigest(),
        )


class OrderCatalogParser:
    """
    Shapes catalog records into ``OrderCatalogRow`` objects.
    """

    def parse(self, *, filename: str, content: bytes) -> list[OrderCatalogRow]:
        """
        Parse one catalog file. Rows without an order number are skipped;
        repeated order numbers keep their first occurrence.
        """

        shaped: list[OrderCatalogRow] = []
        for record in read_catalog_records(filename, content):
            row = self.shape_record(record)
            if row is not None:
                shaped.append(row)

        deduped = deduplicate_by_order_number(shaped)
        if len(deduped) != len(shaped):
            logger.info(
                "Catalog duplicates dropped filename=%r kept=%s dropped=%s",
                filename,
                len(deduped),
                len(shaped) - len(deduped),
            )
        return deduped

    @staticmethod
    def shape_record(record: Mapping[str, Any]) -> OrderCatalogRow | None:
        normalized = normalize_record(record)
        order = normalize_nullable_string(first_present(normalized, "order_number"))
        if order is None:
            return None

        return OrderCatalogRow(
            order_number=normalize_order_number(order),
            lot=normalize_nullable_string(first_present(normalized, "lot")),
            volume=normalize_nullable_int(first_present(normalized, "volume")),
            weight_kg=normalize_nullable_number(first_present(normalized, "weight_kg")),
            route=normalize_nullable_string(first_present(normalized, "route")),
            description=normalize_nullable_string(first_present(normalized, "description")),
            base_date=parse_date_value(first_present(normalized, "base_date")),
        )


def deduplicate_by_order_number(rows: list[OrderCatalogRow]) -> list[OrderCatalogRow]:
    kept: dict[str, OrderCatalogRow] = {}
    for row in rows:
        kept.setdefault(row.order_number, row)
    return list(kept.values())


def _preview_record(record: RawRecord) -> dict[str, Any]:
    return {key: _json_safe(value) for key, value in record.items()}


def _json_safe(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_kpi_import_parser() -> KPIImportParser:
    settings = get_import_settings()
    return KPIImportParser(
        preview_rows=settings.preview_rows,
        log_rejections=settings.log_rejections,
    )


@lru_cache(maxsize=1)
def get_order_catalog_parser() -> OrderCatalogParser:
    return OrderCatalogParser()
