"""
app/mappers/header_mapper.py

Header normalization and alias-driven field mapping for import feeds.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any, Iterable, Mapping, Sequence

from app.domain.imports import CellValue

KPI_FIELDS: tuple[str, ...] = (
    "user_name",
    "work_date",
    "orders_count",
    "boxes_count",
    "weight_kg",
)

# Accepted normalized header names per KPI field, in resolution order.
KPI_COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "user_name": ("usuario", "user", "user_name", "nome"),
    "work_date": ("data", "date", "work_date"),
    "orders_count": ("pedidos", "pedidos_dia", "orders", "orders_count"),
    "boxes_count": ("volume", "caixas", "quantidades_dia", "boxes", "boxes_count"),
    "weight_kg": ("peso", "kg", "weight", "weight_kg"),
}

CATALOG_COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "order_number": ("pedido", "order", "order_number"),
    "lot": ("lote", "lot"),
    "volume": ("volume", "vol", "quantidade"),
    "weight_kg": ("peso", "kg", "weight"),
    "route": ("rota", "route"),
    "description": ("descricao", "description"),
    "base_date": ("data", "date"),
}

CATALOG_SHEET_MARKERS: tuple[str, ...] = ("pedido", "lote")

_WHITESPACE = re.compile(r"\s+")


def normalize_header(header: str) -> str:
    """
    Normalize a column name: trim, lowercase, strip accents, and collapse
    whitespace runs into a single underscore.

    >>> normalize_header("  USUÁRIO ")
    'usuario'
    >>> normalize_header("Pedidos  Dia")
    'pedidos_dia'
    """

    decomposed = unicodedata.normalize("NFD", header.strip().lower())
    without_marks = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE.sub("_", without_marks)


def normalize_record(record: Mapping[str, CellValue]) -> dict[str, CellValue]:
    """
    Re-key a raw record by normalized header. Later duplicates win.
    """

    return {normalize_header(str(key)): value for key, value in record.items()}


def normalized_headers(header_values: Iterable[Any]) -> set[str]:
    """Normalize the string cells of a header row; non-strings are ignored."""
    return {normalize_header(value) for value in header_values if isinstance(value, str)}


def has_required_kpi_columns(header_values: Sequence[Any]) -> bool:
    """
    True when every KPI field has at least one alias in the header row.
    """

    available = normalized_headers(header_values)
    return all(
        any(alias in available for alias in KPI_COLUMN_ALIASES[field])
        for field in KPI_FIELDS
    )


def is_catalog_header(header_values: Sequence[Any]) -> bool:
    available = normalized_headers(header_values)
    return all(marker in available for marker in CATALOG_SHEET_MARKERS)


def map_kpi_record(record: Mapping[str, CellValue]) -> dict[str, CellValue]:
    """
    Map one raw record onto the KPI fields; first alias present wins and
    fields with no matching column map to None.
    """

    normalized = normalize_record(record)
    mapped: dict[str, CellValue] = {}
    for field in KPI_FIELDS:
        found = next((alias for alias in KPI_COLUMN_ALIASES[field] if alias in normalized), None)
        mapped[field] = normalized[found] if found is not None else None
    return mapped


def first_present(normalized: Mapping[str, CellValue], field: str) -> CellValue:
    """
    Return the first non-None value among a catalog field's aliases.
    """

    for alias in CATALOG_COLUMN_ALIASES[field]:
        value = normalized.get(alias)
        if value is not None:
            return value
    return None
