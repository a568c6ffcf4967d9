"""
app/validators/kpi_validator.py

Row-level validation and type parsing for KPI feeds.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from app.domain.imports import KpiRow
from app.validators.coercers import (
    INT4_MAX,
    fits_numeric,
    is_blank,
    parse_date_value,
    parse_decimal,
)

# Reported line = 1-based data row index + this offset (header is line 1).
HEADER_ROW_OFFSET = 1
REASON_SEPARATOR = ", "


class KPIRowValidator:
    """
    Validates mapped KPI records and builds typed ``KpiRow`` objects.
    """

    def is_empty_row(self, mapped_row: Mapping[str, Any]) -> bool:
        """
        Return True when every mapped KPI field is blank or missing.
        """

        return all(is_blank(value) for value in mapped_row.values())

    def validate_mapped_row(
        self,
        *,
        mapped_row: Mapping[str, Any],
    ) -> tuple[KpiRow | None, list[str]]:
        """
        Validate one mapped record; returns the typed row or the list of
        failure reasons, never both.
        """

        errors: list[str] = []

        user_name = self._parse_user_name(mapped_row.get("user_name"), errors)
        work_date = parse_date_value(mapped_row.get("work_date"))
        if work_date is None:
            errors.append("work_date must be a valid date")
        orders_count = self._parse_count(mapped_row.get("orders_count"), "orders_count", errors)
        boxes_count = self._parse_count(mapped_row.get("boxes_count"), "boxes_count", errors)
        weight_kg = self._parse_weight(mapped_row.get("weight_kg"), errors)

        if errors:
            return None, errors

        return (
            KpiRow(
                user_name=user_name,
                work_date=work_date,
                orders_count=orders_count,
                boxes_count=boxes_count,
                weight_kg=weight_kg,
            ),
            [],
        )

    @staticmethod
    def format_rejection(row_index: int, errors: list[str]) -> str:
        """
        Build the rejection line for the 0-based data row ``row_index``.
        """

        line_number = row_index + 1 + HEADER_ROW_OFFSET
        return f"Line {line_number}: {REASON_SEPARATOR.join(errors)}"

    def _parse_user_name(self, value: Any, errors: list[str]) -> str:
        if is_blank(value):
            errors.append("user_name is required")
            return ""
        return str(value).strip()

    def _parse_count(self, value: Any, column: str, errors: list[str]) -> int:
        number = self._coerce_number(value, allow_decimal_comma=False)
        if number is None:
            errors.append(f"{column} must be a number")
            return 0
        if number != number.to_integral_value():
            errors.append(f"{column} must be an integer")
            return 0
        if number < 0:
            errors.append(f"{column} must be greater than or equal to 0")
            return 0
        if number > INT4_MAX:
            errors.append(f"{column} must be less than or equal to {INT4_MAX}")
            return 0
        return int(number)

    def _parse_weight(self, value: Any, errors: list[str]) -> Decimal:
        number = self._coerce_number(value, allow_decimal_comma=True)
        if number is None:
            errors.append("weight_kg must be a number")
            return Decimal(0)
        if number < 0:
            errors.append("weight_kg must be greater than or equal to 0")
            return Decimal(0)
        if not fits_numeric(number):
            errors.append("weight_kg is out of range")
            return Decimal(0)
        return number

    @staticmethod
    def _coerce_number(value: Any, *, allow_decimal_comma: bool) -> Decimal | None:
        # A present-but-empty cell counts as zero; an absent column does not.
        if value is None:
            return None
        if isinstance(value, str) and value.strip() == "":
            return Decimal(0)
        if isinstance(value, str) and not allow_decimal_comma and "," in value:
            return None
        return parse_decimal(value)
