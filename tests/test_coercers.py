"""
tests/test_coercers.py

Cell coercion rules shared by the KPI validator and catalog parser.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from app.validators.coercers import (
    is_blank,
    normalize_nullable_int,
    normalize_nullable_number,
    normalize_nullable_string,
    normalize_order_number,
    parse_date_value,
    parse_decimal,
)


class TestParseDateValue:
    def test_day_first_string(self) -> None:
        assert parse_date_value("05/03/2024") == date(2024, 3, 5)

    def test_serial_and_string_agree(self) -> None:
        assert parse_date_value(45356) == parse_date_value("05/03/2024")
        assert parse_date_value(45356.75) == date(2024, 3, 5)

    def test_native_values(self) -> None:
        assert parse_date_value(datetime(2024, 3, 5, 18, 30)) == date(2024, 3, 5)
        assert parse_date_value(date(2024, 3, 5)) == date(2024, 3, 5)

    @pytest.mark.parametrize("raw", ["2024-03-05", "2024-03-05T10:00:00", "2024-03-05T10:00:00Z"])
    def test_iso_strings(self, raw: str) -> None:
        assert parse_date_value(raw) == date(2024, 3, 5)

    @pytest.mark.parametrize("raw", ["", "   ", "not-a-date", "31/02/2024", None, True])
    def test_unparseable_values_return_none(self, raw: object) -> None:
        assert parse_date_value(raw) is None


class TestParseDecimal:
    def test_decimal_comma_equals_dot(self) -> None:
        assert parse_decimal("12,5") == parse_decimal("12.5") == Decimal("12.5")

    def test_numbers_pass_through(self) -> None:
        assert parse_decimal(3) == Decimal(3)
        assert parse_decimal(2.25) == Decimal("2.25")

    @pytest.mark.parametrize("raw", [None, "", "abc", "nan", "inf", False])
    def test_rejects_non_finite_and_garbage(self, raw: object) -> None:
        assert parse_decimal(raw) is None


class TestNullableNormalizers:
    def test_int_rounds_half_up(self) -> None:
        assert normalize_nullable_int("2,5") == 3
        assert normalize_nullable_int(2.4) == 2
        assert normalize_nullable_int("") is None
        assert normalize_nullable_int("x") is None

    def test_int_outside_integer_column_is_dropped(self) -> None:
        assert normalize_nullable_int("2147483647") == 2147483647
        assert normalize_nullable_int("2147483648") is None
        assert normalize_nullable_int("-2147483649") is None
        assert normalize_nullable_int("1e40") is None

    def test_number_keeps_fraction(self) -> None:
        assert normalize_nullable_number("7,125") == Decimal("7.125")
        assert normalize_nullable_number(None) is None
        assert normalize_nullable_number("1e12") == Decimal("1e12")
        assert normalize_nullable_number("1e200000") is None

    def test_string_stringifies_integral_floats(self) -> None:
        assert normalize_nullable_string(123.0) == "123"
        assert normalize_nullable_string("  L-9 ") == "L-9"
        assert normalize_nullable_string("   ") is None
        assert normalize_nullable_string(None) is None

    def test_order_number_keeps_digits_only(self) -> None:
        assert normalize_order_number(" 00-1234 ") == "001234"
        assert normalize_order_number("PED 55/7") == "557"
        assert normalize_order_number(" ABC ") == "ABC"


def test_is_blank() -> None:
    assert is_blank(None)
    assert is_blank("  ")
    assert not is_blank(0)
