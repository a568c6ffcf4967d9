"""
app/validators/coercers.py

Cell-level coercion helpers shared by the KPI validator and catalog parser.

Every helper is pure and returns ``None`` for input it cannot interpret;
deciding whether a missing value is an error is left to the caller.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from openpyxl.utils.datetime import from_excel

_BR_DATE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")
_NON_DIGITS = re.compile(r"\D")

# PostgreSQL INTEGER and unconstrained NUMERIC storage limits.
INT4_MIN = -2_147_483_648
INT4_MAX = 2_147_483_647
NUMERIC_MAX_INTEGER_DIGITS = 131_072
NUMERIC_MAX_SCALE = 16_383

FALLBACK_DATE_FORMATS: tuple[str, ...] = (
    "%Y/%m/%d",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
)


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    return str(value).strip() == ""


def parse_date_value(value: Any) -> date | None:
    """
    Coerce a cell into a calendar date.

    Accepts native dates, spreadsheet serial numbers, ``dd/mm/yyyy`` strings
    (always day first) and ISO-8601 date or datetime strings.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _from_serial(value)
    if not isinstance(value, str):
        return None

    raw = value.strip()
    if not raw:
        return None

    match = _BR_DATE.match(raw)
    if match:
        day, month, year = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError:
            pass

    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass

    normalized = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
    try:
        return datetime.fromisoformat(normalized).date()
    except ValueError:
        pass

    for fmt in FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    return None


def _from_serial(serial: float) -> date | None:
    if not math.isfinite(serial):
        return None
    try:
        converted = from_excel(serial)
    except (OverflowError, ValueError, TypeError):
        return None
    if isinstance(converted, datetime):
        return converted.date()
    if isinstance(converted, date):
        return converted
    return None


def parse_decimal(value: Any) -> Decimal | None:
    """
    Coerce a cell into a finite Decimal.

    String cells may use a decimal comma: the first ``,`` is read as ``.``,
    so ``"12,5"`` and ``"12.5"`` both yield ``Decimal("12.5")``.
    """

    if value is None or isinstance(value, bool):
        return None
    raw = str(value).strip()
    if not raw:
        return None
    if isinstance(value, str):
        raw = raw.replace(",", ".", 1)
    try:
        number = Decimal(raw)
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    return number


def fits_int4(number: int) -> bool:
    return INT4_MIN <= number <= INT4_MAX


def fits_numeric(number: Decimal) -> bool:
    """
    Return True when ``number`` can be stored in an unconstrained NUMERIC.
    """

    if number.is_zero():
        return True
    exponent = number.as_tuple().exponent
    return number.adjusted() < NUMERIC_MAX_INTEGER_DIGITS and -exponent <= NUMERIC_MAX_SCALE


def normalize_nullable_int(value: Any) -> int | None:
    """
    Coerce to an integer rounded half up; blank, non-numeric or outside the
    INTEGER column range gives None.
    """

    if isinstance(value, bool):
        return None
    if value is not None and not isinstance(value, str):
        value = str(value)
    number = parse_decimal(value)
    if number is None or number.adjusted() > 10:
        return None
    rounded = math.floor(number + Decimal("0.5"))
    return rounded if fits_int4(rounded) else None


def normalize_nullable_number(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    if value is not None and not isinstance(value, str):
        value = str(value)
    number = parse_decimal(value)
    if number is None or not fits_numeric(number):
        return None
    return number


def normalize_nullable_string(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        text = value.isoformat()
    elif isinstance(value, float) and value.is_integer():
        text = str(int(value))
    else:
        text = str(value)
    text = text.strip()
    return text or None


def normalize_order_number(value: str) -> str:
    """
    Reduce an order code to its digits; codes without digits are kept trimmed.

    >>> normalize_order_number(" 00-1234 ")
    '001234'
    >>> normalize_order_number(" ABC ")
    'ABC'
    """

    digits = _NON_DIGITS.sub("", value)
    return digits or value.strip()
