"""
Values -- numeric parsing and the sanctioned rounding helpers.

Responsibility:
    Converts loosely-typed inputs (JSON numbers, form strings, Decimals)
    into ``Decimal`` and rounds financial values.  Money is reported to
    2 decimal places, rates and percentages to 4.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - No floats in arithmetic.  A finite float input is converted through
      ``str()`` so that ``0.1`` becomes ``Decimal("0.1")``.  Floats appear
      only at the document boundary (``to_number``), after rounding.
    - ROUND_HALF_UP everywhere.  ``round_money`` and ``round_rate`` are the
      only rounding functions used for reported values.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

MONEY_DECIMAL_PLACES = 2
RATE_DECIMAL_PLACES = 4
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def parse_numeric(value: Any) -> Decimal | None:
    """
    Parse a number from an int, float, Decimal or numeric string.

    Strings are trimmed and thousands separators (``,``) removed.
    Underscore digit grouping (``"1_000"``) is not a number.
    Returns None when the value is not a finite number; booleans are
    never treated as numbers.
    """
    if isinstance(value, bool) or value is None:
        return None

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "")
        if not cleaned or "_" in cleaned:
            return None
        try:
            result = Decimal(cleaned)
        except InvalidOperation:
            return None
    else:
        return None

    if not result.is_finite():
        return None
    return result


def round_money(value: Decimal, decimal_places: int = MONEY_DECIMAL_PLACES) -> Decimal:
    """Round a monetary value (default 2 places, ROUND_HALF_UP)."""
    quantum = Decimal(1).scaleb(-decimal_places)
    return value.quantize(quantum, rounding=DEFAULT_ROUNDING)


def round_rate(value: Decimal) -> Decimal:
    """Round a rate or percentage to 4 places."""
    return round_money(value, RATE_DECIMAL_PLACES)


def to_wire(value: Decimal | None) -> str | None:
    """Canonical string form used in caller-facing payloads."""
    if value is None:
        return None
    return str(value)


def to_number(value: Decimal | None, decimal_places: int = MONEY_DECIMAL_PLACES) -> float | None:
    """
    JSON number stored on persisted documents.

    The value is rounded first (money to 2 places by default, pass
    ``RATE_DECIMAL_PLACES`` for rates and percentages), so the float is the
    nearest binary value to the reported figure.
    """
    if value is None:
        return None
    return float(round_money(value, decimal_places))


def to_rate_number(value: Decimal | None) -> float | None:
    return to_number(value, RATE_DECIMAL_PLACES)


def from_wire(value: Any, default: Decimal = ZERO) -> Decimal:
    """Read a persisted amount; accepts JSON numbers and legacy decimal strings."""
    parsed = parse_numeric(value)
    return default if parsed is None else parsed
