"""
Terms -- deposit duration buckets and maturity dates.

Each term maps to a number of six-month compounding cycles and a number
of calendar months.  Unknown terms map to 0 cycles / 0 months; only the
date derivation treats an unknown term as an error.
"""

import calendar
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any

from deposit_kernel.exceptions import InvalidDateError, InvalidTermError


class Term(str, Enum):
    """Supported deposit durations (wire values are the stored strings)."""

    SIX_MONTHS = "sixMonths"
    ONE_YEAR = "oneYear"
    TWO_YEARS = "twoYears"

    @property
    def label(self) -> str:
        return _TERM_LABELS[self]


TERM_TO_CYCLES: dict[Term, int] = {
    Term.SIX_MONTHS: 1,
    Term.ONE_YEAR: 2,
    Term.TWO_YEARS: 4,
}

TERM_TO_MONTHS: dict[Term, int] = {
    Term.SIX_MONTHS: 6,
    Term.ONE_YEAR: 12,
    Term.TWO_YEARS: 24,
}

_TERM_LABELS: dict[Term, str] = {
    Term.SIX_MONTHS: "6 Months",
    Term.ONE_YEAR: "1 Year",
    Term.TWO_YEARS: "2 Years",
}


def _lookup(term: Any) -> Term | None:
    if isinstance(term, Term):
        return term
    try:
        return Term(term)
    except ValueError:
        return None


def parse_term(term: Any) -> Term:
    """Return the Term for a wire value or raise InvalidTermError."""
    resolved = _lookup(term)
    if resolved is None:
        raise InvalidTermError(term)
    return resolved


def cycles_for_term(term: Any) -> int:
    resolved = _lookup(term)
    return TERM_TO_CYCLES[resolved] if resolved is not None else 0


def months_for_term(term: Any) -> int:
    resolved = _lookup(term)
    return TERM_TO_MONTHS[resolved] if resolved is not None else 0


def term_label(term: Any) -> str:
    """Human label for history descriptions; unknown terms echo back."""
    resolved = _lookup(term)
    return resolved.label if resolved is not None else str(term)


def parse_initial_date(value: Any) -> date:
    """
    Parse an initial date from a ``date``, ``datetime`` or ISO-8601 string.

    Raises:
        InvalidDateError: If the value does not parse.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
    raise InvalidDateError(value)


def add_months(start: date, months: int) -> date:
    """
    Calendar month addition with day overflow.

    When ``start.day`` does not exist in the target month the surplus days
    roll into the following month: 2026-08-31 + 6 months is 2027-03-03.
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    if start.day <= last_day:
        return start.replace(year=year, month=month)
    return date(year, month, last_day) + timedelta(days=start.day - last_day)


def calculate_completion_date(initial_date: Any, term: Any) -> date:
    """
    Maturity date = initial date + term months.

    Raises:
        InvalidTermError: If the term has no month mapping.
        InvalidDateError: If the initial date does not parse.
    """
    months = months_for_term(term)
    if not months:
        raise InvalidTermError(term)
    return add_months(parse_initial_date(initial_date), months)
