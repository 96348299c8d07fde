"""Term lookups, initial-date parsing and completion-date derivation."""

from datetime import date, datetime, timezone

import pytest

from deposit_kernel.domain.terms import (
    Term,
    add_months,
    calculate_completion_date,
    cycles_for_term,
    months_for_term,
    parse_initial_date,
    parse_term,
    term_label,
)
from deposit_kernel.exceptions import InvalidDateError, InvalidTermError


class TestTermLookup:

    @pytest.mark.parametrize(
        "term, cycles, months",
        [("sixMonths", 1, 6), ("oneYear", 2, 12), ("twoYears", 4, 24)],
    )
    def test_static_mapping(self, term, cycles, months):
        assert cycles_for_term(term) == cycles
        assert months_for_term(term) == months

    def test_unknown_term_maps_to_zero(self):
        assert cycles_for_term("threeYears") == 0
        assert months_for_term(None) == 0

    def test_parse_term(self):
        assert parse_term("oneYear") is Term.ONE_YEAR
        assert parse_term(Term.TWO_YEARS) is Term.TWO_YEARS

    def test_parse_unknown_term_raises(self):
        with pytest.raises(InvalidTermError) as exc_info:
            parse_term("threeYears")
        assert exc_info.value.code == "INVALID_TERM"
        assert exc_info.value.term == "threeYears"

    def test_labels(self):
        assert term_label("sixMonths") == "6 Months"
        assert term_label(Term.ONE_YEAR) == "1 Year"
        assert term_label("weird") == "weird"


class TestParseInitialDate:

    def test_date_passthrough(self):
        assert parse_initial_date(date(2026, 2, 17)) == date(2026, 2, 17)

    def test_datetime_truncated(self):
        value = datetime(2026, 2, 17, 23, 0, tzinfo=timezone.utc)
        assert parse_initial_date(value) == date(2026, 2, 17)

    @pytest.mark.parametrize(
        "text", ["2026-02-17", "2026-02-17T10:30:00", "2026-02-17T10:30:00Z", "2026-02-17T10:30:00+08:00"]
    )
    def test_iso_strings(self, text):
        assert parse_initial_date(text) == date(2026, 2, 17)

    @pytest.mark.parametrize("value", ["not-a-date", "", None, 20260217, "2026-13-01"])
    def test_invalid(self, value):
        with pytest.raises(InvalidDateError) as exc_info:
            parse_initial_date(value)
        assert exc_info.value.code == "INVALID_INITIAL_DATE"


class TestCompletionDate:

    def test_six_months(self):
        assert calculate_completion_date("2026-02-17", "sixMonths") == date(2026, 8, 17)

    def test_one_year(self):
        assert calculate_completion_date(date(2026, 1, 31), "oneYear") == date(2027, 1, 31)

    def test_month_end_overflow_rolls_forward(self):
        assert add_months(date(2026, 8, 31), 6) == date(2027, 3, 3)

    def test_leap_day_two_years(self):
        assert calculate_completion_date(date(2024, 2, 29), "twoYears") == date(2026, 3, 1)

    def test_leap_day_into_leap_year(self):
        assert add_months(date(2027, 8, 29), 6) == date(2028, 2, 29)

    def test_unknown_term_raises_before_date_parsing(self):
        with pytest.raises(InvalidTermError):
            calculate_completion_date("garbage", "threeYears")

    def test_invalid_date_raises(self):
        with pytest.raises(InvalidDateError):
            calculate_completion_date("garbage", "oneYear")
