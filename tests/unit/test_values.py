"""Numeric parsing, rounding helpers, idempotency keys and error payloads."""

from decimal import Decimal
from uuid import UUID

import pytest

from deposit_kernel.domain.values import (
    from_wire,
    parse_numeric,
    round_money,
    round_rate,
    to_number,
    to_rate_number,
    to_wire,
)
from deposit_kernel.exceptions import (
    ConflictError,
    InvalidAmountError,
    InvalidInputError,
    NotFoundError,
    RateConfigUnavailableError,
    TimeDepositError,
    TransactionConflictError,
    UserNotFoundError,
    error_payload,
)
from deposit_kernel.utils import generate_idempotency_key, resolve_idempotency_key


class TestParseNumeric:

    @pytest.mark.parametrize(
        "value, expected",
        [
            (5, Decimal("5")),
            (0.1, Decimal("0.1")),
            ("  1,234.50 ", Decimal("1234.50")),
            (Decimal("7.25"), Decimal("7.25")),
            ("-3", Decimal("-3")),
        ],
    )
    def test_parses(self, value, expected):
        assert parse_numeric(value) == expected

    @pytest.mark.parametrize(
        "value",
        [None, True, False, "", "   ", "abc", "NaN", "Infinity", "1_000", "2_500.50", float("nan"), float("-inf"), [1]],
    )
    def test_rejects(self, value):
        assert parse_numeric(value) is None


class TestRounding:

    def test_money_half_up(self):
        assert round_money(Decimal("2.345")) == Decimal("2.35")
        assert round_money(Decimal("-2.345")) == Decimal("-2.35")

    def test_rate_four_places(self):
        assert round_rate(Decimal("3.33335")) == Decimal("3.3334")
        assert str(round_rate(Decimal("5"))) == "5.0000"

    def test_wire_round_trip_keeps_scale(self):
        assert to_wire(Decimal("10.50")) == "10.50"
        assert from_wire("10.50") == Decimal("10.50")
        assert to_wire(None) is None

    def test_document_numbers_are_rounded_floats(self):
        assert to_number(Decimal("2.345")) == 2.35
        assert to_rate_number(Decimal("3.33335")) == 3.3334
        assert isinstance(to_number(Decimal("100")), float)
        assert to_number(None) is None

    def test_document_numbers_read_back(self):
        assert from_wire(to_number(Decimal("5600.00"))) == Decimal("5600.00")

    def test_from_wire_tolerates_legacy_values(self):
        assert from_wire(12.5) == Decimal("12.5")
        assert from_wire(None) == Decimal("0")
        assert from_wire("garbage", default=Decimal("-1")) == Decimal("-1")


class TestIdempotencyKeys:

    def test_caller_key_is_trimmed(self):
        assert resolve_idempotency_key("  req-42 ") == "req-42"

    @pytest.mark.parametrize("request_id", [None, "", "   ", 42])
    def test_generated_when_absent(self, request_id):
        key = resolve_idempotency_key(request_id)
        assert UUID(key).version == 4

    def test_generated_keys_differ(self):
        assert generate_idempotency_key() != generate_idempotency_key()


class TestErrors:

    def test_hierarchy(self):
        assert issubclass(InvalidAmountError, InvalidInputError)
        assert issubclass(UserNotFoundError, NotFoundError)
        assert issubclass(TransactionConflictError, ConflictError)
        assert all(
            issubclass(cls, TimeDepositError)
            for cls in (InvalidInputError, NotFoundError, ConflictError)
        )

    def test_retryable_categories(self):
        assert TransactionConflictError(["a/b"]).retryable is True
        assert RateConfigUnavailableError("src", "down").retryable is True
        assert InvalidAmountError(-1).retryable is False
        assert UserNotFoundError("x").retryable is False

    def test_error_payload(self):
        payload = error_payload(InvalidAmountError("abc"))
        assert payload == {
            "code": "INVALID_AMOUNT",
            "message": "Amount 'abc' must be a valid non-negative number",
            "retryable": False,
        }

    def test_conflict_lists_paths(self):
        exc = TransactionConflictError(["users/u1", "counters/investmentProfileId"])
        assert str(exc) == "Transaction conflict on: users/u1, counters/investmentProfileId"
        assert error_payload(exc)["code"] == "TRANSACTION_CONFLICT"
