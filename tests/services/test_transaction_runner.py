"""Retry-on-conflict unit of work runner and the display-id counter."""

import pytest

from deposit_kernel.db.unit_of_work import DocumentKey
from deposit_kernel.exceptions import TransactionConflictError
from deposit_kernel.services.sequence_service import SequenceService
from deposit_kernel.services.transaction_runner import run_in_transaction

DOC = DocumentKey("users", "u1")


class TestRunInTransaction:

    def test_commits_result(self, store):
        result = run_in_transaction(store, lambda ctx: ctx.set(DOC, {"a": 1}) or "done")

        assert result == "done"
        assert store.read(DOC) == {"a": 1}

    def test_retries_after_conflict(self, store, captured_logs):
        attempts = []

        def work(ctx):
            ctx.get(DOC)
            if not attempts:
                store.seed(DOC, {"changed": True})
            attempts.append(1)
            ctx.update(DOC, {"n": len(attempts)})

        run_in_transaction(store, work)

        assert len(attempts) == 2
        assert store.read(DOC) == {"changed": True, "n": 2}
        retry = next(r for r in captured_logs() if r["message"] == "transaction_conflict_retry")
        assert retry["attempt"] == 1
        assert retry["paths"] == ["users/u1"]

    def test_exhausted_retries_reraise(self, store, captured_logs):
        def always_conflicts(ctx):
            ctx.get(DOC)
            store.seed(DOC, {"bump": True})
            ctx.set(DOC, {"mine": True})

        with pytest.raises(TransactionConflictError):
            run_in_transaction(store, always_conflicts, max_attempts=3)

        assert store.read(DOC) == {"bump": True}
        assert any(r["message"] == "transaction_conflict_exhausted" for r in captured_logs())

    def test_other_errors_roll_back_without_retry(self, store):
        attempts = []

        def fails(ctx):
            attempts.append(1)
            ctx.set(DOC, {"a": 1})
            raise KeyError("boom")

        with pytest.raises(KeyError):
            run_in_transaction(store, fails)

        assert attempts == [1]
        assert store.read(DOC) is None

    def test_rejects_non_positive_attempts(self, store):
        with pytest.raises(ValueError):
            run_in_transaction(store, lambda ctx: None, max_attempts=0)


class TestSequenceService:

    def test_first_value_is_one(self, store):
        ctx = store.begin()
        assert SequenceService(ctx).next_display_id() == "0000001"
        ctx.commit()
        assert store.read(SequenceService.counter_key("investmentProfileId")) == {"currentValue": 1}

    def test_continues_from_stored_counter(self, store):
        store.seed(SequenceService.counter_key("investmentProfileId"), {"currentValue": 41})
        ctx = store.begin()
        sequence = SequenceService(ctx)

        assert sequence.next_display_id() == "0000042"
        assert sequence.next_display_id(width=3) == "043"
        assert sequence.current_value("investmentProfileId") == 43
        ctx.rollback()

    def test_malformed_counter_restarts(self, store):
        store.seed(SequenceService.counter_key("other"), {"currentValue": "n/a", "note": "x"})
        ctx = store.begin()
        assert SequenceService(ctx).next_value("other") == 1
        ctx.commit()
        assert store.read(SequenceService.counter_key("other")) == {"currentValue": 1, "note": "x"}

    def test_uncommitted_allocation_is_discarded(self, store):
        ctx = store.begin()
        SequenceService(ctx).next_display_id()
        ctx.rollback()

        check = store.begin()
        assert SequenceService(check).current_value("investmentProfileId") is None
        check.rollback()
