"""
Unit of work over the in-memory store.

Verifies optimistic concurrency (read-set validation at commit), reads
that observe pending writes, and all-or-nothing application.
"""

import pytest

from deposit_kernel.db.memory_store import InMemoryDocumentStore
from deposit_kernel.db.unit_of_work import DocumentKey
from deposit_kernel.exceptions import TransactionConflictError

WALLET = DocumentKey("users", "u1")
OTHER = DocumentKey("users", "u2")


@pytest.fixture
def memory_store():
    store = InMemoryDocumentStore()
    store.seed(WALLET, {"agentWalletAmount": 10.00, "firstName": "Ana"})
    return store


class TestDocumentKey:

    def test_paths(self):
        key = WALLET.child("inspireAuto", "req-1")
        assert key.path == "users/u1/inspireAuto/req-1"
        assert key.collection == WALLET.subcollection("inspireAuto")

    def test_from_path(self):
        assert DocumentKey.from_path("users/u1/inspireAuto/req-1") == DocumentKey(
            "users/u1/inspireAuto", "req-1"
        )

    @pytest.mark.parametrize("path", ["users", "/u1", "users/"])
    def test_from_path_rejects_malformed(self, path):
        with pytest.raises(ValueError):
            DocumentKey.from_path(path)


class TestReadsAndWrites:

    def test_get_missing_is_none(self, memory_store):
        ctx = memory_store.begin()
        assert ctx.get(OTHER) is None
        ctx.rollback()

    def test_reads_observe_pending_writes(self, memory_store):
        ctx = memory_store.begin()
        ctx.update(WALLET, {"agentWalletAmount": 20.00})

        assert ctx.get(WALLET) == {"agentWalletAmount": 20.00, "firstName": "Ana"}
        assert memory_store.read(WALLET)["agentWalletAmount"] == 10.00
        ctx.rollback()

    def test_returned_documents_are_copies(self, memory_store):
        ctx = memory_store.begin()
        ctx.get(WALLET)["firstName"] = "Mutated"
        assert ctx.get(WALLET)["firstName"] == "Ana"
        ctx.rollback()

    def test_set_replaces_and_merge_merges(self, memory_store):
        ctx = memory_store.begin()
        ctx.set(WALLET, {"firstName": "Replaced"})
        ctx.set(WALLET, {"lastName": "Reyes"}, merge=True)
        ctx.commit()

        assert memory_store.read(WALLET) == {"firstName": "Replaced", "lastName": "Reyes"}
        assert memory_store.version_of(WALLET) == 2

    def test_find_sees_committed_and_pending(self, memory_store):
        ctx = memory_store.begin()
        ctx.set(OTHER, {"userId": "INV-2"})

        assert ctx.find_one("users", "userId", "INV-2")[0] == OTHER
        assert ctx.find("users", "firstName", "Ana") == [(WALLET, memory_store.read(WALLET))]
        assert ctx.find_one("users", "userId", "missing") is None
        ctx.rollback()

    def test_pending_paths(self, memory_store):
        ctx = memory_store.begin()
        ctx.set(OTHER, {})
        ctx.update(WALLET, {"x": 1})
        assert ctx.pending_paths == ("users/u2", "users/u1")
        ctx.rollback()

    def test_new_key_is_unique(self, memory_store):
        ctx = memory_store.begin()
        assert ctx.new_key("logs") != ctx.new_key("logs")
        ctx.rollback()


class TestCommit:

    def test_rollback_discards(self, memory_store):
        ctx = memory_store.begin()
        ctx.set(OTHER, {"a": 1})
        ctx.rollback()

        assert memory_store.read(OTHER) is None
        assert memory_store.commit_count == 0

    def test_context_manager_rolls_back(self, memory_store):
        with memory_store.begin() as ctx:
            ctx.set(OTHER, {"a": 1})
        assert memory_store.read(OTHER) is None

    def test_closed_context_rejects_operations(self, memory_store):
        ctx = memory_store.begin()
        ctx.commit()

        with pytest.raises(RuntimeError):
            ctx.get(WALLET)
        with pytest.raises(RuntimeError):
            ctx.commit()
        ctx.rollback()

    def test_stale_read_conflicts(self, memory_store):
        first = memory_store.begin()
        second = memory_store.begin()
        first.get(WALLET)
        second.get(WALLET)

        first.update(WALLET, {"agentWalletAmount": 20.00})
        first.commit()

        second.update(WALLET, {"agentWalletAmount": 30.00})
        with pytest.raises(TransactionConflictError) as exc_info:
            second.commit()

        assert exc_info.value.paths == ["users/u1"]
        assert memory_store.read(WALLET)["agentWalletAmount"] == 20.00

    def test_read_only_dependency_conflicts(self, memory_store):
        reader = memory_store.begin()
        reader.get(WALLET)
        reader.set(OTHER, {"copied": True})

        writer = memory_store.begin()
        writer.update(WALLET, {"firstName": "Changed"})
        writer.commit()

        with pytest.raises(TransactionConflictError):
            reader.commit()
        assert memory_store.read(OTHER) is None

    def test_concurrent_creation_of_same_document(self, memory_store):
        first = memory_store.begin()
        second = memory_store.begin()
        assert first.get(OTHER) is None
        assert second.get(OTHER) is None

        first.set(OTHER, {"owner": "first"})
        second.set(OTHER, {"owner": "second"})
        first.commit()

        with pytest.raises(TransactionConflictError):
            second.commit()
        assert memory_store.read(OTHER) == {"owner": "first"}

    def test_conflict_applies_nothing(self, memory_store):
        loser = memory_store.begin()
        loser.get(WALLET)
        loser.set(OTHER, {"a": 1})
        loser.update(WALLET, {"b": 2})

        memory_store.seed(WALLET, {"agentWalletAmount": 99.00})

        with pytest.raises(TransactionConflictError):
            loser.commit()
        assert memory_store.read(OTHER) is None
        assert memory_store.read(WALLET) == {"agentWalletAmount": 99.00}

    def test_documents_lists_collection(self, memory_store):
        ctx = memory_store.begin()
        ctx.set(WALLET.child("inspireAuto", "a"), {"n": 1})
        ctx.set(WALLET.child("inspireAuto", "b"), {"n": 2})
        ctx.commit()

        listed = memory_store.documents(WALLET.subcollection("inspireAuto"))
        assert [data["n"] for _, data in listed] == [1, 2]
