"""
InMemoryDocumentStore -- lock-guarded, versioned document store.

Used by the test suite and for local runs.  Commit validation and write
application happen under a single lock, which gives the same
serializable-with-conflicts behaviour as the SQL store.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterable
from typing import Any

from deposit_kernel.db.unit_of_work import (
    DocumentKey,
    DocumentStore,
    StoredVersion,
    TransactionContext,
)
from deposit_kernel.exceptions import TransactionConflictError
from deposit_kernel.logging_config import get_logger

logger = get_logger("db.memory_store")


class InMemoryDocumentStore(DocumentStore):
    """Dict of ``DocumentKey -> StoredVersion`` behind a lock."""

    def __init__(self) -> None:
        self._documents: dict[DocumentKey, StoredVersion] = {}
        self._lock = threading.Lock()
        self.commit_count = 0

    def begin(self) -> TransactionContext:
        return _InMemoryTransaction(self)

    def seed(self, key: DocumentKey, data: dict[str, Any]) -> None:
        """Write a document outside any transaction (fixtures, migrations)."""
        with self._lock:
            current = self._documents.get(key)
            version = current.version + 1 if current else 1
            self._documents[key] = StoredVersion(version, copy.deepcopy(data))

    def read(self, key: DocumentKey) -> dict[str, Any] | None:
        """Committed copy of one document."""
        with self._lock:
            stored = self._documents.get(key)
            return copy.deepcopy(stored.data) if stored else None

    def version_of(self, key: DocumentKey) -> int:
        with self._lock:
            stored = self._documents.get(key)
            return stored.version if stored else 0

    def documents(self, collection: str) -> list[tuple[DocumentKey, dict[str, Any]]]:
        """Committed documents of one collection, ordered by key."""
        with self._lock:
            return sorted(
                (key, copy.deepcopy(stored.data))
                for key, stored in self._documents.items()
                if key.collection == collection
            )


class _InMemoryTransaction(TransactionContext):
    def __init__(self, store: InMemoryDocumentStore):
        super().__init__()
        self._store = store

    def _load(self, key: DocumentKey) -> StoredVersion | None:
        with self._store._lock:
            return self._store._documents.get(key)

    def _scan(self, collection: str) -> Iterable[tuple[DocumentKey, StoredVersion]]:
        with self._store._lock:
            return [
                (key, stored)
                for key, stored in self._store._documents.items()
                if key.collection == collection
            ]

    def _commit(
        self,
        reads: dict[DocumentKey, int],
        writes: dict[DocumentKey, dict[str, Any]],
    ) -> None:
        documents = self._store._documents
        with self._store._lock:
            conflicts = sorted(
                key.path
                for key, version in reads.items()
                if (documents[key].version if key in documents else 0) != version
            )
            if conflicts:
                logger.debug("commit_conflict", extra={"paths": conflicts})
                raise TransactionConflictError(conflicts)

            for key, data in writes.items():
                current = documents.get(key)
                documents[key] = StoredVersion(
                    current.version + 1 if current else 1, copy.deepcopy(data)
                )
            self._store.commit_count += 1
