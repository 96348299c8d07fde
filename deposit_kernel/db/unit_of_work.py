"""
Unit of work -- atomic multi-document read-modify-write.

Responsibility:
    Defines the transactional interface the deposit engine runs against::

        ctx = store.begin()
        doc = ctx.get(key)
        ctx.set(key, {...})
        ctx.commit()

    and the optimistic-concurrency bookkeeping shared by every store
    implementation.

Architecture position:
    Kernel > DB.  Implemented by ``InMemoryDocumentStore`` (tests, local
    runs) and ``SqlDocumentStore`` (SQLAlchemy).  Services depend only on
    this interface.

Invariants enforced:
    - Serializable commits: every document read (or written) inside a
      context is recorded with the version it had when first seen; an
      absent document is version 0.  Commit validates that none of those
      versions changed and applies every write atomically, or applies
      nothing and raises TransactionConflictError.
    - Reads observe the context's own pending writes.
    - A committed or rolled-back context cannot be reused.

Failure modes:
    - TransactionConflictError: read set changed before commit.
    - RuntimeError: operation on a closed context.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any
from uuid import uuid4


@dataclass(frozen=True, order=True)
class DocumentKey:
    """Address of one document: ``<collection>/<doc_id>``."""

    collection: str
    doc_id: str

    @property
    def path(self) -> str:
        return f"{self.collection}/{self.doc_id}"

    def child(self, collection: str, doc_id: str) -> DocumentKey:
        """Key of a document in a sub-collection of this document."""
        return DocumentKey(f"{self.path}/{collection}", doc_id)

    def subcollection(self, collection: str) -> str:
        """Collection path of a sub-collection of this document."""
        return f"{self.path}/{collection}"

    @classmethod
    def from_path(cls, path: str) -> DocumentKey:
        collection, _, doc_id = path.rpartition("/")
        if not collection or not doc_id:
            raise ValueError(f"Invalid document path: {path}")
        return cls(collection, doc_id)


@dataclass(frozen=True)
class StoredVersion:
    """A committed document body and its version (>= 1)."""

    version: int
    data: dict[str, Any]


class TransactionContext(ABC):
    """
    One atomic unit of work against a document store.

    Contract:
        Buffers writes locally and records the version of every document
        it touches.  Nothing is visible to other contexts until
        ``commit()`` succeeds.

    Non-goals:
        - Does NOT retry.  See ``services/transaction_runner.py``.
    """

    def __init__(self) -> None:
        self._reads: dict[DocumentKey, int] = {}
        self._writes: dict[DocumentKey, dict[str, Any]] = {}
        self._new_keys: set[DocumentKey] = set()
        self._closed = False

    # -- store-specific hooks ---------------------------------------------

    @abstractmethod
    def _load(self, key: DocumentKey) -> StoredVersion | None:
        """Read the committed version of one document."""

    @abstractmethod
    def _scan(self, collection: str) -> Iterable[tuple[DocumentKey, StoredVersion]]:
        """Read every committed document in a collection."""

    @abstractmethod
    def _commit(
        self,
        reads: dict[DocumentKey, int],
        writes: dict[DocumentKey, dict[str, Any]],
    ) -> None:
        """Validate ``reads`` and apply ``writes`` atomically."""

    def _discard(self) -> None:
        """Release store resources after rollback."""

    # -- public interface -------------------------------------------------

    def get(self, key: DocumentKey) -> dict[str, Any] | None:
        """Return a copy of the document, or None when it does not exist."""
        self._ensure_open()
        if key in self._writes:
            return copy.deepcopy(self._writes[key])
        loaded = self._load(key)
        self._reads.setdefault(key, loaded.version if loaded else 0)
        return copy.deepcopy(loaded.data) if loaded else None

    def find(self, collection: str, field: str, value: Any) -> list[tuple[DocumentKey, dict[str, Any]]]:
        """Documents in ``collection`` whose ``field`` equals ``value``."""
        self._ensure_open()
        matches: list[tuple[DocumentKey, dict[str, Any]]] = []
        seen: set[DocumentKey] = set()
        for key, loaded in self._scan(collection):
            seen.add(key)
            data = self._writes.get(key, loaded.data)
            if data.get(field) == value:
                self._reads.setdefault(key, loaded.version)
                matches.append((key, copy.deepcopy(data)))
        for key, data in self._writes.items():
            if key.collection == collection and key not in seen and data.get(field) == value:
                matches.append((key, copy.deepcopy(data)))
        return sorted(matches, key=lambda item: item[0])

    def find_one(self, collection: str, field: str, value: Any) -> tuple[DocumentKey, dict[str, Any]] | None:
        matches = self.find(collection, field, value)
        return matches[0] if matches else None

    def new_key(self, collection: str) -> DocumentKey:
        """Allocate a fresh auto-id key in ``collection``."""
        key = DocumentKey(collection, uuid4().hex)
        self._new_keys.add(key)
        return key

    def set(self, key: DocumentKey, data: dict[str, Any], merge: bool = False) -> None:
        """Buffer a full replace (or a shallow merge) of one document."""
        self._ensure_open()
        if merge:
            body = self.get(key) or {}
            body.update(data)
        else:
            body = dict(data)
            if key not in self._reads and key not in self._writes:
                if key in self._new_keys:
                    self._reads[key] = 0
                else:
                    loaded = self._load(key)
                    self._reads[key] = loaded.version if loaded else 0
        self._writes[key] = copy.deepcopy(body)

    def update(self, key: DocumentKey, data: dict[str, Any]) -> None:
        """Merge ``data`` into an existing document."""
        self.set(key, data, merge=True)

    @property
    def pending_paths(self) -> tuple[str, ...]:
        return tuple(key.path for key in self._writes)

    def commit(self) -> None:
        """Apply all buffered writes atomically or raise a conflict."""
        self._ensure_open()
        self._closed = True
        self._commit(dict(self._reads), dict(self._writes))

    def rollback(self) -> None:
        """Discard buffered writes."""
        if self._closed:
            return
        self._closed = True
        self._discard()

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Transaction context is already closed")

    def __enter__(self) -> TransactionContext:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.rollback()


class DocumentStore(ABC):
    """A transactional document store."""

    @abstractmethod
    def begin(self) -> TransactionContext:
        """Open a new unit of work."""
