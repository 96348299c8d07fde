"""
SqlDocumentStore -- the unit of work over SQLAlchemy.

Responsibility:
    Persists documents as rows of one ``documents`` table (collection,
    doc_id, version, JSON data) and implements optimistic, serializable
    commits with compare-and-set writes.

Architecture position:
    Kernel > DB.  Implements ``DocumentStore`` from db/unit_of_work.py.

Invariants enforced:
    - One row per path (unique constraint on collection + doc_id).
    - Writes are ``UPDATE ... WHERE version = :expected`` or ``INSERT``;
      a zero row count or a unique-constraint violation is a conflict.
    - Read-only documents are re-validated under ``SELECT ... FOR UPDATE``
      before the database commit.
    - A failed commit rolls back the session; nothing is applied.

Failure modes:
    - TransactionConflictError: version mismatch or concurrent insert.
    - StoreUnavailableError: driver/operational failure.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from sqlalchemy import String, UniqueConstraint, func, select, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Mapped, Session, mapped_column, sessionmaker

from deposit_kernel.db.base import Base
from deposit_kernel.db.unit_of_work import (
    DocumentKey,
    DocumentStore,
    StoredVersion,
    TransactionContext,
)
from deposit_kernel.exceptions import StoreUnavailableError, TransactionConflictError
from deposit_kernel.logging_config import get_logger

logger = get_logger("db.sql_store")


class StoredDocument(Base):
    """
    One document.

    ``version`` starts at 1 and increments on every committed write.
    """

    __tablename__ = "documents"
    __table_args__ = (
        UniqueConstraint("collection", "doc_id", name="uq_documents_path"),
    )

    collection: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    doc_id: Mapped[str] = mapped_column(String(200), nullable=False)
    version: Mapped[int] = mapped_column(nullable=False, default=1)
    data: Mapped[dict] = mapped_column(nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


def _where_key(key: DocumentKey):
    return (
        StoredDocument.collection == key.collection,
        StoredDocument.doc_id == key.doc_id,
    )


class SqlDocumentStore(DocumentStore):
    """Document store backed by a SQLAlchemy session factory."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def begin(self) -> TransactionContext:
        return _SqlTransaction(self._session_factory())


class _SqlTransaction(TransactionContext):
    def __init__(self, session: Session):
        super().__init__()
        self._session = session

    def _load(self, key: DocumentKey) -> StoredVersion | None:
        try:
            row = self._session.execute(
                select(StoredDocument.version, StoredDocument.data).where(*_where_key(key))
            ).one_or_none()
        except OperationalError as exc:
            self._fail()
            raise StoreUnavailableError("read", str(exc.orig)) from exc
        if row is None:
            return None
        return StoredVersion(row.version, dict(row.data))

    def _scan(self, collection: str) -> Iterable[tuple[DocumentKey, StoredVersion]]:
        try:
            rows = self._session.execute(
                select(StoredDocument.doc_id, StoredDocument.version, StoredDocument.data)
                .where(StoredDocument.collection == collection)
                .order_by(StoredDocument.doc_id)
            ).all()
        except OperationalError as exc:
            self._fail()
            raise StoreUnavailableError("query", str(exc.orig)) from exc
        return [
            (DocumentKey(collection, row.doc_id), StoredVersion(row.version, dict(row.data)))
            for row in rows
        ]

    def _commit(
        self,
        reads: dict[DocumentKey, int],
        writes: dict[DocumentKey, dict[str, Any]],
    ) -> None:
        session = self._session
        try:
            for key, data in sorted(writes.items()):
                expected = reads.get(key, 0)
                if expected == 0:
                    session.add(
                        StoredDocument(
                            collection=key.collection,
                            doc_id=key.doc_id,
                            version=1,
                            data=data,
                        )
                    )
                    session.flush()
                    continue
                result = session.execute(
                    update(StoredDocument)
                    .where(*_where_key(key), StoredDocument.version == expected)
                    .values(data=data, version=expected + 1)
                )
                if result.rowcount != 1:
                    raise TransactionConflictError([key.path])

            for key, expected in sorted(reads.items()):
                if key in writes:
                    continue
                current = session.execute(
                    select(StoredDocument.version)
                    .where(*_where_key(key))
                    .with_for_update()
                ).scalar_one_or_none()
                if (current or 0) != expected:
                    raise TransactionConflictError([key.path])

            session.commit()
        except TransactionConflictError:
            session.rollback()
            raise
        except IntegrityError as exc:
            session.rollback()
            logger.debug("commit_insert_race", extra={"detail": str(exc.orig)})
            raise TransactionConflictError(sorted(k.path for k in writes)) from exc
        except OperationalError as exc:
            session.rollback()
            raise StoreUnavailableError("commit", str(exc.orig)) from exc
        finally:
            session.close()

    def _discard(self) -> None:
        self._session.rollback()
        self._session.close()

    def _fail(self) -> None:
        self._session.rollback()
