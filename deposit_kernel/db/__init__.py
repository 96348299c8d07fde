"""Database layer - engine, base class, unit of work and document stores."""

from deposit_kernel.db.base import Base, UUIDString
from deposit_kernel.db.engine import create_tables, get_engine, get_session_factory, init_engine_from_url
from deposit_kernel.db.memory_store import InMemoryDocumentStore
from deposit_kernel.db.sql_store import SqlDocumentStore, StoredDocument
from deposit_kernel.db.unit_of_work import (
    DocumentKey,
    DocumentStore,
    StoredVersion,
    TransactionContext,
)

__all__ = [
    "Base",
    "DocumentKey",
    "DocumentStore",
    "InMemoryDocumentStore",
    "SqlDocumentStore",
    "StoredDocument",
    "StoredVersion",
    "TransactionContext",
    "UUIDString",
    "create_tables",
    "get_engine",
    "get_session_factory",
    "init_engine_from_url",
]
