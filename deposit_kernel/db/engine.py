"""
Engine and session factory for the SQL-backed document store.

One module-level engine per process.  PostgreSQL (``postgresql+psycopg://``)
runs pooled at READ COMMITTED; commit validation in ``sql_store`` takes
explicit row locks.  SQLite URLs share a single connection through a
``StaticPool`` so an in-memory database outlives individual sessions.

``get_engine`` / ``get_session_factory`` raise RuntimeError until
``init_engine_from_url`` has run.
"""

import atexit
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from deposit_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Engine not initialized. Call init_engine_from_url() first."


def _engine_options(database_url: str, pool_size: int, max_overflow: int) -> dict[str, Any]:
    if database_url.startswith("sqlite"):
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {
        "poolclass": QueuePool,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
        "pool_recycle": 1800,
        "isolation_level": "READ COMMITTED",
    }


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 5,
) -> Engine:
    """
    Create the process engine and session factory, replacing any previous one.

    Args:
        database_url: SQLAlchemy URL of the document database.
        echo: Log every SQL statement.
        pool_size: Pooled connections (PostgreSQL only).
        max_overflow: Extra connections beyond ``pool_size`` (PostgreSQL only).
    """
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()

    _engine = create_engine(
        database_url, echo=echo, **_engine_options(database_url, pool_size, max_overflow)
    )
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info("engine_initialized", extra={"dialect": _engine.dialect.name})
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Session factory to hand to ``SqlDocumentStore``."""
    if _SessionFactory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _SessionFactory


def create_tables() -> None:
    """Create the ``documents`` table."""
    from deposit_kernel.db.base import Base
    import deposit_kernel.db.sql_store  # noqa: F401  registers StoredDocument

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    from deposit_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


atexit.register(reset_engine)
