"""
Pytest fixtures for the deposit kernel test suite.

Provides:
- Structured logging configuration and log capture
- In-memory document store and SQLite-backed SQLAlchemy store
- Seeded users, agents and rate documents
- Deterministic clock
"""

import json
import logging
from io import StringIO

import pytest

from deposit_config.providers import StoreRateConfigProvider
from deposit_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from deposit_kernel.db.memory_store import InMemoryDocumentStore
from deposit_kernel.db.sql_store import SqlDocumentStore
from deposit_kernel.db.unit_of_work import DocumentKey
from deposit_kernel.domain.clock import DeterministicClock
from deposit_kernel.domain.records import AGENTS, INVESTMENT_RATES, USERS
from deposit_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

# =============================================================================
# Seed data
# =============================================================================

INVESTOR_ID = "user-investor"
INVESTOR_USER_ID = "INV-0001"
REFERRER_ID = "user-referrer"
MASTER_ID = "user-master"
AGENT_ID = "user-agent"
CONSULTANT_ID = "user-consultant"
ORPHAN_CONSULTANT_ID = "user-orphan"

MASTER_CODE = "MA001-00000-00000"
AGENT_CODE = "MA001-AG001-00000"
CONSULTANT_CODE = "MA001-AG001-CN001"
ORPHAN_CONSULTANT_CODE = "MA009-AG001-CN002"

DEFAULT_RATES = {
    "sixMonths": {"0": 2.5, "50000": 3.0, "100000": 3.5},
    "oneYear": {"0": 5.0, "50000": 6.0, "100000": 7.0},
    "twoYears": {"50000": 8.0, "100000": 9.0},
    "agentRates": {"0": 5.0, "50000": 6.0, "100000": 7.0},
}

USERS_SEED = {
    INVESTOR_ID: {
        "userId": INVESTOR_USER_ID,
        "firstName": "Juan",
        "lastName": "Dela Cruz",
        "emailAddress": "juan@example.com",
        "timeDepositAmount": 0,
    },
    REFERRER_ID: {"firstName": "Ana", "lastName": "Reyes", "agentWalletAmount": 0},
    MASTER_ID: {"firstName": "Maria", "lastName": "Santos", "agentCode": MASTER_CODE},
    AGENT_ID: {"firstName": "Pedro", "lastName": "Garcia", "agentCode": AGENT_CODE},
    CONSULTANT_ID: {"firstName": "Liza", "lastName": "Lim", "agentCode": CONSULTANT_CODE},
    ORPHAN_CONSULTANT_ID: {"emailAddress": "orphan@example.com", "agentCode": ORPHAN_CONSULTANT_CODE},
}

AGENTS_SEED = {
    "agent-master": {
        "userId": MASTER_ID,
        "fullName": "Maria Santos",
        "type": "Master Agent",
        "agentCode": MASTER_CODE,
        "agentNumber": "MA001",
        "status": "active",
    },
    "agent-agent": {
        "userId": AGENT_ID,
        "fullName": "Pedro Garcia",
        "type": "Agent",
        "agentCode": AGENT_CODE,
        "agentNumber": "AG001",
        "status": "active",
    },
    "agent-consultant": {
        "userId": CONSULTANT_ID,
        "fullName": "Liza Lim",
        "type": "Consultant Agent",
        "agentCode": CONSULTANT_CODE,
        "agentNumber": "CN001",
        "status": "active",
    },
    "agent-orphan": {
        "userId": ORPHAN_CONSULTANT_ID,
        "fullName": "Orphan Consultant",
        "type": "Consultant Agent",
        "agentCode": ORPHAN_CONSULTANT_CODE,
        "agentNumber": "CN002",
        "status": "active",
    },
}


def seed_documents(store) -> None:
    """Write users, agents and rates through one committed context."""
    ctx = store.begin()
    for doc_id, data in USERS_SEED.items():
        ctx.set(DocumentKey(USERS, doc_id), data)
    for doc_id, data in AGENTS_SEED.items():
        ctx.set(DocumentKey(AGENTS, doc_id), data)
    ctx.set(DocumentKey(INVESTMENT_RATES, "default"), DEFAULT_RATES)
    ctx.commit()


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture deposit_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, engine):
            engine.create_deposit(...)
            logs = captured_logs()
            assert any(r["message"] == "deposit_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("deposit_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Stores
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock()


@pytest.fixture
def store():
    """Empty in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def seeded_store(store):
    """In-memory store with users, agents and the default rate document."""
    seed_documents(store)
    return store


@pytest.fixture
def rate_provider(seeded_store):
    return StoreRateConfigProvider(seeded_store)


@pytest.fixture
def sql_engine():
    """SQLite in-memory engine with the documents table."""
    engine = init_engine_from_url("sqlite:///:memory:")
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def sql_store(sql_engine):
    return SqlDocumentStore(get_session_factory())
