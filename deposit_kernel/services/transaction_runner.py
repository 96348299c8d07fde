"""
Transaction runner -- run a unit of work with retry on conflict.

Responsibility:
    Opens a context, runs the caller's function, commits, and re-runs the
    whole function from scratch when the commit loses an optimistic race.
    Every attempt re-reads its inputs, so a retry observes the winner's
    writes (which is how a duplicate idempotency key becomes an
    idempotent replay).

Invariants enforced:
    - The function's writes are committed at most once.
    - Any non-conflict error rolls back and propagates immediately.
    - Exhausting ``max_attempts`` re-raises the last conflict.
"""

from collections.abc import Callable
from typing import TypeVar

from deposit_kernel.db.unit_of_work import DocumentStore, TransactionContext
from deposit_kernel.exceptions import TransactionConflictError
from deposit_kernel.logging_config import get_logger

logger = get_logger("services.transaction_runner")

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5


def run_in_transaction(
    store: DocumentStore,
    work: Callable[[TransactionContext], T],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> T:
    """
    Run ``work(ctx)`` and commit, retrying on TransactionConflictError.

    Args:
        store: The document store.
        work: Reads and buffers writes through ``ctx``.  Must not commit.
        max_attempts: Attempts before the last conflict is re-raised.

    Returns:
        Whatever ``work`` returned on the attempt that committed.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    for attempt in range(1, max_attempts + 1):
        ctx = store.begin()
        try:
            result = work(ctx)
            ctx.commit()
        except TransactionConflictError as exc:
            ctx.rollback()
            if attempt == max_attempts:
                logger.warning(
                    "transaction_conflict_exhausted",
                    extra={"attempt": attempt, "paths": exc.paths},
                )
                raise
            logger.info(
                "transaction_conflict_retry",
                extra={"attempt": attempt, "paths": exc.paths},
            )
            continue
        except Exception:
            ctx.rollback()
            raise
        if attempt > 1:
            logger.debug("transaction_committed_after_retry", extra={"attempt": attempt})
        return result

    raise AssertionError("unreachable")
