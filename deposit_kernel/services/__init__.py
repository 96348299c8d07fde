"""Kernel services -- the imperative shell that owns transaction boundaries."""

from deposit_kernel.services.deposit_engine import (
    DepositTransactionEngine,
    resolve_account,
)
from deposit_kernel.services.sequence_service import SequenceService
from deposit_kernel.services.transaction_runner import (
    DEFAULT_MAX_ATTEMPTS,
    run_in_transaction,
)

__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "DepositTransactionEngine",
    "SequenceService",
    "resolve_account",
    "run_in_transaction",
]
