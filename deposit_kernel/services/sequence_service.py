"""
SequenceService -- display-id allocation from a shared counter document.

Responsibility:
    Provides strictly increasing, zero-padded display ids for time
    deposits (``0000001``, ``0000002``, ...).  The counter is one document
    (``counters/investmentProfileId``) incremented inside the caller's
    transaction.

Architecture position:
    Kernel > Services.  Called by DepositTransactionEngine.

Invariants enforced:
    - Monotonic and gap-free: the counter document is the sole source of
      truth for the next value; it is never derived from existing deposits.
    - Transactional: the increment is only visible after the caller's
      transaction commits.  Two concurrent allocations read the same
      counter version, so exactly one commits and the other retries.

Audit relevance:
    Display ids back-reference wallet transactions, history records and
    admin logs to the deposit that caused them.
"""

from deposit_kernel.db.unit_of_work import DocumentKey, TransactionContext
from deposit_kernel.domain.records import COUNTERS, DISPLAY_ID_COUNTER, DISPLAY_ID_WIDTH
from deposit_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceService:
    """
    Named counters held in the ``counters`` collection.

    Non-goals:
        - Does NOT commit -- the caller owns the transaction boundary.
    """

    DISPLAY_ID = DISPLAY_ID_COUNTER

    def __init__(self, ctx: TransactionContext):
        self._ctx = ctx

    @staticmethod
    def counter_key(sequence_name: str) -> DocumentKey:
        return DocumentKey(COUNTERS, sequence_name)

    def next_value(self, sequence_name: str) -> int:
        """
        Increment and return the counter (first value is 1).

        Legacy counters holding non-integer values are treated as 0.
        """
        key = self.counter_key(sequence_name)
        counter = self._ctx.get(key) or {}
        try:
            current = int(counter.get("currentValue") or 0)
        except (TypeError, ValueError):
            current = 0

        next_value = current + 1
        self._ctx.set(key, {"currentValue": next_value}, merge=True)
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": next_value},
        )
        return next_value

    def current_value(self, sequence_name: str) -> int | None:
        counter = self._ctx.get(self.counter_key(sequence_name))
        return int(counter.get("currentValue") or 0) if counter else None

    def next_display_id(self, width: int = DISPLAY_ID_WIDTH) -> str:
        """Next deposit display id, zero-padded to ``width`` digits."""
        return str(self.next_value(self.DISPLAY_ID)).zfill(width)
