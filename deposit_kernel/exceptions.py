"""
Typed Exception Hierarchy for the Deposit Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Deposit creation moves money into several wallets at once. Callers must be
able to tell "fix your input" apart from "try again" without parsing message
strings:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)
  4. Every category declares whether a retry can help (``retryable``)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from TimeDepositError:

    TimeDepositError (base)
    |
    +-- InvalidInputError                (reported, never retried)
    |   +-- InvalidAmountError
    |   +-- InvalidDateError
    |   +-- InvalidTermError
    |   +-- InvalidCommissionPercentageError
    |   +-- ReferrerAgentCodeMissingError
    |   +-- UserIdRequiredError
    |
    +-- NotFoundError                    (reported, never retried)
    |   +-- UserNotFoundError
    |   +-- AgentNotFoundError
    |   +-- HierarchyNotFoundError
    |
    +-- UnavailableError                 (caller may retry)
    |   +-- RateConfigUnavailableError
    |   +-- StoreUnavailableError
    |   +-- ContractGenerationError
    |
    +-- ConflictError                    (retry with the SAME idempotency key)
    |   +-- TransactionConflictError
    |
    +-- FatalError                       (internal invariant violated)
        +-- InvalidCommissionError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                          | When Raised
-------------|-------------------------------|----------------------------------
InvalidInput | INVALID_AMOUNT                | Amount not a finite number in range
             | INVALID_INITIAL_DATE          | Initial date does not parse
             | INVALID_TERM                  | Term has no cycle/month mapping
             | INVALID_COMMISSION_PERCENTAGE | Percentage outside [0, 100]
             | REFERRER_AGENT_CODE_MISSING   | Hierarchy mode, referrer has no code
             | USER_ID_REQUIRED              | Blank user identifier
-------------|-------------------------------|----------------------------------
NotFound     | USER_NOT_FOUND                | No user by id or userId field
             | AGENT_NOT_FOUND               | No active agent with that code
             | HIERARCHY_NOT_FOUND           | Hierarchy yields no distribution
-------------|-------------------------------|----------------------------------
Unavailable  | RATE_CONFIG_UNAVAILABLE       | Rates missing/unreadable/incomplete
             | STORE_UNAVAILABLE             | Backing store read/write failure
             | CONTRACT_GENERATION_FAILED    | Contract collaborator failed
-------------|-------------------------------|----------------------------------
Conflict     | TRANSACTION_CONFLICT          | Read set changed before commit
-------------|-------------------------------|----------------------------------
Fatal        | INVALID_COMMISSION            | Computed net commission < 0

===============================================================================
HANDLING PATTERNS
===============================================================================

1. IDEMPOTENT RETRY (conflicts are retried with the same key):

    try:
        result = service.create(user_id, request, request_id=key)
    except ConflictError:
        result = service.create(user_id, request, request_id=key)

2. USE STRUCTURED DATA (not message parsing):

    except InvalidCommissionPercentageError as e:
        return {"error": e.code, "percentage": str(e.percentage)}

3. RENDER FOR CALLERS:

    except TimeDepositError as e:
        return error_payload(e)
"""

from decimal import Decimal
from typing import Any


class TimeDepositError(Exception):
    """
    Base exception for all deposit kernel errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "TIME_DEPOSIT_ERROR"
    retryable: bool = False


# Input validation


class InvalidInputError(TimeDepositError):
    """Base exception for caller-supplied values that cannot be used."""

    code: str = "INVALID_INPUT"


class InvalidAmountError(InvalidInputError):
    """Investment amount is not a finite number in the accepted range."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount: Any, reason: str = "must be a valid non-negative number"):
        self.amount = amount
        self.reason = reason
        super().__init__(f"Amount {amount!r} {reason}")


class InvalidDateError(InvalidInputError):
    """Initial date does not parse."""

    code: str = "INVALID_INITIAL_DATE"

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Initial date is invalid: {value!r}")


class InvalidTermError(InvalidInputError):
    """Term has no cycle/month mapping."""

    code: str = "INVALID_TERM"

    def __init__(self, term: Any):
        self.term = term
        super().__init__(f"Unsupported term: {term!r}")


class InvalidCommissionPercentageError(InvalidInputError):
    """Referral commission percentage is outside [0, 100]."""

    code: str = "INVALID_COMMISSION_PERCENTAGE"

    def __init__(self, percentage: Any):
        self.percentage = percentage
        super().__init__(
            f"Referral commission percentage must be between 0 and 100, got {percentage!r}"
        )


class ReferrerAgentCodeMissingError(InvalidInputError):
    """Hierarchy mode was requested for a referrer without an agent code."""

    code: str = "REFERRER_AGENT_CODE_MISSING"

    def __init__(self, referrer_user_id: str):
        self.referrer_user_id = referrer_user_id
        super().__init__(
            f"Selected referrer {referrer_user_id} is not mapped to an agent hierarchy"
        )


class UserIdRequiredError(InvalidInputError):
    """A blank user identifier was supplied."""

    code: str = "USER_ID_REQUIRED"

    def __init__(self) -> None:
        super().__init__("User identifier is required")


# Lookups


class NotFoundError(TimeDepositError):
    """Base exception for unknown users, agents and hierarchies."""

    code: str = "NOT_FOUND"


class UserNotFoundError(NotFoundError):
    """No user document matches the identifier."""

    code: str = "USER_NOT_FOUND"

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"User not found: {identifier}")


class AgentNotFoundError(NotFoundError):
    """No active agent carries the agent code."""

    code: str = "AGENT_NOT_FOUND"

    def __init__(self, agent_code: str):
        self.agent_code = agent_code
        super().__init__(f"Agent not found: {agent_code}")


class HierarchyNotFoundError(NotFoundError):
    """Hierarchy resolution produced no commission rows."""

    code: str = "HIERARCHY_NOT_FOUND"

    def __init__(self, agent_code: str):
        self.agent_code = agent_code
        super().__init__(
            f"Hierarchy commission data is unavailable for agent code {agent_code}"
        )


# External dependencies


class UnavailableError(TimeDepositError):
    """Base exception for failed reads/writes against collaborators."""

    code: str = "UNAVAILABLE"
    retryable: bool = True


class RateConfigUnavailableError(UnavailableError):
    """Rate configuration is missing, unreadable or incomplete."""

    code: str = "RATE_CONFIG_UNAVAILABLE"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Investment rates unavailable from {source}: {reason}")


class StoreUnavailableError(UnavailableError):
    """The backing document store failed."""

    code: str = "STORE_UNAVAILABLE"

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Document store unavailable during {operation}: {reason}")


class ContractGenerationError(UnavailableError):
    """The contract-generation collaborator failed."""

    code: str = "CONTRACT_GENERATION_FAILED"

    def __init__(self, reason: str, request_id: str | None = None):
        self.reason = reason
        self.request_id = request_id
        super().__init__(f"Contract generation failed: {reason}")


# Concurrency


class ConflictError(TimeDepositError):
    """Base exception for lost optimistic-concurrency races."""

    code: str = "CONFLICT"
    retryable: bool = True


class TransactionConflictError(ConflictError):
    """
    A document read inside the transaction changed before commit.

    Nothing from the transaction was applied.  Retry by re-running the
    transaction with the same idempotency key.
    """

    code: str = "TRANSACTION_CONFLICT"

    def __init__(self, paths: list[str]):
        self.paths = paths
        super().__init__(f"Transaction conflict on: {', '.join(paths)}")


# Invariant violations


class FatalError(TimeDepositError):
    """Base exception for internal invariant violations."""

    code: str = "FATAL"


class InvalidCommissionError(FatalError):
    """Computed net commission is negative."""

    code: str = "INVALID_COMMISSION"

    def __init__(self, net_commission: Decimal):
        self.net_commission = net_commission
        super().__init__(
            f"Referral net commission must be non-negative, got {net_commission}"
        )


def error_payload(exc: TimeDepositError) -> dict[str, Any]:
    """Render an error as the stable ``{code, message, retryable}`` shape."""
    return {
        "code": exc.code,
        "message": str(exc),
        "retryable": exc.retryable,
    }
