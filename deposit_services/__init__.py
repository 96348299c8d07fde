"""
deposit_services -- Package init and public API.

Responsibility:
    Caller-facing orchestration over ``deposit_kernel`` and
    ``deposit_config``: quoting and creating time deposits, agent and
    referrer lookups against the store, and the contract-generation
    collaborator boundary.

Architecture position:
    Services -- top layer.

    Dependency direction:
        deposit_services/ -> deposit_config/  (allowed)
        deposit_services/ -> deposit_kernel/  (allowed)
        deposit_kernel/   -> deposit_services/ (FORBIDDEN)
        deposit_config/   -> deposit_services/ (FORBIDDEN)
"""

from deposit_services.agent_directory import StoreAgentDirectory
from deposit_services.contract_gateway import (
    ContractGenerator,
    ContractRequest,
    parse_contract_response,
)
from deposit_services.time_deposit_service import (
    ContractOptions,
    CreateDepositRequest,
    CreateDepositResponse,
    QuoteRequest,
    TimeDepositService,
)

__all__ = [
    "ContractGenerator",
    "ContractOptions",
    "ContractRequest",
    "CreateDepositRequest",
    "CreateDepositResponse",
    "QuoteRequest",
    "StoreAgentDirectory",
    "TimeDepositService",
    "parse_contract_response",
]
