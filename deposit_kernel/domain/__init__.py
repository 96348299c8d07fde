"""
Pure domain layer.

Quote arithmetic, agent-hierarchy resolution and referral distribution,
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (beyond the injectable Clock)

All domain objects are immutable and deterministic.
"""

from deposit_kernel.domain.agents import AgentNumbers, AgentRecord, AgentType
from deposit_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from deposit_kernel.domain.commission import (
    AgentDirectory,
    CommissionDistributionEntry,
    ReferralContext,
    ReferralMode,
    ReferralRequest,
    ReferrerProfile,
    resolve_distribution,
)
from deposit_kernel.domain.earnings import (
    TAX_RATE,
    CommissionBreakdown,
    TermEarnings,
    compute_commission_breakdown,
    compute_earnings,
)
from deposit_kernel.domain.hierarchy import (
    AgentHierarchy,
    HierarchyResolver,
    HierarchyShare,
    UplineRole,
)
from deposit_kernel.domain.quote import Quote, build_quote
from deposit_kernel.domain.rates import TierTable, interpolate_tier_rate, normalize_tier_table
from deposit_kernel.domain.records import (
    AdminActor,
    ContractReference,
    DepositCreationResult,
    DepositMetadata,
    TimeDepositRecord,
)
from deposit_kernel.domain.terms import (
    Term,
    calculate_completion_date,
    cycles_for_term,
    months_for_term,
    parse_initial_date,
    parse_term,
)

__all__ = [
    "AdminActor",
    "AgentDirectory",
    "AgentHierarchy",
    "AgentNumbers",
    "AgentRecord",
    "AgentType",
    "Clock",
    "CommissionBreakdown",
    "CommissionDistributionEntry",
    "ContractReference",
    "DepositCreationResult",
    "DepositMetadata",
    "DeterministicClock",
    "HierarchyResolver",
    "HierarchyShare",
    "Quote",
    "ReferralContext",
    "ReferralMode",
    "ReferralRequest",
    "ReferrerProfile",
    "SystemClock",
    "TAX_RATE",
    "Term",
    "TermEarnings",
    "TierTable",
    "TimeDepositRecord",
    "UplineRole",
    "build_quote",
    "calculate_completion_date",
    "compute_commission_breakdown",
    "compute_earnings",
    "cycles_for_term",
    "interpolate_tier_rate",
    "months_for_term",
    "normalize_tier_table",
    "parse_initial_date",
    "parse_term",
    "resolve_distribution",
]
