"""
CommissionDistributionResolver -- who gets paid from the referral pool.

Responsibility:
    Turns a referral request and a quote into a ``ReferralContext``: the
    gross/tax/net referral pool and the ordered list of recipients with
    their amounts.  Two modes:

      manual     -- one flat referrer receives 100% of the pool
      hierarchy  -- the referrer's agent hierarchy splits the pool by role

Architecture position:
    Kernel > Domain.  Reads referrer and agent snapshots through the
    ``AgentDirectory`` collaborator; performs no writes.  The resulting
    context is consumed by exactly one deposit-creation transaction.

Invariants enforced:
    - 0 <= commission percentage <= 100.
    - Pool arithmetic is shared with the quote preview
      (``compute_commission_breakdown``).
    - Each entry is rounded independently to cents.  Entries are never
      re-normalised to sum exactly to the net pool; residual drift of a
      few cents is accepted.
    - Unresolved upline shares are forfeited, never reassigned.

Failure modes:
    - InvalidCommissionPercentageError: percentage outside [0, 100].
    - InvalidCommissionError: negative net pool (invariant violation).
    - ReferrerAgentCodeMissingError: hierarchy mode, referrer has no code.
    - HierarchyNotFoundError: code unknown or hierarchy yields no rows.
    - UserNotFoundError: propagated from the directory for an unknown
      referrer.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol

from deposit_kernel.domain.agents import AgentRecord
from deposit_kernel.domain.earnings import TAX_RATE, compute_commission_breakdown
from deposit_kernel.domain.hierarchy import HierarchyResolver
from deposit_kernel.domain.quote import Quote
from deposit_kernel.domain.values import HUNDRED, ZERO, parse_numeric, round_money
from deposit_kernel.exceptions import (
    HierarchyNotFoundError,
    InvalidCommissionError,
    InvalidCommissionPercentageError,
    ReferrerAgentCodeMissingError,
)
from deposit_kernel.logging_config import get_logger

logger = get_logger("domain.commission")

MANUAL_REFERRER_TYPE = "Manual Referrer"


class ReferralMode(str, Enum):
    MANUAL = "manual"
    HIERARCHY = "hierarchy"


@dataclass(frozen=True)
class ReferralRequest:
    """Caller's referral hint for a deposit."""

    referrer_user_id: str | None
    commission_percentage: Any = None
    mode: str | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> "ReferralRequest | None":
        if not raw:
            return None
        return cls(
            referrer_user_id=raw.get("referrerUserId"),
            commission_percentage=raw.get("commissionPercentage"),
            mode=raw.get("mode"),
        )


@dataclass(frozen=True)
class ReferrerProfile:
    """The referring user as seen by the directory."""

    doc_id: str
    user_id: str
    display_name: str
    agent_code: str | None = None


class AgentDirectory(Protocol):
    """Read-only access to referrers and the active-agent snapshot."""

    def get_referrer(self, user_id: str) -> ReferrerProfile:
        """Resolve by document id or the alternate ``userId`` field."""
        ...

    def active_agents(self) -> Sequence[AgentRecord]:
        ...


@dataclass(frozen=True)
class CommissionDistributionEntry:
    """One commission recipient and the amount it is paid."""

    recipient_user_id: str
    recipient_name: str
    recipient_type: str
    commission_percentage: Decimal
    share_percentage: Decimal
    commission_amount: Decimal


@dataclass(frozen=True)
class ReferralContext:
    """The resolved, money-bearing referral for one deposit creation."""

    mode: ReferralMode
    referrer_doc_id: str
    referrer_user_id: str
    referrer_display_name: str
    gross_commission: Decimal
    tax_amount: Decimal
    net_commission: Decimal
    commission_percentage: Decimal
    distribution: tuple[CommissionDistributionEntry, ...]
    referred_user_id: str | None = None

    @property
    def distributed_total(self) -> Decimal:
        return sum((e.commission_amount for e in self.distribution), ZERO)


def _resolve_percentage(referral: ReferralRequest, quote: Quote) -> Decimal:
    # Non-numeric or non-finite input falls back to the quoted agent rate.
    percentage = parse_numeric(referral.commission_percentage)
    if percentage is None:
        percentage = quote.estimated_agent_rate if quote.estimated_agent_rate is not None else ZERO

    if percentage < 0 or percentage > HUNDRED:
        raise InvalidCommissionPercentageError(percentage)
    return percentage


def _manual_distribution(
    referrer: ReferrerProfile, percentage: Decimal, net: Decimal
) -> list[CommissionDistributionEntry]:
    return [
        CommissionDistributionEntry(
            recipient_user_id=referrer.doc_id,
            recipient_name=referrer.display_name,
            recipient_type=MANUAL_REFERRER_TYPE,
            commission_percentage=percentage,
            share_percentage=HUNDRED,
            commission_amount=round_money(net),
        )
    ]


def _hierarchy_distribution(
    agent_code: str, agents: Sequence[AgentRecord], net: Decimal
) -> list[CommissionDistributionEntry]:
    resolver = HierarchyResolver(agents)
    agent = resolver.find_by_code(agent_code)
    if agent is None:
        raise HierarchyNotFoundError(agent_code)

    shares = resolver.distribution_for(agent)
    if not shares:
        raise HierarchyNotFoundError(agent_code)

    return [
        CommissionDistributionEntry(
            recipient_user_id=share.agent.user_id,
            recipient_name=share.agent.name,
            recipient_type=share.agent.agent_type.value,
            commission_percentage=share.share_percentage,
            share_percentage=share.share_percentage,
            commission_amount=round_money(net * (share.share_percentage / HUNDRED)),
        )
        for share in shares
    ]


def resolve_distribution(
    referral: ReferralRequest | None,
    quote: Quote,
    directory: AgentDirectory,
    *,
    referred_user_id: str | None = None,
    tax_rate: Decimal = TAX_RATE,
) -> ReferralContext | None:
    """
    Resolve the referral pool and its recipients.

    Returns None when no referral target is supplied.

    Args:
        referral: The caller's referral hint (may be None).
        quote: The deposit quote; supplies the principal and, when the
            caller gave no percentage, the estimated agent rate.
        directory: Referrer and agent-snapshot lookups.
        referred_user_id: The investor, recorded on the context.
        tax_rate: Flat tax withheld from the gross pool.
    """
    if referral is None or not referral.referrer_user_id:
        return None

    percentage = _resolve_percentage(referral, quote)
    breakdown = compute_commission_breakdown(quote.amount, percentage, tax_rate)
    if breakdown.net < 0:
        raise InvalidCommissionError(breakdown.net)

    referrer = directory.get_referrer(referral.referrer_user_id)
    mode = ReferralMode.HIERARCHY if referral.mode == ReferralMode.HIERARCHY.value else ReferralMode.MANUAL

    if mode is ReferralMode.HIERARCHY:
        if not referrer.agent_code:
            raise ReferrerAgentCodeMissingError(referrer.doc_id)
        distribution = _hierarchy_distribution(
            referrer.agent_code, directory.active_agents(), breakdown.net
        )
    else:
        distribution = _manual_distribution(referrer, percentage, breakdown.net)

    context = ReferralContext(
        mode=mode,
        referrer_doc_id=referrer.doc_id,
        referrer_user_id=referrer.user_id,
        referrer_display_name=referrer.display_name,
        gross_commission=breakdown.gross,
        tax_amount=breakdown.tax,
        net_commission=breakdown.net,
        commission_percentage=percentage,
        distribution=tuple(distribution),
        referred_user_id=referred_user_id,
    )

    logger.info(
        "referral_resolved",
        extra={
            "mode": mode.value,
            "referrer_doc_id": referrer.doc_id,
            "commission_percentage": percentage,
            "net_commission": breakdown.net,
            "recipients": len(distribution),
            "distributed_total": context.distributed_total,
        },
    )
    return context
