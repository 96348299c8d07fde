"""
Quote -- the priced, not-yet-persisted terms of a time deposit.

Responsibility:
    Composes rate interpolation and term earnings into one immutable
    ``Quote``.  Optionally previews the agent rate (from a separate agent
    tier table) and the referral net commission.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  A Quote is an
    input to deposit creation; it is never persisted on its own, but all
    of its fields are embedded in the deposit record.

Invariants enforced:
    - ``final_interest_rate`` is the caller's override when it parses to a
      finite number, otherwise the estimated rate.
    - The referral preview uses ``compute_commission_breakdown`` so it is
      identical to the net commission later distributed.

Failure modes:
    - InvalidAmountError when the amount is not a finite number >= 0.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from deposit_kernel.domain.earnings import (
    TAX_RATE,
    compute_commission_breakdown,
    compute_earnings,
)
from deposit_kernel.domain.rates import interpolate_tier_rate
from deposit_kernel.domain.values import parse_numeric, round_rate, to_wire
from deposit_kernel.exceptions import InvalidAmountError


@dataclass(frozen=True)
class Quote:
    """Derived deposit terms.  Money at 2 places, rates at 4."""

    amount: Decimal
    term: str
    cycles: int
    estimated_interest_rate: Decimal
    final_interest_rate: Decimal
    annual_net_interest: Decimal
    total_net_interest_for_term: Decimal
    total_return_amount: Decimal
    estimated_agent_rate: Decimal | None = None
    referral_net_commission: Decimal | None = None

    def to_dict(self) -> dict[str, Any]:
        """Caller-facing representation (camelCase, Decimals as strings)."""
        payload: dict[str, Any] = {
            "amount": to_wire(self.amount),
            "term": self.term,
            "cycles": self.cycles,
            "estimatedInterestRate": to_wire(self.estimated_interest_rate),
            "finalInterestRate": to_wire(self.final_interest_rate),
            "annualNetInterest": to_wire(self.annual_net_interest),
            "totalNetInterestForTerm": to_wire(self.total_net_interest_for_term),
            "totalReturnAmount": to_wire(self.total_return_amount),
        }
        if self.estimated_agent_rate is not None:
            payload["estimatedAgentRate"] = to_wire(self.estimated_agent_rate)
        if self.referral_net_commission is not None:
            payload["referralNetCommission"] = to_wire(self.referral_net_commission)
        return payload


def build_quote(
    amount: Any,
    term: Any,
    tier_table: Mapping[Any, Any] | None,
    override_rate: Any = None,
    agent_tier_table: Mapping[Any, Any] | None = None,
    referral_percentage: Any = None,
    tax_rate: Decimal = TAX_RATE,
) -> Quote:
    """
    Price a deposit of ``amount`` for ``term``.

    Args:
        amount: Principal; must parse to a finite number >= 0.
        term: Term wire value.  Unknown terms price at 0 cycles.
        tier_table: Principal-based rate tiers for the term.
        override_rate: Caller-negotiated rate; used when finite.
        agent_tier_table: Optional agent-rate tiers for the preview.
        referral_percentage: Optional referral commission percentage for
            the net-commission preview.
        tax_rate: Flat tax applied to interest and commissions.

    Raises:
        InvalidAmountError: If ``amount`` is not a finite number >= 0.
    """
    principal = parse_numeric(amount)
    if principal is None or principal < 0:
        raise InvalidAmountError(amount)

    estimated_rate = interpolate_tier_rate(tier_table, principal)
    override = parse_numeric(override_rate)
    final_rate = override if override is not None else estimated_rate

    earnings = compute_earnings(principal, final_rate, term, tax_rate)

    estimated_agent_rate = None
    if agent_tier_table:
        estimated_agent_rate = interpolate_tier_rate(agent_tier_table, principal)

    referral_net_commission = None
    percentage = parse_numeric(referral_percentage)
    if percentage is not None and percentage >= 0 and principal > 0:
        referral_net_commission = compute_commission_breakdown(
            principal, percentage, tax_rate
        ).net

    return Quote(
        amount=principal,
        term=term.value if hasattr(term, "value") else str(term),
        cycles=earnings.cycles,
        estimated_interest_rate=estimated_rate,
        final_interest_rate=round_rate(final_rate),
        annual_net_interest=earnings.annual_net_interest,
        total_net_interest_for_term=earnings.total_net_interest_for_term,
        total_return_amount=earnings.total_return_amount,
        estimated_agent_rate=estimated_agent_rate,
        referral_net_commission=referral_net_commission,
    )
