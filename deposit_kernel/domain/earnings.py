"""
Earnings -- net interest and total return for a deposit term.

The rate is applied once per six-month cycle and the tax haircut is
removed from each cycle's gross interest.  Totals are computed from the
unrounded per-cycle value; only the reported figures are rounded.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from deposit_kernel.domain.terms import cycles_for_term
from deposit_kernel.domain.values import HUNDRED, ZERO, parse_numeric, round_money

TAX_RATE = Decimal("0.2")


@dataclass(frozen=True)
class TermEarnings:
    """Reported earnings for one deposit term (money at 2 places)."""

    cycles: int
    annual_net_interest: Decimal
    total_net_interest_for_term: Decimal
    total_return_amount: Decimal


def compute_earnings(
    principal: Any,
    rate_percent: Any,
    term: Any,
    tax_rate: Decimal = TAX_RATE,
) -> TermEarnings:
    """
    Compute net interest for ``term`` at ``rate_percent``.

    A non-positive principal, a negative rate or an unknown term (0 cycles)
    yields all-zero figures; this is a defined degenerate case.
    """
    amount = parse_numeric(principal)
    rate = parse_numeric(rate_percent)
    cycles = cycles_for_term(term)

    if amount is None or amount <= 0 or rate is None or rate < 0 or not cycles:
        return TermEarnings(
            cycles=cycles,
            annual_net_interest=round_money(ZERO),
            total_net_interest_for_term=round_money(ZERO),
            total_return_amount=round_money(ZERO),
        )

    gross_per_cycle = amount * (rate / HUNDRED)
    net_per_cycle = gross_per_cycle * (1 - tax_rate)
    total_net = net_per_cycle * cycles
    total_return = amount + total_net

    return TermEarnings(
        cycles=cycles,
        annual_net_interest=round_money(net_per_cycle),
        total_net_interest_for_term=round_money(total_net),
        total_return_amount=round_money(total_return),
    )


@dataclass(frozen=True)
class CommissionBreakdown:
    """Referral pool for one deposit: gross, tax withheld and net."""

    gross: Decimal
    tax: Decimal
    net: Decimal


def compute_commission_breakdown(
    principal: Decimal,
    commission_percentage: Decimal,
    tax_rate: Decimal = TAX_RATE,
) -> CommissionBreakdown:
    """
    Referral pool for ``principal`` at ``commission_percentage``.

    Gross and tax are each rounded to cents before the net is taken, so the
    three reported figures always reconcile (gross - tax == net).  The quote
    preview and the authoritative distribution both call this function.
    """
    gross = round_money(principal * (commission_percentage / HUNDRED))
    tax = round_money(gross * tax_rate)
    return CommissionBreakdown(gross=gross, tax=tax, net=gross - tax)
