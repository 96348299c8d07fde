"""
Term earnings and the referral commission breakdown.

Earnings are computed from unrounded per-cycle values; only the reported
totals are rounded to cents.
"""

from decimal import Decimal

import pytest

from deposit_kernel.domain.earnings import (
    TAX_RATE,
    compute_commission_breakdown,
    compute_earnings,
)


class TestComputeEarnings:

    def test_six_months_single_cycle(self):
        earnings = compute_earnings(100000, 5, "sixMonths", TAX_RATE)

        assert earnings.cycles == 1
        assert earnings.annual_net_interest == Decimal("4000.00")
        assert earnings.total_net_interest_for_term == Decimal("4000.00")
        assert earnings.total_return_amount == Decimal("104000.00")

    def test_one_year_two_cycles(self):
        earnings = compute_earnings(100000, 5, "oneYear", TAX_RATE)

        assert earnings.cycles == 2
        assert earnings.annual_net_interest == Decimal("4000.00")
        assert earnings.total_net_interest_for_term == Decimal("8000.00")
        assert earnings.total_return_amount == Decimal("108000.00")

    def test_two_years_four_cycles(self):
        earnings = compute_earnings(100000, 5, "twoYears")

        assert earnings.cycles == 4
        assert earnings.total_net_interest_for_term == Decimal("16000.00")
        assert earnings.total_return_amount == Decimal("116000.00")

    def test_totals_use_unrounded_cycle_interest(self):
        """Per-cycle 26.6677... rounds to 26.67, but 4 cycles total 106.67, not 106.68."""
        earnings = compute_earnings(Decimal("1000.05"), Decimal("3.3333"), "twoYears")

        assert earnings.annual_net_interest == Decimal("26.67")
        assert earnings.total_net_interest_for_term == Decimal("106.67")
        assert earnings.total_return_amount == Decimal("1106.72")

    def test_custom_tax_rate(self):
        earnings = compute_earnings(100000, 5, "sixMonths", Decimal("0"))
        assert earnings.total_net_interest_for_term == Decimal("5000.00")

    @pytest.mark.parametrize(
        "principal, rate, term",
        [
            (0, 5, "sixMonths"),
            (-100, 5, "sixMonths"),
            (1000, -1, "sixMonths"),
            (1000, 5, "threeYears"),
            ("abc", 5, "oneYear"),
        ],
    )
    def test_degenerate_inputs_yield_zero(self, principal, rate, term):
        earnings = compute_earnings(principal, rate, term)

        assert earnings.annual_net_interest == Decimal("0.00")
        assert earnings.total_net_interest_for_term == Decimal("0.00")
        assert earnings.total_return_amount == Decimal("0.00")

    def test_unknown_term_has_zero_cycles(self):
        assert compute_earnings(1000, 5, "threeYears").cycles == 0

    def test_zero_rate(self):
        earnings = compute_earnings(5000, 0, "oneYear")
        assert earnings.total_net_interest_for_term == Decimal("0.00")
        assert earnings.total_return_amount == Decimal("5000.00")


class TestCommissionBreakdown:

    def test_manual_referral_example(self):
        breakdown = compute_commission_breakdown(Decimal("50000"), Decimal("10"))

        assert breakdown.gross == Decimal("5000.00")
        assert breakdown.tax == Decimal("1000.00")
        assert breakdown.net == Decimal("4000.00")

    def test_gross_minus_tax_reconciles(self):
        breakdown = compute_commission_breakdown(Decimal("12345.67"), Decimal("3.3"))

        assert breakdown.gross == Decimal("407.41")
        assert breakdown.tax == Decimal("81.48")
        assert breakdown.gross - breakdown.tax == breakdown.net

    def test_zero_percentage(self):
        breakdown = compute_commission_breakdown(Decimal("50000"), Decimal("0"))
        assert (breakdown.gross, breakdown.tax, breakdown.net) == (0, 0, 0)
