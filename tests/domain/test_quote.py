"""QuoteBuilder: estimated vs final rate, agent-rate preview, referral preview."""

from decimal import Decimal

import pytest

from deposit_kernel.domain.earnings import compute_commission_breakdown
from deposit_kernel.domain.quote import build_quote
from deposit_kernel.domain.terms import Term
from deposit_kernel.exceptions import InvalidAmountError

ONE_YEAR = {0: 5.0, 50000: 6.0, 100000: 7.0}
AGENT_RATES = {0: 5.0, 50000: 6.0, 100000: 7.0}


class TestBuildQuote:

    def test_estimated_rate_drives_earnings(self):
        quote = build_quote(100000, "oneYear", ONE_YEAR)

        assert quote.term == "oneYear"
        assert quote.cycles == 2
        assert quote.estimated_interest_rate == Decimal("7")
        assert quote.final_interest_rate == Decimal("7")
        assert quote.annual_net_interest == Decimal("5600.00")
        assert quote.total_net_interest_for_term == Decimal("11200.00")
        assert quote.total_return_amount == Decimal("111200.00")
        assert quote.estimated_agent_rate is None
        assert quote.referral_net_commission is None

    def test_override_rate_replaces_estimate(self):
        quote = build_quote(100000, "oneYear", ONE_YEAR, override_rate="5")

        assert quote.estimated_interest_rate == Decimal("7")
        assert quote.final_interest_rate == Decimal("5")
        assert quote.total_net_interest_for_term == Decimal("8000.00")
        assert quote.total_return_amount == Decimal("108000.00")

    @pytest.mark.parametrize("override", [None, "", "abc", float("nan")])
    def test_non_finite_override_ignored(self, override):
        quote = build_quote(75000, "oneYear", ONE_YEAR, override_rate=override)
        assert quote.final_interest_rate == quote.estimated_interest_rate == Decimal("6.5")

    def test_final_rate_rounded_to_four_places(self):
        quote = build_quote(1000, "sixMonths", {0: 1}, override_rate="4.123456")
        assert quote.final_interest_rate == Decimal("4.1235")

    def test_agent_rate_preview(self):
        quote = build_quote(25000, "oneYear", ONE_YEAR, agent_tier_table=AGENT_RATES)
        assert quote.estimated_agent_rate == Decimal("5.5")

    def test_referral_preview_matches_shared_breakdown(self):
        quote = build_quote("12,345.67", "oneYear", ONE_YEAR, referral_percentage="3.3")

        expected = compute_commission_breakdown(Decimal("12345.67"), Decimal("3.3")).net
        assert quote.referral_net_commission == expected == Decimal("325.93")

    def test_referral_preview_requires_positive_principal(self):
        quote = build_quote(0, "oneYear", ONE_YEAR, referral_percentage=10)
        assert quote.referral_net_commission is None

    def test_term_enum_accepted(self):
        assert build_quote(1000, Term.SIX_MONTHS, {0: 2}).term == "sixMonths"

    def test_unknown_term_prices_at_zero_cycles(self):
        quote = build_quote(1000, "threeYears", ONE_YEAR)
        assert quote.cycles == 0
        assert quote.total_return_amount == Decimal("0.00")

    @pytest.mark.parametrize("amount", [-1, "abc", None, float("inf"), True])
    def test_invalid_amount(self, amount):
        with pytest.raises(InvalidAmountError) as exc_info:
            build_quote(amount, "oneYear", ONE_YEAR)
        assert exc_info.value.code == "INVALID_AMOUNT"

    def test_to_dict_is_camel_case_with_string_decimals(self):
        payload = build_quote(
            100000, "sixMonths", {0: 5}, agent_tier_table=AGENT_RATES, referral_percentage=10
        ).to_dict()

        assert payload["finalInterestRate"] == "5.0000"
        assert payload["totalReturnAmount"] == "104000.00"
        assert payload["estimatedAgentRate"] == "7.0000"
        assert payload["referralNetCommission"] == "8000.00"
