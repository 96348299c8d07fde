"""
RateConfiguration schema.

The normalised, validated rate configuration handed to quoting.  Source
artifacts (YAML files, ``investmentRates`` documents) are parsed into this
type by ``deposit_config.loader``; nothing downstream sees raw payloads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from deposit_kernel.domain.earnings import TAX_RATE
from deposit_kernel.domain.rates import TierTable
from deposit_kernel.domain.terms import Term
from deposit_kernel.domain.values import to_wire
from deposit_kernel.exceptions import RateConfigUnavailableError

REQUIRED_TERMS: tuple[str, ...] = tuple(term.value for term in Term)
AGENT_RATES_KEY = "agentRates"


@dataclass(frozen=True)
class RateConfiguration:
    """Tier tables per term, optional agent-rate tiers and the tax rate."""

    config_id: str
    source: str
    term_rates: dict[str, TierTable]
    agent_rates: TierTable | None = None
    tax_rate: Decimal = TAX_RATE
    checksum: str = field(default="", compare=False)

    def rates_for_term(self, term: Any) -> TierTable:
        """
        Tier table for one term.

        Raises:
            RateConfigUnavailableError: No non-empty table for ``term``.
        """
        key = term.value if isinstance(term, Term) else term
        table = self.term_rates.get(key)
        if not table:
            raise RateConfigUnavailableError(
                self.source, f"No rates configured for term: {key}"
            )
        return table

    @property
    def has_agent_rates(self) -> bool:
        return bool(self.agent_rates)

    def to_dict(self) -> dict[str, Any]:
        def table_dict(table: TierTable) -> dict[str, str | None]:
            return {to_wire(amount): to_wire(rate) for amount, rate in table.items()}

        payload: dict[str, Any] = {
            term: table_dict(table) for term, table in self.term_rates.items()
        }
        payload[AGENT_RATES_KEY] = table_dict(self.agent_rates or {})
        payload["taxRate"] = to_wire(self.tax_rate)
        return payload
