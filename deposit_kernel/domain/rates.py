"""
Rates -- tier tables and piecewise-linear rate interpolation.

Responsibility:
    Maps an investment amount onto an interest (or agent) rate using a
    tier table keyed by amount thresholds.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Same inputs always
    produce the same rate, which keeps quotes reproducible for audit.

Invariants enforced:
    - Invalid table entries (non-numeric, non-finite or negative amount or
      rate) are dropped during normalisation, never fatal.
    - Rates are capped at the boundary tiers, never extrapolated.
    - Results are rounded to 4 decimal places.
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from deposit_kernel.domain.values import ZERO, parse_numeric, round_rate

TierTable = dict[Decimal, Decimal]


def normalize_tier_table(raw: Mapping[Any, Any] | None) -> TierTable:
    """
    Parse a raw ``{threshold: rate}`` mapping into a sorted TierTable.

    Keys and values may be numbers or numeric strings (YAML and JSON
    documents deliver both).  Entries that do not parse to finite,
    non-negative numbers are discarded.
    """
    if not raw:
        return {}

    normalized: TierTable = {}
    for amount_key, rate_value in raw.items():
        amount = parse_numeric(amount_key)
        rate = parse_numeric(rate_value)
        if amount is None or rate is None or amount < 0 or rate < 0:
            continue
        normalized[amount] = rate

    return dict(sorted(normalized.items()))


def interpolate_tier_rate(tier_table: Mapping[Any, Any] | None, amount: Any) -> Decimal:
    """
    Interpolate the rate for ``amount`` from a tier table.

    Returns 0 when the amount is not a finite non-negative number or the
    table has no valid entries.  Amounts at or below the first threshold
    get the first rate; at or above the last threshold, the last rate.
    Between two thresholds::

        rate = low_rate + (amount - low_amt) / (high_amt - low_amt) * (high_rate - low_rate)
    """
    value = parse_numeric(amount)
    if value is None or value < 0:
        return ZERO

    table = normalize_tier_table(tier_table)
    if not table:
        return ZERO

    thresholds = list(table)
    lowest, highest = thresholds[0], thresholds[-1]

    if value <= lowest:
        return round_rate(table[lowest])
    if value >= highest:
        return round_rate(table[highest])

    low_amount, high_amount = lowest, thresholds[1]
    for current, following in zip(thresholds, thresholds[1:]):
        if current <= value < following:
            low_amount, high_amount = current, following
            break

    low_rate = table[low_amount]
    high_rate = table[high_amount]
    interpolated = low_rate + (value - low_amount) / (high_amount - low_amount) * (
        high_rate - low_rate
    )
    return round_rate(interpolated)
