"""
Rate configuration loader (``deposit_config.loader``).

Responsibility
--------------
Parses raw rate payloads (YAML files, store documents) into a validated
``RateConfiguration``.  Providers call ``build_rate_configuration``;
callers obtain configuration through ``deposit_config.get_active_rates``
or a provider, never from this module directly.

Invariants enforced
-------------------
* Every tier table is normalised: invalid entries are dropped, never fatal.
* All three terms must have a non-empty table after normalisation.
* The tax rate lies in [0, 1).
* ``compute_checksum`` is deterministic for identical normalised payloads.

Failure modes
-------------
* Missing YAML file -> ``RateConfigUnavailableError`` (by the provider).
* Malformed YAML -> ``RateConfigUnavailableError`` (by the provider).
* Missing terms or a bad tax rate -> ``RateConfigUnavailableError``.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from dataclasses import replace
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from deposit_config.schema import AGENT_RATES_KEY, REQUIRED_TERMS, RateConfiguration
from deposit_kernel.domain.earnings import TAX_RATE
from deposit_kernel.domain.rates import TierTable, normalize_tier_table
from deposit_kernel.domain.values import parse_numeric
from deposit_kernel.exceptions import RateConfigUnavailableError

TAX_RATE_KEYS = ("taxRate", "tax_rate")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def normalize_rates_payload(payload: Mapping[str, Any] | None) -> dict[str, TierTable]:
    """Normalise the three term tables and the agent-rate table."""
    payload = payload or {}

    def table(key: str) -> TierTable:
        raw = payload.get(key)
        return normalize_tier_table(raw) if isinstance(raw, Mapping) else {}

    normalized = {term: table(term) for term in REQUIRED_TERMS}
    normalized[AGENT_RATES_KEY] = table(AGENT_RATES_KEY)
    return normalized


def validate_required_rates(normalized: Mapping[str, TierTable], source: str) -> None:
    missing = [term for term in REQUIRED_TERMS if not normalized.get(term)]
    if missing:
        raise RateConfigUnavailableError(
            source, f"Missing investment rates for: {', '.join(missing)}"
        )


def parse_tax_rate(payload: Mapping[str, Any], source: str) -> Decimal:
    raw = next((payload[k] for k in TAX_RATE_KEYS if k in payload), None)
    if raw is None:
        return TAX_RATE
    tax_rate = parse_numeric(raw)
    if tax_rate is None or tax_rate < 0 or tax_rate >= 1:
        raise RateConfigUnavailableError(source, f"Invalid tax rate: {raw!r}")
    return tax_rate


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialisation."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def build_rate_configuration(
    payload: Mapping[str, Any] | None,
    *,
    source: str,
    config_id: str,
) -> RateConfiguration:
    """
    Normalise and validate a raw payload.

    Args:
        payload: ``{sixMonths, oneYear, twoYears, agentRates?, taxRate?}``.
        source: Human-readable origin, used in error messages.
        config_id: Identifier of the configuration (file stem, doc id).

    Raises:
        RateConfigUnavailableError: Missing terms or invalid tax rate.
    """
    if payload is not None and not isinstance(payload, Mapping):
        raise RateConfigUnavailableError(source, "Rates payload is invalid")
    payload = payload or {}

    normalized = normalize_rates_payload(payload)
    validate_required_rates(normalized, source)
    tax_rate = parse_tax_rate(payload, source)
    agent_rates = normalized.pop(AGENT_RATES_KEY)

    config = RateConfiguration(
        config_id=config_id,
        source=source,
        term_rates=normalized,
        agent_rates=agent_rates or None,
        tax_rate=tax_rate,
    )
    return replace(config, checksum=compute_checksum(config.to_dict()))
