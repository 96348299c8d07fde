"""
deposit_config -- single public entrypoint for rate configuration.

Responsibility:
    Provides the runtime way to obtain investment-rate configuration:
    ``get_active_rates()`` for packaged/file-based rate sets, and the
    providers for the store-backed ``investmentRates`` documents.  Returns
    a ``RateConfiguration`` -- normalised tier tables per term, optional
    agent-rate tiers and the tax rate.

Architecture position:
    Configuration -- sits above ``deposit_kernel`` and below
    ``deposit_services``.  The kernel MUST NEVER import from
    ``deposit_config``.

Invariants enforced:
    - Every tier table is normalised before use.
    - All three terms have rates, or loading fails.
    - Deterministic: the same source always produces the same checksum.

Failure modes:
    - ``RateConfigUnavailableError`` -- missing, malformed or incomplete
      rate set.

Audit relevance:
    Every successful ``get_active_rates()`` call emits a
    ``DEPOSIT_RATES_TRACE`` log entry with the config id and checksum,
    tying quotes back to the exact rate set that priced them.
"""

from __future__ import annotations

import logging
from pathlib import Path

from deposit_config.loader import build_rate_configuration, compute_checksum
from deposit_config.providers import (
    DEFAULT_RATES_DOC_ID,
    RateConfigProvider,
    StoreRateConfigProvider,
    YamlRateConfigProvider,
)
from deposit_config.schema import REQUIRED_TERMS, RateConfiguration

_logger = logging.getLogger("deposit_kernel.config")

# Default rate sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_rates(config_dir: Path | None = None, name: str = "default") -> RateConfiguration:
    """Load the named rate set (``<config_dir>/<name>.yaml``).

    Args:
        config_dir: Override path to the rate sets directory.
            Defaults to deposit_config/sets/.
        name: Rate set name (file stem).

    Raises:
        RateConfigUnavailableError: If the set is missing or invalid.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    config = YamlRateConfigProvider(sets_dir / f"{name}.yaml").load()

    _logger.info(
        "DEPOSIT_RATES_TRACE",
        extra={
            "trace_type": "DEPOSIT_RATES_TRACE",
            "config_id": config.config_id,
            "checksum": config.checksum,
            "terms": sorted(config.term_rates),
            "has_agent_rates": config.has_agent_rates,
            "tax_rate": config.tax_rate,
        },
    )
    return config


__all__ = [
    "DEFAULT_RATES_DOC_ID",
    "REQUIRED_TERMS",
    "RateConfigProvider",
    "RateConfiguration",
    "StoreRateConfigProvider",
    "YamlRateConfigProvider",
    "build_rate_configuration",
    "compute_checksum",
    "get_active_rates",
]
