"""
Rate configuration providers.

Responsibility:
    Point-in-time reads of the current rate configuration from a YAML
    file or from the ``investmentRates`` documents of the store.  No
    caching: each ``load()`` re-reads its source.

Failure modes:
    - RateConfigUnavailableError: source missing, unreadable, malformed
      or incomplete.  Providers never fall back to stale or default data.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import yaml

from deposit_config.loader import build_rate_configuration, load_yaml_file
from deposit_config.schema import RateConfiguration
from deposit_kernel.db.unit_of_work import DocumentKey, DocumentStore
from deposit_kernel.domain.records import INVESTMENT_RATES
from deposit_kernel.exceptions import (
    RateConfigUnavailableError,
    StoreUnavailableError,
)
from deposit_kernel.logging_config import get_logger

logger = get_logger("config.providers")

DEFAULT_RATES_DOC_ID = "default"


class RateConfigProvider(Protocol):
    def load(self) -> RateConfiguration:
        ...


class YamlRateConfigProvider:
    """Reads a rate configuration YAML file."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> RateConfiguration:
        source = str(self.path)
        try:
            payload = load_yaml_file(self.path)
        except FileNotFoundError as exc:
            raise RateConfigUnavailableError(source, "Investment rates configuration is missing") from exc
        except (OSError, yaml.YAMLError) as exc:
            raise RateConfigUnavailableError(source, f"Unreadable rates file: {exc}") from exc

        config = build_rate_configuration(payload, source=source, config_id=self.path.stem)
        logger.debug("rates_loaded", extra={"source": source, "checksum": config.checksum})
        return config


class StoreRateConfigProvider:
    """Reads ``investmentRates/<doc_id>`` through a read-only unit of work."""

    def __init__(self, store: DocumentStore, doc_id: str = DEFAULT_RATES_DOC_ID):
        self._store = store
        self.doc_id = doc_id

    def load(self) -> RateConfiguration:
        key = DocumentKey(INVESTMENT_RATES, self.doc_id)
        ctx = self._store.begin()
        try:
            payload = ctx.get(key)
        except StoreUnavailableError as exc:
            raise RateConfigUnavailableError(key.path, exc.reason) from exc
        finally:
            ctx.rollback()

        if payload is None:
            raise RateConfigUnavailableError(key.path, "Investment rates configuration is missing")

        config = build_rate_configuration(payload, source=key.path, config_id=self.doc_id)
        logger.debug("rates_loaded", extra={"source": key.path, "checksum": config.checksum})
        return config
