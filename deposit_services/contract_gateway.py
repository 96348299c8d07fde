"""
Contract-generation collaborator boundary.

The contract document service is external.  This module fixes the shape
of a generation request, the protocol an adapter implements, and the
validation of the collaborator's response payload.  Adapters report any
failure as ``ContractGenerationError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Protocol

from deposit_kernel.domain.records import ContractReference
from deposit_kernel.domain.values import to_wire
from deposit_kernel.exceptions import ContractGenerationError


@dataclass(frozen=True)
class ContractRequest:
    """Terms sent to the contract service."""

    request_id: str
    user_id: str
    amount: Decimal
    term: str
    rate: Decimal
    initial_date: date
    completion_date: date
    display_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "requestId": self.request_id,
            "userId": self.user_id,
            "amount": to_wire(self.amount),
            "term": self.term,
            "rate": to_wire(self.rate),
            "initialDate": self.initial_date.isoformat(),
            "completionDate": self.completion_date.isoformat(),
            "displayId": self.display_id,
        }


class ContractGenerator(Protocol):
    """Generates a contract document; raises ContractGenerationError on failure."""

    def generate(self, request: ContractRequest) -> ContractReference:
        ...


def parse_contract_response(data: Any, request_id: str | None = None) -> ContractReference:
    """
    Validate a contract-service payload.

    Expected shape: ``{contractId, urls: {view, download, pdf}, expiresAt}``.

    Raises:
        ContractGenerationError: The payload has no ``contractId``.
    """
    if not isinstance(data, Mapping) or not data.get("contractId"):
        raise ContractGenerationError(
            "Contract service returned an invalid payload", request_id=request_id
        )
    urls = data.get("urls") if isinstance(data.get("urls"), Mapping) else {}
    return ContractReference(
        contract_id=str(data["contractId"]),
        view_url=urls.get("view") or None,
        download_url=urls.get("download") or None,
        pdf_url=urls.get("pdf") or None,
        expires_at=data.get("expiresAt") or None,
    )
