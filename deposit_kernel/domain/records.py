"""
Records -- persisted record shapes and deposit-creation metadata.

The document field names written by the engine (camelCase, JSON numbers
with percentages on a 0-100 scale, money rounded to 2 places, rates to 4)
are a compatibility surface for downstream reporting.
``TimeDepositRecord`` is the typed view of a stored time-deposit document.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from deposit_kernel.domain.values import from_wire, round_money, round_rate, to_wire

STATUS_ACTIVE = "Active"

# Collection names
USERS = "users"
COUNTERS = "counters"
ADMIN_USERS = "adminUsers"
AGENTS = "agents"
INVESTMENT_RATES = "investmentRates"
TIME_DEPOSITS = "inspireAuto"
AGENT_TRANSACTIONS = "agentTransactions"
TRANSACTIONS = "transactions"
CONTRACT_LINKS = "contractLinks"
ADMIN_HISTORY_LOGS = "admin_history_logs"

DISPLAY_ID_COUNTER = "investmentProfileId"
DISPLAY_ID_WIDTH = 7


def _money(doc: Mapping[str, Any], *names: str) -> Decimal:
    value = next((doc[name] for name in names if name in doc), None)
    return round_money(from_wire(value))


def _rate(doc: Mapping[str, Any], *names: str) -> Decimal:
    value = next((doc[name] for name in names if name in doc), None)
    return round_rate(from_wire(value))


@dataclass(frozen=True)
class ContractReference:
    """Contract generated by the external collaborator, embedded verbatim."""

    contract_id: str
    view_url: str | None = None
    download_url: str | None = None
    pdf_url: str | None = None
    expires_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "contractId": self.contract_id,
            "urls": {
                "view": self.view_url,
                "download": self.download_url,
                "pdf": self.pdf_url,
            },
            "expiresAt": self.expires_at,
        }


@dataclass(frozen=True)
class AdminActor:
    """Administrator performing the creation; drives the audit log."""

    admin_id: str
    email: str = ""
    display_name: str | None = None

    @property
    def label(self) -> str:
        return self.display_name or self.email or self.admin_id


@dataclass(frozen=True)
class DepositMetadata:
    """Non-quote inputs to deposit creation."""

    initial_date: date
    completion_date: date
    contract: ContractReference | None = None
    actor: AdminActor | None = None


@dataclass(frozen=True)
class TimeDepositRecord:
    """Typed view of a stored time-deposit document."""

    id: str
    display_id: str
    user_id: str
    amount: Decimal
    term: str
    initial_date: str | None
    completion_date: str | None
    status: str
    estimated_interest_rate: Decimal
    final_interest_rate: Decimal
    annual_net_interest: Decimal
    total_net_interest_for_term: Decimal
    total_return_amount: Decimal
    estimated_agent_rate: Decimal | None = None
    agent_rate: Decimal | None = None
    request_id: str | None = None
    contract_id: str | None = None
    referrer_id: str | None = None

    @classmethod
    def from_document(cls, doc_id: str, user_id: str, doc: Mapping[str, Any]) -> "TimeDepositRecord":
        return cls(
            id=doc_id,
            display_id=str(doc.get("displayId") or ""),
            user_id=user_id,
            amount=_money(doc, "amount"),
            term=doc.get("contractType") or doc.get("term") or "",
            initial_date=doc.get("initialDate"),
            completion_date=doc.get("completionDate"),
            status=doc.get("status") or STATUS_ACTIVE,
            estimated_interest_rate=_rate(doc, "estimatedInterestRate"),
            final_interest_rate=_rate(doc, "rate", "finalInterestRate"),
            annual_net_interest=_money(doc, "annualNetInterest"),
            total_net_interest_for_term=_money(doc, "totalNetInterestForTerm"),
            total_return_amount=_money(doc, "totalReturnAmount"),
            estimated_agent_rate=(
                _rate(doc, "estimatedAgentRate") if "estimatedAgentRate" in doc else None
            ),
            agent_rate=_rate(doc, "agentRate") if "agentRate" in doc else None,
            request_id=doc.get("requestId"),
            contract_id=doc.get("contractId"),
            referrer_id=doc.get("referrerId"),
        )

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "id": self.id,
            "displayId": self.display_id,
            "userId": self.user_id,
            "amount": to_wire(self.amount),
            "term": self.term,
            "initialDate": self.initial_date,
            "completionDate": self.completion_date,
            "status": self.status,
            "estimatedInterestRate": to_wire(self.estimated_interest_rate),
            "finalInterestRate": to_wire(self.final_interest_rate),
            "annualNetInterest": to_wire(self.annual_net_interest),
            "totalNetInterestForTerm": to_wire(self.total_net_interest_for_term),
            "totalReturnAmount": to_wire(self.total_return_amount),
            "estimatedAgentRate": to_wire(self.estimated_agent_rate),
            "agentRate": to_wire(self.agent_rate),
            "requestId": self.request_id,
            "contractId": self.contract_id,
            "referrerId": self.referrer_id,
        }
        return {k: v for k, v in payload.items() if v is not None}


@dataclass(frozen=True)
class DepositCreationResult:
    """Outcome of one ``create_deposit`` call."""

    record: TimeDepositRecord
    idempotent: bool
    request_id: str
    writes: tuple[str, ...] = field(default=())
