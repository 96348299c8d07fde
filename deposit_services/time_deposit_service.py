"""
TimeDepositService -- caller-facing quote and create orchestration.

Responsibility:
    Validates caller input, loads the current rate configuration, prices
    the deposit, resolves the referral split, optionally obtains a
    contract from the external generator and hands everything to the
    DepositTransactionEngine.

Architecture position:
    Services -- stateful orchestration over the kernel.  Holds the store,
    the rate provider, the agent directory and the contract generator;
    everything below it is either pure (quote, commission) or owns its
    own transaction (engine).

Invariants enforced:
    - Input, rate and referral errors are raised before any write.
    - Contract generation is the one soft-failure path: with
      ``strict=False`` its failure becomes ``contract_warning`` and the
      deposit is still created.

Failure modes:
    - InvalidAmountError / InvalidTermError / InvalidDateError
    - RateConfigUnavailableError
    - ContractGenerationError (strict mode only)
    - Referral and engine errors, propagated unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from deposit_config.providers import RateConfigProvider
from deposit_config.schema import RateConfiguration
from deposit_kernel.db.unit_of_work import DocumentStore
from deposit_kernel.domain.clock import Clock
from deposit_kernel.domain.commission import (
    AgentDirectory,
    ReferralRequest,
    resolve_distribution,
)
from deposit_kernel.domain.quote import Quote, build_quote
from deposit_kernel.domain.records import (
    AdminActor,
    ContractReference,
    DepositMetadata,
    TimeDepositRecord,
)
from deposit_kernel.domain.terms import Term, calculate_completion_date, parse_initial_date, parse_term
from deposit_kernel.domain.values import parse_numeric
from deposit_kernel.exceptions import ContractGenerationError, InvalidAmountError
from deposit_kernel.logging_config import LogContext, get_logger
from deposit_kernel.services.deposit_engine import DepositTransactionEngine
from deposit_kernel.services.transaction_runner import DEFAULT_MAX_ATTEMPTS
from deposit_kernel.utils.idempotency import resolve_idempotency_key
from deposit_services.agent_directory import StoreAgentDirectory
from deposit_services.contract_gateway import ContractGenerator, ContractRequest

logger = get_logger("services.time_deposit")


@dataclass(frozen=True)
class QuoteRequest:
    amount: Any
    term: Any
    final_interest_rate: Any = None
    referral: ReferralRequest | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> QuoteRequest:
        return cls(
            amount=raw.get("amount"),
            term=raw.get("term"),
            final_interest_rate=raw.get("finalInterestRate"),
            referral=ReferralRequest.from_dict(raw.get("referral")),
        )


@dataclass(frozen=True)
class ContractOptions:
    """Whether to generate a contract, and whether its failure is fatal."""

    enabled: bool = False
    strict: bool = True

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> ContractOptions:
        raw = raw or {}
        return cls(enabled=bool(raw.get("enabled")), strict=raw.get("strict") is not False)


@dataclass(frozen=True)
class CreateDepositRequest:
    amount: Any
    term: Any
    initial_date: Any
    final_interest_rate: Any = None
    referral: ReferralRequest | None = None
    contract: ContractOptions = field(default_factory=ContractOptions)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CreateDepositRequest:
        return cls(
            amount=raw.get("amount"),
            term=raw.get("term"),
            initial_date=raw.get("initialDate"),
            final_interest_rate=raw.get("finalInterestRate"),
            referral=ReferralRequest.from_dict(raw.get("referral")),
            contract=ContractOptions.from_dict(raw.get("contract")),
        )


@dataclass(frozen=True)
class CreateDepositResponse:
    time_deposit: TimeDepositRecord
    idempotent: bool
    request_id: str
    contract: ContractReference | None = None
    contract_warning: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "timeDeposit": self.time_deposit.to_dict(),
            "idempotent": self.idempotent,
            "requestId": self.request_id,
        }
        if self.contract is not None:
            payload["contract"] = self.contract.to_dict()
        if self.contract_warning:
            payload["contractWarning"] = self.contract_warning
        return payload


class TimeDepositService:
    """
    Quote and open time deposits.

    Contract:
        ``quote`` is read-only.  ``create`` is idempotent per request id:
        repeating it with the same ``request_id`` returns the stored
        deposit with ``idempotent=True``.
    """

    def __init__(
        self,
        store: DocumentStore,
        rates: RateConfigProvider,
        directory: AgentDirectory | None = None,
        contract_generator: ContractGenerator | None = None,
        clock: Clock | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        self._rates = rates
        self._directory = directory or StoreAgentDirectory(store)
        self._contract_generator = contract_generator
        self._engine = DepositTransactionEngine(store, clock=clock, max_attempts=max_attempts)

    def quote(self, request: QuoteRequest) -> Quote:
        """Price a deposit without writing anything."""
        amount = parse_numeric(request.amount)
        if amount is None or amount < 0:
            raise InvalidAmountError(request.amount)
        term = parse_term(request.term)
        rates = self._rates.load()
        return self._build_quote(amount, term, request.final_interest_rate, request.referral, rates)

    def create(
        self,
        target_user_id: str,
        request: CreateDepositRequest,
        request_id: str | None = None,
        actor: AdminActor | None = None,
    ) -> CreateDepositResponse:
        """
        Open a time deposit for ``target_user_id``.

        Args:
            target_user_id: Document id or external ``userId`` of the investor.
            request: Deposit terms, referral hint and contract options.
            request_id: Idempotency key.  A fresh key is generated when
                omitted, which makes the call non-repeatable.
            actor: Acting administrator, recorded in the audit log.
        """
        amount = parse_numeric(request.amount)
        if amount is None or amount <= 0:
            raise InvalidAmountError(request.amount, "must be greater than zero")
        term = parse_term(request.term)
        initial_date = parse_initial_date(request.initial_date)
        completion_date = calculate_completion_date(initial_date, term)

        rates = self._rates.load()
        quote = self._build_quote(
            amount, term, request.final_interest_rate, request.referral, rates
        )
        idempotency_key = resolve_idempotency_key(request_id)

        with LogContext.bind(correlation_id=idempotency_key, target_user_id=target_user_id):
            referral_context = resolve_distribution(
                request.referral,
                quote,
                self._directory,
                referred_user_id=target_user_id,
                tax_rate=rates.tax_rate,
            )

            contract, contract_warning = self._generate_contract(
                request.contract,
                ContractRequest(
                    request_id=idempotency_key,
                    user_id=target_user_id,
                    amount=quote.amount,
                    term=quote.term,
                    rate=quote.final_interest_rate,
                    initial_date=initial_date,
                    completion_date=completion_date,
                ),
            )

            result = self._engine.create_deposit(
                target_user_id,
                quote,
                referral_context,
                idempotency_key,
                DepositMetadata(
                    initial_date=initial_date,
                    completion_date=completion_date,
                    contract=contract,
                    actor=actor,
                ),
            )

        return CreateDepositResponse(
            time_deposit=result.record,
            idempotent=result.idempotent,
            request_id=result.request_id,
            contract=contract,
            contract_warning=contract_warning,
        )

    # -- helpers ------------------------------------------------------------

    @staticmethod
    def _build_quote(
        amount: Any,
        term: Term,
        final_interest_rate: Any,
        referral: ReferralRequest | None,
        rates: RateConfiguration,
    ) -> Quote:
        return build_quote(
            amount,
            term,
            rates.rates_for_term(term),
            override_rate=final_interest_rate,
            agent_tier_table=rates.agent_rates,
            referral_percentage=referral.commission_percentage if referral else None,
            tax_rate=rates.tax_rate,
        )

    def _generate_contract(
        self, options: ContractOptions, contract_request: ContractRequest
    ) -> tuple[ContractReference | None, str | None]:
        if not options.enabled:
            return None, None
        try:
            if self._contract_generator is None:
                raise ContractGenerationError(
                    "Contract service is not configured", request_id=contract_request.request_id
                )
            return self._contract_generator.generate(contract_request), None
        except ContractGenerationError as exc:
            if options.strict:
                raise
            logger.warning("contract_generation_degraded", extra={"reason": exc.reason})
            return None, exc.reason or "Contract generation failed"
