"""
DepositTransactionEngine -- atomic, idempotent time-deposit creation.

Responsibility:
    Opens the time deposit, credits the commission wallets and writes the
    history and audit trail in ONE unit of work.  Re-submission with the
    same idempotency key returns the stored record instead of creating a
    second one.

Architecture position:
    Kernel > Services -- imperative shell, owns the transaction boundary
    (through ``run_in_transaction``).  Called by TimeDepositService; takes
    an already-built Quote and an already-resolved ReferralContext, and
    delegates display-id allocation to SequenceService.

Invariants enforced:
    - Exactly-once per key: the deposit document id IS the idempotency
      key; an existing document short-circuits with ``idempotent=True``
      and performs no writes.
    - All-or-nothing: display id, balances, wallet transactions, the
      deposit, history, contract link and audit log commit together.
    - Display ids come from the shared counter, never from a scan.
    - Point-in-time audit: every quote field is embedded in the deposit.

Failure modes:
    - UserIdRequiredError / UserNotFoundError: target or recipient
      account cannot be resolved.  Nothing is written.
    - TransactionConflictError: the store kept rejecting the commit after
      ``max_attempts`` retries.  Nothing is written; retry with the SAME key.
    - StoreUnavailableError: propagated from the store.

Audit relevance:
    ``deposit_created`` and ``deposit_idempotent_replay`` are logged with
    the correlation (request) id, target user and display id.

Non-goals:
    - Does NOT price deposits or resolve commission splits.
    - Does NOT call the contract generator (contract data arrives ready).
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from deposit_kernel.db.unit_of_work import DocumentKey, DocumentStore, TransactionContext
from deposit_kernel.domain.clock import Clock, SystemClock
from deposit_kernel.domain.commission import (
    CommissionDistributionEntry,
    ReferralContext,
    ReferralMode,
)
from deposit_kernel.domain.quote import Quote
from deposit_kernel.domain.records import (
    ADMIN_HISTORY_LOGS,
    ADMIN_USERS,
    AGENT_TRANSACTIONS,
    CONTRACT_LINKS,
    STATUS_ACTIVE,
    TIME_DEPOSITS,
    TRANSACTIONS,
    USERS,
    DepositCreationResult,
    DepositMetadata,
    TimeDepositRecord,
)
from deposit_kernel.domain.terms import term_label
from deposit_kernel.domain.values import ZERO, from_wire, round_money, to_number, to_rate_number
from deposit_kernel.exceptions import UserIdRequiredError, UserNotFoundError
from deposit_kernel.logging_config import LogContext, get_logger
from deposit_kernel.services.sequence_service import SequenceService
from deposit_kernel.services.transaction_runner import (
    DEFAULT_MAX_ATTEMPTS,
    run_in_transaction,
)

logger = get_logger("services.deposit_engine")

ADD_TIME_DEPOSIT = "Add Time Deposit"
RESOURCE_TYPE_DEPOSIT = "DEPOSIT"


def format_number(value: Decimal) -> str:
    """Plain decimal rendering without trailing zeros (``5``, ``3.25``)."""
    normalized = value.normalize()
    return format(normalized if normalized != 0 else ZERO, "f")


def format_peso(value: Decimal) -> str:
    return f"₱{round_money(value):,.2f}"


def _display_name(user: dict[str, Any], fallback: str) -> str:
    name = f"{user.get('firstName') or ''} {user.get('lastName') or ''}".strip()
    return name or user.get("emailAddress") or fallback


@dataclass(frozen=True)
class _Account:
    key: DocumentKey
    data: dict[str, Any]

    @property
    def external_id(self) -> str:
        return self.data.get("userId") or self.key.doc_id

    @property
    def display_name(self) -> str:
        return _display_name(self.data, self.key.doc_id)


def resolve_account(ctx: TransactionContext, identifier: Any) -> _Account:
    """
    Find a user by document id, then by the alternate ``userId`` field.

    Raises:
        UserIdRequiredError: Blank identifier.
        UserNotFoundError: Neither lookup matched.
    """
    normalized = identifier.strip() if isinstance(identifier, str) else ""
    if not normalized:
        raise UserIdRequiredError()

    direct = DocumentKey(USERS, normalized)
    data = ctx.get(direct)
    if data is not None:
        return _Account(direct, data)

    match = ctx.find_one(USERS, "userId", normalized)
    if match is None:
        raise UserNotFoundError(normalized)
    return _Account(*match)


class DepositTransactionEngine:
    """
    Creates time deposits inside a retried unit of work.

    Contract:
        ``create_deposit`` either commits every write of the creation or
        none of them, and returns the stored record.  Calling it again
        with the same idempotency key returns that record unchanged.
    """

    def __init__(
        self,
        store: DocumentStore,
        clock: Clock | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._max_attempts = max_attempts

    def create_deposit(
        self,
        target_user_id: str,
        quote: Quote,
        referral_context: ReferralContext | None,
        idempotency_key: str,
        metadata: DepositMetadata,
    ) -> DepositCreationResult:
        """
        Open a time deposit for ``target_user_id``.

        Args:
            target_user_id: Document id or external ``userId`` of the investor.
            quote: The priced deposit.
            referral_context: Resolved commission split, or None.
            idempotency_key: Deposit document id and deduplication key.
            metadata: Dates, optional contract reference and acting admin.

        Returns:
            DepositCreationResult with ``idempotent=True`` on replay.
        """
        actor_id = metadata.actor.admin_id if metadata.actor else None
        with LogContext.bind(
            correlation_id=idempotency_key,
            target_user_id=target_user_id,
            actor_id=actor_id,
        ):
            result = run_in_transaction(
                self._store,
                lambda ctx: self._create_in(
                    ctx, target_user_id, quote, referral_context, idempotency_key, metadata
                ),
                self._max_attempts,
            )
            with LogContext.bind(display_id=result.record.display_id):
                self._log_result(result, quote, referral_context)
            return result

    @staticmethod
    def _log_result(
        result: DepositCreationResult, quote: Quote, referral: ReferralContext | None
    ) -> None:
        if result.idempotent:
            logger.info("deposit_idempotent_replay")
            return
        logger.info(
            "deposit_created",
            extra={
                "amount": quote.amount,
                "term": quote.term,
                "final_interest_rate": quote.final_interest_rate,
                "referral_mode": referral.mode.value if referral else None,
                "recipients": len(referral.distribution) if referral else 0,
                "write_count": len(result.writes),
            },
        )

    # -- unit of work -------------------------------------------------------

    def _create_in(
        self,
        ctx: TransactionContext,
        target_user_id: str,
        quote: Quote,
        referral: ReferralContext | None,
        idempotency_key: str,
        metadata: DepositMetadata,
    ) -> DepositCreationResult:
        account = resolve_account(ctx, target_user_id)
        deposit_key = account.key.child(TIME_DEPOSITS, idempotency_key)

        existing = ctx.get(deposit_key)
        if existing is not None:
            return DepositCreationResult(
                record=TimeDepositRecord.from_document(
                    idempotency_key, account.external_id, existing
                ),
                idempotent=True,
                request_id=idempotency_key,
            )

        display_id = SequenceService(ctx).next_display_id()
        with LogContext.bind(display_id=display_id):
            return self._write_deposit(
                ctx, account, deposit_key, display_id, quote, referral, idempotency_key, metadata
            )

    def _write_deposit(
        self,
        ctx: TransactionContext,
        account: _Account,
        deposit_key: DocumentKey,
        display_id: str,
        quote: Quote,
        referral: ReferralContext | None,
        idempotency_key: str,
        metadata: DepositMetadata,
    ) -> DepositCreationResult:
        now = self._clock.timestamp()
        amount = round_money(quote.amount)

        balance = from_wire(account.data.get("timeDepositAmount"))
        ctx.update(account.key, {"timeDepositAmount": to_number(balance + amount)})

        if referral is not None:
            for entry in referral.distribution:
                self._credit_recipient(ctx, entry, referral, account, amount, display_id, now)

        agent_rate = self._agent_rate(quote, referral)
        estimated_agent_rate = quote.estimated_agent_rate or ZERO
        deposit_doc: dict[str, Any] = {
            "requestId": idempotency_key,
            "displayId": display_id,
            "amount": to_number(amount),
            "initialDate": metadata.initial_date.isoformat(),
            "completionDate": metadata.completion_date.isoformat(),
            "createdAt": now,
            "isActive": STATUS_ACTIVE,
            "status": STATUS_ACTIVE,
            "contractType": quote.term,
            "estimatedInterestRate": to_rate_number(quote.estimated_interest_rate),
            "rate": to_rate_number(quote.final_interest_rate),
            "estimatedAgentRate": to_rate_number(estimated_agent_rate),
            "agentRate": to_rate_number(agent_rate),
            "annualNetInterest": to_number(quote.annual_net_interest),
            "totalNetInterestForTerm": to_number(quote.total_net_interest_for_term),
            "totalReturnAmount": to_number(quote.total_return_amount),
            "currentCycleCount": 0,
        }
        if referral is not None:
            deposit_doc["referrerId"] = referral.referrer_doc_id
        contract = metadata.contract
        if contract is not None and contract.contract_id:
            deposit_doc["contractId"] = contract.contract_id
        ctx.set(deposit_key, deposit_doc)

        history: dict[str, Any] = {
            "displayId": display_id,
            "amount": to_number(amount),
            "type": ADD_TIME_DEPOSIT,
            "description": self._history_description(quote, amount, estimated_agent_rate),
            "date": now,
            "contractType": quote.term,
            "estimatedInterestRate": to_rate_number(quote.estimated_interest_rate),
            "rate": to_rate_number(quote.final_interest_rate),
            "estimatedAgentRate": to_rate_number(estimated_agent_rate),
            "agentRate": to_rate_number(agent_rate),
            "annualNetInterest": to_number(quote.annual_net_interest),
            "totalNetInterestForTerm": to_number(quote.total_net_interest_for_term),
            "totalReturnAmount": to_number(quote.total_return_amount),
        }
        if referral is not None:
            history["referrerId"] = referral.referrer_doc_id
        ctx.set(ctx.new_key(account.key.subcollection(TRANSACTIONS)), history)

        if contract is not None:
            if contract.contract_id:
                ctx.set(
                    account.key.child(CONTRACT_LINKS, contract.contract_id),
                    {
                        "contractId": contract.contract_id,
                        "investmentAmount": to_number(amount),
                        "interestRate": to_rate_number(quote.final_interest_rate),
                        "contractDate": now,
                        "completionDate": metadata.completion_date.isoformat(),
                        "createdAt": now,
                        "viewUrl": contract.view_url,
                        "downloadUrl": contract.download_url,
                        "pdfUrl": contract.pdf_url,
                        "expiresAt": contract.expires_at,
                        "status": STATUS_ACTIVE,
                        "term": quote.term,
                        "displayId": display_id,
                        "requestId": idempotency_key,
                    },
                )
            else:
                logger.warning("contract_link_skipped", extra={"reason": "missing contract id"})

        if metadata.actor is not None and metadata.actor.admin_id:
            self._write_admin_log(ctx, metadata, account, quote, referral, amount, display_id, now)

        record = TimeDepositRecord.from_document(idempotency_key, account.external_id, deposit_doc)
        return DepositCreationResult(
            record=record,
            idempotent=False,
            request_id=idempotency_key,
            writes=ctx.pending_paths,
        )

    def _credit_recipient(
        self,
        ctx: TransactionContext,
        entry: CommissionDistributionEntry,
        referral: ReferralContext,
        investor: _Account,
        amount: Decimal,
        display_id: str,
        now: str,
    ) -> None:
        recipient = resolve_account(ctx, entry.recipient_user_id)
        wallet = from_wire(recipient.data.get("agentWalletAmount"))
        ctx.update(
            recipient.key,
            {"agentWalletAmount": to_number(wallet + entry.commission_amount)},
        )

        if referral.mode is ReferralMode.HIERARCHY:
            label = (
                f"Hierarchy Commission ({format_number(entry.commission_percentage)}%, "
                "Net After Tax) - Time Deposit"
            )
            gross, tax = entry.commission_amount, ZERO
        else:
            label = (
                f"Referral Bonus ({format_number(referral.commission_percentage)}%, "
                "Net After Tax) - Time Deposit"
            )
            gross, tax = referral.gross_commission, referral.tax_amount

        wallet_tx = {
            "amount": to_number(entry.commission_amount),
            "date": now,
            "type": label,
            "grossAmount": to_number(gross),
            "taxApplied": to_number(tax),
            "percentage": to_rate_number(entry.commission_percentage),
            "referredUserId": investor.key.doc_id,
            "referredClient": investor.display_name,
            "investmentAmount": to_number(amount),
            "displayId": display_id,
            "selectedReferrerId": referral.referrer_doc_id,
            "agentType": entry.recipient_type,
            "mode": referral.mode.value,
        }
        ctx.set(ctx.new_key(recipient.key.subcollection(AGENT_TRANSACTIONS)), wallet_tx)

    def _write_admin_log(
        self,
        ctx: TransactionContext,
        metadata: DepositMetadata,
        account: _Account,
        quote: Quote,
        referral: ReferralContext | None,
        amount: Decimal,
        display_id: str,
        now: str,
    ) -> None:
        actor = metadata.actor
        assert actor is not None
        details = (
            f"Admin {actor.label} added a {format_peso(amount)} time deposit "
            f"({term_label(quote.term)}, {format_number(quote.final_interest_rate)}%) "
            f"for user {account.display_name} (ID: {account.external_id}). "
            f"Investment Profile ID: {display_id}."
        )
        if metadata.contract is not None and metadata.contract.contract_id:
            details += f" Contract ID: {metadata.contract.contract_id}."
        if referral is not None:
            if referral.mode is ReferralMode.HIERARCHY:
                details += (
                    f" Hierarchy commissions processed for {referral.referrer_display_name}: "
                    f"{len(referral.distribution)} members."
                )
            else:
                details += (
                    f" Manual referral commission processed for {referral.referrer_display_name}."
                )

        log: dict[str, Any] = {
            "action": ADD_TIME_DEPOSIT,
            "adminUid": actor.admin_id,
            "adminEmail": actor.email or "",
            "adminDisplayName": actor.label,
            "adminName": actor.label,
            "targetUserId": account.external_id,
            "targetUserName": account.display_name,
            "amount": to_number(amount),
            "term": quote.term,
            "rate": to_rate_number(quote.final_interest_rate),
            "displayId": display_id,
            "resourceType": RESOURCE_TYPE_DEPOSIT,
            "resourceId": display_id,
            "timestamp": now,
            "details": details,
        }
        if referral is not None:
            hierarchy = referral.mode is ReferralMode.HIERARCHY
            log.update(
                {
                    "manualReferralUsed": not hierarchy,
                    "referrerId": referral.referrer_doc_id,
                    "hierarchyCommissionsUsed": hierarchy,
                    "hierarchyMembers": len(referral.distribution) if hierarchy else 0,
                }
            )
        admin_key = DocumentKey(ADMIN_USERS, actor.admin_id)
        ctx.set(ctx.new_key(admin_key.subcollection(ADMIN_HISTORY_LOGS)), log)

    @staticmethod
    def _agent_rate(quote: Quote, referral: ReferralContext | None) -> Decimal:
        if referral is not None:
            return referral.commission_percentage
        return quote.estimated_agent_rate or ZERO

    @staticmethod
    def _history_description(quote: Quote, amount: Decimal, agent_rate: Decimal) -> str:
        return (
            f"Added {format_peso(amount)} to Time Deposit for {term_label(quote.term)} "
            f"at {format_number(quote.final_interest_rate)}% interest "
            f"(Agent Rate: {format_number(agent_rate)}%). "
            f"Annual Net Gain: {format_peso(quote.annual_net_interest)}. "
            f"Total Net Gain (Term): {format_peso(quote.total_net_interest_for_term)}."
        )
