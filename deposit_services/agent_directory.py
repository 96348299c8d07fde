"""
StoreAgentDirectory -- referrer and agent-snapshot reads from the store.

Responsibility:
    Implements the ``AgentDirectory`` collaborator of the commission
    resolver on top of a ``DocumentStore``: referrer lookup by document id
    or ``userId`` field, and the snapshot of active agent records.

Architecture position:
    Services -- adapter between kernel domain and the document store.
    Every call is a point-in-time read in its own context, rolled back
    afterwards (nothing is written).

Failure modes:
    - UserIdRequiredError / UserNotFoundError: unknown referrer.
    - StoreUnavailableError: propagated from the store.
    Malformed agent documents are skipped with a warning; the snapshot
    never fails because of one bad record.
"""

from __future__ import annotations

from deposit_kernel.db.unit_of_work import DocumentStore
from deposit_kernel.domain.agents import AgentRecord
from deposit_kernel.domain.commission import ReferrerProfile
from deposit_kernel.domain.hierarchy import AgentHierarchy, HierarchyResolver
from deposit_kernel.domain.records import AGENTS
from deposit_kernel.logging_config import get_logger
from deposit_kernel.services.deposit_engine import resolve_account

logger = get_logger("services.agent_directory")

ACTIVE_STATUS = "active"


class StoreAgentDirectory:
    """AgentDirectory backed by the ``users`` and ``agents`` collections."""

    def __init__(self, store: DocumentStore):
        self._store = store

    def get_referrer(self, user_id: str) -> ReferrerProfile:
        ctx = self._store.begin()
        try:
            account = resolve_account(ctx, user_id)
        finally:
            ctx.rollback()

        return ReferrerProfile(
            doc_id=account.key.doc_id,
            user_id=account.external_id,
            display_name=account.display_name,
            agent_code=account.data.get("agentCode") or None,
        )

    def active_agents(self) -> list[AgentRecord]:
        ctx = self._store.begin()
        try:
            documents = ctx.find(AGENTS, "status", ACTIVE_STATUS)
        finally:
            ctx.rollback()

        agents: list[AgentRecord] = []
        for key, doc in documents:
            try:
                agents.append(AgentRecord.from_document(doc))
            except ValueError as exc:
                logger.warning(
                    "agent_document_skipped",
                    extra={"path": key.path, "reason": str(exc)},
                )
        return agents

    def hierarchy(self, agent_code: str) -> AgentHierarchy:
        """Hierarchy view of one agent (raises AgentNotFoundError)."""
        return HierarchyResolver(self.active_agents()).describe(agent_code)
