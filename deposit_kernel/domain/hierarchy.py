"""
HierarchyResolver -- commission split across an agent's upline.

Responsibility:
    Given an in-memory snapshot of agent records and the agent who found
    the investor, computes the ordered split of the referral pool between
    the agent, its immediate upline and its master upline.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  The caller fetches
    the agent snapshot; this module only walks it.

Invariants enforced:
    - Shares are fixed by role:
          Master Agent      100
          Agent              70 self, 30 master agent
          Consultant Agent   70 self, 20 agent, 10 master agent
    - Shares always sum to <= 100.
    - An upline that cannot be found is omitted.  Its share is not paid
      and not redistributed to anyone else.

Failure modes:
    - AgentNotFoundError from ``describe`` for an unknown agent code.
"""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from deposit_kernel.domain.agents import (
    EMPTY_SEGMENT,
    AgentNumbers,
    AgentRecord,
    AgentType,
    split_agent_code,
)
from deposit_kernel.exceptions import AgentNotFoundError


class UplineRole(str, Enum):
    """Position of a distribution row relative to the selling agent."""

    SELF = "self"
    AGENT = "agent"
    MASTER_AGENT = "masterAgent"


SELF_SHARE_MASTER = Decimal("100")
SELF_SHARE = Decimal("70")
MASTER_SHARE_FROM_AGENT = Decimal("30")
AGENT_SHARE_FROM_CONSULTANT = Decimal("20")
MASTER_SHARE_FROM_CONSULTANT = Decimal("10")


@dataclass(frozen=True)
class HierarchyShare:
    """One recipient and its share (percent) of the referral pool."""

    agent: AgentRecord
    role: UplineRole
    share_percentage: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {**self.agent.to_dict(), "commission": str(self.share_percentage)}


@dataclass(frozen=True)
class AgentHierarchy:
    """Hierarchy view of one agent: itself, its uplines and the split."""

    current_agent: AgentRecord
    distribution: tuple[HierarchyShare, ...]
    numbers: AgentNumbers
    agent: AgentRecord | None = None
    master_agent: AgentRecord | None = None
    recruits: tuple[AgentRecord, ...] = field(default=())


class HierarchyResolver:
    """
    Walks an agent snapshot to resolve commission splits.

    Contract:
        Constructed with every active agent record.  Resolution is
        stateless; the same snapshot and agent always give the same split.

    Non-goals:
        - Does NOT load agents (the caller passes the snapshot).
        - Does NOT compute money amounts (see commission.py).
    """

    def __init__(self, agents: Iterable[AgentRecord]):
        self._agents: tuple[AgentRecord, ...] = tuple(agents)
        self._resolvers: dict[AgentType, Callable[[AgentRecord], list[HierarchyShare]]] = {
            AgentType.MASTER_AGENT: self._resolve_master_agent,
            AgentType.AGENT: self._resolve_agent,
            AgentType.CONSULTANT_AGENT: self._resolve_consultant,
        }

    @property
    def agents(self) -> Sequence[AgentRecord]:
        return self._agents

    def find_by_code(self, agent_code: str) -> AgentRecord | None:
        return next((a for a in self._agents if a.agent_code == agent_code), None)

    def find_by_number(self, agent_number: str | None) -> AgentRecord | None:
        """
        Find the agent identified by ``agent_number``.

        Matches the record's own agent number first, then the current-agent
        segment of its (possibly renumbered) code breakdown.
        """
        if not agent_number:
            return None
        for candidate in self._agents:
            if candidate.agent_number == agent_number:
                return candidate
            if candidate.numbers.current_agent == agent_number:
                return candidate
        return None

    def distribution_for(self, agent: AgentRecord) -> list[HierarchyShare]:
        """Ordered split for ``agent``: self first, then uplines."""
        return self._resolvers[agent.agent_type](agent)

    def _resolve_master_agent(self, agent: AgentRecord) -> list[HierarchyShare]:
        return [HierarchyShare(agent, UplineRole.SELF, SELF_SHARE_MASTER)]

    def _resolve_agent(self, agent: AgentRecord) -> list[HierarchyShare]:
        shares = [HierarchyShare(agent, UplineRole.SELF, SELF_SHARE)]
        master = self.find_by_number(agent.numbers.master_agent)
        if master is not None:
            shares.append(
                HierarchyShare(master, UplineRole.MASTER_AGENT, MASTER_SHARE_FROM_AGENT)
            )
        return shares

    def _resolve_consultant(self, agent: AgentRecord) -> list[HierarchyShare]:
        shares = [HierarchyShare(agent, UplineRole.SELF, SELF_SHARE)]
        numbers = agent.numbers
        upline = self.find_by_number(numbers.agent)
        if upline is not None:
            shares.append(
                HierarchyShare(upline, UplineRole.AGENT, AGENT_SHARE_FROM_CONSULTANT)
            )
        master = self.find_by_number(numbers.master_agent)
        if master is not None:
            shares.append(
                HierarchyShare(master, UplineRole.MASTER_AGENT, MASTER_SHARE_FROM_CONSULTANT)
            )
        return shares

    def find_recruits(self, agent_code: str | None) -> list[AgentRecord]:
        """
        Agents directly recruited by the agent with ``agent_code``.

        A master agent's recruits are every agent and consultant whose
        master segment is its number; an agent's recruits are the
        consultants under it.  Consultants have no recruits.  Used for
        display only.
        """
        parts = split_agent_code(agent_code)
        if parts is None:
            return []
        current = AgentNumbers.from_code(agent_code).current_agent

        if parts[1] == EMPTY_SEGMENT:
            return [
                a for a in self._agents
                if AgentNumbers.from_code(a.agent_code).master_agent == current
            ]
        if parts[2] == EMPTY_SEGMENT:
            return [
                a for a in self._agents
                if AgentNumbers.from_code(a.agent_code).agent == current
            ]
        return []

    def describe(self, agent_code: str) -> AgentHierarchy:
        """
        Hierarchy view for ``agent_code``.

        Raises:
            AgentNotFoundError: If no agent in the snapshot has the code.
        """
        target = self.find_by_code(agent_code)
        if target is None:
            raise AgentNotFoundError(agent_code)

        distribution = self.distribution_for(target)
        by_role = {share.role: share.agent for share in distribution}
        return AgentHierarchy(
            current_agent=target,
            distribution=tuple(distribution),
            numbers=target.numbers,
            agent=by_role.get(UplineRole.AGENT),
            master_agent=by_role.get(UplineRole.MASTER_AGENT),
            recruits=tuple(self.find_recruits(agent_code)),
        )
