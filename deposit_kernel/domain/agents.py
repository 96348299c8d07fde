"""
Agents -- the sales hierarchy's record types and agent-code decoding.

Responsibility:
    Defines the closed ``AgentType`` variant, the read-only ``AgentRecord``
    snapshot consumed by the hierarchy resolver, and the decoding of agent
    codes into their master-agent / agent / consultant segments.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Agent records are
    owned by an external agent store; the kernel only reads snapshots.

Agent codes:
    Three hyphen-separated 5-character segments
    ``masterAgentNumber-agentNumber-consultantNumber``.  ``00000`` marks an
    absent level.  The rightmost present segment identifies the agent
    itself (its "current agent number"):

        MA001-00000-00000   Master Agent MA001
        MA001-AG001-00000   Agent AG001 under MA001
        MA001-AG001-CN001   Consultant CN001 under AG001 under MA001
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

EMPTY_SEGMENT = "00000"


class AgentType(str, Enum):
    """Agent levels.  Wire values are the stored ``type`` strings."""

    MASTER_AGENT = "Master Agent"
    AGENT = "Agent"
    CONSULTANT_AGENT = "Consultant Agent"

    @property
    def hierarchy_level(self) -> int:
        """1 is the top of the hierarchy."""
        return _LEVELS[self]

    @property
    def standalone_commission_percentage(self) -> int:
        """Informational per-sale rate of the level (not used for splits)."""
        return _STANDALONE_COMMISSION[self]

    @property
    def max_recruits(self) -> int:
        return _MAX_RECRUITS[self]

    @property
    def can_recruit(self) -> bool:
        return self is not AgentType.CONSULTANT_AGENT

    @classmethod
    def from_code(cls, agent_code: str | None) -> "AgentType | None":
        """Derive the level from the rightmost present code segment."""
        parts = split_agent_code(agent_code)
        if parts is None:
            return None
        if parts[2] != EMPTY_SEGMENT:
            return cls.CONSULTANT_AGENT
        if parts[1] != EMPTY_SEGMENT:
            return cls.AGENT
        if parts[0] != EMPTY_SEGMENT:
            return cls.MASTER_AGENT
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.value,
            "commissionPercentage": self.standalone_commission_percentage,
            "maxRecruits": self.max_recruits,
            "hierarchyLevel": self.hierarchy_level,
            "canRecruit": self.can_recruit,
        }


_LEVELS = {
    AgentType.MASTER_AGENT: 1,
    AgentType.AGENT: 2,
    AgentType.CONSULTANT_AGENT: 3,
}
_STANDALONE_COMMISSION = {
    AgentType.MASTER_AGENT: 10,
    AgentType.AGENT: 5,
    AgentType.CONSULTANT_AGENT: 2,
}
_MAX_RECRUITS = {
    AgentType.MASTER_AGENT: 100,
    AgentType.AGENT: 50,
    AgentType.CONSULTANT_AGENT: 10,
}


def split_agent_code(agent_code: str | None) -> tuple[str, str, str] | None:
    """Split a code into its three segments; None when malformed."""
    if not agent_code or not isinstance(agent_code, str):
        return None
    parts = agent_code.split("-")
    if len(parts) != 3:
        return None
    return parts[0], parts[1], parts[2]


@dataclass(frozen=True)
class AgentNumbers:
    """Decoded agent-code segments (None where the level is absent)."""

    current_agent: str | None = None
    agent: str | None = None
    master_agent: str | None = None

    @classmethod
    def from_code(cls, agent_code: str | None) -> "AgentNumbers":
        """Decode a code; malformed codes give an empty breakdown."""
        parts = split_agent_code(agent_code)
        if parts is None:
            return cls()
        master, agent, consultant = parts
        if consultant != EMPTY_SEGMENT:
            return cls(current_agent=consultant, agent=agent, master_agent=master)
        if agent != EMPTY_SEGMENT:
            return cls(current_agent=agent, master_agent=master)
        return cls(current_agent=master)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "AgentNumbers":
        return cls(
            current_agent=raw.get("currentAgent"),
            agent=raw.get("agent"),
            master_agent=raw.get("masterAgent"),
        )

    def to_dict(self) -> dict[str, str]:
        payload = {
            "currentAgent": self.current_agent,
            "agent": self.agent,
            "masterAgent": self.master_agent,
        }
        return {k: v for k, v in payload.items() if v is not None}


@dataclass(frozen=True)
class AgentRecord:
    """Read-only snapshot of one agent from the external agent store."""

    user_id: str
    name: str
    agent_type: AgentType
    agent_code: str
    agent_number: str
    commission_numbers: AgentNumbers | None = None
    status: str = "active"
    recruits: tuple[str, ...] = ()

    @property
    def numbers(self) -> AgentNumbers:
        """Precomputed breakdown when stored, else decoded from the code."""
        return self.commission_numbers or AgentNumbers.from_code(self.agent_code)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "AgentRecord":
        """
        Build a record from an agent-store document.

        Raises:
            ValueError: If the document has no agent code or its level
                cannot be determined from either ``type`` or the code.
        """
        agent_code = doc.get("agentCode")
        if not agent_code:
            raise ValueError("Agent document has no agentCode")

        agent_type: AgentType | None
        try:
            agent_type = AgentType(doc.get("type"))
        except ValueError:
            agent_type = AgentType.from_code(agent_code)
        if agent_type is None:
            raise ValueError(f"Cannot determine agent type for {agent_code}")

        name = doc.get("fullName") or " ".join(
            part for part in (doc.get("firstName"), doc.get("lastName")) if part
        )
        raw_numbers = doc.get("commissionNumbers")

        return cls(
            user_id=str(doc.get("userId") or ""),
            name=name or agent_code,
            agent_type=agent_type,
            agent_code=agent_code,
            agent_number=str(doc.get("agentNumber") or ""),
            commission_numbers=AgentNumbers.from_dict(raw_numbers) if raw_numbers else None,
            status=doc.get("status") or "active",
            recruits=tuple(doc.get("recruits") or ()),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "name": self.name,
            "agentCode": self.agent_code,
            "agentNumber": self.agent_number,
            "type": self.agent_type.value,
        }
