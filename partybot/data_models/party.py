"""
Party data models.

Immutable data transfer objects handed from the store and service layers to
the cogs. They hold plain identifiers only, never Discord objects.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from partybot.database.models import PartyRole
from partybot.utils.party_exceptions import PartyError


@dataclass(frozen=True)
class PartySnapshot:
    """Committed state of one party."""
    party_id: int
    owner_id: str
    name: Optional[str]
    members: List[str] = field(default_factory=list)  # Owner first, then join order

    @property
    def size(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class PartyMembership:
    """Where a player stands: which party and in what role."""
    party_id: int
    role: PartyRole


@dataclass(frozen=True)
class LeaveOutcome:
    """Result of a leave; ``disbanded`` is set when the owner left."""
    party_id: int
    disbanded: bool
    former_members: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PartyResult:
    """Outcome of a PartyService operation: a payload or one typed error."""
    ok: bool
    payload: Any = None
    error: Optional[PartyError] = None

    @classmethod
    def success(cls, payload: Any = None) -> "PartyResult":
        return cls(ok=True, payload=payload)

    @classmethod
    def failure(cls, error: PartyError) -> "PartyResult":
        return cls(ok=False, error=error)

    @property
    def kind(self):
        return self.error.kind if self.error else None

    @property
    def message(self) -> Optional[str]:
        return self.error.user_message if self.error else None
