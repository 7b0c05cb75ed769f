from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

VALID_ROLES = frozenset({"user", "assistant", "system"})

MEMORY_EVENTS = frozenset({"ADD", "UPDATE", "DELETE", "NONE"})


@dataclass(frozen=True)
class MemoryItem:
    """A memory record owned by the Mem0 service (user-scoped, opaque)."""

    id: str
    text: str
    user_id: Optional[str] = None
    score: float = 0.0
    hash: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ConversationTurn:
    """One message submitted to the add endpoint."""

    role: str
    content: str

    def __post_init__(self) -> None:
        if self.role not in VALID_ROLES:
            raise ValueError(f"invalid role {self.role!r}; expected one of {sorted(VALID_ROLES)}")
        if not (self.content or "").strip():
            raise ValueError("conversation turn content must not be empty")

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class MemoryEvent:
    """Outcome of an add/update call for a single memory."""

    id: str
    text: str
    event: str = "NONE"
    previous_text: Optional[str] = None


@dataclass(frozen=True)
class MemoryHistoryEntry:
    id: str
    memory_id: str
    old_memory: Optional[str] = None
    new_memory: Optional[str] = None
    event: str = "NONE"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_deleted: bool = False


@dataclass(frozen=True)
class GraphRelation:
    """Graph-store link returned next to search hits."""

    source: str
    relationship: str
    destination: str


@dataclass(frozen=True)
class MemorySearchResult:
    memories: tuple[MemoryItem, ...] = ()
    relations: tuple[GraphRelation, ...] = ()
