from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from domain.memory import (
    ConversationTurn,
    MemoryEvent,
    MemoryHistoryEntry,
    MemoryItem,
    MemorySearchResult,
)


class MemoryStorePort(Protocol):
    async def add(
        self,
        *,
        user_id: Optional[str],
        messages: Sequence[ConversationTurn],
        metadata: Optional[dict[str, Any]] = None,
        agent_id: Optional[str] = None,
        run_id: Optional[str] = None,
    ) -> list[MemoryEvent]:
        """Submit conversation turns; the service decides what to store."""
        ...

    async def search(
        self,
        *,
        user_id: str,
        query: str,
        top_k: int,
        filters: Optional[dict[str, Any]] = None,
    ) -> list[MemoryItem]:
        ...

    async def search_detailed(
        self,
        *,
        user_id: str,
        query: str,
        top_k: int,
        filters: Optional[dict[str, Any]] = None,
    ) -> MemorySearchResult:
        """Search hits plus graph relations (when the graph store is enabled)."""
        ...

    async def get_all(self, *, user_id: str, limit: int = 100) -> list[MemoryItem]:
        ...

    async def get(self, *, memory_id: str) -> Optional[MemoryItem]:
        ...

    async def update(self, *, memory_id: str, data: str) -> dict[str, Any]:
        ...

    async def delete(self, *, memory_id: str) -> bool:
        """Delete one memory. Missing memories count as deleted."""
        ...

    async def delete_all(self, *, user_id: str) -> bool:
        ...

    async def history(self, *, memory_id: str) -> list[MemoryHistoryEntry]:
        ...

    async def reset(self) -> None:
        ...

    async def configure(self, *, config: dict[str, Any]) -> dict[str, Any]:
        ...

    async def close(self) -> None:
        ...
