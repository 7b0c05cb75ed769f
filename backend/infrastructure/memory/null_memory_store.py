from __future__ import annotations

from typing import Any, Optional, Sequence

from application.ports.memory_store_port import MemoryStorePort
from domain.memory import (
    ConversationTurn,
    MemoryEvent,
    MemoryHistoryEntry,
    MemoryItem,
    MemorySearchResult,
)


class NullMemoryStore(MemoryStorePort):
    async def add(
        self,
        *,
        user_id: Optional[str],
        messages: Sequence[ConversationTurn],
        metadata: Optional[dict[str, Any]] = None,
        agent_id: Optional[str] = None,
        run_id: Optional[str] = None,
    ) -> list[MemoryEvent]:
        _ = (user_id, messages, metadata, agent_id, run_id)
        return []

    async def search(
        self,
        *,
        user_id: str,
        query: str,
        top_k: int,
        filters: Optional[dict[str, Any]] = None,
    ) -> list[MemoryItem]:
        return []

    async def search_detailed(
        self,
        *,
        user_id: str,
        query: str,
        top_k: int,
        filters: Optional[dict[str, Any]] = None,
    ) -> MemorySearchResult:
        return MemorySearchResult()

    async def get_all(self, *, user_id: str, limit: int = 100) -> list[MemoryItem]:
        _ = (user_id, limit)
        return []

    async def get(self, *, memory_id: str) -> Optional[MemoryItem]:
        return None

    async def update(self, *, memory_id: str, data: str) -> dict[str, Any]:
        return {}

    async def delete(self, *, memory_id: str) -> bool:
        _ = memory_id
        return True

    async def delete_all(self, *, user_id: str) -> bool:
        _ = user_id
        return True

    async def history(self, *, memory_id: str) -> list[MemoryHistoryEntry]:
        return []

    async def reset(self) -> None:
        return None

    async def configure(self, *, config: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def close(self) -> None:
        return None
