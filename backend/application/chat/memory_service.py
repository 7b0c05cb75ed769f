from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Sequence

from application.ports.memory_store_port import MemoryStorePort
from domain.memory import ConversationTurn, MemoryEvent
from domain.memory.policy import (
    MemoryPolicy,
    build_memory_context,
    guardrail_memory_text,
    turns_from_exchange,
)
from infrastructure.utils.event_logger import EventLogger

logger = logging.getLogger(__name__)

Responder = Callable[[str, Optional[str]], Awaitable[str]]


@dataclass(frozen=True)
class TurnResult:
    answer: str
    memory_context: Optional[str] = None
    events: list[MemoryEvent] = field(default_factory=list)


class MemoryService:
    """Application-layer memory orchestration (when to recall/write)."""

    def __init__(
        self,
        *,
        store: MemoryStorePort,
        policy: MemoryPolicy,
        write_enabled: bool,
        redact: bool = False,
    ) -> None:
        self._store = store
        self._policy = policy
        self._write_enabled = bool(write_enabled)
        self._redact = bool(redact)

    async def recall_context(self, *, user_id: str, query: str) -> Optional[str]:
        try:
            memories = await self._store.search(
                user_id=user_id,
                query=query,
                top_k=int(self._policy.top_k),
            )
        except Exception as exc:
            # Memory recall must never break the caller: no context instead.
            logger.warning("memory recall failed, continuing without context: %s", exc)
            return None
        return build_memory_context(memories=memories, policy=self._policy)

    def _prepare(self, messages: Sequence[ConversationTurn]) -> list[ConversationTurn]:
        if not self._redact:
            return list(messages)
        prepared: list[ConversationTurn] = []
        for turn in messages:
            content = guardrail_memory_text(turn.content)
            if content:
                prepared.append(ConversationTurn(role=turn.role, content=content))
        return prepared

    async def remember(
        self,
        *,
        user_id: str,
        messages: Sequence[ConversationTurn],
        metadata: Optional[dict[str, Any]] = None,
    ) -> list[MemoryEvent]:
        if not self._write_enabled:
            return []
        prepared = self._prepare(messages)
        if not prepared:
            return []
        try:
            return await self._store.add(user_id=user_id, messages=prepared, metadata=metadata)
        except Exception as exc:
            # Best-effort: a failed write only loses this turn's memories.
            logger.warning("memory write failed for user_id=%s: %s", user_id, exc)
            return []

    async def run_turn(
        self,
        *,
        user_id: str,
        message: str,
        respond: Responder,
        metadata: Optional[dict[str, Any]] = None,
    ) -> TurnResult:
        """Search memories, answer with them as context, then store the exchange."""
        events_log = EventLogger(logger, "[memory_turn]", base_fields={"user_id": user_id})
        memory_context = await self.recall_context(user_id=user_id, query=message)
        events_log.debug("recalled", has_context=memory_context is not None)

        answer = await respond(message, memory_context)

        turns = turns_from_exchange(user_message=message, assistant_message=answer)
        events = await self.remember(user_id=user_id, messages=turns, metadata=metadata)
        events_log.info("stored", turns=len(turns), events=len(events))
        return TurnResult(answer=answer, memory_context=memory_context, events=events)
