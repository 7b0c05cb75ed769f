from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Optional, Sequence
from urllib.parse import quote, urljoin

import aiohttp

from application.ports.memory_store_port import MemoryStorePort
from domain.memory import (
    ConversationTurn,
    GraphRelation,
    MemoryEvent,
    MemoryHistoryEntry,
    MemoryItem,
    MemorySearchResult,
)
from infrastructure.config.settings import MEM0_API_KEY, MEM0_BASE_URL, MEM0_TIMEOUT_S
from infrastructure.memory.errors import (
    Mem0ConnectionError,
    Mem0Error,
    Mem0NotFoundError,
    raise_for_status,
)
from infrastructure.memory.schemas import (
    MemoryAddRequest,
    MemorySearchRequest,
    MemoryUpdateRequest,
)

logger = logging.getLogger(__name__)


def _join(base: str, path: str) -> str:
    base = (base or "").rstrip("/") + "/"
    path = (path or "").lstrip("/")
    return urljoin(base, path)


def _memory_path(memory_id: str, suffix: str = "") -> str:
    mid = quote(str(memory_id), safe="")
    return f"/memories/{mid}{suffix}"


def _parse_datetime(ts: Any) -> Optional[datetime]:
    if not isinstance(ts, str) or not ts:
        return None
    try:
        return datetime.fromisoformat(ts.replace("Z", "+00:00"))
    except ValueError:
        return None


def _unwrap_list(payload: Any) -> list[Any]:
    # Accept common shapes:
    # - {"results": [...]} / {"memories": [...]} / {"data": [...]}
    # - [...]
    if isinstance(payload, dict):
        for key in ("results", "memories", "data", "items"):
            if key in payload and isinstance(payload[key], list):
                return payload[key]
        return []
    if isinstance(payload, list):
        return payload
    return []


class Mem0HttpMemoryStore(MemoryStorePort):
    """Async client for the self-hosted Mem0 REST API (schema tolerant).

    Responses are parsed leniently so the client keeps working across
    mem0 server releases that rename or wrap fields.
    """

    def __init__(
        self,
        *,
        base_url: str = MEM0_BASE_URL,
        api_key: str = MEM0_API_KEY,
        timeout_s: float = MEM0_TIMEOUT_S,
    ) -> None:
        self._base_url = (base_url or "").strip()
        self._api_key = (api_key or "").strip()
        self._timeout_s = float(timeout_s or 30.0)
        self._session: aiohttp.ClientSession | None = None
        self._lock = asyncio.Lock()  # Protect session creation from concurrent access

    @property
    def base_url(self) -> str:
        return self._base_url

    def _headers(self) -> dict[str, str]:
        headers = {"content-type": "application/json", "accept": "application/json"}
        if self._api_key:
            headers["authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _get_session(self) -> aiohttp.ClientSession:
        # Fast path: return existing session if available
        if self._session is not None and not self._session.closed:
            return self._session

        # Slow path: acquire lock and create session (double-check pattern)
        async with self._lock:
            if self._session is not None and not self._session.closed:
                return self._session

            timeout = aiohttp.ClientTimeout(total=self._timeout_s)
            self._session = aiohttp.ClientSession(timeout=timeout)
            return self._session

    async def _request(
        self,
        method: str,
        path: str,
        *,
        payload: Any = None,
        params: Optional[dict[str, str]] = None,
    ) -> Any:
        if not self._base_url:
            raise Mem0Error("MEM0_BASE_URL is not configured")
        session = await self._get_session()
        url = _join(self._base_url, path)
        logger.debug("mem0 request: %s %s", method, path)
        try:
            async with session.request(
                method,
                url,
                json=payload,
                params=params,
                headers=self._headers(),
            ) as resp:
                body = await resp.text()
                raise_for_status(method=method, path=path, status=resp.status, body=body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise Mem0ConnectionError(f"mem0 {method} {path} unreachable: {exc!r}") from exc

        if not body.strip():
            return None
        try:
            return json.loads(body)
        except ValueError:
            return body

    # -- Parsing -------------------------------------------------------------

    @staticmethod
    def _parse_item(raw: Any) -> Optional[MemoryItem]:
        if not isinstance(raw, dict):
            return None
        mid = str(raw.get("id") or raw.get("memory_id") or "")
        text = str(raw.get("memory") or raw.get("text") or raw.get("content") or "")
        if not mid and not text:
            return None
        metadata = raw.get("metadata") or {}
        if not isinstance(metadata, dict):
            metadata = {}
        try:
            score = float(raw.get("score") or 0.0)
        except (TypeError, ValueError):
            score = 0.0
        user_id = raw.get("user_id")
        return MemoryItem(
            id=mid or text[:16],
            text=text,
            user_id=str(user_id) if user_id else None,
            score=score,
            hash=raw.get("hash") or None,
            created_at=_parse_datetime(raw.get("created_at") or raw.get("createdAt")),
            updated_at=_parse_datetime(raw.get("updated_at") or raw.get("updatedAt")),
            metadata=metadata,
        )

    @classmethod
    def _parse_items(cls, payload: Any) -> list[MemoryItem]:
        items: list[MemoryItem] = []
        for raw in _unwrap_list(payload):
            item = cls._parse_item(raw)
            if item is not None:
                items.append(item)
        return items

    @staticmethod
    def _parse_events(payload: Any) -> list[MemoryEvent]:
        events: list[MemoryEvent] = []
        for raw in _unwrap_list(payload):
            if not isinstance(raw, dict):
                continue
            mid = str(raw.get("id") or raw.get("memory_id") or "")
            text = str(raw.get("memory") or raw.get("text") or "")
            if not mid and not text:
                continue
            previous = raw.get("previous_memory")
            events.append(
                MemoryEvent(
                    id=mid,
                    text=text,
                    event=str(raw.get("event") or "NONE").upper(),
                    previous_text=str(previous) if previous else None,
                )
            )
        return events

    @staticmethod
    def _parse_relations(payload: Any) -> list[GraphRelation]:
        raw_relations = payload.get("relations") if isinstance(payload, dict) else None
        relations: list[GraphRelation] = []
        if not isinstance(raw_relations, list):
            return relations
        for raw in raw_relations:
            if not isinstance(raw, dict):
                continue
            source = str(raw.get("source") or "")
            relationship = str(raw.get("relationship") or raw.get("relation") or "")
            destination = str(raw.get("destination") or raw.get("target") or "")
            if source and relationship and destination:
                relations.append(GraphRelation(source=source, relationship=relationship, destination=destination))
        return relations

    @staticmethod
    def _parse_history(payload: Any) -> list[MemoryHistoryEntry]:
        entries: list[MemoryHistoryEntry] = []
        for raw in _unwrap_list(payload):
            if not isinstance(raw, dict):
                continue
            entries.append(
                MemoryHistoryEntry(
                    id=str(raw.get("id") or ""),
                    memory_id=str(raw.get("memory_id") or ""),
                    old_memory=raw.get("old_memory"),
                    new_memory=raw.get("new_memory"),
                    event=str(raw.get("event") or "NONE").upper(),
                    created_at=_parse_datetime(raw.get("created_at")),
                    updated_at=_parse_datetime(raw.get("updated_at")),
                    is_deleted=bool(raw.get("is_deleted") or False),
                )
            )
        return entries

    # -- Write ---------------------------------------------------------------

    async def add(
        self,
        *,
        user_id: Optional[str],
        messages: Sequence[ConversationTurn],
        metadata: Optional[dict[str, Any]] = None,
        agent_id: Optional[str] = None,
        run_id: Optional[str] = None,
    ) -> list[MemoryEvent]:
        req = MemoryAddRequest(
            messages=[m.to_dict() for m in messages],
            user_id=user_id,
            agent_id=agent_id,
            run_id=run_id,
            metadata=dict(metadata) if metadata else None,
        )
        data = await self._request("POST", "/memories", payload=req.model_dump(exclude_none=True))
        events = self._parse_events(data)
        logger.info("mem0 add: user_id=%s turns=%d events=%d", user_id, len(req.messages), len(events))
        return events

    async def update(self, *, memory_id: str, data: str) -> dict[str, Any]:
        req = MemoryUpdateRequest(data=data)
        result = await self._request("PUT", _memory_path(memory_id), payload=req.model_dump())
        if isinstance(result, dict):
            return result
        return {"message": str(result or "")}

    # -- Read ----------------------------------------------------------------

    async def search_detailed(
        self,
        *,
        user_id: str,
        query: str,
        top_k: int,
        filters: Optional[dict[str, Any]] = None,
    ) -> MemorySearchResult:
        req = MemorySearchRequest(user_id=user_id, query=query, limit=int(top_k), filters=filters)
        data = await self._request("POST", "/search", payload=req.model_dump(exclude_none=True))
        memories = self._parse_items(data)
        # Older servers ignore "limit"; enforce it client-side.
        return MemorySearchResult(
            memories=tuple(memories[: int(top_k)]),
            relations=tuple(self._parse_relations(data)),
        )

    async def search(
        self,
        *,
        user_id: str,
        query: str,
        top_k: int,
        filters: Optional[dict[str, Any]] = None,
    ) -> list[MemoryItem]:
        result = await self.search_detailed(user_id=user_id, query=query, top_k=top_k, filters=filters)
        return list(result.memories)

    async def get_all(self, *, user_id: str, limit: int = 100) -> list[MemoryItem]:
        data = await self._request("GET", "/memories", params={"user_id": str(user_id)})
        return self._parse_items(data)[: max(0, int(limit))]

    async def get(self, *, memory_id: str) -> Optional[MemoryItem]:
        try:
            data = await self._request("GET", _memory_path(memory_id))
        except Mem0NotFoundError:
            return None
        return self._parse_item(data)

    async def history(self, *, memory_id: str) -> list[MemoryHistoryEntry]:
        data = await self._request("GET", _memory_path(memory_id, "/history"))
        return self._parse_history(data)

    # -- Delete --------------------------------------------------------------

    async def delete(self, *, memory_id: str) -> bool:
        try:
            await self._request("DELETE", _memory_path(memory_id))
        except Mem0NotFoundError:
            # Treat not-found as success for idempotency.
            logger.info("mem0 delete: memory_id=%s already gone", memory_id)
            return True
        logger.info("mem0 delete: memory_id=%s", memory_id)
        return True

    async def delete_all(self, *, user_id: str) -> bool:
        if not (user_id or "").strip():
            raise ValueError("user_id is required to delete all memories")
        await self._request("DELETE", "/memories", params={"user_id": str(user_id)})
        logger.info("mem0 delete_all: user_id=%s", user_id)
        return True

    # -- Admin ---------------------------------------------------------------

    async def reset(self) -> None:
        await self._request("POST", "/reset")
        logger.warning("mem0 reset: all memories removed")

    async def configure(self, *, config: dict[str, Any]) -> dict[str, Any]:
        result = await self._request("POST", "/configure", payload=dict(config))
        if isinstance(result, dict):
            return result
        return {"message": str(result or "")}

    async def health(self) -> bool:
        """True when the API answers on its docs page."""
        try:
            await self._request("GET", "/docs")
        except Mem0Error as exc:
            logger.debug("mem0 health check failed: %s", exc)
            return False
        return True

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
