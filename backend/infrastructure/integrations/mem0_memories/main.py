from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
from typing import Any, Callable, Optional, Sequence

from pydantic import ValidationError

from application.ports.memory_store_port import MemoryStorePort
from domain.memory import ConversationTurn
from infrastructure.config.settings import MEM0_DEFAULT_USER_ID
from infrastructure.memory import Mem0Error, create_memory_store

logger = logging.getLogger(__name__)

StoreFactory = Callable[[], MemoryStorePort]


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Call the Mem0 REST API (add/search/list/get/update/delete).")
    p.add_argument("--log-level", default="WARNING", help="Logging level.")
    sub = p.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Store memories extracted from a conversation.")
    add.add_argument("--user-id", default=MEM0_DEFAULT_USER_ID)
    src = add.add_mutually_exclusive_group(required=True)
    src.add_argument("--message", help="A single user message.")
    src.add_argument("--messages-json", help='JSON list of {"role": ..., "content": ...} turns.')
    add.add_argument("--metadata", default=None, help="JSON object attached to the memories.")

    search = sub.add_parser("search", help="Retrieve memories relevant to a query.")
    search.add_argument("query")
    search.add_argument("--user-id", default=MEM0_DEFAULT_USER_ID)
    search.add_argument("--limit", type=int, default=5)

    lst = sub.add_parser("list", help="List all memories of a user.")
    lst.add_argument("--user-id", default=MEM0_DEFAULT_USER_ID)
    lst.add_argument("--limit", type=int, default=100)

    get = sub.add_parser("get", help="Fetch one memory.")
    get.add_argument("memory_id")

    update = sub.add_parser("update", help="Replace the text of a memory.")
    update.add_argument("memory_id")
    update.add_argument("data")

    delete = sub.add_parser("delete", help="Delete one memory.")
    delete.add_argument("memory_id")

    delete_all = sub.add_parser("delete-all", help="Delete every memory of a user.")
    delete_all.add_argument("--user-id", required=True)

    history = sub.add_parser("history", help="Show the change history of a memory.")
    history.add_argument("memory_id")

    reset = sub.add_parser("reset", help="Delete ALL memories of ALL users.")
    reset.add_argument("--yes", action="store_true", help="Confirm the reset.")
    return p


def _to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    return value


def _parse_turns(args: argparse.Namespace) -> list[ConversationTurn]:
    if args.message is not None:
        return [ConversationTurn(role="user", content=args.message)]
    raw = json.loads(args.messages_json)
    if not isinstance(raw, list):
        raise ValueError("--messages-json must be a JSON list")
    if not all(isinstance(t, dict) for t in raw):
        raise ValueError("--messages-json entries must be objects")
    return [ConversationTurn(role=str(t.get("role", "")), content=str(t.get("content", ""))) for t in raw]


def _parse_metadata(raw: Optional[str]) -> Optional[dict[str, Any]]:
    if not raw:
        return None
    metadata = json.loads(raw)
    if not isinstance(metadata, dict):
        raise ValueError("--metadata must be a JSON object")
    return metadata


async def _dispatch(args: argparse.Namespace, store: MemoryStorePort) -> Any:
    match args.command:
        case "add":
            metadata = _parse_metadata(args.metadata)
            return await store.add(user_id=args.user_id, messages=_parse_turns(args), metadata=metadata)
        case "search":
            return await store.search_detailed(user_id=args.user_id, query=args.query, top_k=args.limit)
        case "list":
            return await store.get_all(user_id=args.user_id, limit=args.limit)
        case "get":
            item = await store.get(memory_id=args.memory_id)
            if item is None:
                raise LookupError(f"memory {args.memory_id} not found")
            return item
        case "update":
            return await store.update(memory_id=args.memory_id, data=args.data)
        case "delete":
            return {"deleted": await store.delete(memory_id=args.memory_id), "memory_id": args.memory_id}
        case "delete-all":
            return {"deleted": await store.delete_all(user_id=args.user_id), "user_id": args.user_id}
        case "history":
            return await store.history(memory_id=args.memory_id)
        case "reset":
            if not args.yes:
                raise ValueError("refusing to reset without --yes")
            await store.reset()
            return {"reset": True}
    raise ValueError(f"unknown command {args.command!r}")


async def _run(args: argparse.Namespace, store_factory: StoreFactory) -> int:
    store = store_factory()
    try:
        result = await _dispatch(args, store)
    except (Mem0Error, ValidationError, ValueError, LookupError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1
    finally:
        await store.close()
    print(json.dumps(_to_jsonable(result), indent=2, ensure_ascii=False, default=str))
    return 0


def run(argv: Optional[Sequence[str]] = None, *, store_factory: Optional[StoreFactory] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING))
    return asyncio.run(_run(args, store_factory or create_memory_store))


def main() -> None:
    raise SystemExit(run())


if __name__ == "__main__":
    main()
