import io
import json
import sys
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from domain.memory import GraphRelation, MemoryEvent, MemoryItem, MemorySearchResult
from infrastructure.integrations.mem0_memories.main import run
from infrastructure.memory import Mem0ConnectionError


class _StubStore:
    def __init__(self, *, unreachable: bool = False) -> None:
        self.unreachable = unreachable
        self.closed = False
        self.calls: list[tuple[str, dict]] = []

    async def add(self, **kwargs):
        self.calls.append(("add", kwargs))
        if self.unreachable:
            raise Mem0ConnectionError("mem0 POST /memories unreachable")
        return [MemoryEvent(id="m1", text=kwargs["messages"][0].content, event="ADD")]

    async def search_detailed(self, **kwargs):
        self.calls.append(("search", kwargs))
        return MemorySearchResult(
            memories=(MemoryItem(id="m1", text="Likes jazz", score=0.7),),
            relations=(GraphRelation(source="alice", relationship="likes", destination="jazz"),),
        )

    async def get(self, *, memory_id: str):
        return None

    async def delete_all(self, *, user_id: str):
        self.calls.append(("delete_all", {"user_id": user_id}))
        return True

    async def reset(self):
        self.calls.append(("reset", {}))

    async def close(self) -> None:
        self.closed = True


def _invoke(argv, store):
    out = io.StringIO()
    with redirect_stdout(out):
        code = run(argv, store_factory=lambda: store)
    return code, out.getvalue()


class TestMemoriesCli(unittest.TestCase):
    def test_add_single_message(self) -> None:
        store = _StubStore()
        code, out = _invoke(["add", "--user-id", "alice", "--message", "I like jazz", "--metadata", '{"src": "cli"}'], store)
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)[0]["event"], "ADD")
        _, kwargs = store.calls[0]
        self.assertEqual(kwargs["user_id"], "alice")
        self.assertEqual(kwargs["metadata"], {"src": "cli"})
        self.assertTrue(store.closed)

    def test_add_messages_json(self) -> None:
        store = _StubStore()
        turns = '[{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]'
        code, _ = _invoke(["add", "--user-id", "alice", "--messages-json", turns], store)
        self.assertEqual(code, 0)
        self.assertEqual([t.role for t in store.calls[0][1]["messages"]], ["user", "assistant"])

    def test_invalid_turn_role_fails(self) -> None:
        store = _StubStore()
        with self.assertLogs("infrastructure.integrations.mem0_memories.main", level="ERROR"):
            code, _ = _invoke(["add", "--messages-json", '[{"role": "tool", "content": "x"}]'], store)
        self.assertEqual(code, 1)
        self.assertEqual(store.calls, [])

    def test_non_object_turns_fail_cleanly(self) -> None:
        for turns in ('["hi"]', "[1, 2]", '[{"role": "user", "content": "ok"}, null]'):
            store = _StubStore()
            with self.assertLogs("infrastructure.integrations.mem0_memories.main", level="ERROR"):
                code, out = _invoke(["add", "--user-id", "u", "--messages-json", turns], store)
            self.assertEqual(code, 1)
            self.assertEqual(out, "")
            self.assertEqual(store.calls, [])
            self.assertTrue(store.closed)

    def test_metadata_must_be_an_object(self) -> None:
        for metadata in ("[1]", '"tag"', "{not json"):
            store = _StubStore()
            with self.assertLogs("infrastructure.integrations.mem0_memories.main", level="ERROR"):
                code, _ = _invoke(["add", "--user-id", "u", "--message", "hi", "--metadata", metadata], store)
            self.assertEqual(code, 1)
            self.assertEqual(store.calls, [])

    def test_search_prints_memories_and_relations(self) -> None:
        code, out = _invoke(["search", "music", "--user-id", "alice", "--limit", "3"], _StubStore())
        self.assertEqual(code, 0)
        payload = json.loads(out)
        self.assertEqual(payload["memories"][0]["text"], "Likes jazz")
        self.assertEqual(payload["relations"][0]["destination"], "jazz")

    def test_get_missing_memory(self) -> None:
        with self.assertLogs("infrastructure.integrations.mem0_memories.main", level="ERROR"):
            code, out = _invoke(["get", "nope"], _StubStore())
        self.assertEqual(code, 1)
        self.assertEqual(out, "")

    def test_reset_requires_confirmation(self) -> None:
        store = _StubStore()
        with self.assertLogs("infrastructure.integrations.mem0_memories.main", level="ERROR"):
            code, _ = _invoke(["reset"], store)
        self.assertEqual(code, 1)
        self.assertEqual(store.calls, [])
        code, out = _invoke(["reset", "--yes"], store)
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), {"reset": True})

    def test_delete_all_requires_user(self) -> None:
        with self.assertRaises(SystemExit):
            with redirect_stdout(io.StringIO()), patch("sys.stderr", io.StringIO()):
                run(["delete-all"], store_factory=_StubStore)
        code, out = _invoke(["delete-all", "--user-id", "alice"], _StubStore())
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), {"deleted": True, "user_id": "alice"})

    def test_unreachable_server_exits_non_zero(self) -> None:
        store = _StubStore(unreachable=True)
        with self.assertLogs("infrastructure.integrations.mem0_memories.main", level="ERROR"):
            code, _ = _invoke(["add", "--message", "hi"], store)
        self.assertEqual(code, 1)
        self.assertTrue(store.closed)


if __name__ == "__main__":
    unittest.main()
