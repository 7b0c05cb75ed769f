import logging
import sys
import unittest
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from infrastructure.utils import format_kv
from infrastructure.utils.event_logger import EventLogger


class TestFormatKv(unittest.TestCase):
    def test_formats_scalars_and_drops_none(self) -> None:
        line = format_kv(seq=1, event="check", ok=True, score=0.5, skipped=None)
        self.assertEqual(line, 'seq=1 event="check" ok=true score=0.5')

    def test_masks_secret_keys(self) -> None:
        line = format_kv(neo4j_password="mem0graph", OPENAI_API_KEY="sk-x", dsn="postgresql://u:p@h/db", user="neo4j")
        self.assertNotIn("mem0graph", line)
        self.assertNotIn("sk-x", line)
        self.assertNotIn("u:p@h", line)
        self.assertIn('neo4j_password="***"', line)
        self.assertIn('user="neo4j"', line)

    def test_empty_secret_is_not_masked(self) -> None:
        self.assertEqual(format_kv(api_key=""), 'api_key=""')


class TestEventLogger(unittest.TestCase):
    def test_sequence_and_base_fields(self) -> None:
        logger = logging.getLogger("test.event_logger")
        events = EventLogger(logger, "[memory_turn]", base_fields={"user_id": "u1"})
        with self.assertLogs("test.event_logger", level="INFO") as cm:
            events.info("recall", hits=2)
            events.warning("remember_failed", api_key="sk-x")
        self.assertEqual(events.seq, 2)
        self.assertIn("[memory_turn]", cm.output[0])
        self.assertIn('event="recall"', cm.output[0])
        self.assertIn('user_id="u1"', cm.output[0])
        self.assertNotIn("sk-x", cm.output[1])


if __name__ == "__main__":
    unittest.main()
