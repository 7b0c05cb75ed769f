import os
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from infrastructure.config import get_postgres_dsn
from infrastructure.config import settings
from infrastructure.deploy import DeploymentSettings
from infrastructure.memory.schemas import MemoryAddRequest, MemorySearchRequest, MemoryUpdateRequest


class TestEnvHelpers(unittest.TestCase):
    def test_int_and_float_parsing(self) -> None:
        with patch.dict(os.environ, {"X_INT": "42", "X_FLOAT": "0.25", "X_EMPTY": ""}):
            self.assertEqual(settings._get_env_int("X_INT", 1), 42)
            self.assertEqual(settings._get_env_float("X_FLOAT", 1.0), 0.25)
            self.assertEqual(settings._get_env_int("X_EMPTY", 7), 7)

    def test_bad_int_names_the_variable(self) -> None:
        with patch.dict(os.environ, {"MEM0_API_HOST_PORT": "eight"}):
            with self.assertRaises(ValueError) as ctx:
                settings._get_env_int("MEM0_API_HOST_PORT", 8001)
        self.assertIn("MEM0_API_HOST_PORT", str(ctx.exception))

    def test_bool_parsing(self) -> None:
        with patch.dict(os.environ, {"X_ON": "Yes", "X_OFF": "0"}):
            self.assertTrue(settings._get_env_bool("X_ON", False))
            self.assertFalse(settings._get_env_bool("X_OFF", True))
            self.assertTrue(settings._get_env_bool("X_MISSING_FLAG", True))


class TestPostgresDsn(unittest.TestCase):
    def test_explicit_dsn_wins(self) -> None:
        with patch.dict(os.environ, {"POSTGRES_DSN": "postgresql://a:b@db:5432/x"}):
            self.assertEqual(get_postgres_dsn(), "postgresql://a:b@db:5432/x")

    def test_host_side_uses_mapped_port(self) -> None:
        env = {
            "POSTGRES_DSN": "",
            "MEM0_STACK_HOST": "",
            "POSTGRES_HOST_PORT": "",
            "POSTGRES_USER": "postgres",
            "POSTGRES_PASSWORD": "pw",
            "POSTGRES_DB": "postgres",
        }
        with patch.dict(os.environ, env):
            self.assertEqual(get_postgres_dsn(), "postgresql://postgres:pw@localhost:15432/postgres")

    def test_host_side_follows_stack_host(self) -> None:
        env = {
            "POSTGRES_DSN": "",
            "MEM0_STACK_HOST": "10.0.0.5",
            "POSTGRES_HOST_PORT": "15432",
            "POSTGRES_USER": "postgres",
            "POSTGRES_PASSWORD": "pw",
            "POSTGRES_DB": "postgres",
        }
        cfg = DeploymentSettings(stack_host="10.0.0.5", postgres_password="pw")
        with patch.dict(os.environ, env):
            self.assertEqual(get_postgres_dsn(), cfg.postgres_host_dsn)
        self.assertIn("@10.0.0.5:15432/", cfg.postgres_host_dsn)

    def test_container_side_needs_host(self) -> None:
        with patch.dict(os.environ, {"POSTGRES_DSN": "", "POSTGRES_HOST": ""}):
            self.assertIsNone(get_postgres_dsn(host_side=False))
        env = {"POSTGRES_DSN": "", "POSTGRES_HOST": "postgres", "POSTGRES_PORT": "5432",
               "POSTGRES_USER": "u", "POSTGRES_PASSWORD": "p", "POSTGRES_DB": "d"}
        with patch.dict(os.environ, env):
            self.assertEqual(get_postgres_dsn(host_side=False), "postgresql://u:p@postgres:5432/d")


class TestRequestSchemas(unittest.TestCase):
    def test_add_requires_an_identifier(self) -> None:
        with self.assertRaises(ValidationError):
            MemoryAddRequest(messages=[{"role": "user", "content": "hi"}])
        req = MemoryAddRequest(run_id="r1", messages=[{"role": "user", "content": "hi"}])
        self.assertEqual(req.messages[0].role, "user")

    def test_add_rejects_empty_or_bad_messages(self) -> None:
        with self.assertRaises(ValidationError):
            MemoryAddRequest(user_id="u", messages=[])
        with self.assertRaises(ValidationError):
            MemoryAddRequest(user_id="u", messages=[{"role": "tool", "content": "x"}])

    def test_search_limit_must_be_positive(self) -> None:
        with self.assertRaises(ValidationError):
            MemorySearchRequest(user_id="u", query="q", limit=0)
        dumped = MemorySearchRequest(user_id="u", query="q", limit=3).model_dump(exclude_none=True)
        self.assertEqual(dumped, {"user_id": "u", "query": "q", "limit": 3})

    def test_update_needs_text(self) -> None:
        with self.assertRaises(ValidationError):
            MemoryUpdateRequest(data="")


if __name__ == "__main__":
    unittest.main()
