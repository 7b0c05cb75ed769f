import sys
import unittest
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from infrastructure.memory import build_mem0_config


def _config(**overrides):
    params = dict(
        postgres_host="postgres",
        postgres_port=5432,
        postgres_user="postgres",
        postgres_password="pw",
        postgres_db="postgres",
        collection_name="memories",
        neo4j_uri="bolt://neo4j:7687",
        neo4j_username="neo4j",
        neo4j_password="mem0graph",
        llm_provider="openai",
        llm_model="gpt-4.1-nano-2025-04-14",
        llm_temperature=0.2,
        embedder_provider="openai",
        embedder_model="text-embedding-3-small",
        embedding_dims=1536,
        openai_api_key="sk-test",
        ollama_base_url="",
        history_db_path="/app/history/history.db",
    )
    params.update(overrides)
    return build_mem0_config(**params)


class TestBuildMem0Config(unittest.TestCase):
    def test_openai_with_graph(self) -> None:
        cfg = _config()
        self.assertEqual(cfg["version"], "v1.1")
        self.assertEqual(cfg["vector_store"]["provider"], "pgvector")
        self.assertEqual(cfg["vector_store"]["config"]["embedding_model_dims"], 1536)
        self.assertEqual(cfg["vector_store"]["config"]["collection_name"], "memories")
        self.assertEqual(cfg["llm"], {
            "provider": "openai",
            "config": {"model": "gpt-4.1-nano-2025-04-14", "temperature": 0.2, "api_key": "sk-test"},
        })
        self.assertEqual(cfg["embedder"]["config"]["api_key"], "sk-test")
        self.assertEqual(cfg["graph_store"]["config"]["url"], "bolt://neo4j:7687")

    def test_graph_disabled_and_no_dims(self) -> None:
        cfg = _config(enable_graph=False, embedding_dims=None)
        self.assertNotIn("graph_store", cfg)
        self.assertNotIn("embedding_model_dims", cfg["vector_store"]["config"])

    def test_ollama_needs_base_url(self) -> None:
        with self.assertRaises(ValueError):
            _config(llm_provider="ollama", llm_model="llama3.1")
        cfg = _config(
            llm_provider="Ollama",
            llm_model="llama3.1",
            embedder_provider="ollama",
            embedder_model="nomic-embed-text",
            ollama_base_url="http://host.docker.internal:11434",
        )
        self.assertEqual(cfg["llm"]["provider"], "ollama")
        self.assertNotIn("api_key", cfg["llm"]["config"])
        self.assertEqual(cfg["embedder"]["config"]["ollama_base_url"], "http://host.docker.internal:11434")

    def test_unknown_provider(self) -> None:
        with self.assertRaises(ValueError):
            _config(embedder_provider="cohere")


if __name__ == "__main__":
    unittest.main()
