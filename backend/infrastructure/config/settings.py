import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# The project-root .env is the primary dev config source and must win over the
# outer shell environment, otherwise edits to .env silently do nothing.
load_dotenv(override=True)


def _get_env_int(key: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} must be an integer, got {raw!r}") from exc


def _get_env_float(key: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} must be a float, got {raw!r}") from exc


def _get_env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_str(key: str, default: str) -> str:
    return (os.getenv(key) or "").strip() or default


# ===== Paths =====
#
# NOTE:
# - All code lives under `<repo>/backend/`.
# - Rendered deployment artifacts go to `<repo>/deploy/` by default.

INFRASTRUCTURE_DIR = Path(__file__).resolve().parent.parent  # backend/infrastructure/
_BACKEND_DIR = INFRASTRUCTURE_DIR.parent  # backend/

if _BACKEND_DIR.name == "backend":
    PROJECT_ROOT = _BACKEND_DIR.parent
else:
    PROJECT_ROOT = Path.cwd()

DEPLOY_DIR = Path(os.getenv("MEM0_DEPLOY_DIR", PROJECT_ROOT / "deploy")).expanduser()
COMPOSE_FILE = Path(os.getenv("MEM0_COMPOSE_FILE", DEPLOY_DIR / "docker-compose.yml")).expanduser()


# ===== Mem0 REST client =====

# "mem0" talks to the REST API; "null" disables memory (all calls become no-ops).
MEMORY_PROVIDER = _get_env_str("MEMORY_PROVIDER", "mem0").lower()

MEM0_BASE_URL = os.getenv("MEM0_BASE_URL", "http://localhost:8001").strip()
# Optional; the self-hosted server runs without auth unless a proxy adds it.
MEM0_API_KEY = os.getenv("MEM0_API_KEY", "").strip()
MEM0_TIMEOUT_S = _get_env_float("MEM0_TIMEOUT_S", 30.0) or 30.0
MEM0_DEFAULT_USER_ID = _get_env_str("MEM0_DEFAULT_USER_ID", "default")

# Memory service knobs (recall + write).
MEMORY_TOP_K = _get_env_int("MEMORY_TOP_K", 5) or 5
MEMORY_MIN_SCORE = _get_env_float("MEMORY_MIN_SCORE", 0.0) or 0.0
MEMORY_MAX_CHARS = _get_env_int("MEMORY_MAX_CHARS", 1200) or 1200
MEMORY_WRITE_ENABLED = _get_env_bool("MEMORY_WRITE_ENABLED", True)
MEMORY_REDACT_PII = _get_env_bool("MEMORY_REDACT_PII", False)


# ===== Deployment topology =====

COMPOSE_PROJECT_NAME = _get_env_str("COMPOSE_PROJECT_NAME", "mem0")

MEM0_IMAGE = _get_env_str("MEM0_IMAGE", "mem0/mem0-api-server:latest")
MEM0_API_HOST_PORT = _get_env_int("MEM0_API_HOST_PORT", 8001) or 8001
MEM0_API_CONTAINER_PORT = _get_env_int("MEM0_API_CONTAINER_PORT", 8000) or 8000

NEO4J_IMAGE = _get_env_str("NEO4J_IMAGE", "neo4j:5.26.4")
NEO4J_HTTP_PORT = _get_env_int("NEO4J_HTTP_PORT", 7474) or 7474
NEO4J_BOLT_PORT = _get_env_int("NEO4J_BOLT_PORT", 7687) or 7687
NEO4J_USERNAME = _get_env_str("NEO4J_USERNAME", "neo4j")
NEO4J_PASSWORD = _get_env_str("NEO4J_PASSWORD", "mem0graph")
# Address the API container uses. Neo4j listens on 7687 inside the docker
# network whatever NEO4J_BOLT_PORT publishes on the host.
NEO4J_URI = _get_env_str("NEO4J_URI", "bolt://neo4j:7687")

# Shared Postgres (pgvector). The database already runs for other services and
# is joined through an external docker network instead of being redeployed.
POSTGRES_HOST = _get_env_str("POSTGRES_HOST", "postgres")
POSTGRES_PORT = _get_env_int("POSTGRES_PORT", 5432) or 5432
POSTGRES_HOST_PORT = _get_env_int("POSTGRES_HOST_PORT", 15432) or 15432
POSTGRES_USER = _get_env_str("POSTGRES_USER", "postgres")
POSTGRES_PASSWORD = _get_env_str("POSTGRES_PASSWORD", "postgres")
POSTGRES_DB = _get_env_str("POSTGRES_DB", "postgres")
POSTGRES_COLLECTION_NAME = _get_env_str("POSTGRES_COLLECTION_NAME", "memories")
POSTGRES_IMAGE = _get_env_str("POSTGRES_IMAGE", "pgvector/pgvector:pg16")
SHARED_DB_NETWORK = _get_env_str("SHARED_DB_NETWORK", "shared-db")
# Bundle a dedicated pgvector container instead of reusing the shared one.
MEM0_INCLUDE_POSTGRES = _get_env_bool("MEM0_INCLUDE_POSTGRES", False)

# LLM / embedder selection forwarded to the API server.
LLM_PROVIDER = _get_env_str("LLM_PROVIDER", "openai").lower()
LLM_MODEL = _get_env_str("LLM_MODEL", "gpt-4.1-nano-2025-04-14")
LLM_TEMPERATURE = _get_env_float("LLM_TEMPERATURE", 0.2)
EMBEDDER_PROVIDER = _get_env_str("EMBEDDER_PROVIDER", LLM_PROVIDER).lower()
EMBEDDER_MODEL = _get_env_str("EMBEDDER_MODEL", "text-embedding-3-small")
EMBEDDING_DIMS = _get_env_int("EMBEDDING_DIMS", None)
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "").strip()
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "").strip()
MEM0_HISTORY_DB_PATH = _get_env_str("MEM0_HISTORY_DB_PATH", "/app/history/history.db")

# Host the operator reaches published ports on.
STACK_HOST = _get_env_str("MEM0_STACK_HOST", "localhost")

# Status sweep timeouts.
HEALTH_CHECK_TIMEOUT_S = _get_env_float("HEALTH_CHECK_TIMEOUT_S", 3.0) or 3.0
