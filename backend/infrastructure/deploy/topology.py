from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from infrastructure.config import settings


@dataclass(frozen=True)
class DeploymentSettings:
    """Container topology of the memory stack.

    Three pieces: the Neo4j graph store, the (shared) Postgres + pgvector
    vector store, and the prebuilt Mem0 API server.
    """

    project_name: str = "mem0"
    compose_file: Path = Path("deploy/docker-compose.yml")

    mem0_image: str = "mem0/mem0-api-server:latest"
    api_host_port: int = 8001
    api_container_port: int = 8000

    neo4j_image: str = "neo4j:5.26.4"
    neo4j_http_port: int = 7474
    neo4j_bolt_port: int = 7687
    neo4j_username: str = "neo4j"
    neo4j_password: str = "mem0graph"
    neo4j_container_uri: str = "bolt://neo4j:7687"

    postgres_host: str = "postgres"
    postgres_port: int = 5432
    postgres_host_port: int = 15432
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_db: str = "postgres"
    postgres_collection: str = "memories"
    postgres_image: str = "pgvector/pgvector:pg16"
    shared_network: str = "shared-db"
    include_postgres: bool = False

    llm_provider: str = "openai"
    llm_model: str = "gpt-4.1-nano-2025-04-14"
    embedder_model: str = "text-embedding-3-small"
    openai_api_key: str = ""
    ollama_base_url: str = ""

    stack_host: str = "localhost"

    @classmethod
    def from_env(cls, *, compose_file: Optional[Path] = None) -> "DeploymentSettings":
        return cls(
            project_name=settings.COMPOSE_PROJECT_NAME,
            compose_file=compose_file or settings.COMPOSE_FILE,
            mem0_image=settings.MEM0_IMAGE,
            api_host_port=settings.MEM0_API_HOST_PORT,
            api_container_port=settings.MEM0_API_CONTAINER_PORT,
            neo4j_image=settings.NEO4J_IMAGE,
            neo4j_http_port=settings.NEO4J_HTTP_PORT,
            neo4j_bolt_port=settings.NEO4J_BOLT_PORT,
            neo4j_username=settings.NEO4J_USERNAME,
            neo4j_password=settings.NEO4J_PASSWORD,
            neo4j_container_uri=settings.NEO4J_URI,
            postgres_host=settings.POSTGRES_HOST,
            postgres_port=settings.POSTGRES_PORT,
            postgres_host_port=settings.POSTGRES_HOST_PORT,
            postgres_user=settings.POSTGRES_USER,
            postgres_password=settings.POSTGRES_PASSWORD,
            postgres_db=settings.POSTGRES_DB,
            postgres_collection=settings.POSTGRES_COLLECTION_NAME,
            postgres_image=settings.POSTGRES_IMAGE,
            shared_network=settings.SHARED_DB_NETWORK,
            include_postgres=settings.MEM0_INCLUDE_POSTGRES,
            llm_provider=settings.LLM_PROVIDER,
            llm_model=settings.LLM_MODEL,
            embedder_model=settings.EMBEDDER_MODEL,
            openai_api_key=settings.OPENAI_API_KEY,
            ollama_base_url=settings.OLLAMA_BASE_URL,
            stack_host=settings.STACK_HOST,
        )

    @property
    def api_base_url(self) -> str:
        return f"http://{self.stack_host}:{self.api_host_port}"

    @property
    def neo4j_host_uri(self) -> str:
        return f"bolt://{self.stack_host}:{self.neo4j_bolt_port}"

    @property
    def postgres_container_host(self) -> str:
        return "postgres" if self.include_postgres else self.postgres_host

    @property
    def postgres_container_port(self) -> int:
        return 5432 if self.include_postgres else int(self.postgres_port)

    @property
    def postgres_host_dsn(self) -> str:
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.stack_host}:{self.postgres_host_port}/{self.postgres_db}"
        )
