"""Build the payload for the API server's ``POST /configure`` endpoint.

The server reads the same POSTGRES_* / NEO4J_* / OPENAI_API_KEY variables at
boot; posting a configuration lets operators switch the LLM/embedder provider
without restarting the container.
"""

from __future__ import annotations

from typing import Any, Optional

from infrastructure.config import settings

SUPPORTED_PROVIDERS = ("openai", "ollama")


def _model_config(
    *,
    provider: str,
    model: str,
    api_key: str,
    ollama_base_url: str,
    temperature: Optional[float] = None,
) -> dict[str, Any]:
    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(f"Unsupported provider {provider!r}; expected one of {SUPPORTED_PROVIDERS}")
    config: dict[str, Any] = {"model": model}
    if temperature is not None:
        config["temperature"] = float(temperature)
    if provider == "openai" and api_key:
        config["api_key"] = api_key
    if provider == "ollama":
        if not ollama_base_url:
            raise ValueError("OLLAMA_BASE_URL is required when the provider is 'ollama'")
        config["ollama_base_url"] = ollama_base_url
    return {"provider": provider, "config": config}


def build_mem0_config(
    *,
    postgres_host: str = settings.POSTGRES_HOST,
    postgres_port: int = settings.POSTGRES_PORT,
    postgres_user: str = settings.POSTGRES_USER,
    postgres_password: str = settings.POSTGRES_PASSWORD,
    postgres_db: str = settings.POSTGRES_DB,
    collection_name: str = settings.POSTGRES_COLLECTION_NAME,
    neo4j_uri: str = settings.NEO4J_URI,
    neo4j_username: str = settings.NEO4J_USERNAME,
    neo4j_password: str = settings.NEO4J_PASSWORD,
    llm_provider: str = settings.LLM_PROVIDER,
    llm_model: str = settings.LLM_MODEL,
    llm_temperature: Optional[float] = settings.LLM_TEMPERATURE,
    embedder_provider: str = settings.EMBEDDER_PROVIDER,
    embedder_model: str = settings.EMBEDDER_MODEL,
    embedding_dims: Optional[int] = settings.EMBEDDING_DIMS,
    openai_api_key: str = settings.OPENAI_API_KEY,
    ollama_base_url: str = settings.OLLAMA_BASE_URL,
    history_db_path: str = settings.MEM0_HISTORY_DB_PATH,
    enable_graph: bool = True,
) -> dict[str, Any]:
    vector_config: dict[str, Any] = {
        "host": postgres_host,
        "port": int(postgres_port),
        "dbname": postgres_db,
        "user": postgres_user,
        "password": postgres_password,
        "collection_name": collection_name,
    }
    if embedding_dims:
        vector_config["embedding_model_dims"] = int(embedding_dims)

    config: dict[str, Any] = {
        "version": "v1.1",
        "vector_store": {"provider": "pgvector", "config": vector_config},
        "llm": _model_config(
            provider=(llm_provider or "").strip().lower(),
            model=llm_model,
            api_key=openai_api_key,
            ollama_base_url=ollama_base_url,
            temperature=llm_temperature,
        ),
        "embedder": _model_config(
            provider=(embedder_provider or "").strip().lower(),
            model=embedder_model,
            api_key=openai_api_key,
            ollama_base_url=ollama_base_url,
        ),
        "history_db_path": history_db_path,
    }
    if enable_graph:
        config["graph_store"] = {
            "provider": "neo4j",
            "config": {"url": neo4j_uri, "username": neo4j_username, "password": neo4j_password},
        }
    return config
