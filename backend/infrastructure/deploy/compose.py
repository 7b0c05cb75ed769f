"""Render the docker compose document for the memory stack.

Secrets never land in the rendered file: they are emitted as ``${VAR}``
references and supplied at run time through :func:`compose_environment`.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from infrastructure.deploy.topology import DeploymentSettings
from infrastructure.memory.mem0_config import build_mem0_config

logger = logging.getLogger(__name__)

SECRET_VARIABLES = ("NEO4J_PASSWORD", "POSTGRES_PASSWORD", "OPENAI_API_KEY")


def _ref(name: str) -> str:
    return "${" + name + "}"


def _neo4j_service(cfg: DeploymentSettings) -> dict[str, Any]:
    return {
        "image": cfg.neo4j_image,
        "restart": "unless-stopped",
        "ports": [
            f"{cfg.neo4j_http_port}:7474",
            f"{cfg.neo4j_bolt_port}:7687",
        ],
        "environment": {
            "NEO4J_AUTH": f"{cfg.neo4j_username}/{_ref('NEO4J_PASSWORD')}",
            "NEO4J_PLUGINS": '["apoc"]',
            "NEO4J_apoc_export_file_enabled": "true",
            "NEO4J_apoc_import_file_enabled": "true",
            "NEO4J_apoc_import_file_use__neo4j__config": "true",
        },
        "volumes": ["neo4j_data:/data"],
        "healthcheck": {
            "test": ["CMD-SHELL", "wget -qO- http://localhost:7474 >/dev/null || exit 1"],
            "interval": "10s",
            "timeout": "5s",
            "retries": 10,
            "start_period": "30s",
        },
        "networks": ["mem0"],
    }


def _postgres_service(cfg: DeploymentSettings) -> dict[str, Any]:
    return {
        "image": cfg.postgres_image,
        "restart": "unless-stopped",
        "ports": [f"{cfg.postgres_host_port}:5432"],
        "environment": {
            "POSTGRES_USER": cfg.postgres_user,
            "POSTGRES_PASSWORD": _ref("POSTGRES_PASSWORD"),
            "POSTGRES_DB": cfg.postgres_db,
        },
        "volumes": ["postgres_data:/var/lib/postgresql/data"],
        "healthcheck": {
            "test": ["CMD-SHELL", f"pg_isready -U {cfg.postgres_user} -d {cfg.postgres_db}"],
            "interval": "5s",
            "timeout": "5s",
            "retries": 10,
        },
        "networks": ["mem0"],
    }


def _mem0_service(cfg: DeploymentSettings) -> dict[str, Any]:
    environment: dict[str, Any] = {
        "POSTGRES_HOST": cfg.postgres_container_host,
        "POSTGRES_PORT": str(cfg.postgres_container_port),
        "POSTGRES_DB": cfg.postgres_db,
        "POSTGRES_USER": cfg.postgres_user,
        "POSTGRES_PASSWORD": _ref("POSTGRES_PASSWORD"),
        "POSTGRES_COLLECTION_NAME": cfg.postgres_collection,
        "NEO4J_URI": cfg.neo4j_container_uri,
        "NEO4J_USERNAME": cfg.neo4j_username,
        "NEO4J_PASSWORD": _ref("NEO4J_PASSWORD"),
        "LLM_PROVIDER": cfg.llm_provider,
        "LLM_MODEL": cfg.llm_model,
        "EMBEDDER_MODEL": cfg.embedder_model,
        "OPENAI_API_KEY": _ref("OPENAI_API_KEY"),
        "HISTORY_DB_PATH": "/app/history/history.db",
    }
    if cfg.ollama_base_url:
        environment["OLLAMA_BASE_URL"] = cfg.ollama_base_url

    depends_on: dict[str, Any] = {"neo4j": {"condition": "service_healthy"}}
    networks = ["mem0"]
    if cfg.include_postgres:
        depends_on["postgres"] = {"condition": "service_healthy"}
    else:
        networks.append("shared")

    return {
        "image": cfg.mem0_image,
        "restart": "unless-stopped",
        "ports": [f"{cfg.api_host_port}:{cfg.api_container_port}"],
        "environment": environment,
        "volumes": ["mem0_history:/app/history"],
        "depends_on": depends_on,
        "networks": networks,
    }


def render_compose(cfg: DeploymentSettings) -> dict[str, Any]:
    services: dict[str, Any] = {"neo4j": _neo4j_service(cfg)}
    volumes: dict[str, Any] = {"neo4j_data": {}, "mem0_history": {}}
    networks: dict[str, Any] = {"mem0": {}}

    if cfg.include_postgres:
        services["postgres"] = _postgres_service(cfg)
        volumes["postgres_data"] = {}
    else:
        networks["shared"] = {"external": True, "name": cfg.shared_network}

    services["mem0"] = _mem0_service(cfg)
    return {
        "name": cfg.project_name,
        "services": services,
        "volumes": volumes,
        "networks": networks,
    }


def configure_payload(cfg: DeploymentSettings) -> dict[str, Any]:
    """``POST /configure`` body addressing the same containers as the compose file."""
    return build_mem0_config(
        postgres_host=cfg.postgres_container_host,
        postgres_port=cfg.postgres_container_port,
        postgres_user=cfg.postgres_user,
        postgres_password=cfg.postgres_password,
        postgres_db=cfg.postgres_db,
        collection_name=cfg.postgres_collection,
        neo4j_uri=cfg.neo4j_container_uri,
        neo4j_username=cfg.neo4j_username,
        neo4j_password=cfg.neo4j_password,
        llm_provider=cfg.llm_provider,
        llm_model=cfg.llm_model,
        embedder_model=cfg.embedder_model,
        openai_api_key=cfg.openai_api_key,
        ollama_base_url=cfg.ollama_base_url,
    )


def dump_compose(cfg: DeploymentSettings) -> str:
    return yaml.safe_dump(render_compose(cfg), sort_keys=False, default_flow_style=False)


def write_compose(cfg: DeploymentSettings, path: Optional[Path] = None) -> Path:
    target = Path(path or cfg.compose_file)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(dump_compose(cfg), encoding="utf-8")
    logger.info("compose file written: %s", target)
    return target


def compose_environment(
    cfg: DeploymentSettings,
    base: Optional[Mapping[str, str]] = None,
) -> dict[str, str]:
    """Process environment for ``docker compose`` with the secret references filled in."""
    env = dict(os.environ if base is None else base)
    secrets = {
        "NEO4J_PASSWORD": cfg.neo4j_password,
        "POSTGRES_PASSWORD": cfg.postgres_password,
        "OPENAI_API_KEY": cfg.openai_api_key,
    }
    for name in SECRET_VARIABLES:
        # An explicitly exported variable wins over the settings default.
        if not env.get(name):
            env[name] = secrets[name] or ""
    return env
