"""Status sweep for the memory stack.

Each check returns a :class:`CheckResult` instead of raising so a single
unreachable component does not hide the state of the others.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Any, Optional

from infrastructure.config.settings import HEALTH_CHECK_TIMEOUT_S
from infrastructure.deploy.topology import DeploymentSettings
from infrastructure.memory.mem0_http_memory_store import Mem0HttpMemoryStore
from infrastructure.utils.event_logger import EventLogger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckResult:
    name: str
    ok: bool
    detail: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


async def check_port(
    name: str,
    host: str,
    port: int,
    *,
    timeout_s: float = HEALTH_CHECK_TIMEOUT_S,
) -> CheckResult:
    try:
        _, writer = await asyncio.wait_for(asyncio.open_connection(host, int(port)), timeout=timeout_s)
    except (OSError, asyncio.TimeoutError) as exc:
        return CheckResult(name=name, ok=False, detail=f"{host}:{port} unreachable ({exc.__class__.__name__})")
    writer.close()
    try:
        await writer.wait_closed()
    except OSError as exc:
        logger.debug("port check close failed for %s:%s: %s", host, port, exc)
    return CheckResult(name=name, ok=True, detail=f"{host}:{port} open")


async def check_api(base_url: str, *, timeout_s: float = HEALTH_CHECK_TIMEOUT_S) -> CheckResult:
    store = Mem0HttpMemoryStore(base_url=base_url, timeout_s=timeout_s)
    try:
        ok = await store.health()
    finally:
        await store.close()
    detail = f"{base_url} answering" if ok else f"{base_url} not answering"
    return CheckResult(name="mem0_api", ok=ok, detail=detail)


async def check_pgvector(
    dsn: str,
    *,
    ensure: bool = False,
    timeout_s: float = HEALTH_CHECK_TIMEOUT_S,
) -> CheckResult:
    """Verify the shared database has the ``vector`` extension (optionally create it)."""
    try:
        import asyncpg
    except ImportError:
        return CheckResult(
            name="pgvector",
            ok=False,
            detail="asyncpg is not installed (pip install 'mem0-bridge[postgres]')",
        )

    try:
        conn = await asyncpg.connect(dsn=dsn, timeout=timeout_s)
    except (OSError, asyncio.TimeoutError, asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
        return CheckResult(name="pgvector", ok=False, detail=f"connect failed: {exc}")

    try:
        if ensure:
            await conn.execute("CREATE EXTENSION IF NOT EXISTS vector;")
        version = await conn.fetchval("SELECT extversion FROM pg_extension WHERE extname = 'vector';")
    except asyncpg.PostgresError as exc:
        return CheckResult(name="pgvector", ok=False, detail=f"query failed: {exc}")
    finally:
        await conn.close()

    if not version:
        return CheckResult(name="pgvector", ok=False, detail="extension 'vector' is not installed")
    return CheckResult(name="pgvector", ok=True, detail=f"vector {version}")


async def check_neo4j(
    uri: str,
    username: str,
    password: str,
    *,
    timeout_s: float = HEALTH_CHECK_TIMEOUT_S,
) -> CheckResult:
    try:
        from neo4j import AsyncGraphDatabase
        from neo4j.exceptions import DriverError, Neo4jError
    except ImportError:
        return CheckResult(
            name="neo4j_bolt",
            ok=False,
            detail="neo4j driver is not installed (pip install 'mem0-bridge[neo4j]')",
        )

    # A malformed URI already fails in driver(), before any connection.
    try:
        driver = AsyncGraphDatabase.driver(uri, auth=(username, password), connection_timeout=timeout_s)
    except (DriverError, Neo4jError, ValueError) as exc:
        return CheckResult(name="neo4j_bolt", ok=False, detail=f"{uri}: {exc}")

    try:
        await driver.verify_connectivity()
    except (DriverError, Neo4jError, OSError) as exc:
        return CheckResult(name="neo4j_bolt", ok=False, detail=f"{uri}: {exc}")
    finally:
        await driver.close()
    return CheckResult(name="neo4j_bolt", ok=True, detail=f"{uri} authenticated")


async def run_status(
    cfg: DeploymentSettings,
    *,
    dsn: Optional[str] = None,
    deep: bool = True,
    timeout_s: float = HEALTH_CHECK_TIMEOUT_S,
) -> list[CheckResult]:
    """Check every published port, then the API and (``deep``) both databases."""
    host = cfg.stack_host
    events = EventLogger(logger, "[stack_status]", base_fields={"project": cfg.project_name})

    checks = [
        check_port("api_port", host, cfg.api_host_port, timeout_s=timeout_s),
        check_port("neo4j_http_port", host, cfg.neo4j_http_port, timeout_s=timeout_s),
        check_port("neo4j_bolt_port", host, cfg.neo4j_bolt_port, timeout_s=timeout_s),
        check_port("postgres_port", host, cfg.postgres_host_port, timeout_s=timeout_s),
        check_api(cfg.api_base_url, timeout_s=timeout_s),
    ]
    if deep:
        checks.append(check_pgvector(dsn or cfg.postgres_host_dsn, timeout_s=timeout_s))
        checks.append(
            check_neo4j(cfg.neo4j_host_uri, cfg.neo4j_username, cfg.neo4j_password, timeout_s=timeout_s)
        )

    results = list(await asyncio.gather(*checks))
    for r in results:
        if r.ok:
            events.info("check", name=r.name, ok=True, detail=r.detail)
        else:
            events.warning("check", name=r.name, ok=False, detail=r.detail)
    return results
