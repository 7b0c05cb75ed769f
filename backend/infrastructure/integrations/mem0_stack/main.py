from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

from application.ports.memory_store_port import MemoryStorePort
from infrastructure.config.database import get_postgres_dsn
from infrastructure.deploy import (
    ComposeError,
    ComposeRunner,
    DeploymentSettings,
    configure_payload,
    dump_compose,
    run_status,
    write_compose,
)
from infrastructure.deploy.health import check_pgvector
from infrastructure.memory import Mem0Error, Mem0HttpMemoryStore

logger = logging.getLogger(__name__)

# Builds the API client for ``configure`` from the stack's base URL.
StoreFactory = Callable[[str], MemoryStorePort]


def _http_store(base_url: str) -> MemoryStorePort:
    return Mem0HttpMemoryStore(base_url=base_url)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Operate the self-hosted Mem0 stack (Neo4j + pgvector + API).")
    p.add_argument("--compose-file", type=Path, default=None, help="Compose file path (default: MEM0_COMPOSE_FILE).")
    p.add_argument("--log-level", default="INFO", help="Logging level.")
    sub = p.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render the compose file.")
    render.add_argument("--output", type=Path, default=None, help="Write here instead of the compose file path.")
    render.add_argument("--stdout", action="store_true", help="Print instead of writing.")

    up = sub.add_parser("up", help="Start the stack (renders the compose file first).")
    up.add_argument("--pull", action="store_true", help="Pull images before starting.")
    up.add_argument("--wait", action="store_true", help="Block until services are healthy.")

    down = sub.add_parser("down", help="Stop the stack.")
    down.add_argument("--volumes", action="store_true", help="Also remove Neo4j/history volumes.")

    restart = sub.add_parser("restart", help="Restart all services or one.")
    restart.add_argument("service", nargs="?", default=None)

    logs = sub.add_parser("logs", help="Show container logs.")
    logs.add_argument("service", nargs="?", default=None)
    logs.add_argument("--tail", type=int, default=None)
    logs.add_argument("--follow", "-f", action="store_true")

    sub.add_parser("ps", help="List service containers.")
    sub.add_parser("pull", help="Pull service images.")

    status = sub.add_parser("status", help="Check ports, the API and both databases.")
    status.add_argument("--json", action="store_true", help="Print results as JSON.")
    status.add_argument("--shallow", action="store_true", help="Skip database driver checks.")

    db_check = sub.add_parser("db-check", help="Check the pgvector extension on the shared database.")
    db_check.add_argument("--ensure", action="store_true", help="Create the extension when missing.")
    db_check.add_argument("--dsn", default=None, help="Override the DSN (default: host-mapped shared database).")

    sub.add_parser("configure", help="POST the provider configuration to the running API.")
    return p


async def _status(cfg: DeploymentSettings, *, as_json: bool, deep: bool) -> int:
    results = await run_status(cfg, dsn=get_postgres_dsn(), deep=deep)
    if as_json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
    else:
        for r in results:
            print(f"{'OK  ' if r.ok else 'FAIL'} {r.name:<16} {r.detail}")
    return 0 if all(r.ok for r in results) else 1


async def _db_check(cfg: DeploymentSettings, *, dsn: Optional[str], ensure: bool) -> int:
    result = await check_pgvector(dsn or get_postgres_dsn() or cfg.postgres_host_dsn, ensure=ensure)
    print(f"{'OK  ' if result.ok else 'FAIL'} {result.name} {result.detail}")
    return 0 if result.ok else 1


async def _configure(cfg: DeploymentSettings, store_factory: StoreFactory) -> int:
    store = store_factory(cfg.api_base_url)
    try:
        result = await store.configure(config=configure_payload(cfg))
    finally:
        await store.close()
    print(json.dumps(result, indent=2, default=str))
    return 0


def run(
    argv: Optional[Sequence[str]] = None,
    *,
    runner: Optional[ComposeRunner] = None,
    store_factory: Optional[StoreFactory] = None,
) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO))

    cfg = DeploymentSettings.from_env(compose_file=args.compose_file)
    runner = runner or ComposeRunner(cfg)

    try:
        match args.command:
            case "render":
                if args.stdout:
                    sys.stdout.write(dump_compose(cfg))
                else:
                    print(write_compose(cfg, args.output))
                return 0
            case "up":
                write_compose(cfg, runner.compose_file)
                runner.up(pull=args.pull, wait=args.wait)
                logger.info("stack up: api=%s", cfg.api_base_url)
                return 0
            case "down":
                runner.down(volumes=args.volumes)
                return 0
            case "restart":
                runner.restart(args.service)
                return 0
            case "logs":
                runner.logs(args.service, tail=args.tail, follow=args.follow)
                return 0
            case "ps":
                for s in runner.ps():
                    print(f"{s.service:<10} {s.state:<10} {s.health or '-':<10} {s.name}")
                return 0
            case "pull":
                runner.pull()
                return 0
            case "status":
                return asyncio.run(_status(cfg, as_json=args.json, deep=not args.shallow))
            case "db-check":
                return asyncio.run(_db_check(cfg, dsn=args.dsn, ensure=args.ensure))
            case "configure":
                return asyncio.run(_configure(cfg, store_factory or _http_store))
    except ComposeError as exc:
        logger.error("%s", exc)
        return exc.returncode or 1
    except (Mem0Error, ValueError) as exc:
        logger.error("%s", exc)
        return 1
    return 2


def main() -> None:
    raise SystemExit(run())


if __name__ == "__main__":
    main()
