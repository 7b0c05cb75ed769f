from __future__ import annotations

import os
from typing import Optional


def _get_env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} must be an integer, got {raw!r}") from exc


def get_postgres_dsn(*, host_side: bool = True) -> Optional[str]:
    """Return the shared Postgres DSN if configured; otherwise None.

    Priority:
    1) POSTGRES_DSN
    2) POSTGRES_HOST/PORT/USER/PASSWORD/DB

    With ``host_side`` the DSN targets the host-mapped port (15432 by
    default) on MEM0_STACK_HOST, the same host the status sweep checks,
    which is how operators reach the shared database from outside the docker
    network.
    """

    dsn = (os.getenv("POSTGRES_DSN") or "").strip()
    if dsn:
        return dsn

    host = (os.getenv("POSTGRES_HOST") or "").strip()
    if not host and not host_side:
        return None

    if host_side:
        host = (os.getenv("MEM0_STACK_HOST") or "").strip() or "localhost"
        port = _get_env_int("POSTGRES_HOST_PORT", 15432)
    else:
        port = _get_env_int("POSTGRES_PORT", 5432)
    user = os.getenv("POSTGRES_USER", "postgres")
    password = os.getenv("POSTGRES_PASSWORD", "postgres")
    db = os.getenv("POSTGRES_DB", "postgres")
    return f"postgresql://{user}:{password}@{host}:{port}/{db}"
