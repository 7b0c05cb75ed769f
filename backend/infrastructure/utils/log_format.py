from __future__ import annotations

import json
from typing import Any, Iterable

# Field names whose values never reach the logs (compose env, DSNs, API keys).
_SECRET_MARKERS = ("password", "api_key", "apikey", "token", "secret", "dsn")
_MASK = "***"


def _is_secret(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in _SECRET_MARKERS)


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        # Quote strings so spaces/symbols stay readable and unambiguous
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return json.dumps(str(value), ensure_ascii=False)


def format_kv(**fields: Any) -> str:
    """
    Render a compact single-line key=value log string.

    Example:
      seq=1 event="check" name="neo4j_bolt" ok=true

    Secret-looking keys are masked and None values are dropped.
    """
    items: Iterable[tuple[str, Any]] = fields.items()
    parts: list[str] = []
    for key, value in items:
        if value is None:
            continue
        if _is_secret(key) and value != "":
            parts.append(f"{key}={_format_value(_MASK)}")
            continue
        parts.append(f"{key}={_format_value(value)}")
    return " ".join(parts)
