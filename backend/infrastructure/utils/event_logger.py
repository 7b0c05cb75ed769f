import logging
import time
from typing import Any, Dict, Optional

from infrastructure.utils import format_kv


class EventLogger:
    """
    Emit compact single-line structured logs that share context.

    Used for multi-step flows (a memory turn, a status sweep): every event
    carries a sequence number and the time elapsed since the flow started.
    """

    def __init__(
        self,
        logger: logging.Logger,
        prefix: str,
        *,
        base_fields: Optional[Dict[str, Any]] = None,
        started_at: Optional[float] = None,
        stacklevel: int = 3,
    ) -> None:
        self._logger = logger
        self._prefix = prefix
        self._base_fields: Dict[str, Any] = dict(base_fields or {})
        self._started_at = started_at if started_at is not None else time.monotonic()
        self._seq = 0
        self._stacklevel = stacklevel

    @property
    def seq(self) -> int:
        return self._seq

    def set(self, **fields: Any) -> None:
        self._base_fields.update({k: v for k, v in fields.items() if v is not None})

    def info(self, event: str, **fields: Any) -> None:
        self._log(logging.INFO, event, **fields)

    def debug(self, event: str, **fields: Any) -> None:
        self._log(logging.DEBUG, event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._log(logging.WARNING, event, **fields)

    def _log(self, level: int, event: str, **fields: Any) -> None:
        self._seq += 1
        payload: Dict[str, Any] = {
            "seq": self._seq,
            "event": event,
            "elapsed_s": round(time.monotonic() - self._started_at, 4),
        }
        payload.update(self._base_fields)
        payload.update({k: v for k, v in fields.items() if v is not None})

        self._logger.log(
            level,
            "%s %s",
            self._prefix,
            format_kv(**payload),
            stacklevel=self._stacklevel,
        )
