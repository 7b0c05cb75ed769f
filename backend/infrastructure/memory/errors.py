from __future__ import annotations

from typing import Optional


class Mem0Error(RuntimeError):
    """Base error for calls to the Mem0 REST API."""


class Mem0ConnectionError(Mem0Error):
    """The API could not be reached (DNS, refused connection, timeout)."""


class Mem0HTTPError(Mem0Error):
    def __init__(self, *, method: str, path: str, status: int, body: str = "") -> None:
        self.method = method
        self.path = path
        self.status = int(status)
        self.body = (body or "")[:200]
        super().__init__(f"mem0 {method} {path} failed ({self.status}): {self.body}")


class Mem0NotFoundError(Mem0HTTPError):
    pass


def raise_for_status(*, method: str, path: str, status: int, body: Optional[str]) -> None:
    if status < 400:
        return
    cls = Mem0NotFoundError if status == 404 else Mem0HTTPError
    raise cls(method=method, path=path, status=status, body=body or "")
