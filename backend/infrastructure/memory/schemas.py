from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, model_validator


class Message(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str = Field(..., min_length=1)


class _Scoped(BaseModel):
    user_id: Optional[str] = None
    agent_id: Optional[str] = None
    run_id: Optional[str] = None

    @model_validator(mode="after")
    def _require_identifier(self) -> "_Scoped":
        if not any((self.user_id, self.agent_id, self.run_id)):
            raise ValueError("at least one of user_id, agent_id or run_id is required")
        return self


class MemoryAddRequest(_Scoped):
    messages: list[Message] = Field(..., min_length=1)
    metadata: Optional[dict[str, Any]] = None


class MemorySearchRequest(_Scoped):
    query: str = Field(..., min_length=1)
    limit: Optional[int] = Field(default=None, ge=1)
    filters: Optional[dict[str, Any]] = None


class MemoryUpdateRequest(BaseModel):
    data: str = Field(..., min_length=1)
