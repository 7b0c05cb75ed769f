from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from domain.memory.memory_item import ConversationTurn, MemoryItem


@dataclass(frozen=True)
class MemoryPolicy:
    top_k: int = 5
    min_score: float = 0.0
    max_chars: int = 1200


CONTEXT_HEADER = (
    "Relevant long-term memories about this user (may be outdated; "
    "the current message takes precedence):\n"
)


def build_memory_context(
    *,
    memories: Iterable[MemoryItem],
    policy: MemoryPolicy,
) -> Optional[str]:
    """Format recalled memories into a prompt-safe context block.

    Notes:
    - Memories are treated as *hints*, not ground truth.
    - We cap total chars to avoid prompt bloat.
    """
    selected: list[str] = []
    for item in sorted(memories, key=lambda m: float(m.score or 0.0), reverse=True):
        if len(selected) >= int(policy.top_k):
            break
        if float(item.score or 0.0) < float(policy.min_score):
            continue
        text = (item.text or "").strip()
        if not text:
            continue
        selected.append(text)

    if not selected:
        return None

    body = "\n".join(f"- {t}" for t in selected)
    text = f"{CONTEXT_HEADER}{body}\n"
    if len(text) <= int(policy.max_chars):
        return text
    # Keep room for the trailing newline so the cap holds exactly.
    return text[: max(int(policy.max_chars) - 1, 0)].rstrip() + "\n"


_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
# ISO dates (2024-01-15) have the same shape as dashed numbers; leave them alone.
_PHONE_RE = re.compile(r"(?<!\w)(?!\d{4}-\d{2}-\d{2}\b)(\+?\d[\d -]{7,}\d)\b")


def guardrail_memory_text(text: str) -> Optional[str]:
    """Best-effort scrub for memory write payloads (avoid storing sensitive info)."""
    if not isinstance(text, str):
        return None
    cleaned = text.strip()
    if not cleaned:
        return None
    cleaned = _EMAIL_RE.sub("[REDACTED_EMAIL]", cleaned)
    cleaned = _PHONE_RE.sub("[REDACTED_PHONE]", cleaned)
    return cleaned.strip() or None


def turns_from_exchange(*, user_message: str, assistant_message: str) -> list[ConversationTurn]:
    turns: list[ConversationTurn] = []
    if (user_message or "").strip():
        turns.append(ConversationTurn(role="user", content=user_message.strip()))
    if (assistant_message or "").strip():
        turns.append(ConversationTurn(role="assistant", content=assistant_message.strip()))
    return turns
