"""Memory store factory for creating memory store instances.

This factory provides a centralized way to create memory store implementations
based on configuration, following the Factory pattern for loose coupling.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal, Optional

from application.ports.memory_store_port import MemoryStorePort
from infrastructure.config.settings import (
    MEM0_API_KEY,
    MEM0_BASE_URL,
    MEM0_TIMEOUT_S,
    MEMORY_MAX_CHARS,
    MEMORY_MIN_SCORE,
    MEMORY_PROVIDER,
    MEMORY_REDACT_PII,
    MEMORY_TOP_K,
    MEMORY_WRITE_ENABLED,
)

if TYPE_CHECKING:
    from application.chat.memory_service import MemoryService

logger = logging.getLogger(__name__)

ProviderType = Literal["mem0", "null", ""]


class MemoryStoreFactory:
    """Factory for creating memory store instances based on configuration."""

    @staticmethod
    def create(provider: ProviderType | None = None) -> MemoryStorePort:
        """Create a memory store instance based on the provider type.

        Args:
            provider: The provider type ('mem0', 'null', or None).
                     If None, reads from MEMORY_PROVIDER environment variable.

        Returns:
            A MemoryStorePort implementation.

        Raises:
            ValueError: If an unsupported provider is specified.
        """
        if provider is None:
            provider = MEMORY_PROVIDER  # type: ignore[assignment]

        provider = (provider or "").strip().lower()

        match provider:
            case "mem0":
                from infrastructure.memory.mem0_http_memory_store import (
                    Mem0HttpMemoryStore,
                )

                if not MEM0_BASE_URL:
                    logger.warning(
                        "MEMORY_PROVIDER=mem0 but MEM0_BASE_URL is not set; "
                        "falling back to NullMemoryStore"
                    )
                    from infrastructure.memory.null_memory_store import (
                        NullMemoryStore,
                    )

                    return NullMemoryStore()

                return Mem0HttpMemoryStore(
                    base_url=MEM0_BASE_URL,
                    api_key=MEM0_API_KEY,
                    timeout_s=MEM0_TIMEOUT_S,
                )

            case "null" | "":
                from infrastructure.memory.null_memory_store import NullMemoryStore

                return NullMemoryStore()

            case _:
                raise ValueError(
                    f"Unsupported MEMORY_PROVIDER: {provider!r}. "
                    f"Supported values: 'mem0', 'null'"
                )


def create_memory_store(provider: ProviderType | None = None) -> MemoryStorePort:
    """Convenience function for creating a memory store.

    This is a shorthand for MemoryStoreFactory.create().
    """
    return MemoryStoreFactory.create(provider)


def build_memory_service(store: Optional[MemoryStorePort] = None) -> "MemoryService":
    """Wire the MEMORY_* settings into a MemoryService over the configured store."""
    from application.chat.memory_service import MemoryService
    from domain.memory.policy import MemoryPolicy

    policy = MemoryPolicy(
        top_k=int(MEMORY_TOP_K),
        min_score=float(MEMORY_MIN_SCORE),
        max_chars=int(MEMORY_MAX_CHARS),
    )
    return MemoryService(
        store=store if store is not None else create_memory_store(),
        policy=policy,
        write_enabled=MEMORY_WRITE_ENABLED,
        redact=MEMORY_REDACT_PII,
    )
