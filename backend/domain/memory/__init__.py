from domain.memory.memory_item import (
    ConversationTurn,
    GraphRelation,
    MemoryEvent,
    MemoryHistoryEntry,
    MemoryItem,
    MemorySearchResult,
)

__all__ = [
    "ConversationTurn",
    "GraphRelation",
    "MemoryEvent",
    "MemoryHistoryEntry",
    "MemoryItem",
    "MemorySearchResult",
]
