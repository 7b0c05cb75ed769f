from .errors import Mem0ConnectionError, Mem0Error, Mem0HTTPError, Mem0NotFoundError
from .factory import MemoryStoreFactory, build_memory_service, create_memory_store
from .mem0_config import build_mem0_config
from .mem0_http_memory_store import Mem0HttpMemoryStore
from .null_memory_store import NullMemoryStore

__all__ = [
    "MemoryStoreFactory",
    "build_memory_service",
    "create_memory_store",
    "build_mem0_config",
    "Mem0ConnectionError",
    "Mem0Error",
    "Mem0HTTPError",
    "Mem0NotFoundError",
    "Mem0HttpMemoryStore",
    "NullMemoryStore",
]
