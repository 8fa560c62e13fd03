"""Repository layer for data access.

This layer abstracts external dependencies (Redis, the generation API, the
whitelist source) behind protocol-based interfaces. This enables:
- Easy swapping of implementations (memory -> Redis, Ollama -> hosted API, etc.)
- Unit testing with fake implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from concept_cache.protocols import DurableCacheStore, FastCacheTier, GenerationClient

from .memory_repository import MemoryDurableStore, MemoryFastTier
from .ollama_generation_client import OllamaGenerationClient
from .redis_repository import RedisDurableStore
from .whitelist_repository import (
    WhitelistRecord,
    WhitelistTable,
    load_whitelist,
    parse_whitelist,
    probe_availability,
)

__all__ = [
    "DurableCacheStore",
    "FastCacheTier",
    "GenerationClient",
    "MemoryDurableStore",
    "MemoryFastTier",
    "OllamaGenerationClient",
    "RedisDurableStore",
    "WhitelistRecord",
    "WhitelistTable",
    "load_whitelist",
    "parse_whitelist",
    "probe_availability",
]
