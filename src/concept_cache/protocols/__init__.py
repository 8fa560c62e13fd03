"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (memory -> Redis, Ollama -> hosted API, etc.)
- Unit testing with fake implementations
- Clear separation of concerns
"""

from .cache_store import DurableCacheStore, FastCacheTier
from .generation_client import GenerationClient
from .usage_sink import UsageSink

__all__ = [
    "DurableCacheStore",
    "FastCacheTier",
    "GenerationClient",
    "UsageSink",
]
