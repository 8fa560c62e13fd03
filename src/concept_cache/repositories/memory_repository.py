"""In-process implementations of the cache tier protocols.

``MemoryFastTier`` is the default fast tier: a bounded LRU map with a TTL,
local to one process. ``MemoryDurableStore`` keeps everything in a dict and
is meant for development and tests where no Redis is available.

Both run on the event loop thread; every method completes without yielding
in the middle of a mutation, which makes per-key operations atomic.
"""

import time
from collections import OrderedDict
from collections.abc import Callable

from concept_cache.config import settings
from concept_cache.entities import CacheEntryEntity


class MemoryFastTier:
    """Bounded LRU fast tier with per-entry TTL.

    This class satisfies the FastCacheTier protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(
        self,
        max_entries: int | None = None,
        ttl: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the fast tier.

        Args:
            max_entries: Maximum entries kept in memory. Defaults to settings.
            ttl: Seconds an entry stays in the fast tier. Defaults to settings.
            clock: Monotonic time source.
        """
        self._max_entries = (
            max_entries if max_entries is not None else settings.fast_tier_max_entries
        )
        self._ttl = ttl if ttl is not None else settings.fast_tier_ttl
        if self._max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {self._max_entries}")
        if self._ttl <= 0:
            raise ValueError(f"ttl must be positive, got {self._ttl}")
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, CacheEntryEntity]] = OrderedDict()

    async def get(self, key: str) -> CacheEntryEntity | None:
        item = self._entries.get(key)
        if item is None:
            return None
        expires_at, entry = item
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry

    async def set(self, entry: CacheEntryEntity) -> None:
        self._entries[entry.key] = (self._clock() + self._ttl, entry)
        self._entries.move_to_end(entry.key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def __len__(self) -> int:
        return len(self._entries)


class MemoryDurableStore:
    """Dict-backed durable store for development and tests.

    This class satisfies the DurableCacheStore protocol. Nothing survives a
    process restart.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntryEntity] = {}

    async def get(self, key: str) -> CacheEntryEntity | None:
        return self._entries.get(key)

    async def put(self, entry: CacheEntryEntity) -> None:
        self._entries[entry.key] = entry

    async def touch(self, key: str, accessed_at: float) -> CacheEntryEntity | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        touched = entry.touched(accessed_at)
        self._entries[key] = touched
        return touched

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def count(self) -> int:
        return len(self._entries)

    async def least_recently_accessed(self, limit: int) -> list[str]:
        ordered = sorted(self._entries.values(), key=lambda e: (e.last_accessed_at, e.key))
        return [entry.key for entry in ordered[:limit]]

    async def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    async def health_check(self) -> bool:
        return True

    def seed(self, entries: list[CacheEntryEntity]) -> None:
        """Bulk-load entries (e.g. a warm start from a snapshot)."""
        for entry in entries:
            self._entries[entry.key] = entry
