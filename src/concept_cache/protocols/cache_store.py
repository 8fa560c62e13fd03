"""Cache tier protocols.

Two tiers back the concept cache:

- FastCacheTier: a non-authoritative accelerator (in-process memory by default)
- DurableCacheStore: the source of truth, with a recency index for eviction
  (Redis by default)

Implementations signal an unreachable backend by raising
``StoreUnavailableError``; the orchestrator bypasses the tier in that case.
"""

from typing import Protocol, runtime_checkable

from concept_cache.entities import CacheEntryEntity


@runtime_checkable
class FastCacheTier(Protocol):
    """Protocol for the fast, non-authoritative cache tier.

    Implementations must provide atomic per-key operations; callers do not
    lock around them.
    """

    async def get(self, key: str) -> CacheEntryEntity | None:
        """Fetch an entry by normalized key.

        Args:
            key: Normalized query key

        Returns:
            The entry, or None on a miss
        """
        ...

    async def set(self, entry: CacheEntryEntity) -> None:
        """Insert or replace an entry under ``entry.key``.

        Args:
            entry: The entry to store
        """
        ...

    async def delete(self, key: str) -> bool:
        """Remove an entry.

        Args:
            key: Normalized query key

        Returns:
            True if an entry was removed
        """
        ...

    async def clear(self) -> int:
        """Remove every entry.

        Returns:
            Number of entries removed
        """
        ...


@runtime_checkable
class DurableCacheStore(Protocol):
    """Protocol for the durable, authoritative cache tier.

    Example:
        ```python
        store: DurableCacheStore = RedisDurableStore.create()
        store: DurableCacheStore = MemoryDurableStore()
        ```
    """

    async def get(self, key: str) -> CacheEntryEntity | None:
        """Fetch an entry by normalized key.

        Args:
            key: Normalized query key

        Returns:
            The entry, or None on a miss
        """
        ...

    async def put(self, entry: CacheEntryEntity) -> None:
        """Insert or replace an entry and index it by ``last_accessed_at``.

        Args:
            entry: The entry to store
        """
        ...

    async def touch(self, key: str, accessed_at: float) -> CacheEntryEntity | None:
        """Record a hit: bump ``access_count`` and ``last_accessed_at``.

        Args:
            key: Normalized query key
            accessed_at: Unix timestamp of the hit

        Returns:
            The updated entry, or None if the key no longer exists
        """
        ...

    async def delete(self, key: str) -> bool:
        """Delete an entry and its recency index record.

        Args:
            key: Normalized query key

        Returns:
            True if an entry was removed
        """
        ...

    async def count(self) -> int:
        """Count stored entries.

        Returns:
            Total number of entries
        """
        ...

    async def least_recently_accessed(self, limit: int) -> list[str]:
        """Range-scan the recency index, oldest first.

        Args:
            limit: Maximum number of keys to return

        Returns:
            Keys ordered by ascending ``last_accessed_at``
        """
        ...

    async def clear(self) -> int:
        """Delete every entry.

        Returns:
            Number of entries removed
        """
        ...

    async def health_check(self) -> bool:
        """Check if the store is reachable.

        Returns:
            True if healthy, False otherwise
        """
        ...
