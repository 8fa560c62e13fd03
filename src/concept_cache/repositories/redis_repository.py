"""Redis implementation of DurableCacheStore.

Layout:
    <prefix>:entry:<concept_id>      hash with the persisted cache record
    <prefix>:by_last_accessed        sorted set, member=concept_id, score=last_accessed

The sorted set is the recency index that eviction range-scans oldest first.
"""

import json
import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from concept_cache.config import get_redis_client, settings
from concept_cache.entities import (
    CacheEntryEntity,
    ConfidenceLevel,
    ResolvedSimulation,
    SimulationSource,
    StructuredResponse,
)
from concept_cache.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

# KEYS: entry hash, recency index. ARGV: concept_id, accessed_at.
# last_accessed never moves backwards.
TOUCH_SCRIPT = """
if redis.call("EXISTS", KEYS[1]) == 0 then
    return false
end
redis.call("HINCRBY", KEYS[1], "access_count", 1)
local previous = tonumber(redis.call("HGET", KEYS[1], "last_accessed"))
if previous == nil or tonumber(ARGV[2]) > previous then
    redis.call("HSET", KEYS[1], "last_accessed", ARGV[2])
end
redis.call("ZADD", KEYS[2], "GT", ARGV[2], ARGV[1])
return redis.call("HGETALL", KEYS[1])
"""


def entry_to_record(entry: CacheEntryEntity) -> dict[str, str]:
    """Flatten an entry into the persisted hash layout."""
    response = entry.response
    simulation = entry.simulation
    return {
        "concept_id": entry.key,
        "explanation": response.explanation,
        "concept_tags": json.dumps(list(response.concept_tags)),
        "simulation_identifier": simulation.identifier,
        "simulation_url": simulation.url or "",
        "guided_steps": json.dumps(list(response.guided_steps)),
        "confidence_level": response.confidence_level.value,
        "simulation_source": simulation.source.value,
        "simulation_provider": simulation.provider or "",
        "simulation_available": "1" if simulation.available else "0",
        "created_at": repr(entry.created_at),
        "access_count": str(entry.access_count),
        "last_accessed": repr(entry.last_accessed_at),
    }


def record_to_entry(record: dict[str, str]) -> CacheEntryEntity:
    """Rebuild an entry from its persisted hash.

    Raises:
        KeyError, ValueError: If the record is incomplete or corrupt
    """
    simulation = ResolvedSimulation(
        identifier=record["simulation_identifier"],
        url=record.get("simulation_url") or None,
        source=SimulationSource(record["simulation_source"]),
        provider=record.get("simulation_provider") or None,
        available=record.get("simulation_available") == "1",
    )
    response = StructuredResponse(
        explanation=record["explanation"],
        concept_tags=tuple(json.loads(record["concept_tags"])),
        simulation_identifier=simulation.identifier,
        guided_steps=tuple(json.loads(record["guided_steps"])),
        confidence_level=ConfidenceLevel(record["confidence_level"]),
    )
    return CacheEntryEntity(
        key=record["concept_id"],
        response=response,
        simulation=simulation,
        created_at=float(record["created_at"]),
        access_count=int(record["access_count"]),
        last_accessed_at=float(record["last_accessed"]),
    )


class RedisDurableStore:
    """Redis-backed durable cache tier.

    This class satisfies the DurableCacheStore protocol through structural
    typing - no explicit inheritance needed.

    Connection and protocol failures surface as ``StoreUnavailableError`` so
    the orchestrator can bypass the tier.
    """

    def __init__(
        self,
        redis_client: Redis | None = None,
        key_prefix: str | None = None,
    ) -> None:
        """Initialize the Redis durable store.

        Args:
            redis_client: Async Redis client (decode_responses=True). If None, creates default.
            key_prefix: Namespace for all keys. Defaults to settings.
        """
        self._client = redis_client or get_redis_client()
        self._prefix = key_prefix or settings.cache_key_prefix
        self._recency_key = f"{self._prefix}:by_last_accessed"
        self._touch_script = self._client.register_script(TOUCH_SCRIPT)

    @classmethod
    def create(cls, key_prefix: str | None = None) -> "RedisDurableStore":
        """Factory method to create RedisDurableStore with defaults.

        Args:
            key_prefix: Key namespace. If None, uses settings.

        Returns:
            Configured RedisDurableStore
        """
        return cls(key_prefix=key_prefix)

    def _entry_key(self, key: str) -> str:
        return f"{self._prefix}:entry:{key}"

    async def get(self, key: str) -> CacheEntryEntity | None:
        """Fetch an entry.

        Args:
            key: Normalized query key

        Returns:
            The entry, or None on a miss or a corrupt record
        """
        try:
            record = await self._client.hgetall(self._entry_key(key))
        except RedisError as e:
            raise StoreUnavailableError(f"Redis read failed: {e}") from e

        if not record:
            return None
        try:
            return record_to_entry(record)
        except (KeyError, ValueError) as e:
            logger.error("Discarding corrupt cache record %s: %s", key[:12], e)
            return None

    async def put(self, entry: CacheEntryEntity) -> None:
        """Store an entry and index it by last access time.

        Args:
            entry: The entry to store
        """
        pipe = self._client.pipeline(transaction=True)
        pipe.hset(self._entry_key(entry.key), mapping=entry_to_record(entry))
        pipe.zadd(self._recency_key, {entry.key: entry.last_accessed_at})
        try:
            await pipe.execute()
        except RedisError as e:
            raise StoreUnavailableError(f"Redis write failed: {e}") from e

    async def touch(self, key: str, accessed_at: float) -> CacheEntryEntity | None:
        """Bump access count and last access time of an existing entry.

        Runs as one server-side script, so a concurrent delete can never
        leave a partial hash or a stale index record behind.

        Args:
            key: Normalized query key
            accessed_at: Unix timestamp of the hit

        Returns:
            The updated entry, or None if the key does not exist
        """
        try:
            flat = await self._touch_script(
                keys=[self._entry_key(key), self._recency_key],
                args=[key, repr(accessed_at)],
            )
        except RedisError as e:
            raise StoreUnavailableError(f"Redis touch failed: {e}") from e

        if not flat:
            return None
        try:
            return record_to_entry(dict(zip(flat[::2], flat[1::2])))
        except (KeyError, ValueError) as e:
            logger.error("Cache record %s became corrupt during touch: %s", key[:12], e)
            return None

    async def delete(self, key: str) -> bool:
        """Delete an entry and its recency index record.

        Args:
            key: Normalized query key

        Returns:
            True if deleted, False otherwise
        """
        pipe = self._client.pipeline(transaction=True)
        pipe.delete(self._entry_key(key))
        pipe.zrem(self._recency_key, key)
        try:
            deleted, _ = await pipe.execute()
        except RedisError as e:
            raise StoreUnavailableError(f"Redis delete failed: {e}") from e
        return deleted > 0

    async def count(self) -> int:
        """Count entries via the recency index.

        Returns:
            Total number of cached entries
        """
        try:
            return await self._client.zcard(self._recency_key)
        except RedisError as e:
            raise StoreUnavailableError(f"Redis count failed: {e}") from e

    async def least_recently_accessed(self, limit: int) -> list[str]:
        """Range-scan the recency index, oldest first.

        Args:
            limit: Maximum number of keys to return

        Returns:
            Keys ordered by ascending last access time
        """
        if limit <= 0:
            return []
        try:
            return list(await self._client.zrange(self._recency_key, 0, limit - 1))
        except RedisError as e:
            raise StoreUnavailableError(f"Redis range scan failed: {e}") from e

    async def clear(self) -> int:
        """Clear all entries from the cache.

        Returns:
            Number of entries deleted
        """
        count = 0
        try:
            async for entry_key in self._client.scan_iter(match=f"{self._prefix}:entry:*"):
                count += await self._client.delete(entry_key)
            await self._client.delete(self._recency_key)
        except RedisError as e:
            raise StoreUnavailableError(f"Redis clear failed: {e}") from e
        return count

    async def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        """Close the Redis connection."""
        await self._client.aclose()

    @property
    def client(self) -> Redis:
        """Get the Redis client."""
        return self._client
