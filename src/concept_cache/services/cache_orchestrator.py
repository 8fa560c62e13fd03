"""Cache orchestrator: the engine's entry point.

Flow for one query:
    validate -> normalize -> fast tier -> durable tier -> coordination slot
    -> generation coordinator -> write both tiers -> background eviction

The fast tier is a non-authoritative accelerator and the durable tier is the
source of truth. Entries are immutable once created, so the two tiers are
kept consistent on a best-effort basis (write-through on promotion).
"""

import asyncio
import functools
import logging
import time
from collections import Counter
from collections.abc import Callable, Coroutine, Iterator
from contextlib import contextmanager
from typing import Any

from concept_cache.config import settings
from concept_cache.entities import CacheEntryEntity, ConceptResult
from concept_cache.exceptions import GenerationFailure, InvalidQueryError, StoreUnavailableError
from concept_cache.models import PerformanceMetrics
from concept_cache.protocols import DurableCacheStore, FastCacheTier
from concept_cache.services.circuit_breaker import TierCircuitBreaker
from concept_cache.services.fallback import build_fallback_result
from concept_cache.services.generation_coordinator import GenerationCoordinator
from concept_cache.services.key_normalizer import normalize

logger = logging.getLogger(__name__)


class CacheOrchestrator:
    """Cache-first orchestration of concept queries.

    Guarantees:
        - Cache hits never wait on durable-tier writes (access bumps run in
          the background).
        - At most one generation is in flight per normalized key; concurrent
          callers for the same key await the same task.
        - Failed generations are never cached.
        - The durable tier is kept at or below ``capacity`` entries by
          evicting least-recently-accessed entries in the background.

    Example:
        ```python
        orchestrator = CacheOrchestrator.create(
            fast_tier=MemoryFastTier(),
            durable_store=RedisDurableStore.create(),
            coordinator=coordinator,
        )
        result = await orchestrator.handle("Explain Newton's second law of motion")
        ```
    """

    def __init__(
        self,
        fast_tier: FastCacheTier,
        durable_store: DurableCacheStore,
        coordinator: GenerationCoordinator,
        capacity: int | None = None,
        min_query_length: int | None = None,
        max_query_length: int | None = None,
        circuit_breaker: TierCircuitBreaker | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            fast_tier: Fast, non-authoritative cache tier (required).
            durable_store: Durable, authoritative cache tier (required).
            coordinator: Generation coordinator used on misses (required).
            capacity: Maximum durable entries. Defaults to settings.
            min_query_length: Minimum trimmed query length. Defaults to settings.
            max_query_length: Maximum trimmed query length. Defaults to settings.
            circuit_breaker: Breaker guarding the durable tier. Defaults to settings.
            clock: Wall-clock time source (Unix timestamps).
        """
        self._fast = fast_tier
        self._durable = durable_store
        self._coordinator = coordinator
        self._capacity = capacity if capacity is not None else settings.cache_capacity
        self._min_length = (
            min_query_length if min_query_length is not None else settings.query_min_length
        )
        self._max_length = (
            max_query_length if max_query_length is not None else settings.query_max_length
        )
        if self._capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {self._capacity}")
        if not 0 < self._min_length <= self._max_length:
            raise ValueError(
                f"Query length bounds are inconsistent: {self._min_length}..{self._max_length}"
            )
        self._breaker = circuit_breaker or TierCircuitBreaker(
            "durable",
            failure_threshold=settings.circuit_breaker_threshold,
            timeout=settings.circuit_breaker_timeout,
        )
        self._clock = clock

        self._in_flight: dict[str, asyncio.Task[ConceptResult]] = {}
        self._background: set[asyncio.Task[Any]] = set()
        self._pinned: Counter[str] = Counter()
        self._eviction_lock = asyncio.Lock()
        self.metrics = PerformanceMetrics()

    @classmethod
    def create(
        cls,
        fast_tier: FastCacheTier,
        durable_store: DurableCacheStore,
        coordinator: GenerationCoordinator,
        capacity: int | None = None,
    ) -> "CacheOrchestrator":
        """Factory method to create CacheOrchestrator with sensible defaults.

        Args:
            fast_tier: Fast cache tier (required).
            durable_store: Durable cache tier (required).
            coordinator: Generation coordinator (required).
            capacity: Max durable entries. If None, uses settings.

        Returns:
            Configured CacheOrchestrator instance
        """
        return cls(
            fast_tier=fast_tier,
            durable_store=durable_store,
            coordinator=coordinator,
            capacity=capacity,
        )

    def validate_query(self, query: str) -> str:
        """Check a raw query before it touches the cache.

        Args:
            query: Raw query text

        Returns:
            The trimmed query

        Raises:
            InvalidQueryError: If the query fails length, content or encoding checks
        """
        if not isinstance(query, str):
            raise InvalidQueryError("Query must be a string")

        text = query.strip()
        if not self._min_length <= len(text) <= self._max_length:
            raise InvalidQueryError(
                f"Query must be between {self._min_length} and {self._max_length} "
                f"characters, got {len(text)}",
                details={"length": len(text)},
            )
        if not any(ch.isalnum() for ch in text):
            raise InvalidQueryError("Query must contain letters or digits")
        try:
            text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise InvalidQueryError("Query must be valid Unicode text") from e
        return text

    async def handle(self, query: str) -> ConceptResult:
        """Answer a concept query, cache first.

        Business logic:
        1. Validate and normalize the query
        2. Serve from the fast tier, then the durable tier
        3. On a miss, join or start the single in-flight generation for the key
        4. Return a fallback (never cached) if generation fails

        Args:
            query: Raw query text

        Returns:
            ConceptResult; ``cached`` tells whether it came from a cache tier

        Raises:
            InvalidQueryError: If the query fails validation
        """
        try:
            text = self.validate_query(query)
        except InvalidQueryError:
            self.metrics.rejected += 1
            raise

        key = normalize(text)
        cached = await self._lookup(key, record_metrics=True)
        if cached is not None:
            return cached

        # No await between the lookup of the slot and its registration.
        task = self._in_flight.get(key)
        if task is None:
            self.metrics.record_miss()
            task = asyncio.create_task(self._generate_and_store(key, text))
            self._in_flight[key] = task
            task.add_done_callback(functools.partial(self._release_slot, key))
        else:
            self.metrics.record_coalesced()
            logger.debug("Joining in-flight generation for key %s", key[:12])

        # Shielded so a cancelled caller does not cancel a generation other
        # callers are waiting on.
        return await asyncio.shield(task)

    async def _lookup(self, key: str, record_metrics: bool = False) -> ConceptResult | None:
        entry = await self._read_fast(key)
        from_fast = entry is not None

        if entry is None:
            entry = await self._read_durable(key)
            if entry is None:
                return None
            await self._write_fast(entry)

        self._spawn(self._record_access(key))
        if record_metrics:
            self.metrics.record_hit(fast=from_fast)
        logger.debug("Cache hit for key %s (%s tier)", key[:12], "fast" if from_fast else "durable")

        return ConceptResult(
            response=entry.response,
            simulation=entry.simulation,
            cached=True,
            timestamp=self._clock(),
        )

    async def _generate_and_store(self, key: str, text: str) -> ConceptResult:
        # A previous slot owner may have stored the entry after our lookup.
        existing = await self._lookup(key)
        if existing is not None:
            return existing

        try:
            generated = await self._coordinator.coordinate(text)
        except GenerationFailure as e:
            self.metrics.fallbacks += 1
            logger.warning("Serving fallback for key %s (%s): %s", key[:12], e.code, e.message)
            return build_fallback_result(e.code, self._clock())

        self.metrics.generations += 1
        now = self._clock()
        entry = CacheEntryEntity(
            key=key,
            response=generated.response,
            simulation=generated.simulation,
            created_at=now,
            access_count=0,
            last_accessed_at=now,
        )
        await self._write_fast(entry)
        if await self._write_durable(entry):
            self._spawn(self._evict_if_needed())

        return ConceptResult(
            response=generated.response,
            simulation=generated.simulation,
            cached=False,
            timestamp=now,
        )

    def _release_slot(self, key: str, task: asyncio.Task[ConceptResult]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

        if task.cancelled():
            logger.warning("Generation for key %s was cancelled", key[:12])
        elif task.exception() is not None:
            logger.error(
                "Generation for key %s failed unexpectedly: %s", key[:12], task.exception()
            )

    async def _record_access(self, key: str) -> None:
        now = self._clock()
        touched = None

        if self._breaker.can_attempt():
            with self._pin(key):
                try:
                    touched = await self._durable.touch(key, now)
                    self._breaker.on_success()
                except StoreUnavailableError as e:
                    self._durable_failed("touch", e)

        fast_entry = await self._read_fast(key)
        if fast_entry is not None:
            await self._write_fast(touched or fast_entry.touched(now))

    async def _evict_if_needed(self) -> int:
        """Evict least-recently-accessed entries above capacity.

        Keys pinned by in-flight reads or writes are skipped.

        Returns:
            Number of entries evicted
        """
        async with self._eviction_lock:
            if not self._breaker.can_attempt():
                return 0
            try:
                count = await self._durable.count()
                excess = count - self._capacity
                if excess <= 0:
                    return 0
                candidates = await self._durable.least_recently_accessed(
                    excess + len(self._pinned)
                )
            except StoreUnavailableError as e:
                self._durable_failed("eviction scan", e)
                return 0

            evicted = 0
            for key in candidates:
                if evicted >= excess:
                    break
                if self._pinned[key]:
                    continue
                try:
                    removed = await self._durable.delete(key)
                except StoreUnavailableError as e:
                    self._durable_failed("eviction delete", e)
                    break
                if removed:
                    evicted += 1
                    await self._delete_fast(key)

            self.metrics.evictions += evicted
            logger.info(
                "Evicted %d least-recently-accessed entries (count was %d, capacity %d)",
                evicted,
                count,
                self._capacity,
            )
            return evicted

    # -- tier access -------------------------------------------------------

    @contextmanager
    def _pin(self, key: str) -> Iterator[None]:
        self._pinned[key] += 1
        try:
            yield
        finally:
            self._pinned[key] -= 1
            if self._pinned[key] <= 0:
                del self._pinned[key]

    async def _read_fast(self, key: str) -> CacheEntryEntity | None:
        try:
            return await self._fast.get(key)
        except StoreUnavailableError as e:
            self.metrics.store_errors += 1
            logger.warning("Fast tier read failed, bypassing: %s", e)
            return None

    async def _write_fast(self, entry: CacheEntryEntity) -> None:
        try:
            await self._fast.set(entry)
        except StoreUnavailableError as e:
            self.metrics.store_errors += 1
            logger.warning("Fast tier write failed, bypassing: %s", e)

    async def _delete_fast(self, key: str) -> None:
        try:
            await self._fast.delete(key)
        except StoreUnavailableError as e:
            self.metrics.store_errors += 1
            logger.warning("Fast tier delete failed: %s", e)

    async def _read_durable(self, key: str) -> CacheEntryEntity | None:
        if not self._breaker.can_attempt():
            logger.debug("Durable tier circuit open, skipping lookup")
            return None
        with self._pin(key):
            try:
                entry = await self._durable.get(key)
            except StoreUnavailableError as e:
                self._durable_failed("read", e)
                return None
        self._breaker.on_success()
        return entry

    async def _write_durable(self, entry: CacheEntryEntity) -> bool:
        if not self._breaker.can_attempt():
            logger.debug("Durable tier circuit open, skipping write")
            return False
        with self._pin(entry.key):
            try:
                await self._durable.put(entry)
            except StoreUnavailableError as e:
                self._durable_failed("write", e)
                return False
        self._breaker.on_success()
        return True

    def _durable_failed(self, operation: str, error: Exception) -> None:
        self.metrics.store_errors += 1
        self._breaker.on_failure()
        logger.warning("Durable tier %s failed, bypassing: %s", operation, error)

    # -- background work ---------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background_done)

    def _background_done(self, task: asyncio.Task[Any]) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Background cache task failed: %s", task.exception())

    async def drain(self) -> None:
        """Wait for in-flight generations and background cache work to finish."""
        while self._in_flight or self._background:
            pending = [*self._in_flight.values(), *self._background]
            await asyncio.gather(*pending, return_exceptions=True)

    async def close(self) -> None:
        """Finish outstanding work before shutdown."""
        await self.drain()

    # -- administration ----------------------------------------------------

    async def invalidate(self, query: str) -> bool:
        """Remove the cached entry for a query from both tiers.

        Args:
            query: Raw query text (any variant normalizing to the same key)

        Returns:
            True if the durable tier held an entry
        """
        key = normalize(query.strip())
        await self._delete_fast(key)
        if not self._breaker.can_attempt():
            return False
        with self._pin(key):
            try:
                removed = await self._durable.delete(key)
            except StoreUnavailableError as e:
                self._durable_failed("delete", e)
                return False
        self._breaker.on_success()
        return removed

    async def clear(self) -> int:
        """Clear both tiers.

        Returns:
            Number of durable entries deleted
        """
        try:
            await self._fast.clear()
        except StoreUnavailableError as e:
            logger.warning("Fast tier clear failed: %s", e)
        return await self._durable.clear()

    async def get_stats(self) -> dict[str, Any]:
        """Get orchestration statistics.

        Returns:
            Dictionary with counters, capacity and tier state
        """
        try:
            total_entries = await self._durable.count()
        except StoreUnavailableError:
            total_entries = -1
        return {
            **self.metrics.to_dict(),
            "total_entries": total_entries,
            "capacity": self._capacity,
            "in_flight": len(self._in_flight),
            "durable_circuit_state": self._breaker.state,
        }

    async def is_healthy(self) -> bool:
        """Check if the durable tier is reachable.

        Returns:
            True if healthy
        """
        return await self._durable.health_check()

    @property
    def capacity(self) -> int:
        """Get the durable tier capacity."""
        return self._capacity

    @property
    def in_flight(self) -> int:
        """Number of generations currently in flight."""
        return len(self._in_flight)

    @property
    def coordinator(self) -> GenerationCoordinator:
        """Get the underlying generation coordinator."""
        return self._coordinator
