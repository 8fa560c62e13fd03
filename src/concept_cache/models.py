import logging
from dataclasses import dataclass, field

from concept_cache.entities import ModelTier, UsageEvent

logger = logging.getLogger(__name__)


@dataclass
class PerformanceMetrics:
    """Track orchestration counters for cache operations."""

    total_queries: int = 0
    fast_hits: int = 0
    durable_hits: int = 0
    cache_misses: int = 0
    coalesced: int = 0
    generations: int = 0
    fallbacks: int = 0
    rejected: int = 0
    evictions: int = 0
    store_errors: int = 0

    @property
    def cache_hits(self) -> int:
        """Hits served by either tier."""
        return self.fast_hits + self.durable_hits

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        if self.total_queries == 0:
            return 0.0
        return self.cache_hits / self.total_queries

    def record_hit(self, fast: bool) -> None:
        """Record a cache hit."""
        self.total_queries += 1
        if fast:
            self.fast_hits += 1
        else:
            self.durable_hits += 1

    def record_miss(self) -> None:
        """Record a miss that started a new generation."""
        self.total_queries += 1
        self.cache_misses += 1

    def record_coalesced(self) -> None:
        """Record a miss that joined an in-flight generation."""
        self.total_queries += 1
        self.coalesced += 1

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary."""
        return {
            "total_queries": self.total_queries,
            "cache_hits": self.cache_hits,
            "fast_hits": self.fast_hits,
            "durable_hits": self.durable_hits,
            "cache_misses": self.cache_misses,
            "coalesced": self.coalesced,
            "hit_rate": self.hit_rate,
            "generations": self.generations,
            "fallbacks": self.fallbacks,
            "rejected": self.rejected,
            "evictions": self.evictions,
            "store_errors": self.store_errors,
        }


@dataclass
class UsageMetrics:
    """In-process usage sink aggregating generation attempts per model tier.

    Satisfies the UsageSink protocol. Keeps the most recent events for
    inspection, bounded by ``max_events``.
    """

    max_events: int = 1000
    attempts: dict[str, int] = field(default_factory=dict)
    failures: dict[str, int] = field(default_factory=dict)
    estimated_tokens: dict[str, int] = field(default_factory=dict)
    total_latency_ms: float = 0.0
    events: list[UsageEvent] = field(default_factory=list)

    def record(self, event: UsageEvent) -> None:
        """Record one completed generation attempt."""
        tier = event.model_tier.value
        self.attempts[tier] = self.attempts.get(tier, 0) + 1
        self.estimated_tokens[tier] = self.estimated_tokens.get(tier, 0) + event.token_estimate
        if not event.success:
            self.failures[tier] = self.failures.get(tier, 0) + 1
        self.total_latency_ms += event.latency_ms

        self.events.append(event)
        if len(self.events) > self.max_events:
            del self.events[: len(self.events) - self.max_events]

        logger.debug(
            "Generation attempt %d on %s (%s): success=%s tokens~%d latency=%.1fms",
            event.attempt,
            event.model_name,
            tier,
            event.success,
            event.token_estimate,
            event.latency_ms,
        )

    @property
    def total_attempts(self) -> int:
        """Attempts across all tiers."""
        return sum(self.attempts.values())

    def attempts_for(self, tier: ModelTier) -> int:
        """Attempts recorded for a single tier."""
        return self.attempts.get(tier.value, 0)

    def to_dict(self) -> dict[str, object]:
        """Convert metrics to dictionary."""
        total = self.total_attempts
        return {
            "total_attempts": total,
            "attempts": dict(self.attempts),
            "failures": dict(self.failures),
            "estimated_tokens": dict(self.estimated_tokens),
            "avg_latency_ms": self.total_latency_ms / total if total else 0.0,
        }
