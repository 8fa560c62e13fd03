#!/usr/bin/env python3
"""
Demo script for the concept cache.

This script demonstrates cache-first orchestration with in-memory tiers and
a canned generation client, so it runs without Redis or Ollama.
"""

import asyncio
import json
import time

from concept_cache.entities import ModelTier
from concept_cache.exceptions import GenerationError
from concept_cache.models import UsageMetrics
from concept_cache.repositories import MemoryDurableStore, MemoryFastTier, load_whitelist
from concept_cache.services import (
    CacheOrchestrator,
    GenerationCoordinator,
    RetryPolicy,
    SimulationResolver,
)


class CannedGenerationClient:
    """Generation client returning a fixed answer after a short delay.

    The first ``failures`` calls raise, to show the retry path.
    """

    def __init__(self, latency: float = 0.2, failures: int = 0) -> None:
        self.latency = latency
        self.failures = failures
        self.calls = 0

    def model_name(self, tier: ModelTier) -> str:
        return f"canned-{tier.value}"

    async def generate(self, prompt: str, model_tier: ModelTier, timeout: float) -> str:
        self.calls += 1
        await asyncio.sleep(self.latency)
        if self.calls <= self.failures:
            raise GenerationError("simulated upstream 503")
        return json.dumps(
            {
                "explanation": "The net force on an object equals its mass times its acceleration.",
                "concept_tags": ["force", "mass", "acceleration"],
                "simulation_identifier": "phet-forces-and-motion-basics",
                "guided_steps": [
                    "Apply a constant push to the crate",
                    "Double the mass and push again",
                    "Compare the two accelerations",
                ],
                "confidence_level": "high",
            }
        )


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def build_orchestrator(
    client: CannedGenerationClient,
    capacity: int = 10_000,
    usage: UsageMetrics | None = None,
) -> CacheOrchestrator:
    coordinator = GenerationCoordinator(
        client=client,
        resolver=SimulationResolver(load_whitelist()),
        usage_sink=usage,
        retry_policy=RetryPolicy(max_attempts=3, base_delay=0.1),
        timeout=5.0,
    )
    return CacheOrchestrator(
        fast_tier=MemoryFastTier(),
        durable_store=MemoryDurableStore(),
        coordinator=coordinator,
        capacity=capacity,
    )


async def demo_cache_first() -> None:
    """Demonstrate miss, hit and query variants."""
    print_section("Cache-First Lookup")

    client = CannedGenerationClient()
    orchestrator = build_orchestrator(client)

    queries = [
        "Explain Newton's second law of motion",
        "Explain Newton's second law of motion",
        "  what is newton's second law of motion?? ",
    ]
    for query in queries:
        start = time.time()
        result = await orchestrator.handle(query)
        duration = (time.time() - start) * 1000
        status = "✓ CACHE HIT" if result.cached else "✗ Cache miss (generated)"
        print(f"\n  Query: {query!r}")
        print(f"  {status} in {duration:.1f}ms")
        print(f"  Simulation: {result.simulation.identifier} ({result.simulation.url})")

    await orchestrator.drain()
    print(f"\n  Generation calls: {client.calls}")


async def demo_deduplication() -> None:
    """Demonstrate concurrent identical requests sharing one generation."""
    print_section("Concurrent Request Deduplication")

    client = CannedGenerationClient(latency=0.5)
    orchestrator = build_orchestrator(client)

    results = await asyncio.gather(
        *(orchestrator.handle("What is the photoelectric effect?") for _ in range(100))
    )
    await orchestrator.drain()

    print(f"\n  Callers: {len(results)}")
    print(f"  Generation calls: {client.calls}")
    print(f"  Joined in-flight generation: {orchestrator.metrics.coalesced}")


async def demo_retry_and_fallback() -> None:
    """Demonstrate retries with backoff and the uncached fallback."""
    print_section("Retry and Fallback")

    usage = UsageMetrics()
    orchestrator = build_orchestrator(CannedGenerationClient(failures=2), usage=usage)
    result = await orchestrator.handle("Explain conservation of momentum")
    print(f"\n  Two failures then success -> fallback: {result.is_fallback}")
    print(f"  Usage: {usage.to_dict()}")

    orchestrator = build_orchestrator(CannedGenerationClient(failures=3))
    result = await orchestrator.handle("Explain conservation of momentum")
    print(f"\n  Three failures -> error_code: {result.error_code}")
    print(f"  Fallback explanation: {result.response.explanation[:60]}...")
    print(f"  Cached entries: {(await orchestrator.get_stats())['total_entries']}")


async def demo_eviction() -> None:
    """Demonstrate least-recently-accessed eviction."""
    print_section("Bounded Capacity (LRU Eviction)")

    orchestrator = build_orchestrator(CannedGenerationClient(latency=0.0), capacity=3)
    for topic in ["buoyancy", "refraction", "diffusion", "entropy", "osmosis"]:
        await orchestrator.handle(f"Explain {topic} to me please")
        await orchestrator.drain()

    stats = await orchestrator.get_stats()
    print(f"\n  Capacity: {stats['capacity']}")
    print(f"  Entries: {stats['total_entries']}")
    print(f"  Evictions: {stats['evictions']}")


async def run() -> None:
    await demo_cache_first()
    await demo_deduplication()
    await demo_retry_and_fallback()
    await demo_eviction()


def main() -> None:
    """Run all demos."""
    print("\n🚀 Concept Cache Demo")
    print("=" * 70)
    print("This demo showcases cache-first concept explanations")
    print("(in-memory tiers, canned generation client)")

    try:
        asyncio.run(run())

        print("\n" + "=" * 70)
        print("✅ Demo completed successfully!")
        print("=" * 70)

    except Exception as e:
        print(f"\n❌ Error: {e}")


if __name__ == "__main__":
    main()
