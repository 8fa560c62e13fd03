"""Pytest configuration and fixtures for concept cache tests."""

import pytest
from fakes import FakeGenerationClient, RecordingSleep

from concept_cache.models import UsageMetrics
from concept_cache.repositories import MemoryDurableStore, MemoryFastTier, load_whitelist
from concept_cache.services import (
    CacheOrchestrator,
    GenerationCoordinator,
    RetryPolicy,
    SimulationResolver,
)


@pytest.fixture
def whitelist():
    """Bundled simulation whitelist."""
    return load_whitelist()


@pytest.fixture
def resolver(whitelist):
    return SimulationResolver(whitelist)


@pytest.fixture
def fake_client():
    return FakeGenerationClient()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def usage():
    return UsageMetrics()


@pytest.fixture
def coordinator(fake_client, resolver, usage, recording_sleep):
    """Coordinator with three attempts, 1s base delay and no real sleeping."""
    return GenerationCoordinator(
        client=fake_client,
        resolver=resolver,
        usage_sink=usage,
        retry_policy=RetryPolicy(max_attempts=3, base_delay=1.0),
        timeout=1.0,
        sleep=recording_sleep,
    )


@pytest.fixture
def fast_tier():
    return MemoryFastTier(max_entries=100, ttl=3600)


@pytest.fixture
def durable_store():
    return MemoryDurableStore()


@pytest.fixture
def orchestrator(fast_tier, durable_store, coordinator):
    return CacheOrchestrator(
        fast_tier=fast_tier,
        durable_store=durable_store,
        coordinator=coordinator,
        capacity=10_000,
    )
