"""
Tests for the in-process cache tiers.
"""

import pytest
from fakes import make_entry

from concept_cache.repositories import MemoryDurableStore, MemoryFastTier


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


async def test_fast_tier_evicts_least_recently_used():
    tier = MemoryFastTier(max_entries=2, ttl=60)
    await tier.set(make_entry("a", 1.0))
    await tier.set(make_entry("b", 2.0))
    await tier.get("a")
    await tier.set(make_entry("c", 3.0))

    assert await tier.get("a") is not None
    assert await tier.get("b") is None
    assert len(tier) == 2


@pytest.mark.parametrize("kwargs", [{"max_entries": 0}, {"ttl": 0}, {"max_entries": -5}])
def test_fast_tier_rejects_explicit_bad_limits(kwargs):
    with pytest.raises(ValueError):
        MemoryFastTier(**kwargs)


async def test_fast_tier_honours_single_entry_limit():
    tier = MemoryFastTier(max_entries=1, ttl=60)
    await tier.set(make_entry("a", 1.0))
    await tier.set(make_entry("b", 2.0))

    assert await tier.get("a") is None
    assert await tier.get("b") is not None
    assert len(tier) == 1


async def test_fast_tier_expires_entries():
    clock = FakeClock()
    tier = MemoryFastTier(max_entries=10, ttl=30, clock=clock)
    await tier.set(make_entry("a", 1.0))

    clock.now = 29.0
    assert await tier.get("a") is not None
    clock.now = 30.0
    assert await tier.get("a") is None
    assert len(tier) == 0


async def test_fast_tier_delete_and_clear():
    tier = MemoryFastTier(max_entries=10, ttl=60)
    await tier.set(make_entry("a", 1.0))
    await tier.set(make_entry("b", 1.0))

    assert await tier.delete("a")
    assert not await tier.delete("a")
    assert await tier.clear() == 1


async def test_durable_store_orders_by_last_access():
    store = MemoryDurableStore()
    store.seed([make_entry("late", 30.0), make_entry("early", 10.0), make_entry("mid", 20.0)])

    assert await store.least_recently_accessed(2) == ["early", "mid"]
    assert await store.count() == 3


async def test_durable_store_touch():
    store = MemoryDurableStore()
    await store.put(make_entry("a", 10.0))

    touched = await store.touch("a", 50.0)

    assert touched.access_count == 1
    assert touched.last_accessed_at == 50.0
    assert await store.least_recently_accessed(1) == ["a"]
    assert await store.touch("missing", 50.0) is None


async def test_touch_never_moves_last_access_backwards():
    store = MemoryDurableStore()
    await store.put(make_entry("a", 100.0))

    touched = await store.touch("a", 50.0)

    assert touched.last_accessed_at == 100.0
    assert touched.access_count == 1
