"""
Tests for the Redis durable store, against a mocked async client.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fakes import make_entry
from redis.exceptions import ConnectionError as RedisConnectionError

from concept_cache.exceptions import StoreUnavailableError
from concept_cache.repositories import RedisDurableStore
from concept_cache.repositories.redis_repository import (
    TOUCH_SCRIPT,
    entry_to_record,
    record_to_entry,
)


@pytest.fixture
def pipe():
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[1, 1])
    return pipe


@pytest.fixture
def touch_script():
    return AsyncMock(return_value=None)


@pytest.fixture
def redis_client(pipe, touch_script):
    client = MagicMock()
    client.pipeline = MagicMock(return_value=pipe)
    client.register_script = MagicMock(return_value=touch_script)
    client.hgetall = AsyncMock(return_value={})
    client.zcard = AsyncMock(return_value=0)
    client.zrange = AsyncMock(return_value=[])
    client.delete = AsyncMock(return_value=1)
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def store(redis_client):
    return RedisDurableStore(redis_client=redis_client, key_prefix="test")


def test_record_layout():
    entry = make_entry("abc", last_accessed_at=12.5, access_count=3)
    record = entry_to_record(entry)

    assert record["concept_id"] == "abc"
    assert record["concept_tags"] == '["a", "b", "c"]'
    assert record["simulation_source"] == "external"
    assert record["simulation_available"] == "1"
    assert record["access_count"] == "3"
    assert record_to_entry(record) == entry


def test_record_without_simulation_url():
    entry = make_entry("abc", 1.0)
    record = entry_to_record(entry)
    record["simulation_url"] = ""
    assert record_to_entry(record).simulation.url is None


async def test_get_hit(store, redis_client):
    entry = make_entry("abc", 1.0)
    redis_client.hgetall.return_value = entry_to_record(entry)

    assert await store.get("abc") == entry
    redis_client.hgetall.assert_awaited_once_with("test:entry:abc")


async def test_get_miss(store):
    assert await store.get("abc") is None


async def test_get_corrupt_record_is_a_miss(store, redis_client):
    redis_client.hgetall.return_value = {"concept_id": "abc", "access_count": "many"}
    assert await store.get("abc") is None


async def test_get_connection_error(store, redis_client):
    redis_client.hgetall.side_effect = RedisConnectionError("refused")
    with pytest.raises(StoreUnavailableError):
        await store.get("abc")


async def test_put_writes_hash_and_recency_index(store, pipe):
    entry = make_entry("abc", 42.0)

    await store.put(entry)

    pipe.hset.assert_called_once_with("test:entry:abc", mapping=entry_to_record(entry))
    pipe.zadd.assert_called_once_with("test:by_last_accessed", {"abc": 42.0})
    pipe.execute.assert_awaited_once()


async def test_put_connection_error(store, pipe):
    pipe.execute.side_effect = RedisConnectionError("refused")
    with pytest.raises(StoreUnavailableError):
        await store.put(make_entry("abc", 1.0))


def flatten(record: dict[str, str]) -> list[str]:
    return [part for item in record.items() for part in item]


def test_touch_script_is_registered(store, redis_client):
    redis_client.register_script.assert_called_once_with(TOUCH_SCRIPT)


def test_touch_script_checks_existence_before_writing():
    assert TOUCH_SCRIPT.index("EXISTS") < TOUCH_SCRIPT.index("HINCRBY")
    assert TOUCH_SCRIPT.index("EXISTS") < TOUCH_SCRIPT.index("ZADD")
    assert '"GT"' in TOUCH_SCRIPT


async def test_touch_updates_count_and_index(store, touch_script):
    updated = make_entry("abc", 99.0, access_count=1)
    touch_script.return_value = flatten(entry_to_record(updated))

    result = await store.touch("abc", 99.0)

    assert result == updated
    touch_script.assert_awaited_once_with(
        keys=["test:entry:abc", "test:by_last_accessed"], args=["abc", "99.0"]
    )


async def test_touch_missing_key(store, touch_script, pipe):
    touch_script.return_value = None

    assert await store.touch("abc", 1.0) is None
    touch_script.assert_awaited_once()
    pipe.execute.assert_not_awaited()


async def test_touch_connection_error(store, touch_script):
    touch_script.side_effect = RedisConnectionError("refused")
    with pytest.raises(StoreUnavailableError):
        await store.touch("abc", 1.0)


async def test_touch_corrupt_record(store, touch_script):
    touch_script.return_value = ["concept_id", "abc", "access_count", "1"]
    assert await store.touch("abc", 1.0) is None


async def test_delete(store, pipe):
    pipe.execute.return_value = [1, 1]
    assert await store.delete("abc")

    pipe.execute.return_value = [0, 0]
    assert not await store.delete("abc")


async def test_count_and_range_scan(store, redis_client):
    redis_client.zcard.return_value = 7
    redis_client.zrange.return_value = ["old", "older"]

    assert await store.count() == 7
    assert await store.least_recently_accessed(2) == ["old", "older"]
    redis_client.zrange.assert_awaited_once_with("test:by_last_accessed", 0, 1)
    assert await store.least_recently_accessed(0) == []


async def test_clear(store, redis_client):
    async def scan_iter(match):
        for key in ["test:entry:a", "test:entry:b"]:
            yield key

    redis_client.scan_iter = MagicMock(side_effect=scan_iter)

    assert await store.clear() == 2
    redis_client.scan_iter.assert_called_once_with(match="test:entry:*")
    redis_client.delete.assert_any_await("test:by_last_accessed")


async def test_health_check(store, redis_client):
    assert await store.health_check()
    redis_client.ping.side_effect = RedisConnectionError("refused")
    assert not await store.health_check()


async def test_close(store, redis_client):
    await store.close()
    redis_client.aclose.assert_awaited_once()
