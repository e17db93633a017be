"""Tests for the node result cache.

TAG: [DAG] [CACHING] [TEST]

Covers key derivation, the in-memory LRU backend and the Redis backend
(mocked) including graceful degradation on Redis errors.
"""

import asyncio
import json
import time
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from dag_engine.services.dag.cache import (
    RESULT_CACHE_PREFIX,
    ResultCache,
    get_result_cache,
    make_cache_key,
)


class TestCacheKey:
    """Deterministic key derivation."""

    def test_key_format(self):
        key = make_cache_key("org-1", "cost", "calculate_cost", {"a": 1}, {"b": 2})

        prefix, digest = key.split(":")
        assert prefix == RESULT_CACHE_PREFIX
        assert len(digest) == 64

    def test_dict_order_does_not_change_key(self):
        first = make_cache_key(
            "org-1", "n", "f", {"a": 1, "b": 2}, {"x": {"p": 1, "q": 2}}, {"up": {"v": 1, "w": 2}}
        )
        second = make_cache_key(
            "org-1", "n", "f", {"b": 2, "a": 1}, {"x": {"q": 2, "p": 1}}, {"up": {"w": 2, "v": 1}}
        )
        assert first == second

    def test_missing_dependency_results_equal_empty(self):
        assert make_cache_key("org-1", "n", "f", {}, {}) == make_cache_key(
            "org-1", "n", "f", {}, {}, {}
        )

    @pytest.mark.parametrize(
        "args",
        [
            ("org-2", "cost", "calculate_cost", {"a": 1}, {}, {}),
            ("org-1", "markup", "calculate_cost", {"a": 1}, {}, {}),
            ("org-1", "cost", "unknown_fn", {"a": 1}, {}, {}),
            ("org-1", "cost", "calculate_cost", {"a": 2}, {}, {}),
            ("org-1", "cost", "calculate_cost", {"a": 1}, {"base_amount": 1}, {}),
            ("org-1", "cost", "calculate_cost", {"a": 1}, {}, {"supplier": 200.0}),
        ],
    )
    def test_each_component_changes_key(self, args):
        baseline = make_cache_key("org-1", "cost", "calculate_cost", {"a": 1}, {}, {})
        assert make_cache_key(*args) != baseline

    def test_non_json_values_are_accepted(self):
        """Values without a JSON encoding fall back to their string form."""
        key = make_cache_key("org-1", "n", "f", {"when": object}, {})
        assert key.startswith(f"{RESULT_CACHE_PREFIX}:")


class TestMemoryBackend:
    """In-memory cache behaviour."""

    @pytest.mark.asyncio
    async def test_miss_then_hit(self, result_cache: ResultCache):
        assert await result_cache.get("k") is None

        await result_cache.set("k", {"price": 125.0})
        assert await result_cache.get("k") == {"value": {"price": 125.0}}

        stats = result_cache.stats()
        assert stats["backend"] == "memory"
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["entries"] == 1

    @pytest.mark.asyncio
    async def test_cached_none_is_a_hit(self, result_cache: ResultCache):
        await result_cache.set("k", None)
        assert await result_cache.get("k") == {"value": None}

    @pytest.mark.asyncio
    async def test_values_are_copied(self, result_cache: ResultCache):
        """Mutating a stored or returned payload never changes the cache."""
        payload = {"items": [1, 2]}
        await result_cache.set("k", payload)
        payload["items"].append(3)

        first = await result_cache.get("k")
        first["value"]["items"].append(4)

        assert (await result_cache.get("k"))["value"] == {"items": [1, 2]}

    @pytest.mark.asyncio
    async def test_lru_eviction(self):
        cache = ResultCache(max_entries=2)
        await cache.set("a", 1)
        await cache.set("b", 2)
        await cache.get("a")  # a becomes most recently used
        await cache.set("c", 3)

        assert len(cache) == 2
        assert await cache.get("b") is None
        assert await cache.get("a") == {"value": 1}
        assert await cache.get("c") == {"value": 3}

    @pytest.mark.asyncio
    async def test_ttl_expiry(self):
        cache = ResultCache(ttl=10)
        await cache.set("k", "v")
        assert await cache.get("k") == {"value": "v"}

        value, expires_at = cache._entries["k"]
        assert expires_at is not None
        cache._entries["k"] = (value, time.monotonic() - 1)

        assert await cache.get("k") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_clear_resets_entries_and_counters(self, result_cache: ResultCache):
        await result_cache.set("k", 1)
        await result_cache.get("k")
        await result_cache.clear()

        assert len(result_cache) == 0
        assert result_cache.stats()["hits"] == 0
        assert result_cache.stats()["misses"] == 0

    @pytest.mark.asyncio
    async def test_concurrent_writers(self, result_cache: ResultCache):
        """Concurrent sets and gets leave the cache consistent."""

        async def worker(index: int) -> None:
            await result_cache.set(f"k{index}", index)
            assert await result_cache.get(f"k{index}") == {"value": index}

        await asyncio.gather(*(worker(i) for i in range(50)))

        assert len(result_cache) == 50
        assert result_cache.stats()["hits"] == 50


class TestRedisBackend:
    """Redis backend with a mocked client."""

    @pytest.fixture
    def redis_cache(self) -> ResultCache:
        cache = ResultCache(ttl=60)
        cache._redis = AsyncMock()
        return cache

    def test_backend_name(self, redis_cache: ResultCache):
        assert redis_cache.backend == "redis"

    @pytest.mark.asyncio
    async def test_set_serializes_with_ttl(self, redis_cache: ResultCache):
        assert await redis_cache.set("k", {"price": 1.5}) is True

        redis_cache._redis.set.assert_awaited_once_with(
            "k", json.dumps({"value": {"price": 1.5}}), ex=60
        )

    @pytest.mark.asyncio
    async def test_get_decodes_hit(self, redis_cache: ResultCache):
        redis_cache._redis.get.return_value = json.dumps({"value": 42})

        assert await redis_cache.get("k") == {"value": 42}
        assert redis_cache.stats()["hits"] == 1

    @pytest.mark.asyncio
    async def test_get_miss(self, redis_cache: ResultCache):
        redis_cache._redis.get.return_value = None

        assert await redis_cache.get("k") is None
        assert redis_cache.stats()["misses"] == 1

    @pytest.mark.asyncio
    async def test_redis_errors_degrade_to_miss(self, redis_cache: ResultCache):
        redis_cache._redis.get.side_effect = RedisConnectionError("down")
        redis_cache._redis.set.side_effect = RedisConnectionError("down")

        assert await redis_cache.get("k") is None
        assert await redis_cache.set("k", 1) is False

    @pytest.mark.asyncio
    async def test_corrupt_entry_is_a_miss(self, redis_cache: ResultCache):
        redis_cache._redis.get.return_value = "{not json"
        assert await redis_cache.get("k") is None

    @pytest.mark.asyncio
    async def test_clear_deletes_prefixed_keys(self, redis_cache: ResultCache):
        redis_cache._redis.keys.return_value = ["dag_result:a", "dag_result:b"]
        await redis_cache.clear()

        redis_cache._redis.keys.assert_awaited_once_with("dag_result:*")
        redis_cache._redis.delete.assert_awaited_once_with("dag_result:a", "dag_result:b")


class TestGlobalCache:
    """Process-wide cache singleton."""

    def test_singleton(self):
        assert get_result_cache() is get_result_cache()
