"""Result cache for node executions.

TAG: [DAG] [CACHING]

Successful node results are cached under a deterministic key derived from
the tenant, node id, operation name, static parameters, run input data and
dependency payloads, so that an identical node in a later run is answered
without invoking its operation.

Backends:
- In-memory (default): LRU-bounded ``OrderedDict`` guarded by a
  ``threading.Lock``, shared by every run of the process.
- Redis (when ``REDIS_URL`` is configured): shared across processes,
  degrades to cache misses when Redis errors.

Cache key format: "dag_result:{sha256}"
"""

from __future__ import annotations

import copy
import hashlib
import json
import threading
import time
from collections import OrderedDict
from typing import Any

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from dag_engine.core.config import settings
from dag_engine.core.logging import get_logger

logger = get_logger(__name__)

# Cache key prefix
RESULT_CACHE_PREFIX = "dag_result"


def make_cache_key(
    organization_id: str,
    node_id: str,
    function_name: str,
    parameters: dict[str, Any],
    input_data: dict[str, Any],
    dependency_results: dict[str, Any] | None = None,
) -> str:
    """Deterministic cache key for one node invocation.

    The key is a SHA-256 digest of the canonical JSON encoding (sorted keys)
    of its inputs, so dict ordering never changes the key. Dependency
    payloads are part of the key: a changed upstream result is a miss.

    Args:
        organization_id: Tenant namespace
        node_id: Node identifier
        function_name: Registered operation the node invokes
        parameters: Static operation parameters of the node
        input_data: Context input data of the run
        dependency_results: Payload of each available dependency

    Returns:
        Cache key string
    """
    payload = json.dumps(
        {
            "organization_id": organization_id,
            "node_id": node_id,
            "function_name": function_name,
            "parameters": parameters,
            "input_data": input_data,
            "dependency_results": dependency_results or {},
        },
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    return f"{RESULT_CACHE_PREFIX}:{digest}"


class ResultCache:
    """Cache of successful node result payloads.

    TAG: [DAG] [CACHING]

    ``get`` returns ``{"value": payload}`` on a hit so that a cached ``None``
    payload is distinguishable from a miss.

    Features:
    - Optional LRU bound (``max_entries``, 0 = unbounded)
    - Optional TTL in seconds (0 = no expiry)
    - Graceful degradation when Redis is unavailable
    """

    def __init__(
        self,
        redis_url: str | None = None,
        max_entries: int = 0,
        ttl: int = 0,
    ) -> None:
        """Initialize the result cache.

        Args:
            redis_url: Redis connection URL (in-memory cache when None)
            max_entries: LRU bound of the in-memory backend
            ttl: Entry lifetime in seconds
        """
        self.max_entries = max_entries
        self.ttl = ttl
        self._pool: ConnectionPool | None = None
        self._redis: Redis | None = None
        self._entries: OrderedDict[str, tuple[Any, float | None]] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

        if redis_url:
            self._initialize_redis(redis_url)

        if self._redis is None:
            logger.info("Using in-memory cache for node results")

    def _initialize_redis(self, redis_url: str) -> None:
        try:
            self._pool = ConnectionPool.from_url(redis_url, decode_responses=True)
            self._redis = Redis(connection_pool=self._pool)
            logger.info("Result cache initialized with Redis")
        except (RedisError, ValueError) as e:
            logger.warning(f"Failed to initialize Redis cache: {e}")
            self._pool = None
            self._redis = None

    @property
    def backend(self) -> str:
        return "redis" if self._redis is not None else "memory"

    async def get(self, key: str) -> dict[str, Any] | None:
        """Look up a cached payload.

        Returns:
            ``{"value": payload}`` on a hit, None on a miss or backend error.
        """
        if self._redis is not None:
            entry = await self._redis_get(key)
        else:
            entry = self._memory_get(key)

        with self._lock:
            if entry is None:
                self._misses += 1
            else:
                self._hits += 1
        return entry

    async def set(self, key: str, value: Any) -> bool:
        """Store a payload.

        Returns:
            True if stored, False when the backend rejected it.
        """
        if self._redis is not None:
            return await self._redis_set(key, value)
        self._memory_set(key, value)
        return True

    async def clear(self) -> None:
        """Drop every entry and reset the counters."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
        if self._redis is not None:
            try:
                keys = await self._redis.keys(f"{RESULT_CACHE_PREFIX}:*")
                if keys:
                    await self._redis.delete(*keys)
            except RedisError as e:
                logger.warning(f"Redis clear failed: {e}")

    def stats(self) -> dict[str, Any]:
        """Process-wide counters since start (or the last ``clear``)."""
        with self._lock:
            return {
                "backend": self.backend,
                "entries": len(self._entries),
                "max_entries": self.max_entries,
                "hits": self._hits,
                "misses": self._misses,
            }

    async def close(self) -> None:
        """Close Redis connection pool."""
        if self._pool:
            await self._pool.aclose()
            logger.info("Result cache connection closed")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # ------------------------------------------------------------------
    # In-memory backend
    # ------------------------------------------------------------------

    def _memory_get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            value, expires_at = item
            if expires_at is not None and time.monotonic() >= expires_at:
                del self._entries[key]
                logger.debug(f"In-memory cache expired: {key}")
                return None
            self._entries.move_to_end(key)
            return {"value": copy.deepcopy(value)}

    def _memory_set(self, key: str, value: Any) -> None:
        expires_at = time.monotonic() + self.ttl if self.ttl else None
        with self._lock:
            self._entries[key] = (copy.deepcopy(value), expires_at)
            self._entries.move_to_end(key)
            if self.max_entries:
                while len(self._entries) > self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug(f"In-memory cache evicted: {evicted}")

    # ------------------------------------------------------------------
    # Redis backend
    # ------------------------------------------------------------------

    async def _redis_get(self, key: str) -> dict[str, Any] | None:
        try:
            cached_data = await self._redis.get(key)
        except RedisError as e:
            logger.warning(f"Redis get failed: {e}")
            return None
        if cached_data is None:
            return None
        try:
            return json.loads(cached_data)
        except ValueError as e:
            logger.warning(f"Cache deserialization failed: {e}")
            return None

    async def _redis_set(self, key: str, value: Any) -> bool:
        try:
            cached_data = json.dumps({"value": value}, default=str)
        except (TypeError, ValueError) as e:
            logger.warning(f"Cache serialization failed: {e}")
            return False
        try:
            await self._redis.set(key, cached_data, ex=self.ttl or None)
            return True
        except RedisError as e:
            logger.warning(f"Redis set failed: {e}")
            return False


# Global cache instance (initialized from settings)
_global_cache: ResultCache | None = None


def get_result_cache() -> ResultCache:
    """Get or create the process-wide result cache.

    Returns:
        ResultCache configured from settings.
    """
    global _global_cache

    if _global_cache is None:
        redis_url = str(settings.REDIS_URL) if settings.REDIS_URL else None
        _global_cache = ResultCache(
            redis_url=redis_url,
            max_entries=settings.DAG_CACHE_MAX_ENTRIES,
            ttl=settings.DAG_CACHE_TTL,
        )

    return _global_cache


__all__ = ["RESULT_CACHE_PREFIX", "ResultCache", "get_result_cache", "make_cache_key"]
