"""
Cache Store

Key/value cache with per-entry TTL, shared by the audit result cache and the
recommendation cache. Two backends:
- MemoryCacheStore: in-process dict, TTL checked on every read
- RedisCacheStore: JSON values in Redis, TTL delegated to key expiry

A cache failure never fails an audit: callers go through safe_cache_get and
safe_cache_set, which log a CacheError and carry on as if the key was absent.
"""

import json
import logging
import math
import threading
import time
from typing import Any, Callable, Optional, Protocol

import redis.asyncio as redis

from webaudit.core.errors import CacheError

logger = logging.getLogger(__name__)


class CacheStore(Protocol):
    """Backends report every storage failure as CacheError."""

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def flush(self) -> None:
        ...


class MemoryCacheStore:
    """
    In-process cache.

    Expired entries behave as absent on read whether or not they have been
    evicted yet. Writes sweep out expired entries once the earliest known
    expiry has passed, so the store does not grow without bound. The clock
    is injectable so tests can move time forward.
    """

    def __init__(
        self,
        default_ttl: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        # Lower bound on the expiry of every stored entry
        self._next_expiry = math.inf
        self._lock = threading.Lock()

    async def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        now = self._clock()
        with self._lock:
            if now >= self._next_expiry:
                self._purge(now)
            expires_at = now + ttl
            self._entries[key] = (expires_at, value)
            self._next_expiry = min(self._next_expiry, expires_at)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    async def flush(self) -> None:
        with self._lock:
            self._entries.clear()
            self._next_expiry = math.inf

    def purge_expired(self) -> int:
        """Drop expired entries, returning how many were removed."""
        now = self._clock()
        with self._lock:
            return self._purge(now)

    def _purge(self, now: float) -> int:
        expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        self._next_expiry = min(
            (expires_at for expires_at, _ in self._entries.values()), default=math.inf
        )
        if expired:
            logger.debug(f"[Cache] Purged {len(expired)} expired entries")
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class RedisCacheStore:
    """Redis-backed cache storing JSON-encoded values under a key prefix."""

    def __init__(
        self,
        redis_url: str,
        default_ttl: float = 3600,
        prefix: str = "webaudit:",
    ):
        self.redis_url = redis_url
        self.default_ttl = default_ttl
        self.prefix = prefix
        self._redis: Optional[redis.Redis] = None

    async def get_redis(self) -> redis.Redis:
        """Get or create Redis connection."""
        if self._redis is None:
            try:
                self._redis = redis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                )
            except ValueError as e:
                raise CacheError(f"Invalid Redis URL: {e}") from e
        return self._redis

    async def close(self):
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get(self, key: str) -> Optional[Any]:
        try:
            r = await self.get_redis()
            raw = await r.get(self._key(key))
        except (redis.RedisError, OSError) as e:
            raise CacheError(f"Redis GET failed for {key}: {e}") from e
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            raise CacheError(f"Corrupt cache entry for {key}") from e

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise CacheError(f"Value for {key} is not JSON serializable") from e
        try:
            r = await self.get_redis()
            await r.set(self._key(key), payload, px=max(1, int(ttl * 1000)))
        except (redis.RedisError, OSError) as e:
            raise CacheError(f"Redis SET failed for {key}: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            r = await self.get_redis()
            await r.delete(self._key(key))
        except (redis.RedisError, OSError) as e:
            raise CacheError(f"Redis DEL failed for {key}: {e}") from e

    async def flush(self) -> None:
        try:
            r = await self.get_redis()
            keys = [k async for k in r.scan_iter(match=f"{self.prefix}*")]
            if keys:
                await r.delete(*keys)
        except (redis.RedisError, OSError) as e:
            raise CacheError(f"Redis flush failed: {e}") from e


async def safe_cache_get(cache: Optional[CacheStore], key: str) -> Optional[Any]:
    """Read from the cache, treating a storage failure as a miss."""
    if cache is None:
        return None
    try:
        return await cache.get(key)
    except CacheError as e:
        logger.warning(f"[Cache] Read failed for {key}, treating as miss: {e}")
        return None


async def safe_cache_set(
    cache: Optional[CacheStore],
    key: str,
    value: Any,
    ttl: Optional[float] = None,
) -> None:
    """Write to the cache, ignoring storage failures."""
    if cache is None:
        return
    try:
        await cache.set(key, value, ttl)
    except CacheError as e:
        logger.warning(f"[Cache] Write failed for {key}, skipping: {e}")


def create_cache_store(backend: str, redis_url: str, default_ttl: float) -> CacheStore:
    """Build the cache store named by configuration."""
    if backend == "redis":
        return RedisCacheStore(redis_url, default_ttl=default_ttl)
    if backend == "memory":
        return MemoryCacheStore(default_ttl=default_ttl)
    raise ValueError(f"Unknown cache backend: {backend}")
