"""Fast tier backends: no-op, in-process memory and Redis."""

import logging
import threading
import time
from collections.abc import Callable

import redis
from redis.exceptions import RedisError

from plugin_filters.storage.cache.base import FastTier

logger = logging.getLogger(__name__)

REDIS_KEY_PREFIX = "wppd:"


class NullFastTier(FastTier):
    """Fast tier used when none is configured or reachable."""

    name = "none"

    def get(self, key: str) -> bytes | None:
        return None

    def get_many(self, keys: list[str]) -> dict[str, bytes]:
        return {}

    def set(self, key: str, payload: bytes, ttl: int) -> None:
        pass

    def delete(self, key: str) -> None:
        pass

    def clear(self, scope: str | None = None) -> None:
        pass


class MemoryFastTier(FastTier):
    """Per-process dictionary tier with expiry."""

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._entries: dict[str, tuple[float, bytes]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes | None:
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            expires_at, payload = item
            if self.clock() >= expires_at:
                del self._entries[key]
                return None
            return payload

    def get_many(self, keys: list[str]) -> dict[str, bytes]:
        found = {}
        for key in keys:
            payload = self.get(key)
            if payload is not None:
                found[key] = payload
        return found

    def set(self, key: str, payload: bytes, ttl: int) -> None:
        with self._lock:
            self._entries[key] = (self.clock() + ttl, payload)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self, scope: str | None = None) -> None:
        with self._lock:
            if scope is None:
                self._entries.clear()
                return
            prefix = f"{scope}:"
            for key in [k for k in self._entries if k.startswith(prefix)]:
                del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)


class RedisFastTier(FastTier):
    """Redis-backed tier shared between processes.

    Every Redis failure is logged and treated as a miss.
    """

    name = "redis"

    def __init__(self, client: redis.Redis, prefix: str = REDIS_KEY_PREFIX):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = REDIS_KEY_PREFIX) -> "RedisFastTier":
        """Connect and ping.

        Raises:
            RedisError: If the server is unreachable.
        """
        client = redis.from_url(url, socket_connect_timeout=5, socket_keepalive=True)
        client.ping()
        logger.info("Redis fast tier initialized")
        return cls(client, prefix)

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> bytes | None:
        try:
            return self.client.get(self._key(key))
        except RedisError as e:
            logger.warning(f"Redis GET failed for {key}: {e}")
            return None

    def get_many(self, keys: list[str]) -> dict[str, bytes]:
        if not keys:
            return {}
        try:
            values = self.client.mget([self._key(k) for k in keys])
        except RedisError as e:
            logger.warning(f"Redis MGET failed for {len(keys)} keys: {e}")
            return {}
        return {k: v for k, v in zip(keys, values, strict=True) if v is not None}

    def set(self, key: str, payload: bytes, ttl: int) -> None:
        try:
            self.client.setex(self._key(key), ttl, payload)
        except RedisError as e:
            logger.warning(f"Redis SETEX failed for {key}: {e}")

    def delete(self, key: str) -> None:
        try:
            self.client.delete(self._key(key))
        except RedisError as e:
            logger.warning(f"Redis DELETE failed for {key}: {e}")

    def clear(self, scope: str | None = None) -> None:
        pattern = f"{self.prefix}{scope}:*" if scope else f"{self.prefix}*"
        try:
            batch = []
            for redis_key in self.client.scan_iter(match=pattern, count=500):
                batch.append(redis_key)
                if len(batch) >= 500:
                    self.client.delete(*batch)
                    batch = []
            if batch:
                self.client.delete(*batch)
        except RedisError as e:
            logger.warning(f"Redis clear failed for pattern {pattern}: {e}")


def create_fast_tier(
    kind: str,
    redis_url: str | None = None,
    clock: Callable[[], float] = time.time,
) -> FastTier:
    """Build the configured fast tier, degrading to NullFastTier when Redis is unreachable."""
    if kind == "memory":
        return MemoryFastTier(clock)
    if kind == "redis":
        if not redis_url:
            logger.warning("Fast tier 'redis' selected without redis_url; fast tier disabled")
            return NullFastTier()
        try:
            return RedisFastTier.from_url(redis_url)
        except RedisError as e:
            logger.warning(f"Failed to connect to Redis: {e}. Fast tier disabled.")
            return NullFastTier()
    return NullFastTier()
