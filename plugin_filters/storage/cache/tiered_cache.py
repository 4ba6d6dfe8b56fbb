"""Two-tier cache: optional fast tier over the SQLite durable tier.

Reads check the fast tier first, then the durable tier, backfilling the fast
tier on a durable hit. Writes always go to the durable tier and to the fast
tier with a TTL capped at ``fast_ttl_cap``. Durable-tier failures surface as
CacheError; fast-tier failures degrade silently to durable-only behaviour.
"""

import logging
from datetime import UTC, datetime
from collections.abc import Callable
from typing import Any

from plugin_filters.consts import (
    CLEANUP_BATCH_LIMIT,
    CLEARABLE_SCOPES,
    COMPRESSION_LEVEL,
    COMPRESSION_THRESHOLD_BYTES,
    DEFAULT_CACHE_DURATIONS,
    FAST_TIER_TTL_CAP,
    SCOPE_RATE_LIMIT,
    STATS_CACHE_SECONDS,
)
from plugin_filters.errors import ValidationError
from plugin_filters.models.model_storage import CacheEntry, CacheStats, ScopeStats
from plugin_filters.storage.cache.base import Cache, FastTier
from plugin_filters.storage.cache.codec import compress_if_large, decode_payload, serialize
from plugin_filters.storage.cache.fast_tiers import NullFastTier
from plugin_filters.storage.cache.sqlite_store import SQLiteStore
from plugin_filters.storage.keys import scope_of

logger = logging.getLogger(__name__)

SCOPE_ALL = "all"


class TieredCache(Cache):
    """Cache combining a fast tier with the durable SQLite store."""

    def __init__(
        self,
        durable: SQLiteStore,
        fast: FastTier | None = None,
        fast_ttl_cap: int = FAST_TIER_TTL_CAP,
        compression_threshold: int = COMPRESSION_THRESHOLD_BYTES,
        compression_level: int = COMPRESSION_LEVEL,
        stats_ttl: int = STATS_CACHE_SECONDS,
        cache_durations: dict[str, int] | None = None,
        clock: Callable[[], float] | None = None,
    ):
        """Initialize TieredCache.

        Args:
            durable: Durable tier, always present.
            fast: Fast tier. None disables it.
            fast_ttl_cap: Upper bound on fast-tier TTLs in seconds.
            compression_threshold: Serialized size above which payloads are compressed.
            compression_level: zlib level for compressed payloads.
            stats_ttl: Seconds a computed stats snapshot is reused.
            cache_durations: Configured TTL classes, reported in stats.
            clock: Current Unix time; defaults to the durable store's clock.
        """
        self.durable = durable
        self.fast = fast if fast is not None else NullFastTier()
        self.fast_ttl_cap = fast_ttl_cap
        self.compression_threshold = compression_threshold
        self.compression_level = compression_level
        self.stats_ttl = stats_ttl
        self.cache_durations = dict(cache_durations or DEFAULT_CACHE_DURATIONS)
        self.clock = clock or durable.clock
        self._stats: CacheStats | None = None
        self._stats_at = 0.0

    def _decode(self, entry: CacheEntry) -> Any | None:
        try:
            return decode_payload(entry.payload, entry.compressed)
        except ValueError as e:
            logger.warning(f"Dropping unreadable cache entry {entry.key}: {e}")
            self.durable.delete(entry.key)
            return None

    def _decode_fast(self, key: str, payload: bytes) -> Any | None:
        try:
            return decode_payload(payload, compressed=False)
        except ValueError as e:
            logger.warning(f"Dropping unreadable fast-tier entry {key}: {e}")
            self.fast.delete(key)
            return None

    def _backfill(self, entry: CacheEntry, value: Any, now: float) -> None:
        remaining = int(entry.expires_at - now)
        if remaining < 1:
            return
        self.fast.set(entry.key, serialize(value), min(remaining, self.fast_ttl_cap))

    def get(self, key: str) -> Any | None:
        payload = self.fast.get(key)
        if payload is not None:
            value = self._decode_fast(key, payload)
            if value is not None:
                logger.debug(f"Cache HIT (fast): {key}")
                return value

        entry = self.durable.get(key)
        if entry is None:
            logger.debug(f"Cache MISS: {key}")
            return None

        value = self._decode(entry)
        if value is None:
            return None

        logger.debug(f"Cache HIT (durable): {key}")
        self._backfill(entry, value, self.clock())
        return value

    def get_many(self, keys: list[str]) -> dict[str, Any]:
        """Batched lookup: one fast-tier call and one durable-tier query for the rest."""
        found: dict[str, Any] = {}
        for key, payload in self.fast.get_many(keys).items():
            value = self._decode_fast(key, payload)
            if value is not None:
                found[key] = value

        missing = [k for k in keys if k not in found]
        if missing:
            now = self.clock()
            for key, entry in self.durable.get_many(missing).items():
                value = self._decode(entry)
                if value is not None:
                    found[key] = value
                    self._backfill(entry, value, now)

        logger.debug(f"Cache get_many: {len(found)}/{len(keys)} hits")
        return found

    def set(self, key: str, value: Any, ttl: int) -> None:
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        if value is None:
            raise ValueError("None cannot be cached")

        raw = serialize(value)
        payload, compressed = compress_if_large(raw, self.compression_threshold, self.compression_level)
        entry = CacheEntry(
            key=key,
            scope=scope_of(key),
            payload=payload,
            stored_at=self.clock(),
            ttl_seconds=ttl,
            compressed=compressed,
        )
        self.durable.set(entry)

        self.fast.set(key, raw, min(ttl, self.fast_ttl_cap))
        logger.debug(f"Cache SET: {key} (ttl={ttl}s, {len(payload)} bytes, compressed={compressed})")

    def delete(self, key: str) -> bool:
        self.fast.delete(key)
        return self.durable.delete(key)

    def cleanup(self, limit: int = CLEANUP_BATCH_LIMIT) -> int:
        """Purge up to ``limit`` expired durable entries.

        Returns:
            Number of entries removed.
        """
        removed = self.durable.cleanup(limit)
        if removed:
            self.invalidate_stats()
        logger.info(f"Cache cleanup removed {removed} expired entries")
        return removed

    def clear(self, scope: str = SCOPE_ALL) -> int:
        """Delete a scope from both tiers.

        Args:
            scope: "all" (every cache scope, not rate-limit counters), one of
                the cache scopes, or the rate-limit scope.

        Raises:
            ValidationError: If the scope is unknown.
        """
        if scope == SCOPE_ALL:
            removed = self.durable.clear(CLEARABLE_SCOPES)
            for name in CLEARABLE_SCOPES:
                self.fast.clear(name)
        elif scope == SCOPE_RATE_LIMIT:
            removed = self.durable.clear_counters()
        elif scope in CLEARABLE_SCOPES:
            removed = self.durable.clear([scope])
            self.fast.clear(scope)
        else:
            raise ValidationError(f"Unknown cache scope: {scope}.")

        self.invalidate_stats()
        logger.info(f"Cleared {removed} entries from scope={scope}")
        return removed

    def invalidate_stats(self) -> None:
        self._stats = None

    def stats(self) -> CacheStats:
        """Aggregate statistics, recomputed at most once per ``stats_ttl`` seconds."""
        now = self.clock()
        if self._stats is not None and now - self._stats_at < self.stats_ttl:
            return self._stats

        raw = self.durable.stats()
        by_scope = {
            scope: ScopeStats(
                count=data["count"],
                total_bytes=data["total_bytes"],
                avg_bytes=round(data["total_bytes"] / data["count"]) if data["count"] else 0,
            )
            for scope, data in raw["by_scope"].items()
        }
        self._stats = CacheStats(
            count=raw["count"],
            total_bytes=raw["total_bytes"],
            expired=raw["expired"],
            by_scope=by_scope,
            fast_tier=self.fast.name,
            cache_durations=self.cache_durations,
            computed_at=datetime.fromtimestamp(now, UTC),
        )
        self._stats_at = now
        return self._stats

    def ttl_for(self, ttl_class: str) -> int:
        """Configured TTL of a class ("metadata", "scores", "search", "api")."""
        return self.cache_durations.get(ttl_class, DEFAULT_CACHE_DURATIONS[ttl_class])
