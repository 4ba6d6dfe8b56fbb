"""Storage backends for cached plugin data.

This module provides:
- Cache / FastTier: Abstract base classes for the cache and its fast tier
- SQLiteStore: Durable tier holding entries and rate-limit counters
- MemoryFastTier / RedisFastTier / NullFastTier: Fast tier backends
- TieredCache: Fast tier over the durable tier with unified TTLs
"""

from plugin_filters.storage.cache.base import Cache, FastTier
from plugin_filters.storage.cache.fast_tiers import (
    MemoryFastTier,
    NullFastTier,
    RedisFastTier,
    create_fast_tier,
)
from plugin_filters.storage.cache.sqlite_store import SQLiteStore
from plugin_filters.storage.cache.tiered_cache import TieredCache
from plugin_filters.storage.keys import build_cache_key, canonical_json

__all__ = [
    "Cache",
    "FastTier",
    "MemoryFastTier",
    "NullFastTier",
    "RedisFastTier",
    "SQLiteStore",
    "TieredCache",
    "build_cache_key",
    "canonical_json",
    "create_fast_tier",
]
