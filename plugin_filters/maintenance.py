"""Maintenance jobs meant to be triggered by an external scheduler."""

import asyncio
import logging

from plugin_filters.consts import (
    CLEANUP_BATCH_LIMIT,
    POPULAR_PLUGIN_SLUGS,
    SCOPE_METADATA,
    WARM_CACHE_DELAY_SECONDS,
    WARM_CACHE_MAX_PLUGINS,
)
from plugin_filters.errors import CatalogError
from plugin_filters.orchestrator import RequestOrchestrator
from plugin_filters.storage.cache.tiered_cache import TieredCache
from plugin_filters.storage.keys import build_cache_key

logger = logging.getLogger(__name__)


def run_cleanup(cache: TieredCache, limit: int = CLEANUP_BATCH_LIMIT) -> dict[str, int]:
    """Purge expired cache entries and finished rate-limit windows.

    Returns:
        Counts of removed entries and counters
    """
    entries = cache.cleanup(limit)
    counters = cache.durable.cleanup_counters()
    if counters:
        cache.invalidate_stats()
    logger.info(f"Cleanup: {entries} entries, {counters} rate-limit counters removed")
    return {"entries": entries, "counters": counters}


async def warm_popular_plugins(
    orchestrator: RequestOrchestrator,
    slugs: list[str] | None = None,
    max_plugins: int = WARM_CACHE_MAX_PLUGINS,
    delay: float = WARM_CACHE_DELAY_SECONDS,
) -> list[str]:
    """Pre-populate metadata and scores for popular plugins.

    Slugs already cached under the metadata scope are skipped. A catalog
    failure for one slug is logged and does not stop the run.

    Args:
        orchestrator: Orchestrator whose cache and catalog are warmed
        slugs: Candidate slugs (defaults to the built-in popular list)
        max_plugins: Stop after warming this many plugins
        delay: Pause between catalog calls in seconds

    Returns:
        Slugs that were warmed
    """
    cache = orchestrator.cache
    warmed: list[str] = []

    for slug in slugs or POPULAR_PLUGIN_SLUGS:
        if len(warmed) >= max_plugins:
            break
        if cache.get(build_cache_key(SCOPE_METADATA, slug)) is not None:
            logger.debug(f"Skipping {slug}: metadata already cached")
            continue

        try:
            await orchestrator.plugin_metadata(slug)
            await orchestrator.score_plugin(slug)
        except CatalogError as e:
            logger.warning(f"Failed to warm {slug}: {e.message}")
            continue

        warmed.append(slug)
        if delay > 0:
            await asyncio.sleep(delay)

    logger.info(f"Warmed {len(warmed)} popular plugins")
    return warmed
