"""Application wiring: build every component from Settings.

No process-wide singletons; callers own the returned Application.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from plugin_filters.catalog.base import CatalogClient
from plugin_filters.catalog.wordpress_org.client import WordPressOrgCatalog
from plugin_filters.config import Settings, load_settings
from plugin_filters.evaluators.registry import ScoringEngine
from plugin_filters.orchestrator import RequestOrchestrator
from plugin_filters.rate_limiter import RateLimiter
from plugin_filters.router import Router
from plugin_filters.storage.cache.base import FastTier
from plugin_filters.storage.cache.fast_tiers import create_fast_tier
from plugin_filters.storage.cache.sqlite_store import SQLiteStore
from plugin_filters.storage.cache.tiered_cache import TieredCache

logger = logging.getLogger(__name__)


@dataclass
class Application:
    """All wired components of one process."""

    settings: Settings
    store: SQLiteStore
    cache: TieredCache
    engine: ScoringEngine
    catalog: CatalogClient
    rate_limiter: RateLimiter
    orchestrator: RequestOrchestrator
    router: Router

    async def aclose(self) -> None:
        await self.catalog.aclose()
        self.store.close()


def build_application(
    settings: Settings | None = None,
    catalog: CatalogClient | None = None,
    fast_tier: FastTier | None = None,
    clock: Callable[[], float] = time.time,
) -> Application:
    """Wire the durable store, fast tier, cache, scorer, catalog, limiter, orchestrator and router.

    Args:
        settings: Configuration (loaded from file/environment when None)
        catalog: Catalog client override (WordPress.org client when None)
        fast_tier: Fast tier override (built from settings when None)
        clock: Current Unix time shared by every component
    """
    settings = settings or load_settings()

    store = SQLiteStore(settings.database_path, clock=clock)
    fast = fast_tier
    if fast is None:
        fast = create_fast_tier(settings.fast_tier, settings.redis_url, clock)
    cache = TieredCache(
        store,
        fast,
        fast_ttl_cap=settings.fast_tier_ttl_cap,
        compression_threshold=settings.compression_threshold,
        compression_level=settings.compression_level,
        stats_ttl=settings.stats_ttl,
        cache_durations=settings.cache_durations,
        clock=clock,
    )
    engine = ScoringEngine(settings.weights, settings.platform_version)
    catalog = catalog or WordPressOrgCatalog(
        base_url=settings.catalog_base_url,
        timeout=settings.catalog_timeout,
        user_agent=settings.catalog_user_agent,
    )
    limiter = RateLimiter(store, settings.rate_limit_requests, settings.rate_limit_window_seconds)
    orchestrator = RequestOrchestrator(cache, catalog, engine, limiter)
    router = Router(orchestrator, cleanup_limit=settings.cleanup_limit)

    logger.info(f"Application ready (durable={settings.database_path}, fast tier={fast.name})")

    return Application(
        settings=settings,
        store=store,
        cache=cache,
        engine=engine,
        catalog=catalog,
        rate_limiter=limiter,
        orchestrator=orchestrator,
        router=router,
    )
