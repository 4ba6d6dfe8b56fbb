"""Request orchestration for one browse request.

This module coordinates every step of a filter request:
1. Rate-limit check
2. Search cache lookup
3. Catalog search (through the api cache)
4. Pre-filter (install range, then update timeframe)
5. Scores (cached per plugin, computed on miss)
6. Post-filter (minimum usability / health)
7. Stable sort
8. Paginate
9. Cache the assembled response
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from plugin_filters.catalog.base import CatalogClient
from plugin_filters.consts import SCOPE_API, SCOPE_METADATA, SCOPE_SCORES, SCOPE_SEARCH
from plugin_filters.errors import ValidationError
from plugin_filters.evaluators.composite import health_description
from plugin_filters.evaluators.registry import ScoringEngine
from plugin_filters.filters.ordering import paginate, sort_results
from plugin_filters.filters.post_filter import PostFilter
from plugin_filters.filters.pre_filter import PreFilter
from plugin_filters.models.model_eval import ScoreResult
from plugin_filters.models.model_plugin import PageInfo, PluginMetadata
from plugin_filters.models.model_request import FilterRequest, PagedResult, PluginResult
from plugin_filters.rate_limiter import RateLimiter
from plugin_filters.storage.cache.tiered_cache import TieredCache
from plugin_filters.storage.keys import build_cache_key

logger = logging.getLogger(__name__)


class RequestOrchestrator:
    """Serve filter, rating and cache-admin requests over the cache, catalog and scorer.

    The orchestrator is the only component that talks to both the cache and
    the scoring engine. Errors from the cache and the catalog propagate
    unchanged.
    """

    def __init__(
        self,
        cache: TieredCache,
        catalog: CatalogClient,
        engine: ScoringEngine,
        rate_limiter: RateLimiter | None = None,
        now: Callable[[], datetime] | None = None,
    ):
        """Initialize orchestrator.

        Args:
            cache: Tiered cache shared by all requests
            catalog: Remote catalog client
            engine: Scoring engine
            rate_limiter: Per-identity limiter; None disables rate limiting
            now: Current time for scoring and timeframe filters (defaults to the cache clock)
        """
        self.cache = cache
        self.catalog = catalog
        self.engine = engine
        self.rate_limiter = rate_limiter
        self.now = now or (lambda: datetime.fromtimestamp(cache.clock(), UTC))
        self.pre_filter = PreFilter()
        self.post_filter = PostFilter()

    def _check_rate_limit(self, identity: str, action: str) -> None:
        if self.rate_limiter is not None:
            self.rate_limiter.check(identity, action)

    async def _search_catalog(self, request: FilterRequest) -> tuple[list[PluginMetadata], PageInfo]:
        key = build_cache_key(
            SCOPE_API,
            {"term": request.search_term, "page": request.page, "per_page": request.per_page},
        )
        cached = self.cache.get(key)
        if cached is not None:
            plugins = [PluginMetadata.model_validate(p) for p in cached["plugins"]]
            return plugins, PageInfo.model_validate(cached["info"])

        plugins, info = await self.catalog.search(request.search_term, request.page, request.per_page)
        self.cache.set(
            key,
            {
                "plugins": [p.model_dump(mode="json") for p in plugins],
                "info": info.model_dump(mode="json"),
            },
            self.cache.ttl_for("api"),
        )
        return plugins, info

    def _scores_for(self, plugins: list[PluginMetadata], now: datetime) -> dict[str, ScoreResult]:
        """Cached scores for every plugin, computing and storing the misses.

        Misses are written back only after every record has been scored.
        """
        keys = {p.slug: build_cache_key(SCOPE_SCORES, p.slug) for p in plugins}
        cached = self.cache.get_many(list(keys.values()))

        scores: dict[str, ScoreResult] = {}
        computed: dict[str, ScoreResult] = {}
        for plugin in plugins:
            hit = cached.get(keys[plugin.slug])
            if hit is not None:
                scores[plugin.slug] = ScoreResult.model_validate(hit)
            else:
                computed[plugin.slug] = self.engine.score(plugin, now)

        ttl = self.cache.ttl_for("scores")
        for slug, result in computed.items():
            self.cache.set(keys[slug], result.model_dump(mode="json"), ttl)

        logger.info(f"Scores: {len(scores)} cached, {len(computed)} computed")
        scores.update(computed)
        return scores

    async def execute(self, request: FilterRequest, identity: str, action: str = "filter") -> PagedResult:
        """Run one filter/sort request.

        Args:
            request: Validated browse request
            identity: Caller identity for rate limiting
            action: Rate-limit bucket ("filter" or "sort")

        Returns:
            One page of scored, filtered, sorted plugins

        Raises:
            RateLimitError: If the caller exhausted its quota
            CatalogError: If the catalog call fails
            CacheError: If the durable tier is unavailable
        """
        # Step 1: Rate limit
        self._check_rate_limit(identity, action)

        # Step 2: Search cache
        search_key = build_cache_key(SCOPE_SEARCH, request.to_payload())
        cached = self.cache.get(search_key)
        if cached is not None:
            logger.info("Step 2/9: Search cache hit")
            return PagedResult.model_validate(cached)

        # Step 3: Catalog
        logger.info(f"Step 3/9: Searching catalog for '{request.search_term}' (page {request.page})")
        plugins, info = await self._search_catalog(request)
        now = self.now()

        # Step 4: Pre-filter
        logger.info("Step 4/9: Pre-filtering")
        candidates = self.pre_filter.apply(plugins, request, now)

        # Step 5: Scores
        logger.info("Step 5/9: Scoring")
        scores = self._scores_for(candidates, now)
        results = [
            PluginResult(
                **plugin.model_dump(),
                usability_rating=scores[plugin.slug].usability_rating,
                health_score=scores[plugin.slug].health_score,
                health_color=scores[plugin.slug].health_color,
            )
            for plugin in candidates
        ]

        # Step 6: Post-filter
        logger.info("Step 6/9: Post-filtering")
        results = self.post_filter.apply(results, request)

        # Step 7: Sort
        logger.info(f"Step 7/9: Sorting by {request.sort_by.value} {request.sort_direction.value}")
        results = sort_results(results, request.sort_by, request.sort_direction)

        # Step 8: Paginate
        window_start = (info.page - 1) * request.per_page
        page_items, pagination = paginate(results, request.page, request.per_page, window_start)
        logger.info(f"Step 8/9: Page {pagination.current_page}/{pagination.total_pages}")

        # Step 9: Cache and return
        payload = PagedResult(
            plugins=page_items,
            pagination=pagination,
            filters_applied=request.applied_filters(),
        ).model_dump(mode="json")
        self.cache.set(search_key, payload, self.cache.ttl_for("search"))
        logger.info(f"Step 9/9: Cached {len(page_items)} results")

        return PagedResult.model_validate(payload)

    async def plugin_metadata(self, slug: str) -> PluginMetadata:
        """Catalog record for one plugin, through the metadata cache."""
        key = build_cache_key(SCOPE_METADATA, slug)
        cached = self.cache.get(key)
        if cached is not None:
            return PluginMetadata.model_validate(cached)

        plugin = await self.catalog.details(slug)
        self.cache.set(key, plugin.model_dump(mode="json"), self.cache.ttl_for("metadata"))
        return plugin

    async def score_plugin(self, slug: str) -> ScoreResult:
        """Cached score for one plugin, fetching and scoring it on a miss."""
        key = build_cache_key(SCOPE_SCORES, slug)
        cached = self.cache.get(key)
        if cached is not None:
            return ScoreResult.model_validate(cached)

        plugin = await self.plugin_metadata(slug)
        result = self.engine.score(plugin, self.now())
        self.cache.set(key, result.model_dump(mode="json"), self.cache.ttl_for("scores"))
        return result

    async def rate_plugin(self, slug: str, identity: str) -> dict[str, Any]:
        """Usability rating and health score of one plugin.

        Raises:
            ValidationError: If the slug is empty
        """
        self._check_rate_limit(identity, "rating")

        slug = (slug or "").strip().lower()
        if not slug:
            raise ValidationError("Plugin slug is required.")

        result = await self.score_plugin(slug)
        return {
            "plugin_slug": slug,
            "usability_rating": result.usability_rating,
            "health_score": result.health_score,
            "health_color": result.health_color.value,
            "health_description": health_description(result.health_score),
            "calculated_at": result.calculated_at.isoformat(),
            "calculation_breakdown": {
                "usability": result.usability_breakdown.model_dump(mode="json")
                if result.usability_breakdown
                else None,
                "health": result.health_breakdown.model_dump(mode="json")
                if result.health_breakdown
                else None,
            },
        }

    def clear_cache(self, scope: str = "all") -> dict[str, Any]:
        removed = self.cache.clear(scope)
        return {"scope": scope, "cleared": removed}

    def cache_stats(self) -> dict[str, Any]:
        return self.cache.stats().model_dump(mode="json")
