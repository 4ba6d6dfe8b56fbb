"""Pytest configuration and fixtures."""

import math
from datetime import UTC, date, datetime, timedelta
from pathlib import Path

import pytest

from plugin_filters.catalog.base import CatalogClient
from plugin_filters.errors import CatalogHTTPError
from plugin_filters.evaluators.composite import health_color
from plugin_filters.evaluators.registry import ScoringEngine
from plugin_filters.models.model_plugin import PageInfo, PluginMetadata
from plugin_filters.models.model_request import PluginResult
from plugin_filters.orchestrator import RequestOrchestrator
from plugin_filters.rate_limiter import RateLimiter
from plugin_filters.storage.cache.fast_tiers import MemoryFastTier
from plugin_filters.storage.cache.sqlite_store import SQLiteStore
from plugin_filters.storage.cache.tiered_cache import TieredCache

# Fixed reference time for every test
NOW = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)


class FakeClock:
    """Controllable Unix-time clock."""

    def __init__(self, start: float = NOW.timestamp()):
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class FakeCatalog(CatalogClient):
    """In-memory catalog recording every call."""

    def __init__(
        self,
        plugins: list[PluginMetadata] | None = None,
        details: dict[str, PluginMetadata] | None = None,
        error: Exception | None = None,
    ):
        self.plugins = list(plugins or [])
        self.details_map = dict(details or {})
        self.error = error
        self.search_calls: list[tuple[str, int, int]] = []
        self.details_calls: list[str] = []

    @property
    def source_name(self) -> str:
        return "fake"

    async def search(
        self,
        term: str,
        page: int,
        per_page: int,
        filters: dict[str, str] | None = None,
    ) -> tuple[list[PluginMetadata], PageInfo]:
        self.search_calls.append((term, page, per_page))
        if self.error is not None:
            raise self.error
        start = (page - 1) * per_page
        window = self.plugins[start : start + per_page]
        pages = math.ceil(len(self.plugins) / per_page)
        return window, PageInfo(page=page, pages=pages, results=len(self.plugins))

    async def details(self, slug: str) -> PluginMetadata:
        self.details_calls.append(slug)
        if self.error is not None:
            raise self.error
        if slug not in self.details_map:
            raise CatalogHTTPError(404, "Plugin not found.")
        return self.details_map[slug]


def make_plugin(slug: str = "sample-plugin", **overrides) -> PluginMetadata:
    """Build a well-maintained, popular plugin with optional field overrides."""
    data = {
        "slug": slug,
        "name": slug.replace("-", " ").title(),
        "version": "9.8.5",
        "author": "Example Author",
        "description": "A sample plugin",
        "rating": 4.6,
        "num_ratings": 2000,
        "active_installs": 5_000_000,
        "support_threads_total": 100,
        "support_threads_resolved": 85,
        "last_updated": NOW.date() - timedelta(days=14),
        "added": date(2015, 1, 1),
        "tested_up_to": "6.8",
        "requires_at_least": "6.0",
        "rating_distribution": {5: 1800, 4: 120, 3: 30, 2: 20, 1: 30},
    }
    data.update(overrides)
    return PluginMetadata(**data)


def make_result(
    slug: str = "sample-plugin",
    usability_rating: float = 3.0,
    health_score: int = 50,
    **overrides,
) -> PluginResult:
    """Build a scored plugin result."""
    plugin = make_plugin(slug, **overrides)
    return PluginResult(
        **plugin.model_dump(),
        usability_rating=usability_rating,
        health_score=health_score,
        health_color=health_color(health_score),
    )


@pytest.fixture
def now() -> datetime:
    """Fixed reference time."""
    return NOW


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at the reference time."""
    return FakeClock()


@pytest.fixture
def plugin_factory():
    """Factory for PluginMetadata records."""
    return make_plugin


@pytest.fixture
def result_factory():
    """Factory for PluginResult records."""
    return make_result


@pytest.fixture
def sample_plugin() -> PluginMetadata:
    """Popular, actively maintained plugin."""
    return make_plugin()


@pytest.fixture
def store(tmp_path: Path, clock: FakeClock) -> SQLiteStore:
    """Durable store in a temporary directory."""
    durable = SQLiteStore(tmp_path / "cache.db", clock=clock)
    yield durable
    durable.close()


@pytest.fixture
def fast_tier(clock: FakeClock) -> MemoryFastTier:
    return MemoryFastTier(clock)


@pytest.fixture
def cache(store: SQLiteStore, fast_tier: MemoryFastTier, clock: FakeClock) -> TieredCache:
    """Tiered cache with an in-memory fast tier."""
    return TieredCache(store, fast_tier, clock=clock)


@pytest.fixture
def catalog_factory():
    """FakeCatalog class for tests needing custom records or errors."""
    return FakeCatalog


@pytest.fixture
def catalog() -> FakeCatalog:
    """Catalog with two plugins of different popularity."""
    return FakeCatalog(
        plugins=[
            make_plugin("mega-shop", active_installs=5_000_000),
            make_plugin("cart-lite", active_installs=200_000, rating=4.2, num_ratings=150),
        ]
    )


@pytest.fixture
def orchestrator(cache: TieredCache, catalog: FakeCatalog, store: SQLiteStore) -> RequestOrchestrator:
    """Orchestrator with a generous rate limit."""
    return RequestOrchestrator(
        cache,
        catalog,
        ScoringEngine(),
        RateLimiter(store, limit=1000, window_seconds=60),
    )
