"""Tests for the WordPress.org catalog client."""

import json
from datetime import date

import httpx
import pytest

from plugin_filters.catalog.wordpress_org.client import WordPressOrgCatalog, parse_plugin
from plugin_filters.errors import CatalogConnectionError, CatalogHTTPError, CatalogPayloadError

RAW_PLUGIN = {
    "name": "WooCommerce",
    "slug": "woocommerce",
    "version": "9.8.5",
    "author": '<a href="https://woocommerce.com">Automattic</a>',
    "rating": 92,
    "ratings": {"5": 3800, "4": 200, "3": 100, "2": 80, "1": 420},
    "num_ratings": 4600,
    "support_threads": 300,
    "support_threads_resolved": 240,
    "active_installs": 5000000,
    "last_updated": "2025-06-01 3:14pm GMT",
    "added": "2011-09-27",
    "tested": "6.8.1",
    "requires": "6.6",
    "homepage": "https://woocommerce.com/",
    "short_description": "Everything you need to launch an online store.",
    "tags": {"ecommerce": "ecommerce", "store": "store"},
}


def _catalog(handler) -> WordPressOrgCatalog:
    return WordPressOrgCatalog(transport=httpx.MockTransport(handler))


class TestParsePlugin:
    """Tests for parse_plugin."""

    def test_maps_fields(self) -> None:
        """Test catalog fields map onto PluginMetadata."""
        plugin = parse_plugin(RAW_PLUGIN)

        assert plugin.slug == "woocommerce"
        assert plugin.author == "Automattic"
        assert plugin.rating == 4.6
        assert plugin.support_threads_total == 300
        assert plugin.support_threads_resolved == 240
        assert plugin.last_updated == date(2025, 6, 1)
        assert plugin.added == date(2011, 9, 27)
        assert plugin.tested_up_to == "6.8.1"
        assert plugin.rating_distribution == {5: 3800, 4: 200, 3: 100, 2: 80, 1: 420}
        assert plugin.tags == ["ecommerce", "store"]

    def test_missing_optional_fields(self) -> None:
        """Test absent fields become defaults rather than errors."""
        plugin = parse_plugin({"slug": "bare"})

        assert plugin.rating == 0.0
        assert plugin.support_threads_total is None
        assert plugin.last_updated is None
        assert plugin.tested_up_to is None

    def test_bad_date_is_none(self) -> None:
        """Test an unparseable date is treated as unknown."""
        assert parse_plugin({"slug": "x", "last_updated": "yesterday"}).last_updated is None

    def test_missing_slug(self) -> None:
        """Test a record without a slug is rejected."""
        with pytest.raises(CatalogPayloadError):
            parse_plugin({"name": "No slug"})


class TestSearch:
    """Tests for WordPressOrgCatalog.search."""

    @pytest.mark.asyncio
    async def test_search_request_and_response(self) -> None:
        """Test query parameters and parsed results."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"info": {"page": 2, "pages": 5, "results": 110}, "plugins": [RAW_PLUGIN, {"name": "x"}]},
            )

        catalog = _catalog(handler)
        try:
            plugins, info = await catalog.search("ecommerce", page=2, per_page=100, filters={"tag": "store"})
        finally:
            await catalog.aclose()

        params = seen[0].url.params
        assert params["action"] == "query_plugins"
        assert params["request[search]"] == "ecommerce"
        assert params["request[page]"] == "2"
        assert params["request[per_page]"] == "48"
        assert params["request[tag]"] == "store"
        assert params["request[fields][active_installs]"] == "1"
        assert params["request[fields][sections]"] == "0"
        assert "WordPress Plugin Directory Filters" in seen[0].headers["User-Agent"]

        assert [p.slug for p in plugins] == ["woocommerce"]
        assert (info.page, info.pages, info.results) == (2, 5, 110)

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        """Test non-200 responses raise CatalogHTTPError with the status."""
        catalog = _catalog(lambda request: httpx.Response(503, text="unavailable"))
        with pytest.raises(CatalogHTTPError) as exc_info:
            await catalog.search("shop", 1, 24)
        assert exc_info.value.upstream_status == 503
        assert exc_info.value.status == 502

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        """Test transport failures raise CatalogConnectionError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(CatalogConnectionError):
            await _catalog(handler).search("shop", 1, 24)

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        """Test timeouts raise CatalogConnectionError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(CatalogConnectionError):
            await _catalog(handler).search("shop", 1, 24)

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        """Test an undecodable body raises CatalogPayloadError."""
        catalog = _catalog(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(CatalogPayloadError):
            await catalog.search("shop", 1, 24)

    @pytest.mark.asyncio
    async def test_missing_plugins_list(self) -> None:
        """Test a body without a plugins list raises CatalogPayloadError."""
        catalog = _catalog(lambda request: httpx.Response(200, json={"info": {}}))
        with pytest.raises(CatalogPayloadError):
            await catalog.search("shop", 1, 24)


class TestDetails:
    """Tests for WordPressOrgCatalog.details."""

    @pytest.mark.asyncio
    async def test_details(self) -> None:
        """Test a single plugin lookup."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["action"] == "plugin_information"
            assert request.url.params["request[slug]"] == "woocommerce"
            return httpx.Response(200, content=json.dumps(RAW_PLUGIN))

        plugin = await _catalog(handler).details("WooCommerce")
        assert plugin.slug == "woocommerce"

    @pytest.mark.asyncio
    async def test_unknown_plugin(self) -> None:
        """Test an error body is reported as a 404."""
        catalog = _catalog(lambda request: httpx.Response(200, json={"error": "Plugin not found."}))
        with pytest.raises(CatalogHTTPError) as exc_info:
            await catalog.details("nope")
        assert exc_info.value.upstream_status == 404
