"""WordPress.org plugins API (info/1.2) catalog client."""

import asyncio
import logging
import re
from typing import Any

import httpx
import pydantic

from plugin_filters.catalog.base import CatalogClient
from plugin_filters.consts import (
    CATALOG_BASE_URL,
    CATALOG_MAX_PER_PAGE,
    CATALOG_TIMEOUT_SECONDS,
    CATALOG_USER_AGENT,
)
from plugin_filters.errors import CatalogConnectionError, CatalogHTTPError, CatalogPayloadError
from plugin_filters.models.model_plugin import PageInfo, PluginMetadata

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")
_SLUG_RE = re.compile(r"[^a-z0-9_\-]")

# Catalog fields requested for search results and details
SEARCH_FIELDS = [
    "short_description",
    "tested",
    "requires",
    "rating",
    "ratings",
    "active_installs",
    "last_updated",
    "added",
    "homepage",
    "tags",
    "support_threads",
    "support_threads_resolved",
]
EXCLUDED_FIELDS = ["description", "sections", "screenshots", "versions", "reviews"]


def _strip_tags(value: Any) -> str:
    return _TAG_RE.sub("", str(value or "")).strip()


def _non_negative_int(value: Any) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return None


def sanitize_slug(slug: str) -> str:
    return _SLUG_RE.sub("", slug.strip().lower())


def parse_plugin(raw: dict[str, Any]) -> PluginMetadata:
    """Map one catalog record onto PluginMetadata.

    Args:
        raw: Plugin object from query_plugins or plugin_information

    Returns:
        Parsed metadata

    Raises:
        CatalogPayloadError: If the record has no usable slug.
    """
    if not isinstance(raw, dict):
        raise CatalogPayloadError()

    slug = sanitize_slug(str(raw.get("slug") or ""))
    if not slug:
        raise CatalogPayloadError()

    try:
        rating = float(raw.get("rating") or 0) / 20
    except (TypeError, ValueError):
        rating = 0.0

    # query_plugins returns tags as {slug: label}, older responses as a list
    tags = raw.get("tags") or {}
    tag_list = [str(t) for t in tags] if isinstance(tags, (dict, list)) else []

    support_total = _optional_int(raw.get("support_threads"))
    support_resolved = _optional_int(raw.get("support_threads_resolved"))
    if support_total is None:
        support_resolved = None

    try:
        return PluginMetadata(
            slug=slug,
            name=_strip_tags(raw.get("name")),
            version=str(raw.get("version") or ""),
            author=_strip_tags(raw.get("author")),
            description=_strip_tags(raw.get("short_description")),
            homepage=str(raw.get("homepage") or ""),
            tags=tag_list,
            rating=max(0.0, min(5.0, rating)),
            num_ratings=_non_negative_int(raw.get("num_ratings")),
            active_installs=_non_negative_int(raw.get("active_installs")),
            support_threads_total=support_total,
            support_threads_resolved=support_resolved,
            last_updated=raw.get("last_updated"),
            added=raw.get("added"),
            tested_up_to=str(raw["tested"]) if raw.get("tested") else None,
            requires_at_least=str(raw["requires"]) if raw.get("requires") else None,
            rating_distribution=raw.get("ratings") or {},
        )
    except pydantic.ValidationError as e:
        logger.warning(f"Catalog record {slug} failed validation: {e}")
        raise CatalogPayloadError() from e


class WordPressOrgCatalog(CatalogClient):
    """Catalog client for the public WordPress.org plugins API.

    One GET per call, bounded by the configured timeout and never retried.
    """

    def __init__(
        self,
        base_url: str = CATALOG_BASE_URL,
        timeout: float = CATALOG_TIMEOUT_SECONDS,
        user_agent: str = CATALOG_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize WordPressOrgCatalog.

        Args:
            base_url: API endpoint
            timeout: Request timeout in seconds
            user_agent: User-Agent header value
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def source_name(self) -> str:
        return "wordpress_org"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={"Accept": "application/json", "User-Agent": self.user_agent},
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, action: str, params: dict[str, Any]) -> Any:
        """Call the API and decode its JSON body.

        Raises:
            CatalogConnectionError: On transport failure or timeout.
            CatalogHTTPError: On a non-200 response.
            CatalogPayloadError: On an undecodable body.
        """
        client = await self._get_client()
        query = {"action": action, **params}

        try:
            response = await client.get(self.base_url, params=query)
        except httpx.HTTPError as e:
            logger.error(f"Catalog request {action} failed: {e!r}")
            raise CatalogConnectionError() from e

        if response.status_code != 200:
            logger.error(f"Catalog request {action} returned HTTP {response.status_code}")
            raise CatalogHTTPError(response.status_code)

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Catalog request {action} returned invalid JSON: {e}")
            raise CatalogPayloadError() from e

    @staticmethod
    def _field_params(fields: list[str], excluded: list[str]) -> dict[str, str]:
        params = {f"request[fields][{name}]": "1" for name in fields}
        params.update({f"request[fields][{name}]": "0" for name in excluded})
        return params

    async def search(
        self,
        term: str,
        page: int,
        per_page: int,
        filters: dict[str, str] | None = None,
    ) -> tuple[list[PluginMetadata], PageInfo]:
        params: dict[str, Any] = {
            "request[page]": max(1, page),
            "request[per_page]": max(1, min(CATALOG_MAX_PER_PAGE, per_page)),
            **self._field_params(SEARCH_FIELDS, EXCLUDED_FIELDS),
        }
        if term:
            params["request[search]"] = term
        for name in ("tag", "author"):
            if filters and filters.get(name):
                params[f"request[{name}]"] = filters[name]

        data = await self._request("query_plugins", params)
        if not isinstance(data, dict) or not isinstance(data.get("plugins"), list):
            logger.error("Catalog search response has no plugins list")
            raise CatalogPayloadError()

        plugins = []
        for raw in data["plugins"]:
            try:
                plugins.append(parse_plugin(raw))
            except CatalogPayloadError:
                logger.warning("Skipping catalog record without a slug")

        info = data.get("info") or {}
        page_info = PageInfo(
            page=max(1, _non_negative_int(info.get("page", page))),
            pages=_non_negative_int(info.get("pages")),
            results=_non_negative_int(info.get("results")),
        )

        logger.info(f"Catalog search '{term}' page {page}: {len(plugins)} plugins ({page_info.results} total)")
        return plugins, page_info

    async def details(self, slug: str) -> PluginMetadata:
        """Fetch one plugin.

        Raises:
            CatalogHTTPError: With status 404 when the catalog reports an unknown slug.
        """
        clean = sanitize_slug(slug)
        params = {"request[slug]": clean, **self._field_params(SEARCH_FIELDS, EXCLUDED_FIELDS)}

        data = await self._request("plugin_information", params)
        if isinstance(data, dict) and data.get("error"):
            logger.warning(f"Catalog has no plugin {clean}: {data['error']}")
            raise CatalogHTTPError(404, "Plugin not found.")
        if not isinstance(data, dict):
            raise CatalogPayloadError()

        return parse_plugin(data)


async def main() -> None:
    """Fetch one search page and one plugin from the live catalog."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    catalog = WordPressOrgCatalog()
    try:
        plugins, info = await catalog.search("ecommerce", page=1, per_page=5)
        print(f"Found {info.results} plugins across {info.pages} pages")
        for plugin in plugins:
            print(f"  {plugin.slug}: {plugin.active_installs:,} installs, rating {plugin.rating:.1f}")

        details = await catalog.details("woocommerce")
        print(details.model_dump_json(indent=4))
    finally:
        await catalog.aclose()


if __name__ == "__main__":
    asyncio.run(main())
