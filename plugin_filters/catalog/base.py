"""Base catalog client abstract class defining the catalog contract."""

from abc import ABC, abstractmethod

from plugin_filters.models.model_plugin import PageInfo, PluginMetadata


class CatalogClient(ABC):
    """Abstract base class for remote plugin catalogs.

    Implementations raise CatalogConnectionError, CatalogHTTPError or
    CatalogPayloadError, never library-specific exceptions.
    """

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return the catalog identifier (e.g., 'wordpress_org')."""
        ...

    @abstractmethod
    async def search(
        self,
        term: str,
        page: int,
        per_page: int,
        filters: dict[str, str] | None = None,
    ) -> tuple[list[PluginMetadata], PageInfo]:
        """Search the catalog.

        Args:
            term: Free-text search term (empty browses the whole catalog)
            page: 1-based catalog page
            per_page: Records per page
            filters: Optional catalog-side filters ("tag", "author")

        Returns:
            Tuple of (records in catalog relevance order, page info)
        """
        ...

    @abstractmethod
    async def details(self, slug: str) -> PluginMetadata:
        """Fetch one plugin by slug."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        return None
