"""Remote plugin catalog clients."""

from plugin_filters.catalog.base import CatalogClient
from plugin_filters.catalog.wordpress_org.client import WordPressOrgCatalog, parse_plugin

__all__ = ["CatalogClient", "WordPressOrgCatalog", "parse_plugin"]
