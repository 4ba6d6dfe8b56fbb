"""WordPress plugin directory filters.

Fetches plugin metadata from the WordPress.org catalog, scores every plugin
with a usability rating and a health score, and serves filtered, sorted and
paginated result sets backed by a two-tier cache.
"""

__version__ = "1.0.0"
