"""Error taxonomy shared by the cache, catalog client and orchestrator.

Every error carries a machine-readable ``code``, an HTTP-like ``status`` and
a message that is safe to show to end users. Lower-layer details (file
paths, connection strings, upstream URLs) belong in logs, never in
``message``.
"""

from typing import Any


class PluginFiltersError(Exception):
    """Base class for all errors surfaced to callers."""

    code = "error"
    status = 500
    default_message = "An error occurred while processing your request."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response(self) -> dict[str, Any]:
        """Render the error envelope returned over the process boundary."""
        return {"success": False, "code": self.code, "message": self.message}


class ValidationError(PluginFiltersError):
    """Request field is malformed and cannot be clamped to a safe value."""

    code = "validation_error"
    status = 400
    default_message = "The request is invalid."


class RateLimitError(PluginFiltersError):
    """Caller exceeded its request quota for the current window."""

    code = "rate_limit_exceeded"
    status = 429
    default_message = "Too many requests. Please slow down and try again in a minute."

    def __init__(self, message: str | None = None, retry_after: int = 0):
        super().__init__(message)
        self.retry_after = retry_after


class CatalogError(PluginFiltersError):
    """Remote catalog fetch failed or returned invalid data."""

    code = "catalog_error"
    status = 502
    default_message = "The plugin catalog could not be reached."


class CatalogConnectionError(CatalogError):
    """Connection to the catalog failed or timed out."""

    code = "catalog_connection_error"
    default_message = "Failed to connect to the WordPress.org API."


class CatalogHTTPError(CatalogError):
    """Catalog answered with a non-success status."""

    code = "catalog_http_error"

    def __init__(self, upstream_status: int, message: str | None = None):
        super().__init__(message or f"API request failed with status code: {upstream_status}")
        self.upstream_status = upstream_status


class CatalogPayloadError(CatalogError):
    """Catalog response could not be decoded into plugin records."""

    code = "catalog_payload_error"
    default_message = "Invalid response from the WordPress.org API."


class CacheError(PluginFiltersError):
    """Durable cache tier is unavailable."""

    code = "cache_error"
    status = 503
    default_message = "The cache storage is unavailable."


class InternalError(PluginFiltersError):
    """Programming or invariant violation."""

    code = "internal_error"
    status = 500
