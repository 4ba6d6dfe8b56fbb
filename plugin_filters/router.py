"""Explicit dispatch table from request actions to orchestrator handlers.

Every handler returns plain JSON-serializable data; the router wraps it in
``{"success": true, "data": ...}`` or renders the error envelope.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from plugin_filters.consts import CLEANUP_BATCH_LIMIT
from plugin_filters.errors import InternalError, PluginFiltersError, ValidationError
from plugin_filters.maintenance import run_cleanup
from plugin_filters.models.model_request import FilterRequest
from plugin_filters.orchestrator import RequestOrchestrator

logger = logging.getLogger(__name__)

Handler = Callable[[Mapping[str, Any], str], Awaitable[Any]]


class Router:
    """Dispatch ``(action, payload, identity)`` to the matching handler."""

    def __init__(self, orchestrator: RequestOrchestrator, cleanup_limit: int = CLEANUP_BATCH_LIMIT):
        self.orchestrator = orchestrator
        self.cleanup_limit = cleanup_limit
        self.routes: dict[str, Handler] = {
            "filter": self._filter,
            "sort": self._sort,
            "rating": self._rating,
            "clear_cache": self._clear_cache,
            "cache_stats": self._cache_stats,
            "cleanup": self._cleanup,
        }

    @property
    def actions(self) -> list[str]:
        return sorted(self.routes)

    async def dispatch(
        self,
        action: str,
        payload: Mapping[str, Any] | None = None,
        identity: str = "anonymous",
    ) -> tuple[int, dict[str, Any]]:
        """Run one action.

        Args:
            action: Action name
            payload: Request body (already decoded JSON)
            identity: Caller identity for rate limiting

        Returns:
            Tuple of (HTTP-like status, response body)
        """
        handler = self.routes.get(action)
        try:
            if handler is None:
                raise ValidationError(f"Unknown action: {action}.")
            if payload is None:
                payload = {}
            if not isinstance(payload, Mapping):
                raise ValidationError("Request body must be a JSON object.")
            data = await handler(payload, identity)
        except PluginFiltersError as e:
            logger.warning(f"Action {action} failed: {e.code} ({e.status})")
            return e.status, e.to_response()
        except Exception:
            logger.exception(f"Unexpected error in action {action}")
            error = InternalError()
            return error.status, error.to_response()

        return 200, {"success": True, "data": data}

    async def _filter(self, payload: Mapping[str, Any], identity: str) -> Any:
        request = FilterRequest.from_payload(payload)
        result = await self.orchestrator.execute(request, identity, action="filter")
        return result.model_dump(mode="json")

    async def _sort(self, payload: Mapping[str, Any], identity: str) -> Any:
        request = FilterRequest.from_payload(payload)
        result = await self.orchestrator.execute(request, identity, action="sort")
        return result.model_dump(mode="json")

    async def _rating(self, payload: Mapping[str, Any], identity: str) -> Any:
        slug = payload.get("plugin_slug") or payload.get("slug") or ""
        if not isinstance(slug, str):
            raise ValidationError("Plugin slug must be a string.")
        return await self.orchestrator.rate_plugin(slug, identity)

    async def _clear_cache(self, payload: Mapping[str, Any], identity: str) -> Any:
        scope = payload.get("cache_type") or payload.get("scope") or "all"
        if not isinstance(scope, str):
            raise ValidationError("Cache scope must be a string.")
        return self.orchestrator.clear_cache(scope)

    async def _cache_stats(self, payload: Mapping[str, Any], identity: str) -> Any:
        return self.orchestrator.cache_stats()

    async def _cleanup(self, payload: Mapping[str, Any], identity: str) -> Any:
        limit = payload.get("limit", self.cleanup_limit)
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError("Cleanup limit must be a positive integer.")
        return run_cleanup(self.orchestrator.cache, limit)
