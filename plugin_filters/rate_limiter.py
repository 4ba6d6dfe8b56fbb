"""Fixed-window rate limiting per caller identity and action.

Counters live in the durable store so every worker process shares them.
"""

import logging
import math

from plugin_filters.consts import RATE_LIMIT_REQUESTS, RATE_LIMIT_WINDOW_SECONDS, SCOPE_RATE_LIMIT
from plugin_filters.errors import RateLimitError
from plugin_filters.storage.cache.sqlite_store import SQLiteStore
from plugin_filters.storage.keys import build_cache_key

logger = logging.getLogger(__name__)


class RateLimiter:
    """Allow ``limit`` requests per ``window_seconds`` for each (identity, action)."""

    def __init__(
        self,
        store: SQLiteStore,
        limit: int = RATE_LIMIT_REQUESTS,
        window_seconds: int = RATE_LIMIT_WINDOW_SECONDS,
    ):
        if limit < 1 or window_seconds < 1:
            raise ValueError("limit and window_seconds must be positive")
        self.store = store
        self.limit = limit
        self.window_seconds = window_seconds

    def check(self, identity: str, action: str) -> int:
        """Count one request and enforce the quota.

        Args:
            identity: Caller identity (user id or client address)
            action: Action being rate limited

        Returns:
            Requests remaining in the current window

        Raises:
            RateLimitError: If the quota for the window is exhausted
        """
        key = build_cache_key(SCOPE_RATE_LIMIT, [action, identity])
        count, reset_at = self.store.increment_counter(key, self.window_seconds)

        if count > self.limit:
            retry_after = max(1, math.ceil(reset_at - self.store.clock()))
            logger.warning(
                f"Rate limit exceeded for action={action} ({count}/{self.limit}, retry in {retry_after}s)"
            )
            raise RateLimitError(retry_after=retry_after)

        return self.limit - count
