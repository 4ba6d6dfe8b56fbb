"""Stable sorting and pagination of scored results."""

import math
from collections.abc import Callable
from datetime import date
from typing import Any

from plugin_filters.models.model_request import (
    Pagination,
    PluginResult,
    SortBy,
    SortDirection,
)

_SORT_KEYS: dict[SortBy, Callable[[PluginResult], Any]] = {
    SortBy.INSTALLATIONS: lambda p: p.active_installs,
    SortBy.RATING: lambda p: p.rating,
    SortBy.UPDATED: lambda p: p.last_updated or date.min,
    SortBy.USABILITY_RATING: lambda p: p.usability_rating,
    SortBy.HEALTH_SCORE: lambda p: p.health_score,
    SortBy.NAME: lambda p: p.name.casefold(),
}


def sort_results(
    plugins: list[PluginResult],
    sort_by: SortBy,
    direction: SortDirection,
) -> list[PluginResult]:
    """Stable sort by one field; relevance keeps catalog order.

    Ties keep their catalog order in both directions: ``reverse=True`` on
    ``sorted`` preserves the relative order of equal elements.
    """
    if sort_by == SortBy.RELEVANCE:
        return list(plugins)
    key = _SORT_KEYS[sort_by]
    return sorted(plugins, key=key, reverse=direction == SortDirection.DESC)


def paginate(
    plugins: list[PluginResult],
    page: int,
    per_page: int,
    window_start: int = 0,
) -> tuple[list[PluginResult], Pagination]:
    """Slice one page out of the filtered results.

    Args:
        plugins: Filtered, sorted results
        page: 1-based page number
        per_page: Page size
        window_start: Absolute offset of ``plugins[0]`` when the list is
            itself a page of a larger result set (the catalog pages its own
            results, so a fetched window usually starts at (page-1)*per_page)

    Returns:
        Tuple of (page items, pagination metadata)
    """
    start = max(0, (page - 1) * per_page - window_start)
    items = plugins[start : start + per_page]
    total = len(plugins)

    pagination = Pagination(
        current_page=page,
        total_pages=math.ceil(total / per_page),
        total_results=total,
        per_page=per_page,
    )
    return items, pagination
