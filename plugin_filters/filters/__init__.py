"""Pre and post filtering, sorting and pagination of plugin results."""

from plugin_filters.filters.ordering import paginate, sort_results
from plugin_filters.filters.post_filter import PostFilter
from plugin_filters.filters.pre_filter import PreFilter, matches_install_range, matches_timeframe

__all__ = [
    "PreFilter",
    "PostFilter",
    "matches_install_range",
    "matches_timeframe",
    "paginate",
    "sort_results",
]
