"""Pydantic models for the plugin directory filters."""

from plugin_filters.models.model_eval import (
    ComponentScore,
    HealthColor,
    HealthWeights,
    ScoreBreakdown,
    ScoreResult,
    UsabilityWeights,
    WeightConfig,
)
from plugin_filters.models.model_plugin import PageInfo, PluginMetadata
from plugin_filters.models.model_request import (
    FilterRequest,
    InstallRange,
    PagedResult,
    Pagination,
    PluginResult,
    SortBy,
    SortDirection,
    UpdateTimeframe,
)
from plugin_filters.models.model_storage import CacheEntry, CacheStats, ScopeStats

__all__ = [
    # Catalog models
    "PageInfo",
    "PluginMetadata",
    # Scoring models
    "ComponentScore",
    "HealthColor",
    "HealthWeights",
    "ScoreBreakdown",
    "ScoreResult",
    "UsabilityWeights",
    "WeightConfig",
    # Request models
    "FilterRequest",
    "InstallRange",
    "PagedResult",
    "Pagination",
    "PluginResult",
    "SortBy",
    "SortDirection",
    "UpdateTimeframe",
    # Storage models
    "CacheEntry",
    "CacheStats",
    "ScopeStats",
]
