"""Base evaluator protocol defining the contract for both composite scores."""

from datetime import datetime
from typing import Protocol

from plugin_filters.models.model_eval import ScoreBreakdown
from plugin_filters.models.model_plugin import PluginMetadata


class BaseEvaluator(Protocol):
    """Protocol defining the evaluator contract.

    Evaluators are pure functions of one plugin record, a weight set and the
    current time. They never read the cache or call the catalog, and they
    never raise on missing data: an absent signal is excluded from the
    weighted average instead.
    """

    def evaluate_with_breakdown(
        self,
        plugin: PluginMetadata,
        weights: object,
        current_time: datetime | None = None,
    ) -> tuple[float, ScoreBreakdown]:
        """Score the plugin and return the value with its calculation trace."""
        ...

    def evaluate(
        self,
        plugin: PluginMetadata,
        weights: object,
        current_time: datetime | None = None,
    ) -> float:
        """Score the plugin."""
        ...
