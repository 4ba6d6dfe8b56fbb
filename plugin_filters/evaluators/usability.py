"""Usability evaluator combining rating, rating volume, installs and support."""

from datetime import datetime

from plugin_filters.evaluators.composite import combine_components, round_half_up
from plugin_filters.models.model_eval import ScoreBreakdown, UsabilityWeights
from plugin_filters.models.model_plugin import PluginMetadata

# (minimum value, score) pairs, checked top-down
RATING_COUNT_STEPS = [
    (1000, 1.0),
    (500, 0.9),
    (100, 0.8),
    (50, 0.7),
    (20, 0.6),
    (10, 0.5),
    (5, 0.4),
]
RATING_COUNT_FLOOR = 0.3

INSTALL_COUNT_STEPS = [
    (5_000_000, 1.0),
    (1_000_000, 0.95),
    (500_000, 0.9),
    (100_000, 0.8),
    (50_000, 0.7),
    (10_000, 0.6),
    (5_000, 0.5),
    (1_000, 0.4),
    (100, 0.3),
]
INSTALL_COUNT_FLOOR = 0.2

RESOLUTION_RATE_STEPS = [
    (0.9, 1.0),
    (0.8, 0.9),
    (0.7, 0.8),
    (0.6, 0.7),
    (0.5, 0.6),
    (0.4, 0.5),
    (0.3, 0.4),
]
RESOLUTION_RATE_FLOOR = 0.3

# Score when a plugin has no support threads at all
NO_SUPPORT_THREADS_SCORE = 0.5

MIN_RATING = 1.0
MAX_RATING = 5.0


def _step(value: float, steps: list[tuple[float, float]], floor: float) -> float:
    for threshold, score in steps:
        if value >= threshold:
            return score
    return floor


def user_rating_score(plugin: PluginMetadata) -> float | None:
    """Average star rating on a 0-1 scale; absent for unrated plugins."""
    if plugin.rating <= 0:
        return None
    return plugin.rating / 5.0


def rating_count_score(plugin: PluginMetadata) -> float | None:
    """Credibility of the average rating, with diminishing returns."""
    if plugin.num_ratings <= 0:
        return None
    return _step(plugin.num_ratings, RATING_COUNT_STEPS, RATING_COUNT_FLOOR)


def install_count_score(plugin: PluginMetadata) -> float | None:
    """Popularity from active installs."""
    if plugin.active_installs <= 0:
        return None
    return _step(plugin.active_installs, INSTALL_COUNT_STEPS, INSTALL_COUNT_FLOOR)


def support_responsiveness_score(plugin: PluginMetadata) -> float | None:
    """Share of resolved support threads; neutral when nobody asked for help."""
    total = plugin.support_threads_total
    resolved = plugin.support_threads_resolved
    if total is None or resolved is None:
        return None
    if total == 0:
        return NO_SUPPORT_THREADS_SCORE
    return _step(resolved / total, RESOLUTION_RATE_STEPS, RESOLUTION_RATE_FLOOR)


class UsabilityEvaluator:
    """Evaluates plugins on a 1.0-5.0 usability scale.

    Algorithm:
        components = user rating, rating count, install count, support
        normalized = weighted average over present components (0-1)
        rating = clamp(normalized * 5, 1.0, 5.0), one decimal
    """

    def evaluate_with_breakdown(
        self,
        plugin: PluginMetadata,
        weights: UsabilityWeights,
        current_time: datetime | None = None,
    ) -> tuple[float, ScoreBreakdown]:
        """Calculate the usability rating and its breakdown.

        Args:
            plugin: The plugin to evaluate
            weights: Usability component weights
            current_time: Unused; accepted for a uniform evaluator signature

        Returns:
            Tuple of (rating between 1.0-5.0, breakdown)
        """
        components = {
            "user_rating": user_rating_score(plugin),
            "rating_count": rating_count_score(plugin),
            "install_count": install_count_score(plugin),
            "support_responsiveness": support_responsiveness_score(plugin),
        }
        breakdown = combine_components(components, weights.model_dump())

        # With no signal at all normalized is 0.0 and the clamp yields the 1.0 floor
        rating = max(MIN_RATING, min(MAX_RATING, breakdown.normalized * 5))
        rating = round_half_up(rating, 1)
        breakdown.final = rating

        return rating, breakdown

    def evaluate(
        self,
        plugin: PluginMetadata,
        weights: UsabilityWeights,
        current_time: datetime | None = None,
    ) -> float:
        """Calculate the usability rating (1.0-5.0, one decimal)."""
        rating, _ = self.evaluate_with_breakdown(plugin, weights, current_time)
        return rating
