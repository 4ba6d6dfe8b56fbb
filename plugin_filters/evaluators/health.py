"""Health evaluator for maintenance quality and reliability."""

import re
from datetime import UTC, datetime

from plugin_filters.consts import DEFAULT_PLATFORM_VERSION, NO_SIGNAL_HEALTH_SCORE
from plugin_filters.evaluators.composite import combine_components, round_half_up
from plugin_filters.models.common import days_since
from plugin_filters.models.model_eval import HealthWeights, ScoreBreakdown
from plugin_filters.models.model_plugin import PluginMetadata

_LEADING_INT_RE = re.compile(r"^\s*(\d+)")

# (max days since update, score), checked top-down
RECENCY_STEPS = [
    (30, 1.0),
    (90, 0.9),
    (180, 0.8),
    (365, 0.6),
    (730, 0.4),
]
RECENCY_FLOOR = 0.2

# Multiplier applied to the version-structure heuristic
ACTIVITY_RECENCY_STEPS = [
    (30, 1.0),
    (90, 0.9),
    (180, 0.7),
]
ACTIVITY_RECENCY_FLOOR = 0.5

NO_SUPPORT_THREADS_SCORE = 0.6
NO_RATING_DATA_SCORE = 0.6


def _leading_int(text: str) -> int:
    match = _LEADING_INT_RE.match(text)
    return int(match.group(1)) if match else 0


def _major_minor(version: str) -> tuple[int, int]:
    parts = version.split(".")
    major = _leading_int(parts[0]) if parts else 0
    minor = _leading_int(parts[1]) if len(parts) > 1 else 0
    return major, minor


def _days_step(days: int, steps: list[tuple[int, float]], floor: float) -> float:
    for max_days, score in steps:
        if days <= max_days:
            return score
    return floor


class HealthEvaluator:
    """Evaluates plugins on a 0-100 health scale.

    Components:
        update_frequency   version-structure heuristic scaled by recency
        wp_compatibility   tested-up-to version against the current platform
        support_response   resolution rate with activity bonus/backlog penalty
        time_since_update  step function of days since last update
        reported_issues    share of 1-2 star ratings

    The update-frequency component is a heuristic: version segment count is
    a weak stand-in for release cadence.
    """

    def __init__(self, platform_version: str = DEFAULT_PLATFORM_VERSION):
        """Initialize evaluator.

        Args:
            platform_version: Current platform release used for compatibility scoring.
        """
        self.platform_version = platform_version

    def update_frequency_score(self, plugin: PluginMetadata, now: datetime) -> float | None:
        if not plugin.version or plugin.last_updated is None:
            return None

        parts = plugin.version.split(".")
        if len(parts) >= 3:
            structure = 0.8
        elif len(parts) == 2:
            structure = 0.6
        else:
            structure = 0.4

        # Many patch releases suggest active development
        if len(parts) >= 3 and _leading_int(parts[2]) > 5:
            structure += 0.1

        days = days_since(plugin.last_updated, now)
        recency = _days_step(days, ACTIVITY_RECENCY_STEPS, ACTIVITY_RECENCY_FLOOR)

        return min(1.0, structure * recency)

    def compatibility_score(self, plugin: PluginMetadata) -> float | None:
        if not plugin.tested_up_to:
            return None

        tested_major, tested_minor = _major_minor(plugin.tested_up_to)
        current_major, current_minor = _major_minor(self.platform_version)

        if tested_major > current_major:
            return 1.0
        if tested_major < current_major:
            return 0.4

        behind = current_minor - tested_minor
        if behind <= 0:
            return 1.0
        if behind == 1:
            return 0.9
        if behind == 2:
            return 0.8
        return 0.6

    def support_response_score(self, plugin: PluginMetadata) -> float | None:
        total = plugin.support_threads_total
        resolved = plugin.support_threads_resolved
        if total is None or resolved is None:
            return None
        if total == 0:
            return NO_SUPPORT_THREADS_SCORE

        score = resolved / total
        if total >= 10:
            score += 0.1
        if total - resolved > 20:
            score -= 0.1

        return max(0.0, min(1.0, score))

    def recency_score(self, plugin: PluginMetadata, now: datetime) -> float | None:
        if plugin.last_updated is None:
            return None
        return _days_step(days_since(plugin.last_updated, now), RECENCY_STEPS, RECENCY_FLOOR)

    def reported_issues_score(self, plugin: PluginMetadata) -> float:
        distribution = plugin.rating_distribution
        total = sum(distribution.values())
        if total == 0:
            return NO_RATING_DATA_SCORE

        low = distribution.get(1, 0) + distribution.get(2, 0)
        score = 1.0 - (low / total) * 1.5
        if low > 50:
            score -= 0.1

        return max(0.0, min(1.0, score))

    def evaluate_with_breakdown(
        self,
        plugin: PluginMetadata,
        weights: HealthWeights,
        current_time: datetime | None = None,
    ) -> tuple[float, ScoreBreakdown]:
        """Calculate the health score and its breakdown.

        Args:
            plugin: The plugin to evaluate
            weights: Health component weights
            current_time: Current time for recency (defaults to now)

        Returns:
            Tuple of (score between 0-100, breakdown)
        """
        if current_time is None:
            current_time = datetime.now(UTC)

        components = {
            "update_frequency": self.update_frequency_score(plugin, current_time),
            "wp_compatibility": self.compatibility_score(plugin),
            "support_response": self.support_response_score(plugin),
            "time_since_update": self.recency_score(plugin, current_time),
            "reported_issues": self.reported_issues_score(plugin),
        }
        breakdown = combine_components(components, weights.model_dump())

        if breakdown.total_weight == 0:
            score = NO_SIGNAL_HEALTH_SCORE
        else:
            score = int(round_half_up(max(0.0, min(100.0, breakdown.normalized * 100))))
        breakdown.final = score

        return score, breakdown

    def evaluate(
        self,
        plugin: PluginMetadata,
        weights: HealthWeights,
        current_time: datetime | None = None,
    ) -> int:
        """Calculate the health score (integer 0-100)."""
        score, _ = self.evaluate_with_breakdown(plugin, weights, current_time)
        return int(score)
