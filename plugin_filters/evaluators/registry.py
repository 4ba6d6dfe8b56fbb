"""Scoring engine orchestrating the usability and health evaluators."""

import logging
from datetime import UTC, datetime

from plugin_filters.consts import DEFAULT_PLATFORM_VERSION
from plugin_filters.evaluators.base import BaseEvaluator
from plugin_filters.evaluators.composite import health_color
from plugin_filters.evaluators.health import HealthEvaluator
from plugin_filters.evaluators.usability import UsabilityEvaluator
from plugin_filters.models.model_eval import (
    HealthWeights,
    ScoreResult,
    UsabilityWeights,
    WeightConfig,
)
from plugin_filters.models.model_plugin import PluginMetadata

logger = logging.getLogger(__name__)


class ScoringEngine:
    """Scores plugins with both composite metrics.

    The engine is a pure transformation: it never touches the cache or the
    catalog. Weight sets that do not sum to 100 ± 1 are replaced by the
    built-in defaults once, at construction, so every score in a pass is
    computed under the same weights.
    """

    def __init__(
        self,
        weights: WeightConfig | None = None,
        platform_version: str = DEFAULT_PLATFORM_VERSION,
    ) -> None:
        """Initialize engine with validated weights.

        Args:
            weights: Configured weight sets (defaults when None)
            platform_version: Current platform release for compatibility scoring
        """
        weights = weights or WeightConfig()

        self.usability_weights = weights.usability
        self.usability_fallback = False
        if not weights.usability.is_valid():
            logger.warning(
                f"Usability weights sum to {weights.usability.total}, not 100; using defaults"
            )
            self.usability_weights = UsabilityWeights()
            self.usability_fallback = True

        self.health_weights = weights.health
        self.health_fallback = False
        if not weights.health.is_valid():
            logger.warning(f"Health weights sum to {weights.health.total}, not 100; using defaults")
            self.health_weights = HealthWeights()
            self.health_fallback = True

        self.usability: BaseEvaluator = UsabilityEvaluator()
        self.health: BaseEvaluator = HealthEvaluator(platform_version)

    def score(self, plugin: PluginMetadata, current_time: datetime | None = None) -> ScoreResult:
        """Compute both scores for one plugin.

        Args:
            plugin: Catalog record to score
            current_time: Reference time for recency components (defaults to now)

        Returns:
            ScoreResult with breakdowns attached
        """
        if current_time is None:
            current_time = datetime.now(UTC)

        usability, usability_breakdown = self.usability.evaluate_with_breakdown(
            plugin, self.usability_weights, current_time
        )
        health, health_breakdown = self.health.evaluate_with_breakdown(
            plugin, self.health_weights, current_time
        )
        usability_breakdown.used_default_weights = self.usability_fallback
        health_breakdown.used_default_weights = self.health_fallback

        logger.debug(f"Scored {plugin.slug}: usability={usability}, health={health}")

        return ScoreResult(
            slug=plugin.slug,
            usability_rating=usability,
            health_score=int(health),
            health_color=health_color(int(health)),
            calculated_at=current_time,
            usability_breakdown=usability_breakdown,
            health_breakdown=health_breakdown,
        )

    def score_batch(
        self,
        plugins: list[PluginMetadata],
        current_time: datetime | None = None,
    ) -> dict[str, ScoreResult]:
        """Score multiple plugins under one reference time.

        Returns:
            Mapping of slug to ScoreResult
        """
        if current_time is None:
            current_time = datetime.now(UTC)
        return {plugin.slug: self.score(plugin, current_time) for plugin in plugins}
