"""Post-filtering on computed scores.

Runs AFTER scoring, since minimum usability and health thresholds can only
be checked once scores are attached.
"""

import logging

from plugin_filters.models.model_request import FilterRequest, PluginResult

logger = logging.getLogger(__name__)


class PostFilter:
    """Drop scored plugins below the requested minimum rating or health score."""

    def apply(self, plugins: list[PluginResult], request: FilterRequest) -> list[PluginResult]:
        """Apply score thresholds.

        Args:
            plugins: Scored plugins in catalog order
            request: The browse request carrying the thresholds

        Returns:
            Plugins meeting both thresholds, order preserved
        """
        if request.min_usability_rating <= 0 and request.min_health_score <= 0:
            return plugins

        filtered = []
        for plugin in plugins:
            if plugin.usability_rating < request.min_usability_rating:
                logger.debug(
                    f"Post-filter dropped {plugin.slug}: usability "
                    f"{plugin.usability_rating} < {request.min_usability_rating}"
                )
                continue
            if plugin.health_score < request.min_health_score:
                logger.debug(
                    f"Post-filter dropped {plugin.slug}: health "
                    f"{plugin.health_score} < {request.min_health_score}"
                )
                continue
            filtered.append(plugin)

        logger.info(f"Post-filter: {len(filtered)}/{len(plugins)} plugins met thresholds")

        return filtered
