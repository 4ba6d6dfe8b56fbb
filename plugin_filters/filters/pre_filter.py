"""Pre-filtering on raw catalog fields, before any scores are attached.

Runs the install-range predicate first, then the update-timeframe predicate.
Records are dropped, never mutated.
"""

import logging
from datetime import UTC, datetime

from plugin_filters.models.common import days_since
from plugin_filters.models.model_plugin import PluginMetadata
from plugin_filters.models.model_request import FilterRequest, InstallRange, UpdateTimeframe

logger = logging.getLogger(__name__)

# Half-open [low, high) active-install bounds; None means unbounded
INSTALL_RANGE_BOUNDS: dict[InstallRange, tuple[int, int | None]] = {
    InstallRange.UNDER_1K: (0, 1_000),
    InstallRange.FROM_1K_TO_10K: (1_000, 10_000),
    InstallRange.FROM_10K_TO_100K: (10_000, 100_000),
    InstallRange.FROM_100K_TO_1M: (100_000, 1_000_000),
    InstallRange.OVER_1M: (1_000_000, None),
}

# Maximum age in days; OLDER is handled separately as "more than a year"
TIMEFRAME_MAX_DAYS: dict[UpdateTimeframe, int] = {
    UpdateTimeframe.LAST_WEEK: 7,
    UpdateTimeframe.LAST_MONTH: 30,
    UpdateTimeframe.LAST_3_MONTHS: 90,
    UpdateTimeframe.LAST_6_MONTHS: 180,
    UpdateTimeframe.LAST_YEAR: 365,
}
OLDER_THAN_DAYS = 365


def matches_install_range(plugin: PluginMetadata, install_range: InstallRange) -> bool:
    if install_range == InstallRange.ALL:
        return True
    low, high = INSTALL_RANGE_BOUNDS[install_range]
    installs = plugin.active_installs
    return installs >= low and (high is None or installs < high)


def matches_timeframe(plugin: PluginMetadata, timeframe: UpdateTimeframe, now: datetime) -> bool:
    """True when the last update falls inside the timeframe.

    A record without a usable update date only passes ``all``.
    """
    if timeframe == UpdateTimeframe.ALL:
        return True
    if plugin.last_updated is None:
        return False

    days = days_since(plugin.last_updated, now)
    if timeframe == UpdateTimeframe.OLDER:
        return days > OLDER_THAN_DAYS
    return days <= TIMEFRAME_MAX_DAYS[timeframe]


class PreFilter:
    """Drop catalog records that fail the install-range or timeframe filter."""

    def apply(
        self,
        plugins: list[PluginMetadata],
        request: FilterRequest,
        current_time: datetime | None = None,
    ) -> list[PluginMetadata]:
        """Filter catalog records before scoring.

        Args:
            plugins: Records in catalog order
            request: The browse request carrying the filters
            current_time: Reference time for the timeframe filter (defaults to now)

        Returns:
            Surviving records, catalog order preserved
        """
        if current_time is None:
            current_time = datetime.now(UTC)

        by_range = [p for p in plugins if matches_install_range(p, request.installation_range)]
        filtered = [
            p for p in by_range if matches_timeframe(p, request.update_timeframe, current_time)
        ]

        logger.info(
            f"Pre-filter: {len(filtered)}/{len(plugins)} plugins passed "
            f"({len(plugins) - len(by_range)} by install range, "
            f"{len(by_range) - len(filtered)} by update timeframe)"
        )

        return filtered
