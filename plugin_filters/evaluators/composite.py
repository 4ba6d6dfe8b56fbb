"""Weighted combination of component scores and health colour bands."""

from decimal import ROUND_HALF_UP, Decimal

from plugin_filters.models.model_eval import ComponentScore, HealthColor, ScoreBreakdown


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero (4.25 -> 4.3), unlike the built-in round()."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def combine_components(
    components: dict[str, float | None],
    weights: dict[str, int],
) -> ScoreBreakdown:
    """Weighted average over the components that carry a signal.

    Absent components (None) drop out of both numerator and denominator, so
    the remaining weights are renormalized to sum to 1.0.

    Args:
        components: Component name -> 0-1 sub-score, or None when absent
        weights: Component name -> percentage weight

    Returns:
        Breakdown whose ``normalized`` is the 0-1 weighted average
        (0.0 when no present component carries weight).
    """
    weighted_sum = 0.0
    total_weight = 0.0
    entries = []

    for name, raw in components.items():
        weight = weights.get(name, 0)
        contribution = 0.0
        if raw is not None:
            fraction = weight / 100
            contribution = raw * fraction
            weighted_sum += contribution
            total_weight += fraction
        entries.append(ComponentScore(name=name, raw=raw, weight=weight, contribution=contribution))

    normalized = weighted_sum / total_weight if total_weight > 0 else 0.0

    return ScoreBreakdown(
        components=entries,
        weighted_sum=weighted_sum,
        total_weight=total_weight,
        normalized=normalized,
    )


def health_color(score: int) -> HealthColor:
    """Colour band of a health score: 86+ green, 71+ light-green, 41+ orange, else red."""
    if score >= 86:
        return HealthColor.GREEN
    if score >= 71:
        return HealthColor.LIGHT_GREEN
    if score >= 41:
        return HealthColor.ORANGE
    return HealthColor.RED


def health_description(score: int) -> str:
    """Human-readable summary matching the colour bands."""
    if score >= 86:
        return "Excellent - Well maintained and actively supported"
    if score >= 71:
        return "Good - Regularly maintained with good support"
    if score >= 41:
        return "Fair - Occasionally maintained, some concerns"
    return "Poor - Infrequently maintained, potential issues"
