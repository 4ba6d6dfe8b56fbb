"""Scoring weights and score results."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from plugin_filters.models.common import _utc_now

# Allowed deviation of a weight set's total from 100
WEIGHT_SUM_TOLERANCE = 1


class UsabilityWeights(BaseModel):
    """Percentage weights of the usability rating components.

    The engine falls back to the defaults when the set does not sum to 100 ± 1
    instead of rejecting the configuration.
    """

    user_rating: int = 40
    rating_count: int = 20
    install_count: int = 25
    support_responsiveness: int = 15

    @property
    def total(self) -> int:
        return sum(self.model_dump().values())

    def is_valid(self) -> bool:
        """True when no weight is negative and the total is within tolerance of 100."""
        values = self.model_dump().values()
        return all(v >= 0 for v in values) and abs(self.total - 100) <= WEIGHT_SUM_TOLERANCE


class HealthWeights(BaseModel):
    """Percentage weights of the health score components."""

    update_frequency: int = 30
    wp_compatibility: int = 25
    support_response: int = 20
    time_since_update: int = 15
    reported_issues: int = 10

    @property
    def total(self) -> int:
        return sum(self.model_dump().values())

    def is_valid(self) -> bool:
        """True when no weight is negative and the total is within tolerance of 100."""
        values = self.model_dump().values()
        return all(v >= 0 for v in values) and abs(self.total - 100) <= WEIGHT_SUM_TOLERANCE


class WeightConfig(BaseModel):
    """Both weight sets, loaded once per scoring pass."""

    usability: UsabilityWeights = Field(default_factory=UsabilityWeights)
    health: HealthWeights = Field(default_factory=HealthWeights)


class HealthColor(str, Enum):
    """Display band of a health score."""

    GREEN = "green"
    LIGHT_GREEN = "light-green"
    ORANGE = "orange"
    RED = "red"


class ComponentScore(BaseModel):
    """One component's contribution to a composite score."""

    name: str
    raw: float | None = Field(default=None, description="0-1 sub-score, None when the signal is absent")
    weight: int = Field(description="Configured percentage weight")
    contribution: float = Field(default=0.0, description="raw * weight / 100")


class ScoreBreakdown(BaseModel):
    """Diagnostic trace of a composite score calculation."""

    components: list[ComponentScore] = Field(default_factory=list)
    weighted_sum: float = 0.0
    total_weight: float = 0.0
    normalized: float = 0.0
    final: float = 0.0
    used_default_weights: bool = False


class ScoreResult(BaseModel):
    """Usability rating and health score for one plugin."""

    slug: str
    usability_rating: float = Field(ge=1.0, le=5.0, description="One decimal place")
    health_score: int = Field(ge=0, le=100)
    health_color: HealthColor
    calculated_at: datetime = Field(default_factory=_utc_now)
    usability_breakdown: ScoreBreakdown | None = None
    health_breakdown: ScoreBreakdown | None = None
