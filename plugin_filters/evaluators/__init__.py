"""Scoring engine for plugin usability ratings and health scores.

Plugins are scored on two composite metrics:
- Usability (1.0-5.0): rating, rating volume, installs, support resolution
- Health (0-100): release activity, compatibility, support, recency, complaints

All evaluators are stateless pure functions of PluginMetadata + weights.
"""

from plugin_filters.evaluators.base import BaseEvaluator
from plugin_filters.evaluators.composite import (
    combine_components,
    health_color,
    health_description,
    round_half_up,
)
from plugin_filters.evaluators.health import HealthEvaluator
from plugin_filters.evaluators.registry import ScoringEngine
from plugin_filters.evaluators.usability import UsabilityEvaluator

__all__ = [
    # Protocol
    "BaseEvaluator",
    # Individual evaluators
    "UsabilityEvaluator",
    "HealthEvaluator",
    # Orchestration
    "ScoringEngine",
    # Composite scoring
    "combine_components",
    "round_half_up",
    # Display
    "health_color",
    "health_description",
]
