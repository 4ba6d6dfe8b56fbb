"""Operator configuration.

Settings come from defaults, then an optional JSON file, then environment
variables prefixed ``PLUGIN_FILTERS_``.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

import pydantic
from pydantic import BaseModel, Field, field_validator

from plugin_filters.consts import (
    CATALOG_BASE_URL,
    CATALOG_TIMEOUT_SECONDS,
    CATALOG_USER_AGENT,
    CLEANUP_BATCH_LIMIT,
    COMPRESSION_LEVEL,
    COMPRESSION_THRESHOLD_BYTES,
    DEFAULT_CACHE_DURATIONS,
    DEFAULT_DATA_DIR,
    DEFAULT_PLATFORM_VERSION,
    FAST_TIER_KINDS,
    FAST_TIER_TTL_CAP,
    RATE_LIMIT_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
    STATS_CACHE_SECONDS,
)
from plugin_filters.errors import ValidationError
from plugin_filters.models.model_eval import WeightConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "PLUGIN_FILTERS_"
SETTINGS_FILENAME = "settings.json"

# Environment variable suffix -> Settings field
ENV_OVERRIDES = {
    "DATA_DIR": "data_dir",
    "DB_PATH": "db_path",
    "FAST_TIER": "fast_tier",
    "REDIS_URL": "redis_url",
    "PLATFORM_VERSION": "platform_version",
    "CATALOG_URL": "catalog_base_url",
    "CATALOG_TIMEOUT": "catalog_timeout",
    "RATE_LIMIT_REQUESTS": "rate_limit_requests",
    "RATE_LIMIT_WINDOW": "rate_limit_window_seconds",
}


class Settings(BaseModel):
    """Every operator knob, with the production defaults."""

    data_dir: Path = DEFAULT_DATA_DIR
    db_path: Path | None = Field(default=None, description="Defaults to {data_dir}/cache.db")

    # Cache
    cache_durations: dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_CACHE_DURATIONS))
    fast_tier: str = "memory"
    redis_url: str | None = None
    fast_tier_ttl_cap: int = Field(default=FAST_TIER_TTL_CAP, gt=0)
    compression_threshold: int = Field(default=COMPRESSION_THRESHOLD_BYTES, ge=0)
    compression_level: int = Field(default=COMPRESSION_LEVEL, ge=1, le=9)
    stats_ttl: int = Field(default=STATS_CACHE_SECONDS, ge=0)
    cleanup_limit: int = Field(default=CLEANUP_BATCH_LIMIT, gt=0)

    # Rate limiting
    rate_limit_requests: int = Field(default=RATE_LIMIT_REQUESTS, gt=0)
    rate_limit_window_seconds: int = Field(default=RATE_LIMIT_WINDOW_SECONDS, gt=0)

    # Catalog
    catalog_base_url: str = CATALOG_BASE_URL
    catalog_timeout: float = Field(default=CATALOG_TIMEOUT_SECONDS, gt=0)
    catalog_user_agent: str = CATALOG_USER_AGENT

    # Scoring
    platform_version: str = DEFAULT_PLATFORM_VERSION
    weights: WeightConfig = Field(default_factory=WeightConfig)

    @field_validator("fast_tier")
    @classmethod
    def _known_fast_tier(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in FAST_TIER_KINDS:
            raise ValueError(f"fast_tier must be one of {FAST_TIER_KINDS}")
        return value

    @field_validator("cache_durations")
    @classmethod
    def _complete_durations(cls, value: dict[str, int]) -> dict[str, int]:
        merged = {**DEFAULT_CACHE_DURATIONS, **value}
        for name, ttl in merged.items():
            if ttl <= 0:
                raise ValueError(f"cache duration '{name}' must be positive")
        return merged

    @property
    def database_path(self) -> Path:
        return self.db_path or self.data_dir / "cache.db"


def _read_settings_file(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to read settings file {path}: {e}")
        raise ValidationError("The settings file could not be read.") from e
    if not isinstance(data, dict):
        raise ValidationError("The settings file must contain a JSON object.")
    return data


def load_settings(path: Path | str | None = None) -> Settings:
    """Load settings from an optional JSON file and the environment.

    Args:
        path: Settings file. Defaults to {data_dir}/settings.json when it exists.

    Returns:
        Validated Settings

    Raises:
        ValidationError: If the file is unreadable or a value is invalid
    """
    overrides: dict[str, Any] = {}
    for suffix, field in ENV_OVERRIDES.items():
        value = os.getenv(f"{ENV_PREFIX}{suffix}")
        if value is not None and value.strip():
            overrides[field] = value.strip()

    data_dir = Path(overrides.get("data_dir", DEFAULT_DATA_DIR))
    settings_path = Path(path) if path is not None else data_dir / SETTINGS_FILENAME

    values: dict[str, Any] = {}
    if path is not None or settings_path.exists():
        values = _read_settings_file(settings_path)
        logger.info(f"Loaded settings from {settings_path}")
    values.update(overrides)

    try:
        return Settings.model_validate(values)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "settings"
        logger.error(f"Invalid settings: {e}")
        raise ValidationError(f"Invalid setting: {field}.") from e
