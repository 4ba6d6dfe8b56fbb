"""Tests for settings loading."""

import json

import pydantic
import pytest

from plugin_filters.config import Settings, load_settings
from plugin_filters.consts import DEFAULT_CACHE_DURATIONS
from plugin_filters.errors import ValidationError


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Point the data dir at a temp directory and clear other overrides."""
    for suffix in ("DB_PATH", "FAST_TIER", "REDIS_URL", "PLATFORM_VERSION", "CATALOG_URL",
                   "CATALOG_TIMEOUT", "RATE_LIMIT_REQUESTS", "RATE_LIMIT_WINDOW"):
        monkeypatch.delenv(f"PLUGIN_FILTERS_{suffix}", raising=False)
    monkeypatch.setenv("PLUGIN_FILTERS_DATA_DIR", str(tmp_path))


class TestSettings:
    """Tests for the Settings model."""

    def test_defaults(self, tmp_path) -> None:
        """Test defaults without a file or overrides."""
        settings = load_settings()

        assert settings.data_dir == tmp_path
        assert settings.database_path == tmp_path / "cache.db"
        assert settings.fast_tier == "memory"
        assert settings.cache_durations == DEFAULT_CACHE_DURATIONS
        assert settings.rate_limit_requests == 30

    def test_partial_durations_merged(self) -> None:
        """Test overriding one TTL class keeps the others."""
        settings = Settings(cache_durations={"search": 600})
        assert settings.cache_durations["search"] == 600
        assert settings.cache_durations["scores"] == DEFAULT_CACHE_DURATIONS["scores"]

    def test_rejects_non_positive_duration(self) -> None:
        """Test TTL classes must be positive."""
        with pytest.raises(pydantic.ValidationError):
            Settings(cache_durations={"search": 0})


class TestLoadSettings:
    """Tests for load_settings."""

    def test_env_overrides(self, monkeypatch) -> None:
        """Test environment variables override defaults."""
        monkeypatch.setenv("PLUGIN_FILTERS_FAST_TIER", "Redis")
        monkeypatch.setenv("PLUGIN_FILTERS_REDIS_URL", "redis://cache:6379/1")
        monkeypatch.setenv("PLUGIN_FILTERS_CATALOG_TIMEOUT", "5")
        monkeypatch.setenv("PLUGIN_FILTERS_RATE_LIMIT_REQUESTS", "10")

        settings = load_settings()

        assert settings.fast_tier == "redis"
        assert settings.redis_url == "redis://cache:6379/1"
        assert settings.catalog_timeout == 5.0
        assert settings.rate_limit_requests == 10

    def test_settings_file(self, tmp_path) -> None:
        """Test the default settings file in the data dir is read."""
        (tmp_path / "settings.json").write_text(
            json.dumps({"platform_version": "6.9", "weights": {"usability": {"user_rating": 50}}})
        )

        settings = load_settings()

        assert settings.platform_version == "6.9"
        assert settings.weights.usability.user_rating == 50

    def test_env_beats_file(self, tmp_path, monkeypatch) -> None:
        """Test environment overrides win over the file."""
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"platform_version": "6.9"}))
        monkeypatch.setenv("PLUGIN_FILTERS_PLATFORM_VERSION", "7.0")

        assert load_settings(path).platform_version == "7.0"

    def test_missing_explicit_file(self, tmp_path) -> None:
        """Test an explicit path that does not exist is an error."""
        with pytest.raises(ValidationError):
            load_settings(tmp_path / "nope.json")

    def test_invalid_value(self, monkeypatch) -> None:
        """Test an invalid value names the field."""
        monkeypatch.setenv("PLUGIN_FILTERS_FAST_TIER", "memcached")

        with pytest.raises(ValidationError) as exc_info:
            load_settings()

        assert exc_info.value.message == "Invalid setting: fast_tier."

    def test_non_object_file(self, tmp_path) -> None:
        """Test a settings file holding a list is rejected."""
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValidationError):
            load_settings(path)
