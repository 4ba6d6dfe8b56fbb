"""Tests for request, plugin and weight models."""

from datetime import date

import pydantic
import pytest

from plugin_filters.errors import ValidationError
from plugin_filters.models import (
    CacheEntry,
    FilterRequest,
    HealthWeights,
    InstallRange,
    PluginMetadata,
    SortBy,
    SortDirection,
    UpdateTimeframe,
    UsabilityWeights,
)


class TestFilterRequest:
    """Tests for FilterRequest validation and clamping."""

    def test_defaults(self) -> None:
        """Test an empty payload gives the default request."""
        request = FilterRequest.from_payload({})

        assert request.search_term == ""
        assert request.installation_range == InstallRange.ALL
        assert request.update_timeframe == UpdateTimeframe.ALL
        assert request.sort_by == SortBy.RELEVANCE
        assert request.sort_direction == SortDirection.DESC
        assert request.page == 1
        assert request.per_page == 24

    @pytest.mark.parametrize(
        ("field", "value", "attribute", "expected"),
        [
            ("per_page", 100, "per_page", 48),
            ("per_page", 0, "per_page", 1),
            ("page", 0, "page", 1),
            ("page", 5000, "page", 1000),
            ("page", "3", "page", 3),
            ("usability_rating", 7, "min_usability_rating", 5.0),
            ("usability_rating", -1, "min_usability_rating", 0.0),
            ("health_score", 150, "min_health_score", 100),
            ("health_score", -5, "min_health_score", 0),
        ],
    )
    def test_numeric_clamping(self, field: str, value, attribute: str, expected) -> None:
        """Test out-of-range numbers are clamped rather than rejected."""
        request = FilterRequest.from_payload({field: value})
        assert getattr(request, attribute) == expected

    def test_unknown_enums_fall_back(self) -> None:
        """Test unrecognized enum values fall back to defaults."""
        request = FilterRequest.from_payload(
            {
                "installation_range": "huge",
                "update_timeframe": "yesterday",
                "sort_by": "random",
                "sort_direction": "sideways",
            }
        )

        assert request.installation_range == InstallRange.ALL
        assert request.update_timeframe == UpdateTimeframe.ALL
        assert request.sort_by == SortBy.RELEVANCE
        assert request.sort_direction == SortDirection.DESC

    def test_enum_case_insensitive(self) -> None:
        """Test enum values are matched case-insensitively."""
        request = FilterRequest.from_payload({"sort_by": "NAME", "sort_direction": "ASC"})
        assert request.sort_by == SortBy.NAME
        assert request.sort_direction == SortDirection.ASC

    def test_search_term_cleaned(self) -> None:
        """Test markup is stripped, whitespace collapsed and length capped."""
        request = FilterRequest.from_payload({"search_term": "  <b>online</b>   store  "})
        assert request.search_term == "online store"

        long_term = FilterRequest.from_payload({"search_term": "x" * 500})
        assert len(long_term.search_term) == 200

    @pytest.mark.parametrize("payload", [{"page": "abc"}, {"per_page": "many"}, {"health_score": float("nan")}])
    def test_uninterpretable_values(self, payload) -> None:
        """Test values that cannot be read as numbers are rejected."""
        with pytest.raises(ValidationError):
            FilterRequest.from_payload(payload)

    def test_non_mapping_payload(self) -> None:
        """Test a payload that is not an object is rejected."""
        with pytest.raises(ValidationError):
            FilterRequest.from_payload(["page", 1])

    def test_unknown_keys_ignored(self) -> None:
        """Test extra keys do not affect the request."""
        assert FilterRequest.from_payload({"nonce": "abc"}) == FilterRequest()

    def test_payload_identity(self) -> None:
        """Test equivalent payloads produce the same wire representation."""
        first = FilterRequest.from_payload({"page": "2", "sort_by": "Rating"})
        second = FilterRequest.from_payload({"sort_by": "rating", "page": 2})
        assert first.to_payload() == second.to_payload()
        assert first.to_payload()["usability_rating"] == 0.0

    def test_applied_filters(self) -> None:
        """Test only non-default filters are reported."""
        request = FilterRequest.from_payload({"update_timeframe": "last_month", "health_score": 70})
        assert request.applied_filters() == {"update_timeframe": "last_month", "health_score": 70}


class TestPluginMetadata:
    """Tests for PluginMetadata validation."""

    def test_catalog_date_format(self) -> None:
        """Test catalog date strings are parsed."""
        plugin = PluginMetadata(slug="a", last_updated="2024-05-01 3:14pm GMT")
        assert plugin.last_updated == date(2024, 5, 1)

    def test_invalid_date(self) -> None:
        """Test invalid dates become None."""
        assert PluginMetadata(slug="a", last_updated="2024-13-45").last_updated is None

    def test_resolved_clamped_to_total(self) -> None:
        """Test resolved threads never exceed the total."""
        plugin = PluginMetadata(slug="a", support_threads_total=10, support_threads_resolved=15)
        assert plugin.support_threads_resolved == 10

    def test_distribution_keys(self) -> None:
        """Test string star keys become integers and out-of-range stars are dropped."""
        plugin = PluginMetadata(slug="a", rating_distribution={"5": "10", "1": 2, "9": 4})
        assert plugin.rating_distribution == {5: 10, 1: 2}

    def test_frozen(self) -> None:
        """Test records are read-only."""
        plugin = PluginMetadata(slug="a")
        with pytest.raises(pydantic.ValidationError):
            plugin.rating = 5.0


class TestWeights:
    """Tests for weight set validity."""

    @pytest.mark.parametrize(("user_rating", "valid"), [(38, False), (39, True), (40, True), (41, True), (42, False)])
    def test_usability_tolerance(self, user_rating: int, valid: bool) -> None:
        """Test sums within one of 100 are valid."""
        assert UsabilityWeights(user_rating=user_rating).is_valid() is valid

    def test_health_defaults_valid(self) -> None:
        """Test the default health weights sum to 100."""
        assert HealthWeights().total == 100
        assert HealthWeights().is_valid()


class TestCacheEntry:
    """Tests for CacheEntry expiry."""

    @pytest.mark.parametrize(("now", "expired"), [(109.9, False), (110.0, True), (111.0, True)])
    def test_expiry_boundary(self, now: float, expired: bool) -> None:
        """Test an entry is expired from stored_at + ttl onwards."""
        entry = CacheEntry(key="meta:a", scope="meta", payload=b"{}", stored_at=100.0, ttl_seconds=10)
        assert entry.is_expired(now) is expired
