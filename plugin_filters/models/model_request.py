"""Filter request and paged response models."""

import math
import re
from collections.abc import Mapping
from enum import Enum
from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from plugin_filters.consts import (
    DEFAULT_PER_PAGE,
    MAX_PAGE,
    MAX_PER_PAGE,
    MAX_SEARCH_TERM_LENGTH,
)
from plugin_filters.errors import ValidationError
from plugin_filters.models.model_eval import HealthColor
from plugin_filters.models.model_plugin import PluginMetadata

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


class InstallRange(str, Enum):
    """Active-install buckets offered by the directory UI."""

    ALL = "all"
    UNDER_1K = "0-1k"
    FROM_1K_TO_10K = "1k-10k"
    FROM_10K_TO_100K = "10k-100k"
    FROM_100K_TO_1M = "100k-1m"
    OVER_1M = "1m-plus"


class UpdateTimeframe(str, Enum):
    """Last-updated windows offered by the directory UI."""

    ALL = "all"
    LAST_WEEK = "last_week"
    LAST_MONTH = "last_month"
    LAST_3_MONTHS = "last_3months"
    LAST_6_MONTHS = "last_6months"
    LAST_YEAR = "last_year"
    OLDER = "older"


class SortBy(str, Enum):
    """Sortable result fields."""

    RELEVANCE = "relevance"
    INSTALLATIONS = "installations"
    RATING = "rating"
    UPDATED = "updated"
    USABILITY_RATING = "usability_rating"
    HEALTH_SCORE = "health_score"
    NAME = "name"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


def _enum_or_default(enum_cls: type[Enum], value: object, default: Enum) -> Enum:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            return default
    return default


def _to_number(value: object, field: str) -> float:
    if value is None or value == "":
        raise ValueError(f"{field} is required")
    if isinstance(value, bool):
        raise ValueError(f"{field} must be a number")
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be a number") from None
    if math.isnan(number) or math.isinf(number):
        raise ValueError(f"{field} must be a finite number")
    return number


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class FilterRequest(BaseModel):
    """A directory browse request.

    Out-of-range values are clamped rather than rejected. Only values that
    cannot be interpreted at all (a page number of "abc") fail validation.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    search_term: str = ""
    installation_range: InstallRange = InstallRange.ALL
    update_timeframe: UpdateTimeframe = UpdateTimeframe.ALL
    min_usability_rating: float = Field(default=0.0, alias="usability_rating")
    min_health_score: int = Field(default=0, alias="health_score")
    sort_by: SortBy = SortBy.RELEVANCE
    sort_direction: SortDirection = SortDirection.DESC
    page: int = 1
    per_page: int = DEFAULT_PER_PAGE

    @field_validator("search_term", mode="before")
    @classmethod
    def _clean_search_term(cls, value: object) -> str:
        if value is None:
            return ""
        if isinstance(value, (dict, list, tuple, set)):
            raise ValueError("search_term must be a string")
        text = _TAG_RE.sub("", str(value))
        text = _WHITESPACE_RE.sub(" ", text).strip()
        return text[:MAX_SEARCH_TERM_LENGTH]

    @field_validator("installation_range", mode="before")
    @classmethod
    def _clamp_install_range(cls, value: object) -> InstallRange:
        return _enum_or_default(InstallRange, value, InstallRange.ALL)

    @field_validator("update_timeframe", mode="before")
    @classmethod
    def _clamp_timeframe(cls, value: object) -> UpdateTimeframe:
        return _enum_or_default(UpdateTimeframe, value, UpdateTimeframe.ALL)

    @field_validator("sort_by", mode="before")
    @classmethod
    def _clamp_sort_by(cls, value: object) -> SortBy:
        return _enum_or_default(SortBy, value, SortBy.RELEVANCE)

    @field_validator("sort_direction", mode="before")
    @classmethod
    def _clamp_sort_direction(cls, value: object) -> SortDirection:
        return _enum_or_default(SortDirection, value, SortDirection.DESC)

    @field_validator("min_usability_rating", mode="before")
    @classmethod
    def _clamp_usability(cls, value: object) -> float:
        if value is None or value == "":
            return 0.0
        return _clamp(_to_number(value, "usability_rating"), 0.0, 5.0)

    @field_validator("min_health_score", mode="before")
    @classmethod
    def _clamp_health(cls, value: object) -> int:
        if value is None or value == "":
            return 0
        return int(_clamp(_to_number(value, "health_score"), 0, 100))

    @field_validator("page", mode="before")
    @classmethod
    def _clamp_page(cls, value: object) -> int:
        if value is None or value == "":
            return 1
        return int(_clamp(_to_number(value, "page"), 1, MAX_PAGE))

    @field_validator("per_page", mode="before")
    @classmethod
    def _clamp_per_page(cls, value: object) -> int:
        if value is None or value == "":
            return DEFAULT_PER_PAGE
        return int(_clamp(_to_number(value, "per_page"), 1, MAX_PER_PAGE))

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> "FilterRequest":
        """Build a request from wire-format fields, ignoring unknown keys.

        Raises:
            ValidationError: If the payload is not a mapping or a field cannot be interpreted.
        """
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValidationError("Request body must be a JSON object.")
        try:
            return cls.model_validate(dict(payload))
        except pydantic.ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or "request"
            raise ValidationError(f"Invalid value for {field}.") from e

    def to_payload(self) -> dict[str, Any]:
        """Wire-format representation (field names as sent by the UI)."""
        return self.model_dump(mode="json", by_alias=True)

    def applied_filters(self) -> dict[str, Any]:
        """Summary of the non-default filters in effect."""
        filters: dict[str, Any] = {}
        if self.search_term:
            filters["search_term"] = self.search_term
        if self.installation_range != InstallRange.ALL:
            filters["installation_range"] = self.installation_range.value
        if self.update_timeframe != UpdateTimeframe.ALL:
            filters["update_timeframe"] = self.update_timeframe.value
        if self.min_usability_rating > 0:
            filters["usability_rating"] = self.min_usability_rating
        if self.min_health_score > 0:
            filters["health_score"] = self.min_health_score
        if self.sort_by != SortBy.RELEVANCE:
            filters["sort_by"] = self.sort_by.value
            filters["sort_direction"] = self.sort_direction.value
        return filters


class PluginResult(PluginMetadata):
    """Plugin metadata enriched with its computed scores."""

    usability_rating: float = Field(ge=1.0, le=5.0)
    health_score: int = Field(ge=0, le=100)
    health_color: HealthColor


class Pagination(BaseModel):
    current_page: int = Field(ge=1)
    total_pages: int = Field(ge=0)
    total_results: int = Field(ge=0)
    per_page: int = Field(ge=1)


class PagedResult(BaseModel):
    """Response body of a filter request."""

    plugins: list[PluginResult] = Field(default_factory=list)
    pagination: Pagination
    filters_applied: dict[str, Any] = Field(default_factory=dict)
