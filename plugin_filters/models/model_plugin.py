"""Plugin metadata records produced by the catalog client."""

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from plugin_filters.models.common import parse_catalog_date


class PluginMetadata(BaseModel):
    """One plugin as described by the remote catalog.

    Read-only once parsed; every downstream stage receives the same instance.
    """

    model_config = ConfigDict(frozen=True)

    # Identity
    slug: str = Field(min_length=1, description="Unique catalog identifier")

    # Descriptive fields
    name: str = Field(default="", description="Display name")
    version: str = Field(default="", description="Current release version string")
    author: str = Field(default="", description="Author name with markup stripped")
    description: str = Field(default="", description="Short description")
    homepage: str = Field(default="", description="Plugin homepage URL")
    tags: list[str] = Field(default_factory=list)

    # Numeric signals
    rating: float = Field(default=0.0, ge=0.0, le=5.0, description="Average rating, 0-5 scale")
    num_ratings: int = Field(default=0, ge=0)
    active_installs: int = Field(default=0, ge=0)
    support_threads_total: int | None = Field(
        default=None, ge=0, description="Support threads opened in the last two months"
    )
    support_threads_resolved: int | None = Field(default=None, ge=0)

    # Temporal fields
    last_updated: date | None = None
    added: date | None = None

    # Compatibility fields
    tested_up_to: str | None = Field(default=None, description="Highest platform version tested")
    requires_at_least: str | None = Field(default=None, description="Minimum platform version")

    # Star value (1-5) -> number of ratings
    rating_distribution: dict[int, int] = Field(default_factory=dict)

    @field_validator("last_updated", "added", mode="before")
    @classmethod
    def _parse_dates(cls, value: object) -> date | None:
        return parse_catalog_date(value)

    @field_validator("rating_distribution", mode="before")
    @classmethod
    def _parse_distribution(cls, value: object) -> dict[int, int]:
        if not isinstance(value, dict):
            return {}
        distribution: dict[int, int] = {}
        for star, count in value.items():
            try:
                star_value = int(star)
                star_count = max(0, int(count))
            except (TypeError, ValueError):
                continue
            if 1 <= star_value <= 5:
                distribution[star_value] = star_count
        return distribution

    @model_validator(mode="before")
    @classmethod
    def _resolved_within_total(cls, data: Any) -> Any:
        """Clamp resolved threads to the total thread count."""
        if not isinstance(data, dict):
            return data
        total = data.get("support_threads_total")
        resolved = data.get("support_threads_resolved")
        if isinstance(total, int) and isinstance(resolved, int) and resolved > total:
            data = {**data, "support_threads_resolved": total}
        return data


class PageInfo(BaseModel):
    """Catalog pagination info returned alongside a search page."""

    page: int = Field(default=1, ge=1)
    pages: int = Field(default=0, ge=0)
    results: int = Field(default=0, ge=0)
