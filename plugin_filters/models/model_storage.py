"""Cache storage models."""

from datetime import datetime

from pydantic import BaseModel, Field

from plugin_filters.models.common import _utc_now


class CacheEntry(BaseModel):
    """A durable-tier row.

    Never visible to readers once ``now >= stored_at + ttl_seconds``.
    """

    key: str
    scope: str
    payload: bytes
    stored_at: float = Field(description="Unix timestamp of the write")
    ttl_seconds: int = Field(gt=0)
    compressed: bool = False

    @property
    def expires_at(self) -> float:
        return self.stored_at + self.ttl_seconds

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class ScopeStats(BaseModel):
    """Aggregate size of one cache scope."""

    count: int = Field(default=0, ge=0)
    total_bytes: int = Field(default=0, ge=0)
    avg_bytes: int = Field(default=0, ge=0)


class CacheStats(BaseModel):
    """Aggregate statistics over the durable tier."""

    count: int = Field(default=0, ge=0)
    total_bytes: int = Field(default=0, ge=0)
    expired: int = Field(default=0, ge=0, description="Entries awaiting cleanup")
    by_scope: dict[str, ScopeStats] = Field(default_factory=dict)
    fast_tier: str = Field(default="none", description="Active fast tier backend")
    cache_durations: dict[str, int] = Field(default_factory=dict)
    computed_at: datetime = Field(default_factory=_utc_now)
