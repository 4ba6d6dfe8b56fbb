"""Abstract base classes for the cache and its fast tier.

The cache stores JSON-serializable values under scoped keys with a TTL.
``None`` is the miss marker and cannot be stored.
"""

from abc import ABC, abstractmethod
from typing import Any


class Cache(ABC):
    """Key/value cache with TTL semantics."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Get a value from the cache.

        Args:
            key: Scoped cache key.

        Returns:
            Cached value if found and not expired, None otherwise.
        """
        ...

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int) -> None:
        """Store a value in the cache.

        Args:
            key: Scoped cache key.
            value: JSON-serializable value (not None).
            ttl: Time-to-live in seconds, must be positive.
        """
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete a value from the cache.

        Returns:
            True if a durable entry was deleted, False if not found.
        """
        ...

    @abstractmethod
    def get_many(self, keys: list[str]) -> dict[str, Any]:
        """Get several values at once.

        Returns:
            Mapping containing only the keys that were found and not expired.
        """
        ...

    @abstractmethod
    def clear(self, scope: str = "all") -> int:
        """Delete every entry under a scope.

        Returns:
            Number of durable entries removed.
        """
        ...


class FastTier(ABC):
    """Optional fast tier in front of the durable store.

    Implementations store already-serialized payloads and must never raise
    for backend failures: a failing fast tier behaves like an empty one.
    """

    name = "none"

    @abstractmethod
    def get(self, key: str) -> bytes | None: ...

    @abstractmethod
    def get_many(self, keys: list[str]) -> dict[str, bytes]: ...

    @abstractmethod
    def set(self, key: str, payload: bytes, ttl: int) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...

    @abstractmethod
    def clear(self, scope: str | None = None) -> None:
        """Drop entries under ``scope`` (every entry when None)."""
        ...
