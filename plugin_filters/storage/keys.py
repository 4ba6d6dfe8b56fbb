"""Cache key construction.

Keys have the form ``<scope>:<sha256 of the canonical logical key>``, which
bounds key length and keeps arbitrary search terms out of the store's key
namespace.
"""

import hashlib
import json
from typing import Any


def canonical_json(value: Any) -> str:
    """Deterministic JSON: sorted keys, compact separators, non-ASCII kept."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


def build_cache_key(scope: str, logical_key: Any) -> str:
    """Build a scoped cache key.

    Args:
        scope: Logical namespace (e.g. "scores", "search")
        logical_key: Any JSON-serializable identity (a slug, a request payload)

    Returns:
        ``scope:hexdigest``, identical for semantically identical inputs
        regardless of mapping order.
    """
    digest = hashlib.sha256(canonical_json(logical_key).encode("utf-8")).hexdigest()
    return f"{scope}:{digest}"


def scope_of(key: str) -> str:
    """Scope part of a cache key."""
    return key.split(":", 1)[0]
