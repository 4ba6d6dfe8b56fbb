"""Payload serialization with transparent zlib compression."""

import json
import zlib
from typing import Any

from plugin_filters.consts import COMPRESSION_LEVEL, COMPRESSION_THRESHOLD_BYTES


def serialize(value: Any) -> bytes:
    return json.dumps(value, separators=(",", ":"), default=str).encode("utf-8")


def deserialize(payload: bytes) -> Any:
    return json.loads(payload.decode("utf-8"))


def compress_if_large(
    raw: bytes,
    threshold: int = COMPRESSION_THRESHOLD_BYTES,
    level: int = COMPRESSION_LEVEL,
) -> tuple[bytes, bool]:
    """Compress serialized bytes when they exceed ``threshold``.

    Returns:
        Tuple of (payload, compressed flag)
    """
    if len(raw) > threshold:
        return zlib.compress(raw, level), True
    return raw, False


def encode_payload(
    value: Any,
    threshold: int = COMPRESSION_THRESHOLD_BYTES,
    level: int = COMPRESSION_LEVEL,
) -> tuple[bytes, bool]:
    """Serialize a value, compressing it when the JSON exceeds ``threshold`` bytes."""
    return compress_if_large(serialize(value), threshold, level)


def decode_payload(payload: bytes, compressed: bool) -> Any:
    """Inverse of encode_payload.

    Raises:
        ValueError: If the payload is corrupt (zlib.error and JSON errors are
            both reported as ValueError).
    """
    try:
        raw = zlib.decompress(payload) if compressed else payload
    except zlib.error as e:
        raise ValueError(f"corrupt compressed payload: {e}") from e
    return deserialize(raw)
