"""Compact text encoding for stored values: JSON, zlib-compressed, written as hex."""

from __future__ import annotations

import json
import re
import zlib
from typing import Any

_HEX_TEXT = re.compile(r"[0-9A-Fa-f]*")
_FAILED: Any = object()


def serde_to_string(value: Any) -> str:
    """Serialize ``value`` and compress it into a lowercase hex string.

    Raises ``TypeError`` if the value cannot be serialized.
    """
    serialized = json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return zlib.compress(serialized, 9).hex()


def _decode(value: str) -> Any:
    if len(value) % 2 or not _HEX_TEXT.fullmatch(value):
        return _FAILED
    try:
        decompressed = zlib.decompress(bytes.fromhex(value))
    except zlib.error:
        return _FAILED
    try:
        return json.loads(decompressed)
    except ValueError:
        return _FAILED


def try_serde_from_string(value: str) -> Any:
    """Decode a string made by :func:`serde_to_string`; return ``None`` if it is malformed."""
    decoded = _decode(value)
    return None if decoded is _FAILED else decoded


def serde_from_string(value: str) -> Any:
    """Decode a string made by :func:`serde_to_string`; raise ``ValueError`` if it is malformed."""
    decoded = _decode(value)
    if decoded is _FAILED:
        raise ValueError("could not decode stored value")
    return decoded