"""
Dotted-path lookup over decoded JSON.

A path like ``choices.0.message.content`` is a list of segments. Each segment
is an object key, or, when the current value is an array, a canonical
non-negative decimal index ("0", "12"; never "-1" or "01"). The walk stops with
NOT_FOUND at the first segment that does not resolve.
"""

from __future__ import annotations

from typing import Union

JsonValue = Union[dict, list, str, int, float, bool, None]


class _NotFound:
    """Sentinel distinct from a JSON null."""

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND = _NotFound()


def _step(value: JsonValue, segment: str):
    if isinstance(value, dict):
        return value[segment] if segment in value else NOT_FOUND
    if isinstance(value, list):
        if not segment.isdigit() or not segment.isascii():
            return NOT_FOUND
        if segment != "0" and segment.startswith("0"):
            return NOT_FOUND
        index = int(segment)
        return value[index] if index < len(value) else NOT_FOUND
    # str, numbers, bool and null are leaves
    return NOT_FOUND


def resolve(value: JsonValue, path: str):
    """Walk `path` into `value`. Returns the value found or NOT_FOUND."""
    if not path:
        return NOT_FOUND
    if not isinstance(value, (dict, list)):
        return NOT_FOUND
    current = value
    for segment in path.split("."):
        current = _step(current, segment)
        if current is NOT_FOUND:
            return NOT_FOUND
    return current


def get_string(value: JsonValue, path: str) -> str | None:
    """Resolve `path` and return the result only if it is a string."""
    found = resolve(value, path)
    if isinstance(found, str):
        return found
    return None
