"""
Dot-path resolution into records.

A record is any Python value. Each path segment is looked up as a mapping
key first, then as an attribute, then as an integer index into a list or
tuple. Segments that do not resolve produce ``MISSING``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Tuple


class _Missing:
    """Sentinel for a field path that does not resolve."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Missing, ())


MISSING = _Missing()


def split_path(path: str) -> Tuple[str, ...]:
    """Split a dot-delimited field path into segments."""
    return tuple(path.split("."))


def resolve_segment(current: Any, segment: str) -> Any:
    """Resolve a single segment against a value."""
    if current is None or current is MISSING:
        return MISSING

    if isinstance(current, Mapping):
        if segment in current:
            return current[segment]
        return MISSING

    if isinstance(current, (list, tuple)):
        try:
            return current[int(segment)]
        except (ValueError, IndexError):
            return MISSING

    if isinstance(current, (str, bytes, int, float, bool)):
        return MISSING

    return getattr(current, segment, MISSING)


def resolve_path(record: Any, path: Tuple[str, ...]) -> Any:
    """
    Get the value at ``path`` inside ``record``.

    Args:
        record: The record to inspect
        path: Path segments, as produced by ``split_path``

    Returns:
        The resolved value, or ``MISSING``

    Example:
        >>> resolve_path({"user": {"city": "Berlin"}}, ("user", "city"))
        'Berlin'
    """
    current = record
    for segment in path:
        current = resolve_segment(current, segment)
        if current is MISSING:
            return MISSING
    return current


def get_nested_value(record: Any, path: str) -> Any:
    """Convenience wrapper taking a dotted string path."""
    if not path:
        return record
    return resolve_path(record, split_path(path))
