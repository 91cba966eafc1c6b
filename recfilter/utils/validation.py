"""
Input validation utilities for filter options.
"""

from typing import Any, Callable, Optional

from ..core.exceptions import InvalidOptionsError


# Maximum limits
MIN_MAX_DEPTH = 1
MAX_MAX_DEPTH = 10
MAX_LIMIT = 10_000_000


def validate_bool(name: str, value: Any) -> bool:
    """
    Validate a boolean flag.

    Raises:
        InvalidOptionsError: If value is not a bool
    """
    if not isinstance(value, bool):
        raise InvalidOptionsError(
            f"must be a bool, got {type(value).__name__}", option=name, value=value
        )
    return value


def validate_max_depth(max_depth: Any) -> int:
    """
    Validate the expression nesting limit.

    Args:
        max_depth: The depth to validate

    Returns:
        The validated depth

    Raises:
        InvalidOptionsError: If depth is not an int in [1, 10]
    """
    if isinstance(max_depth, bool) or not isinstance(max_depth, int):
        raise InvalidOptionsError(
            f"must be an integer, got {type(max_depth).__name__}",
            option="max_depth",
            value=max_depth,
        )

    if max_depth < MIN_MAX_DEPTH or max_depth > MAX_MAX_DEPTH:
        raise InvalidOptionsError(
            f"must be between {MIN_MAX_DEPTH} and {MAX_MAX_DEPTH}, got {max_depth}",
            option="max_depth",
            value=max_depth,
        )

    return max_depth


def validate_limit(limit: Any, name: str = "limit") -> Optional[int]:
    """
    Validate a result limit.

    Args:
        limit: Number of results to keep, or None for no limit
        name: Option name used in error messages

    Returns:
        The validated limit

    Raises:
        InvalidOptionsError: If limit is not a positive integer
    """
    if limit is None:
        return None

    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InvalidOptionsError(
            f"must be an integer, got {type(limit).__name__}", option=name, value=limit
        )

    if limit < 1:
        raise InvalidOptionsError(f"must be at least 1, got {limit}", option=name, value=limit)

    if limit > MAX_LIMIT:
        raise InvalidOptionsError(f"too large: {limit} (max {MAX_LIMIT})", option=name, value=limit)

    return limit


def validate_callable(name: str, value: Any) -> Optional[Callable]:
    """Validate an optional callable option."""
    if value is not None and not callable(value):
        raise InvalidOptionsError(
            f"must be callable, got {type(value).__name__}", option=name, value=value
        )
    return value
