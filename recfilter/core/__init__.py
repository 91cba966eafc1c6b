"""
Core components for recfilter.
"""

from .exceptions import (
    FilterError,
    InvalidExpressionError,
    MaxDepthExceededError,
    InvalidOptionsError,
    SerializationError,
)
from .options import FilterOptions, resolve_options
from .engine import FilterEngine

__all__ = [
    # Exceptions
    "FilterError",
    "InvalidExpressionError",
    "MaxDepthExceededError",
    "InvalidOptionsError",
    "SerializationError",
    # Options
    "FilterOptions",
    "resolve_options",
    # Engine
    "FilterEngine",
]
