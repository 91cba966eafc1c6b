"""
recfilter - MongoDB-style filtering of in-memory records.

Example:
    >>> from recfilter import filter, filter_lazy
    >>>
    >>> users = [
    ...     {"name": "Alice", "age": 30, "city": "Berlin", "tags": ["admin"]},
    ...     {"name": "Bob", "age": 25, "city": "Paris", "tags": []},
    ... ]
    >>>
    >>> # Operators, wildcards and logical combinators
    >>> filter(users, {"age": {"$gte": 26}, "city": "Ber%"})
    >>> filter(users, {"$or": [{"tags": "admin"}, {"city": ["Paris", "Rome"]}]})
    >>>
    >>> # Sorting and limiting
    >>> filter(users, {}, order_by=("age", "desc"), limit=1)
    >>>
    >>> # Lazy evaluation
    >>> next(filter_lazy(users, {"name": {"$startsWith": "B"}}))
"""

from .core import (
    # Engine
    FilterEngine,
    FilterOptions,
    # Exceptions
    FilterError,
    InvalidExpressionError,
    MaxDepthExceededError,
    InvalidOptionsError,
    SerializationError,
)

from .api import (
    filter,
    filter_lazy,
    filter_lazy_async,
    filter_first,
    filter_exists,
    filter_count,
    filter_chunked,
    filter_lazy_chunked,
    filter_debug,
    clear_cache,
    get_cache_stats,
    get_default_engine,
    set_default_engine,
)

from .operators import (
    OperatorFamily,
    OperatorInfo,
    OperatorRegistry,
    register_operator,
    list_operators,
)

from .query import (
    MISSING,
    validate,
    expression_to_json,
    expression_from_json,
    pack_expression,
    unpack_expression,
)

from .debug import DebugResult, DebugStats, TraceNode

__version__ = "0.1.0"
__author__ = "recfilter Team"

__all__ = [
    # Engine
    "FilterEngine",
    "FilterOptions",
    # Exceptions
    "FilterError",
    "InvalidExpressionError",
    "MaxDepthExceededError",
    "InvalidOptionsError",
    "SerializationError",
    # Filtering
    "filter",
    "filter_lazy",
    "filter_lazy_async",
    "filter_first",
    "filter_exists",
    "filter_count",
    "filter_chunked",
    "filter_lazy_chunked",
    "filter_debug",
    "clear_cache",
    "get_cache_stats",
    "get_default_engine",
    "set_default_engine",
    # Operators
    "OperatorFamily",
    "OperatorInfo",
    "OperatorRegistry",
    "register_operator",
    "list_operators",
    # Query
    "MISSING",
    "validate",
    "expression_to_json",
    "expression_from_json",
    "pack_expression",
    "unpack_expression",
    # Debug
    "DebugResult",
    "DebugStats",
    "TraceNode",
]
