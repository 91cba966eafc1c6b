"""
Debug instrumentation for filter evaluation.

Example:
    >>> from recfilter import filter_debug
    >>>
    >>> result = filter_debug(users, {"city": "Berlin", "age": {"$gt": 25}})
    >>> result.print()
    Filter Debug Tree
    └── AND (2/4 matched, 50.0%)
        ├── city = "Berlin" (3/4 matched, 75.0%)
        └── age > 25 (2/3 matched, 66.7%)
"""

from .tracer import (
    TraceNode,
    DebugStats,
    DebugResult,
    DebugMatcher,
)

from .formatter import (
    format_value,
    render_trace,
    render_stats,
    render_debug_result,
)

__all__ = [
    # Tracing
    "TraceNode",
    "DebugStats",
    "DebugResult",
    "DebugMatcher",
    # Rendering
    "format_value",
    "render_trace",
    "render_stats",
    "render_debug_result",
]
