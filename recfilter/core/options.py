"""
Per-call filter options.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

from .exceptions import InvalidOptionsError
from ..query.sorting import OrderByField, normalize_order_by
from ..utils.validation import (
    validate_bool,
    validate_callable,
    validate_limit,
    validate_max_depth,
)


DEFAULT_MAX_DEPTH = 3

# Wire (camelCase) names accepted by FilterOptions.from_dict
OPTION_ALIASES: Dict[str, str] = {
    "caseSensitive": "case_sensitive",
    "maxDepth": "max_depth",
    "enableCache": "enable_cache",
    "orderBy": "order_by",
    "customComparator": "custom_comparator",
    "showTimings": "show_timings",
    "enablePerformanceMonitoring": "enable_performance_monitoring",
}


@dataclass(frozen=True)
class FilterOptions:
    """
    Immutable configuration for a single filter call.

    Attributes:
        case_sensitive: Governs literal, wildcard, string operator and regex matching
        max_depth: Maximum expression nesting (1-10)
        enable_cache: Store and reuse results in the engine's result cache
        order_by: Sort keys applied after matching
        limit: Keep only the first N results after sorting
        custom_comparator: ``(actual, expected) -> bool`` replacing literal equality
        debug: Evaluate through the tracing matcher and log the trace
        verbose: Include operands in the rendered trace
        show_timings: Record per-node evaluation time in the trace
        colorize: Use ANSI colours in the rendered trace
        enable_performance_monitoring: Record timings in the engine's monitor
    """
    case_sensitive: bool = False
    max_depth: int = DEFAULT_MAX_DEPTH
    enable_cache: bool = False
    order_by: Tuple[OrderByField, ...] = ()
    limit: Optional[int] = None
    custom_comparator: Optional[Callable[[Any, Any], bool]] = field(default=None, compare=False)
    debug: bool = False
    verbose: bool = False
    show_timings: bool = False
    colorize: bool = False
    enable_performance_monitoring: bool = False

    def __post_init__(self):
        for name in (
            "case_sensitive",
            "enable_cache",
            "debug",
            "verbose",
            "show_timings",
            "colorize",
            "enable_performance_monitoring",
        ):
            validate_bool(name, getattr(self, name))

        validate_max_depth(self.max_depth)
        validate_limit(self.limit)
        validate_callable("custom_comparator", self.custom_comparator)

        object.__setattr__(self, "order_by", normalize_order_by(self.order_by or None))

    @classmethod
    def from_dict(cls, data: Mapping) -> "FilterOptions":
        """
        Create options from a dictionary.

        Accepts snake_case names and the camelCase wire names.

        Raises:
            InvalidOptionsError: On unknown keys or invalid values
        """
        if not isinstance(data, Mapping):
            raise InvalidOptionsError(
                f"options must be a mapping, got {type(data).__name__}", value=data
            )

        known = {f.name for f in dataclasses.fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = OPTION_ALIASES.get(key, key)
            if name not in known:
                raise InvalidOptionsError(f"unknown option '{key}'", option=key, value=value)
            kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert options to a dictionary (comparator excluded)."""
        return {
            "case_sensitive": self.case_sensitive,
            "max_depth": self.max_depth,
            "enable_cache": self.enable_cache,
            "order_by": [o.to_dict() for o in self.order_by],
            "limit": self.limit,
            "debug": self.debug,
            "verbose": self.verbose,
            "show_timings": self.show_timings,
            "colorize": self.colorize,
            "enable_performance_monitoring": self.enable_performance_monitoring,
        }

    def replace(self, **changes: Any) -> "FilterOptions":
        """Return a copy with some fields changed."""
        return dataclasses.replace(self, **changes)


def resolve_options(
    options: Any = None,
    defaults: Optional[FilterOptions] = None,
    **overrides: Any,
) -> FilterOptions:
    """
    Build the effective options for a call.

    Args:
        options: None, a FilterOptions, or a mapping of option values
        defaults: Engine-level defaults that ``options`` is layered on
        **overrides: Keyword options taking precedence over ``options``

    Returns:
        Validated FilterOptions
    """
    base = defaults or FilterOptions()

    if options is None:
        resolved = base
    elif isinstance(options, FilterOptions):
        resolved = options
    elif isinstance(options, Mapping):
        merged = {**_explicit_fields(base), **options}
        resolved = FilterOptions.from_dict(merged)
    else:
        raise InvalidOptionsError(
            f"options must be FilterOptions or a mapping, got {type(options).__name__}",
            value=options,
        )

    if overrides:
        merged = {**_explicit_fields(resolved), **overrides}
        resolved = FilterOptions.from_dict(merged)

    return resolved


def _explicit_fields(options: FilterOptions) -> Dict[str, Any]:
    values = {f.name: getattr(options, f.name) for f in dataclasses.fields(options)}
    values["order_by"] = list(options.order_by) or None
    return values
