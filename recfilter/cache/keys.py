"""
Cache key derivation.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, FrozenSet, Hashable, Iterator, Tuple

from ..core.options import FilterOptions
from ..query.serialization import signature


def result_affecting_options(options: FilterOptions) -> dict:
    """
    Options that change which records come back, or in what order.

    Debug and monitoring flags are left out since they never change results.
    """
    return {
        "case_sensitive": options.case_sensitive,
        "max_depth": options.max_depth,
        "order_by": [o.to_dict() for o in options.order_by],
        "limit": options.limit,
        "custom_comparator": options.custom_comparator,
    }


class CallableRef:
    """
    Strong, identity-compared reference to a callable inside a cache key.

    Holding the object keeps its ``id`` from being reused by a new callable
    while the cache entry exists.
    """

    __slots__ = ("obj",)

    def __init__(self, obj: Callable[..., Any]):
        self.obj = obj

    def __eq__(self, other: object) -> bool:
        return isinstance(other, CallableRef) and other.obj is self.obj

    def __hash__(self) -> int:
        return id(self.obj)

    def __repr__(self) -> str:
        return f"CallableRef({getattr(self.obj, '__qualname__', self.obj)!r})"


CacheKey = Tuple[str, FrozenSet[CallableRef]]


def collect_callables(value: Any) -> Iterator[Callable[..., Any]]:
    """Callables reachable through mappings and sequences of an expression."""
    if isinstance(value, Mapping):
        for item in value.values():
            yield from collect_callables(item)
    elif isinstance(value, (list, tuple, set, frozenset)):
        for item in value:
            yield from collect_callables(item)
    elif callable(value):
        yield value


def make_cache_key(expression: Any, options: FilterOptions, registry_version: int = 0) -> CacheKey:
    """
    Key for a result cache entry.

    Mapping key order does not matter; every result-affecting option,
    ``limit`` and ``order_by`` included, does. Predicates and the custom
    comparator are part of the key by identity.

    Example:
        >>> a = make_cache_key({"x": 1, "y": 2}, FilterOptions())
        >>> b = make_cache_key({"y": 2, "x": 1}, FilterOptions())
        >>> a == b
        True
        >>> a == make_cache_key({"x": 1, "y": 2}, FilterOptions(limit=1))
        False
    """
    callables = list(collect_callables(expression))
    if options.custom_comparator is not None:
        callables.append(options.custom_comparator)
    return (
        signature([expression, result_affecting_options(options), registry_version]),
        frozenset(CallableRef(fn) for fn in callables),
    )


def collection_fingerprint(data: Any) -> Tuple[Hashable, ...]:
    """Identity and size of a source collection."""
    return (id(data), len(data))
