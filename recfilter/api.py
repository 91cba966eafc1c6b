"""
Module-level API over a shared default engine.

Example:
    >>> from recfilter import filter
    >>> filter([{"name": "Alice"}, {"name": "Bob"}], {"name": "A%"})
    [{'name': 'Alice'}]
"""

from __future__ import annotations

import threading
from typing import Any, AsyncIterable, AsyncIterator, Dict, Iterable, Iterator, List, Optional

from config.settings import load_config

from .core.engine import FilterEngine
from .debug.tracer import DebugResult
from .utils.logging import set_level


_default_engine: Optional[FilterEngine] = None
_engine_lock = threading.Lock()


def get_default_engine() -> FilterEngine:
    """Engine used by the module-level functions, built from ``load_config()``."""
    global _default_engine
    if _default_engine is None:
        with _engine_lock:
            if _default_engine is None:
                settings = load_config()
                set_level(settings.log_level)
                _default_engine = FilterEngine(settings)
    return _default_engine


def set_default_engine(engine: Optional[FilterEngine]) -> None:
    """Replace the default engine; None rebuilds it on next use."""
    global _default_engine
    with _engine_lock:
        _default_engine = engine


def filter(data: Iterable, expression: Any, options: Any = None, **overrides: Any) -> List[Any]:
    """Return the records of ``data`` matching ``expression``."""
    return get_default_engine().filter(data, expression, options, **overrides)


def filter_lazy(data: Iterable, expression: Any, options: Any = None, **overrides: Any) -> Iterator[Any]:
    return get_default_engine().filter_lazy(data, expression, options, **overrides)


def filter_lazy_async(
    data: AsyncIterable, expression: Any, options: Any = None, **overrides: Any
) -> AsyncIterator[Any]:
    return get_default_engine().filter_lazy_async(data, expression, options, **overrides)


def filter_first(data: Iterable, expression: Any, n: int = 1, options: Any = None, **overrides: Any) -> List[Any]:
    return get_default_engine().filter_first(data, expression, n, options, **overrides)


def filter_exists(data: Iterable, expression: Any, options: Any = None, **overrides: Any) -> bool:
    return get_default_engine().filter_exists(data, expression, options, **overrides)


def filter_count(data: Iterable, expression: Any, options: Any = None, **overrides: Any) -> int:
    return get_default_engine().filter_count(data, expression, options, **overrides)


def filter_chunked(
    data: Iterable,
    expression: Any,
    chunk_size: int = 1000,
    options: Any = None,
    **overrides: Any,
) -> List[List[Any]]:
    return get_default_engine().filter_chunked(data, expression, chunk_size, options, **overrides)


def filter_lazy_chunked(
    data: Iterable,
    expression: Any,
    chunk_size: int = 1000,
    options: Any = None,
    **overrides: Any,
) -> Iterator[List[Any]]:
    return get_default_engine().filter_lazy_chunked(data, expression, chunk_size, options, **overrides)


def filter_debug(data: Iterable, expression: Any, options: Any = None, **overrides: Any) -> DebugResult:
    return get_default_engine().filter_debug(data, expression, options, **overrides)


def clear_cache() -> None:
    """Clear every cache of the default engine."""
    get_default_engine().clear_cache()


def get_cache_stats() -> Dict[str, Dict[str, Any]]:
    return get_default_engine().get_cache_stats()
