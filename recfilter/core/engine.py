"""
FilterEngine - main entry point tying validation, matching, caching,
lazy evaluation, post-processing and debugging together.
"""

from __future__ import annotations

import contextlib
import time
from collections.abc import AsyncIterable, Iterable, Mapping
from typing import Any, AsyncIterator, ContextManager, Dict, Iterator, List, Optional

from config.settings import Settings

from .exceptions import InvalidExpressionError, InvalidOptionsError
from .options import FilterOptions, resolve_options
from ..cache.keys import make_cache_key
from ..cache.lru import LRUCache
from ..cache.regex_cache import RegexCache
from ..cache.result_cache import ResultCache
from ..debug.tracer import DebugMatcher, DebugResult, DebugStats
from ..operators.registry import OperatorRegistry, get_default_registry
from ..query.context import EvaluationContext
from ..query.expression import ValidExpression
from ..query.lazy import aiter_matches, chunked, count_matches, first_match, iter_matches, take
from ..query.matcher import Matcher
from ..query.serialization import signature
from ..query.sorting import apply_post_processing
from ..query.validator import ExpressionValidator
from ..utils.dates import Clock, system_clock
from ..utils.logging import get_logger
from ..utils.monitoring import PerformanceMonitor
from ..utils.validation import validate_limit


logger = get_logger(__name__)


class FilterEngine:
    """
    In-memory filter engine.

    Owns its caches (results, compiled regexes, validated expressions) and a
    performance monitor. The module-level functions in ``recfilter.api``
    delegate to a shared default engine.

    Example:
        >>> engine = FilterEngine()
        >>> users = [
        ...     {"name": "Alice", "age": 30, "city": "Berlin"},
        ...     {"name": "Bob", "age": 25, "city": "Paris"},
        ... ]
        >>> engine.filter(users, {"city": "Berlin"})
        [{'name': 'Alice', 'age': 30, 'city': 'Berlin'}]
        >>> engine.filter(users, {"age": {"$gte": 25}}, order_by=("age", "asc"), limit=1)
        [{'name': 'Bob', 'age': 25, 'city': 'Paris'}]
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        registry: Optional[OperatorRegistry] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the engine.

        Args:
            settings: Cache sizes and default options (defaults if omitted)
            registry: Operator registry (the process-wide default if omitted)
            clock: Source of "now" for the datetime operators
        """
        self.settings = settings or Settings()
        self.registry = registry or get_default_registry()
        self.clock = clock or system_clock

        defaults = self.settings.defaults
        self.default_options = FilterOptions(
            case_sensitive=defaults.case_sensitive,
            max_depth=defaults.max_depth,
            enable_cache=defaults.enable_cache,
            enable_performance_monitoring=defaults.enable_performance_monitoring,
        )

        cache_config = self.settings.cache_config
        self.result_cache = ResultCache(
            max_entries_per_collection=cache_config.max_entries_per_collection,
            max_collections=cache_config.max_collections,
        )
        self.regex_cache = RegexCache(
            max_size=cache_config.regex_cache_size,
            max_pattern_length=self.settings.validation_config.max_regex_length,
        )
        self._validation_cache: LRUCache[ValidExpression] = LRUCache(
            cache_config.validation_cache_size
        )
        self.monitor = PerformanceMonitor(max_samples=self.settings.monitor_max_samples)
        self._matcher = Matcher(self.registry)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def options(self, options: Any = None, **overrides: Any) -> FilterOptions:
        """Effective options for a call, layered on the engine defaults."""
        return resolve_options(options, self.default_options, **overrides)

    def validate(self, expression: Any, max_depth: Optional[int] = None) -> ValidExpression:
        """
        Validate and parse an expression, memoized by structural signature.

        Raises:
            InvalidExpressionError: If the expression is malformed
        """
        if max_depth is None:
            max_depth = self.default_options.max_depth
        key = signature([expression, max_depth, self.registry.version])

        node = self._validation_cache.get(key)
        if node is not None:
            return node

        try:
            node = ExpressionValidator(self.registry, max_depth).validate(expression)
        except InvalidExpressionError as e:
            logger.debug(f"Expression rejected: {e}")
            raise

        self._validation_cache.put(key, node)
        return node

    @staticmethod
    def _check_data(data: Any) -> None:
        if isinstance(data, (str, bytes, bytearray, Mapping)) or not isinstance(data, Iterable):
            raise TypeError(
                f"data must be an iterable of records, got {type(data).__name__}"
            )

    def _prepare(self, data: Any, expression: Any, options: Any, overrides: Dict[str, Any]):
        opts = self.options(options, **overrides)
        node = self.validate(expression, opts.max_depth)
        self._check_data(data)
        return opts, node

    def _context(self, opts: FilterOptions) -> EvaluationContext:
        return EvaluationContext(options=opts, regex_cache=self.regex_cache, clock=self.clock)

    def _predicate(self, node: ValidExpression, opts: FilterOptions):
        ctx = self._context(opts)
        matcher = self._matcher

        def predicate(record: Any) -> bool:
            return matcher.matches(record, node, ctx)

        return predicate

    @staticmethod
    def _reject_order_by(opts: FilterOptions) -> None:
        if opts.order_by:
            raise InvalidOptionsError(
                "order_by is not supported for lazy evaluation",
                option="order_by",
                value=[o.to_dict() for o in opts.order_by],
            )

    def _measure(self, opts: FilterOptions, operation: str) -> ContextManager:
        if opts.enable_performance_monitoring:
            return self.monitor.measure(operation)
        return contextlib.nullcontext()

    def _evaluate(self, data: Iterable, node: ValidExpression, opts: FilterOptions) -> List[Any]:
        predicate = self._predicate(node, opts)
        if not opts.order_by:
            # no sort: the limit can stop the scan early
            return list(iter_matches(data, predicate, opts.limit))
        matches = [record for record in data if predicate(record)]
        return apply_post_processing(matches, opts.order_by, opts.limit, opts.case_sensitive)

    # =========================================================================
    # FILTERING
    # =========================================================================

    def filter(self, data: Iterable, expression: Any, options: Any = None, **overrides: Any) -> List[Any]:
        """
        Return the records matching ``expression``.

        Args:
            data: Iterable of records (not a string or mapping)
            expression: Expression object, scalar, or predicate callable
            options: FilterOptions or a dict of options
            **overrides: Option values taking precedence over ``options``

        Returns:
            Matching records in source order, or sorted when ``order_by`` is set

        Raises:
            InvalidExpressionError: If the expression is malformed
            InvalidOptionsError: If an option is invalid
            TypeError: If ``data`` is not an iterable of records
        """
        opts, node = self._prepare(data, expression, options, overrides)

        if opts.debug:
            debug_result = self._debug(data, expression, node, opts)
            logger.info("\n" + debug_result.render())
            return debug_result.result

        with self._measure(opts, "filter"):
            cacheable = opts.enable_cache and isinstance(data, (list, tuple))
            if cacheable:
                key = make_cache_key(expression, opts, self.registry.version)
                cached = self.result_cache.get(data, key)
                if cached is not None:
                    logger.debug(f"Result cache hit ({len(cached)} records)")
                    return cached
                logger.debug("Result cache miss")

            results = self._evaluate(data, node, opts)

            if cacheable:
                self.result_cache.put(data, key, results)

        return results

    def filter_lazy(self, data: Iterable, expression: Any, options: Any = None, **overrides: Any) -> Iterator[Any]:
        """
        Lazily yield matching records in source order.

        The expression is validated immediately; records are only read as
        the iterator is consumed. ``limit`` is honoured, ``order_by`` is not
        supported.

        Raises:
            InvalidOptionsError: If ``order_by`` is set
        """
        opts, node = self._prepare(data, expression, options, overrides)
        self._reject_order_by(opts)
        return iter_matches(data, self._predicate(node, opts), opts.limit)

    def filter_lazy_async(
        self, data: AsyncIterable, expression: Any, options: Any = None, **overrides: Any
    ) -> AsyncIterator[Any]:
        """
        Lazily yield matching records from an async iterable.

        Validation happens on the call itself, before the source is awaited:

            async for record in engine.filter_lazy_async(stream, {"level": "error"}):
                ...

        Raises:
            InvalidOptionsError: If ``order_by`` is set
            TypeError: If ``data`` is not an async iterable
        """
        opts = self.options(options, **overrides)
        node = self.validate(expression, opts.max_depth)
        if not isinstance(data, AsyncIterable):
            raise TypeError(
                f"data must be an async iterable of records, got {type(data).__name__}"
            )
        self._reject_order_by(opts)
        return aiter_matches(data, self._predicate(node, opts), opts.limit)

    def filter_first(
        self,
        data: Iterable,
        expression: Any,
        n: int = 1,
        options: Any = None,
        **overrides: Any,
    ) -> List[Any]:
        """
        First ``n`` matching records, stopping the scan as soon as they are found.

        With ``order_by`` every record has to be examined; the first ``n``
        after sorting are returned.
        """
        n = validate_limit(n, name="n")
        if n is None:
            raise InvalidOptionsError("must be a positive integer", option="n", value=n)
        opts, node = self._prepare(data, expression, options, overrides)

        with self._measure(opts, "filter_first"):
            if opts.order_by:
                return self._evaluate(data, node, opts)[:n]
            wanted = n if opts.limit is None else min(n, opts.limit)
            return take(iter_matches(data, self._predicate(node, opts)), wanted)

    def filter_exists(self, data: Iterable, expression: Any, options: Any = None, **overrides: Any) -> bool:
        """True if any record matches; stops at the first match."""
        opts, node = self._prepare(data, expression, options, overrides)
        with self._measure(opts, "filter_exists"):
            return first_match(data, self._predicate(node, opts))

    def filter_count(self, data: Iterable, expression: Any, options: Any = None, **overrides: Any) -> int:
        """Number of matching records (capped at ``limit``), without building a list."""
        opts, node = self._prepare(data, expression, options, overrides)
        with self._measure(opts, "filter_count"):
            predicate = self._predicate(node, opts)
            if opts.limit is None:
                return count_matches(data, predicate)
            return sum(1 for _ in iter_matches(data, predicate, opts.limit))

    def filter_chunked(
        self,
        data: Iterable,
        expression: Any,
        chunk_size: int = 1000,
        options: Any = None,
        **overrides: Any,
    ) -> List[List[Any]]:
        """Matching records (sorted and limited as in ``filter``) split into chunks."""
        chunk_size = self._check_chunk_size(chunk_size)
        return list(chunked(self.filter(data, expression, options, **overrides), chunk_size))

    def filter_lazy_chunked(
        self,
        data: Iterable,
        expression: Any,
        chunk_size: int = 1000,
        options: Any = None,
        **overrides: Any,
    ) -> Iterator[List[Any]]:
        """Lazily yield lists of up to ``chunk_size`` matching records."""
        chunk_size = self._check_chunk_size(chunk_size)
        return chunked(self.filter_lazy(data, expression, options, **overrides), chunk_size)

    @staticmethod
    def _check_chunk_size(chunk_size: Any) -> int:
        size = validate_limit(chunk_size, name="chunk_size")
        if size is None:
            raise InvalidOptionsError(
                "must be a positive integer", option="chunk_size", value=chunk_size
            )
        return size

    # =========================================================================
    # DEBUG
    # =========================================================================

    def filter_debug(self, data: Iterable, expression: Any, options: Any = None, **overrides: Any) -> DebugResult:
        """
        Filter while recording an evaluation trace.

        Returns:
            DebugResult with ``result``, ``trace`` and ``stats``
        """
        opts, node = self._prepare(data, expression, options, overrides)
        return self._debug(data, expression, node, opts)

    def _debug(self, data: Iterable, expression: Any, node: ValidExpression, opts: FilterOptions) -> DebugResult:
        cache_hit = False
        if opts.enable_cache and isinstance(data, (list, tuple)):
            key = make_cache_key(expression, opts, self.registry.version)
            cache_hit = self.result_cache.get(data, key) is not None

        start = time.perf_counter()
        with self._measure(opts, "filter_debug"):
            matcher = DebugMatcher(self.registry, show_timings=opts.show_timings)
            trace = matcher.build_trace(node)
            ctx = self._context(opts)

            total = 0
            matches = []
            for record in data:
                total += 1
                if matcher.matches(record, node, ctx):
                    matches.append(record)

            result = apply_post_processing(matches, opts.order_by, opts.limit, opts.case_sensitive)

        stats = DebugStats(
            matched=len(matches),
            total=total,
            execution_time=(time.perf_counter() - start) * 1000,
            conditions_evaluated=matcher.conditions_evaluated(trace),
            cache_hit=cache_hit,
        )
        return DebugResult(
            result=result,
            trace=trace,
            stats=stats,
            verbose=opts.verbose,
            show_timings=opts.show_timings,
            colorize=opts.colorize,
        )

    # =========================================================================
    # CACHE MANAGEMENT
    # =========================================================================

    def clear_cache(self) -> None:
        """Drop cached results, compiled regexes and validated expressions."""
        self.result_cache.clear()
        self.regex_cache.clear()
        self._validation_cache.clear()
        logger.info("Filter caches cleared")

    def get_cache_stats(self) -> Dict[str, Dict[str, Any]]:
        """Counters of every engine cache."""
        return {
            "results": self.result_cache.stats().to_dict(),
            "regex": self.regex_cache.stats().to_dict(),
            "validation": self._validation_cache.stats().to_dict(),
        }

    def __repr__(self) -> str:
        return f"FilterEngine(operators={len(self.registry)}, cached_results={len(self.result_cache)})"
