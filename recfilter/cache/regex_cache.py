"""
Cache of compiled regular expressions shared by all patterns of an engine.
"""

from __future__ import annotations

import re
from typing import Optional, Pattern, Tuple, Union

from .lru import CacheStats, LRUCache
from ..query.patterns import DEFAULT_MAX_REGEX_LENGTH, check_regex_safety


DEFAULT_REGEX_CACHE_SIZE = 500


class RegexCache:
    """
    LRU of compiled patterns keyed by ``(source, flags)``.

    Compilation is a fallible step: ``try_compile`` returns the error
    message instead of raising, and rejects patterns that fail the
    backtracking guard.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_REGEX_CACHE_SIZE,
        max_pattern_length: int = DEFAULT_MAX_REGEX_LENGTH,
    ):
        self._cache: LRUCache[Pattern] = LRUCache(max_size)
        self.max_pattern_length = max_pattern_length

    def try_compile(
        self,
        pattern: Union[str, Pattern],
        flags: int = 0,
    ) -> Tuple[Optional[Pattern], Optional[str]]:
        """
        Compile (or fetch) a pattern.

        Returns:
            (compiled, None) on success, (None, reason) on failure
        """
        # pre-compiled patterns keep their own flags
        if isinstance(pattern, re.Pattern):
            return pattern, None

        if not isinstance(pattern, str):
            return None, f"pattern must be a string, got {type(pattern).__name__}"

        key = (pattern, flags)
        compiled = self._cache.get(key)
        if compiled is not None:
            return compiled, None

        problem = check_regex_safety(pattern, self.max_pattern_length)
        if problem:
            return None, problem

        try:
            compiled = re.compile(pattern, flags)
        except re.error as e:
            return None, f"invalid regex {pattern!r}: {e}"

        self._cache.put(key, compiled)
        return compiled, None

    def compile(self, pattern: Union[str, Pattern], flags: int = 0) -> Pattern:
        """
        Compile (or fetch) a pattern.

        Raises:
            ValueError: If the pattern is invalid or rejected
        """
        compiled, problem = self.try_compile(pattern, flags)
        if compiled is None:
            raise ValueError(problem)
        return compiled

    def clear(self) -> None:
        self._cache.clear()

    def stats(self) -> CacheStats:
        return self._cache.stats()

    def __len__(self) -> int:
        return len(self._cache)
