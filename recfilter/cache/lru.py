"""
Bounded least-recently-used cache.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Generic, Hashable, List, Optional, TypeVar


V = TypeVar("V")

_SENTINEL = object()


@dataclass
class CacheStats:
    """Counters for a single LRU cache."""
    size: int = 0
    max_size: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "hit_rate": self.hit_rate,
        }


class LRUCache(Generic[V]):
    """
    Thread-safe LRU cache.

    Guarded by a re-entrant lock so a callback running inside a lookup
    (for instance a custom comparator that filters again) cannot deadlock
    or corrupt the ordering.

    Example:
        >>> cache = LRUCache(max_size=2)
        >>> cache.put("a", 1)
        >>> cache.put("b", 2)
        >>> cache.get("a")
        1
        >>> cache.put("c", 3)   # evicts "b"
        >>> "b" in cache
        False
    """

    def __init__(self, max_size: int = 100):
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self.max_size = max_size
        self._data: "OrderedDict[Hashable, V]" = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: Hashable, default: Optional[V] = None) -> Optional[V]:
        """Return the cached value and mark it most recently used."""
        with self._lock:
            value = self._data.get(key, _SENTINEL)
            if value is _SENTINEL:
                self._misses += 1
                return default
            self._data.move_to_end(key)
            self._hits += 1
            return value

    def put(self, key: Hashable, value: V) -> None:
        """Insert or refresh a value, evicting the oldest entry on overflow."""
        with self._lock:
            if key in self._data:
                self._data.move_to_end(key)
            self._data[key] = value
            while len(self._data) > self.max_size:
                self._data.popitem(last=False)
                self._evictions += 1

    def pop(self, key: Hashable, default: Optional[V] = None) -> Optional[V]:
        with self._lock:
            return self._data.pop(key, default)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                size=len(self._data),
                max_size=self.max_size,
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
            )

    def values(self) -> List[V]:
        """Snapshot of cached values, oldest first; recency is not touched."""
        with self._lock:
            return list(self._data.values())

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __repr__(self) -> str:
        return f"LRUCache(size={len(self)}, max_size={self.max_size})"
