"""
Result cache: per-collection LRUs of matched records.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Optional, Sequence

from .keys import collection_fingerprint
from .lru import LRUCache


DEFAULT_MAX_ENTRIES_PER_COLLECTION = 100
DEFAULT_MAX_COLLECTIONS = 64


@dataclass
class ResultCacheStats:
    """Aggregate counters across all collections."""
    collections: int = 0
    entries: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "collections": self.collections,
            "entries": self.entries,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "hit_rate": self.hit_rate,
        }


class ResultCache:
    """
    Two-level LRU: collection fingerprint -> (cache key -> records).

    A collection is identified by ``(id(data), len(data))``, so appending to a
    cached list moves it to a fresh slot. In-place edits that keep the length
    are not detected; call ``clear()`` after mutating cached sources.

    Stored and returned lists are copies, so callers cannot corrupt entries.

    Args:
        max_entries_per_collection: Results kept per collection
        max_collections: Collections tracked at once
    """

    def __init__(
        self,
        max_entries_per_collection: int = DEFAULT_MAX_ENTRIES_PER_COLLECTION,
        max_collections: int = DEFAULT_MAX_COLLECTIONS,
    ):
        self.max_entries_per_collection = max_entries_per_collection
        self._collections: LRUCache[LRUCache[List[Any]]] = LRUCache(max_collections)
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    def get(self, data: Sequence[Any], key: Hashable) -> Optional[List[Any]]:
        """Cached result for ``key`` on ``data``, or None."""
        with self._lock:
            entries = self._collections.get(collection_fingerprint(data))
            records = entries.get(key) if entries is not None else None
            if records is None:
                self._misses += 1
                return None
            self._hits += 1
            return list(records)

    def put(self, data: Sequence[Any], key: Hashable, records: Sequence[Any]) -> None:
        with self._lock:
            fingerprint = collection_fingerprint(data)
            entries = self._collections.get(fingerprint)
            if entries is None:
                entries = LRUCache(self.max_entries_per_collection)
                self._collections.put(fingerprint, entries)
            entries.put(key, list(records))

    def clear(self) -> None:
        """Drop every entry and reset counters."""
        with self._lock:
            self._collections.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> ResultCacheStats:
        with self._lock:
            inner = self._collections.values()
            return ResultCacheStats(
                collections=len(inner),
                entries=sum(len(c) for c in inner),
                hits=self._hits,
                misses=self._misses,
                evictions=sum(c.stats().evictions for c in inner),
            )

    def __len__(self) -> int:
        return self.stats().entries
