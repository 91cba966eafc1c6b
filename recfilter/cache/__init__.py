"""
Caching for recfilter: a thread-safe LRU, the per-collection result cache,
the compiled regex cache, and cache key derivation.
"""

from .lru import LRUCache, CacheStats
from .regex_cache import RegexCache
from .keys import CallableRef, collection_fingerprint, make_cache_key
from .result_cache import ResultCache, ResultCacheStats

__all__ = [
    "LRUCache",
    "CacheStats",
    "RegexCache",
    "make_cache_key",
    "CallableRef",
    "collection_fingerprint",
    "ResultCache",
    "ResultCacheStats",
]
