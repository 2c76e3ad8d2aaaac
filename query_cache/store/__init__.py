"""
Cache store package.

Provides the two-level namespace -> fingerprint store behind the query
cache: a Redis implementation for deployments and an in-memory one for
local runs and tests.
"""

from .base import CacheEntry, QueryCacheStore
from .factory import create_cache_store
from .memory_store import MemoryQueryCacheStore
from .redis_store import RedisQueryCacheStore

__all__ = [
    "CacheEntry",
    "QueryCacheStore",
    "MemoryQueryCacheStore",
    "RedisQueryCacheStore",
    "create_cache_store",
]
