"""
Transparent read-through / write-invalidate query cache.

Read queries opt in per query with ``Query.cache(namespace)``; their
results are cached under ``namespace -> fingerprint`` with a TTL and
rehydrated into the caller's record type on a hit. Successful writes
drop the acting principal's namespace once their response is sent.

Structure:
- query_cache.query: Query descriptors and the chainable query builder.
- query_cache.annotation: Per-query cache options.
- query_cache.fingerprint: Order-independent query fingerprints.
- query_cache.serialization: Payload encoding and record rehydration.
- query_cache.store: Redis and in-memory namespace stores.
- query_cache.interceptor: The read-through interception layer.
- query_cache.invalidation: Write-completion trigger and ASGI middleware.
- query_cache.runtime: Startup/shutdown wiring for one process.
- query_cache.shared: Config, logging, metrics and errors.
"""

from .annotation import CacheOptions, with_cache
from .fingerprint import fingerprint
from .interceptor import QueryInterceptor
from .invalidation import CacheInvalidationMiddleware, InvalidationTrigger
from .query import ASCENDING, DESCENDING, Collection, Query, QueryDescriptor
from .runtime import QueryCache
from .store import MemoryQueryCacheStore, QueryCacheStore, RedisQueryCacheStore, create_cache_store

__version__ = "1.0.0"

__all__ = [
    "ASCENDING",
    "DESCENDING",
    "CacheInvalidationMiddleware",
    "CacheOptions",
    "Collection",
    "InvalidationTrigger",
    "MemoryQueryCacheStore",
    "Query",
    "QueryCache",
    "QueryCacheStore",
    "QueryDescriptor",
    "QueryInterceptor",
    "RedisQueryCacheStore",
    "create_cache_store",
    "fingerprint",
    "with_cache",
]
