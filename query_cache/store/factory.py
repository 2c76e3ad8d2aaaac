"""
Factory for cache store instantiation.
"""

from typing import Optional

from ..shared.config import QueryCacheConfig
from .base import QueryCacheStore


def create_cache_store(config: Optional[QueryCacheConfig] = None) -> QueryCacheStore:
    """Instantiate the configured cache backend.

    Args:
        config: Cache configuration. Defaults to environment settings.

    Returns:
        A store that still needs ``start()`` before serving traffic.
    """
    config = config or QueryCacheConfig()

    if config.backend == "memory":
        from .memory_store import MemoryQueryCacheStore
        return MemoryQueryCacheStore()

    if config.backend == "redis":
        from .redis_store import RedisQueryCacheStore
        return RedisQueryCacheStore(
            config.redis_url,
            key_prefix=config.key_prefix,
            max_connections=config.max_connections,
            socket_timeout=config.socket_timeout,
            connect_timeout=config.connect_timeout,
        )

    raise ValueError(f"Unsupported cache backend: {config.backend!r}")
