"""
Redis-backed query cache store.

Each namespace is one Redis hash keyed ``<prefix><namespace>``; each cached
query is a field of that hash named by its fingerprint. Entries expire
through per-field TTLs (``HEXPIRE``, Redis 7.4+), and invalidating a
namespace is a single ``DEL`` of the hash.
"""

from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..shared.errors import BackendUnavailableError
from ..shared.logging import get_logger
from .base import QueryCacheStore


class RedisQueryCacheStore(QueryCacheStore):
    """Redis store sharing one connection pool across all calls."""

    def __init__(
        self,
        redis_url: str,
        *,
        key_prefix: str = "query_cache:",
        max_connections: int = 10,
        socket_timeout: float = 5.0,
        connect_timeout: float = 5.0,
        client: Optional[redis.Redis] = None,
    ):
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.max_connections = max_connections
        self.socket_timeout = socket_timeout
        self.connect_timeout = connect_timeout
        self.logger = get_logger("query_cache.store.redis")
        self.redis: Optional[redis.Redis] = client

    @property
    def name(self) -> str:
        return "redis"

    def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self.redis is None:
            self.redis = redis.from_url(
                self.redis_url,
                decode_responses=False,
                max_connections=self.max_connections,
                socket_timeout=self.socket_timeout,
                socket_connect_timeout=self.connect_timeout,
                retry_on_timeout=True,
                health_check_interval=30
            )
        return self.redis

    def namespace_key(self, namespace: str) -> str:
        return f"{self.key_prefix}{namespace}"

    async def start(self) -> None:
        """Create the connection pool and probe the server.

        An unreachable server is logged, not raised: the pool reconnects on
        demand and until then every lookup degrades to a miss.
        """
        client = self._get_redis()
        try:
            await client.ping()
            self.logger.info("Redis query cache started", redis_url=self.redis_url)
        except (RedisError, OSError) as e:
            self.logger.warning("Redis query cache unreachable at startup", redis_url=self.redis_url, error=str(e))

    async def stop(self) -> None:
        """Close the connection pool."""
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
            self.logger.info("Redis query cache stopped")

    async def get(self, namespace: str, fingerprint: str) -> Optional[bytes]:
        try:
            return await self._get_redis().hget(self.namespace_key(namespace), fingerprint)
        except (RedisError, OSError) as e:
            raise BackendUnavailableError("get", str(e), {"namespace": namespace}) from e

    async def put(self, namespace: str, fingerprint: str, payload: bytes, ttl: int) -> None:
        key = self.namespace_key(namespace)
        try:
            pipe = self._get_redis().pipeline(transaction=True)
            pipe.hset(key, fingerprint, payload)
            pipe.hexpire(key, ttl, fingerprint)
            await pipe.execute()
        except (RedisError, OSError) as e:
            raise BackendUnavailableError("put", str(e), {"namespace": namespace}) from e

        self.logger.debug("Cached query result", namespace=namespace, fingerprint=fingerprint, ttl=ttl)

    async def delete_namespace(self, namespace: str) -> bool:
        try:
            removed = await self._get_redis().delete(self.namespace_key(namespace))
        except (RedisError, OSError) as e:
            raise BackendUnavailableError("delete_namespace", str(e), {"namespace": namespace}) from e

        if removed:
            self.logger.info("Invalidated cache namespace", namespace=namespace)
        return bool(removed)

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await self._get_redis().ping()
            return True
        except (RedisError, OSError):
            return False
