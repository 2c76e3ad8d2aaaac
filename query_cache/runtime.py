"""
Process-wide wiring for the query cache.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional, Type

from .interceptor import QueryInterceptor
from .invalidation import CacheInvalidationMiddleware, InvalidationTrigger
from .query import Collection, Executor
from .shared.config import QueryCacheConfig, get_config
from .shared.logging import configure_logging, get_logger
from .shared.metrics import MetricsCollector, get_metrics_collector
from .store import QueryCacheStore, create_cache_store


class QueryCache:
    """Owns the shared backend handle plus the interceptor and trigger using it.

    Build one at startup, ``await start()`` it, hand ``collection()`` objects
    to the data-access layer and ``install()`` the invalidation hook on the
    web app. ``await stop()`` at shutdown flushes pending writes and closes
    the backend.
    """

    def __init__(
        self,
        config: Optional[QueryCacheConfig] = None,
        *,
        store: Optional[QueryCacheStore] = None,
        metrics: Optional[MetricsCollector] = None,
        configure_logs: bool = False,
    ):
        self.config = config or get_config()
        if configure_logs:
            configure_logging(self.config.service_name, self.config.log_level)

        self.logger = get_logger("query_cache.runtime")
        self.metrics = metrics or get_metrics_collector(self.config.service_name)
        self.store = store or create_cache_store(self.config)
        self.interceptor = QueryInterceptor.from_config(self.store, self.config, self.metrics)
        self.trigger = InvalidationTrigger.from_config(self.store, self.config, self.metrics)
        self._started = False

    async def start(self) -> None:
        if self._started:
            return
        await self.store.start()
        self._started = True
        self.logger.info(
            "Query cache started",
            backend=self.store.name,
            default_ttl=self.config.default_ttl_seconds,
            background_writes=self.config.background_writes,
        )

    async def stop(self) -> None:
        if not self._started:
            return
        await self.interceptor.close()
        await self.store.stop()
        self._started = False
        self.logger.info("Query cache stopped", backend=self.store.name)

    @asynccontextmanager
    async def lifespan(self):
        await self.start()
        try:
            yield self
        finally:
            await self.stop()

    def collection(self, name: str, model: Optional[Type[Any]] = None, executor: Optional[Executor] = None) -> Collection:
        """A collection whose queries go through this cache."""
        return Collection(name, model, executor, interceptor=self.interceptor)

    def install(self, app, **middleware_options) -> None:
        """Add the write-invalidation middleware to an ASGI app."""
        app.add_middleware(CacheInvalidationMiddleware, trigger=self.trigger, **middleware_options)

    async def health_check(self) -> Dict[str, Any]:
        healthy = await self.store.health_check()
        return {
            "backend": self.store.name,
            "status": "ok" if healthy else "unavailable",
            "pending_writes": self.interceptor.pending_writes,
        }
