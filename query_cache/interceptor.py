"""
Read-through query interception.

``QueryInterceptor`` sits between call sites and the data-access layer's
executor. Queries annotated with ``use_cache`` are looked up by
fingerprint inside their namespace. A hit is rehydrated into records
without touching the executor. A miss runs the executor and stores the
serialized result with a TTL.

The cache is strictly best-effort. Backend or payload problems degrade to
a direct execution and show up only in logs and metrics, while executor
errors reach the caller untouched and are never cached.
"""

import asyncio
import dataclasses
import functools
from contextlib import nullcontext
from typing import Any, Optional, Set, Type, TYPE_CHECKING

from .annotation import CacheOptions, normalize_namespace
from .fingerprint import fingerprint
from .query import Executor, QueryDescriptor
from .serialization import rehydrate_result, serialize_result
from .shared.errors import BackendUnavailableError, SerializationError
from .shared.logging import get_logger
from .store.base import QueryCacheStore

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from .shared.config import QueryCacheConfig
    from .shared.metrics import MetricsCollector


DEFAULT_TTL_SECONDS = 10


class QueryInterceptor:
    """Wraps query execution with a namespaced read-through cache."""

    def __init__(
        self,
        store: QueryCacheStore,
        *,
        default_ttl: int = DEFAULT_TTL_SECONDS,
        background_writes: bool = True,
        metrics: Optional["MetricsCollector"] = None,
    ):
        if default_ttl < 1:
            raise ValueError("default_ttl must be at least one second")
        self.store = store
        self.default_ttl = default_ttl
        self.background_writes = background_writes
        self.metrics = metrics
        self.logger = get_logger("query_cache.interceptor")
        self._pending: Set[asyncio.Task] = set()

    @classmethod
    def from_config(
        cls,
        store: QueryCacheStore,
        config: "QueryCacheConfig",
        metrics: Optional["MetricsCollector"] = None,
    ) -> "QueryInterceptor":
        return cls(
            store,
            default_ttl=config.default_ttl_seconds,
            background_writes=config.background_writes,
            metrics=metrics,
        )

    async def execute(
        self,
        descriptor: QueryDescriptor,
        options: Optional[CacheOptions],
        executor: Executor,
    ) -> Any:
        """Serve ``descriptor`` from the cache or from ``executor``."""
        collection = descriptor.collection

        if options is None or not options.use_cache:
            self._record_lookup(collection, "bypass")
            return await executor(descriptor)

        namespace = options.namespace
        key = fingerprint(descriptor)

        cached = await self._safe_get(namespace, key)
        if cached is not None:
            try:
                result = rehydrate_result(cached, descriptor.model)
            except SerializationError as e:
                self.logger.warning(
                    "Discarding unreadable cache entry",
                    namespace=namespace,
                    fingerprint=key,
                    error=str(e)
                )
                self._record_serialization_error("rehydrate")
            else:
                self.logger.debug("Query cache hit", collection=collection, namespace=namespace, fingerprint=key)
                self._record_lookup(collection, "hit")
                return result

        self._record_lookup(collection, "miss")
        result = await self._run(descriptor, executor)

        try:
            payload = serialize_result(result, descriptor.model)
        except SerializationError as e:
            self.logger.warning(
                "Query result not cacheable",
                collection=collection,
                namespace=namespace,
                error=str(e)
            )
            self._record_serialization_error("serialize")
            return result

        ttl = options.ttl or self.default_ttl
        if self.background_writes:
            self._schedule(self._safe_put(namespace, key, payload, ttl))
        else:
            await self._safe_put(namespace, key, payload, ttl)

        return result

    def wrap(self, executor: Executor, model: Optional[Type[Any]] = None):
        """Return ``executor`` with interception layered on top.

        The wrapped callable takes ``(descriptor, options=None)``; without
        options it behaves exactly like the original executor. ``model`` is
        the record type hits are rehydrated into for descriptors that do not
        carry one; results of records with no known model are not cached.
        """
        @functools.wraps(executor)
        async def intercepted(descriptor: QueryDescriptor, options: Optional[CacheOptions] = None) -> Any:
            if model is not None and descriptor.model is None:
                descriptor = dataclasses.replace(descriptor, model=model)
            return await self.execute(descriptor, options, executor)

        return intercepted

    async def invalidate(self, namespace: Any) -> bool:
        """Drop a namespace outside of the write-completion flow."""
        namespace = normalize_namespace(namespace)
        try:
            return await self.store.delete_namespace(namespace)
        except BackendUnavailableError as e:
            self.logger.warning("Cache invalidation failed", namespace=namespace, error=str(e))
            self._record_backend_error("delete_namespace")
            return False

    async def drain(self) -> None:
        """Wait for background cache writes started so far."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def _run(self, descriptor: QueryDescriptor, executor: Executor) -> Any:
        timer = (
            self.metrics.time_operation("query_cache_execution_duration_seconds", collection=descriptor.collection)
            if self.metrics else nullcontext()
        )
        with timer:
            return await executor(descriptor)

    async def _safe_get(self, namespace: str, key: str) -> Optional[bytes]:
        """Look up a payload, treating any backend failure as a miss."""
        try:
            return await self.store.get(namespace, key)
        except BackendUnavailableError as e:
            self.logger.warning("Cache lookup failed, executing query", namespace=namespace, error=str(e))
            self._record_backend_error("get")
        except Exception as e:
            self.logger.error("Unexpected cache lookup error", namespace=namespace, error=str(e), exc_info=True)
            self._record_backend_error("get")
        return None

    async def _safe_put(self, namespace: str, key: str, payload: bytes, ttl: int) -> None:
        """Store a payload; failures are logged and dropped."""
        try:
            await self.store.put(namespace, key, payload, ttl)
        except BackendUnavailableError as e:
            self.logger.warning("Cache store failed", namespace=namespace, fingerprint=key, error=str(e))
            self._record_backend_error("put")
        except Exception as e:
            self.logger.error("Unexpected cache store error", namespace=namespace, error=str(e), exc_info=True)
            self._record_backend_error("put")

    def _schedule(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _record_lookup(self, collection: str, result: str) -> None:
        if self.metrics:
            self.metrics.record_lookup(collection, result)

    def _record_backend_error(self, operation: str) -> None:
        if self.metrics:
            self.metrics.record_backend_error(operation)

    def _record_serialization_error(self, stage: str) -> None:
        if self.metrics:
            self.metrics.record_serialization_error(stage)
