"""
Shared metrics configuration for the query cache.
"""

from typing import Dict, Any, Optional
import time
import threading
from contextlib import contextmanager

from prometheus_client import Counter, Histogram, Info, CollectorRegistry, REGISTRY


class MetricsCollector:
    """Centralized metrics collector for cache components."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up query cache metrics."""

        self._metrics["query_cache_info"] = Info(
            "query_cache",
            "Query cache information",
            registry=self.registry
        )
        self._metrics["query_cache_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        self._metrics["query_cache_lookups_total"] = Counter(
            "query_cache_lookups_total",
            "Total intercepted read queries by outcome",
            ["collection", "result"],
            registry=self.registry
        )

        self._metrics["query_cache_backend_errors_total"] = Counter(
            "query_cache_backend_errors_total",
            "Total cache backend failures",
            ["operation"],
            registry=self.registry
        )

        self._metrics["query_cache_serialization_errors_total"] = Counter(
            "query_cache_serialization_errors_total",
            "Total payload encode/decode failures",
            ["stage"],
            registry=self.registry
        )

        self._metrics["query_cache_invalidations_total"] = Counter(
            "query_cache_invalidations_total",
            "Total write-triggered namespace invalidations",
            ["outcome"],
            registry=self.registry
        )

        self._metrics["query_cache_execution_duration_seconds"] = Histogram(
            "query_cache_execution_duration_seconds",
            "Duration of real query execution on cache miss",
            ["collection"],
            registry=self.registry
        )

    def record_lookup(self, collection: str, result: str):
        """Record the outcome of an intercepted query."""
        self._metrics["query_cache_lookups_total"].labels(
            collection=collection,
            result=result
        ).inc()

    def record_backend_error(self, operation: str):
        """Record a cache backend failure."""
        self._metrics["query_cache_backend_errors_total"].labels(operation=operation).inc()

    def record_serialization_error(self, stage: str):
        """Record a payload encode or decode failure."""
        self._metrics["query_cache_serialization_errors_total"].labels(stage=stage).inc()

    def record_invalidation(self, outcome: str):
        """Record an invalidation trigger outcome."""
        self._metrics["query_cache_invalidations_total"].labels(outcome=outcome).inc()

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Context manager to time an operation."""
        start_time = time.perf_counter()
        try:
            yield
        finally:
            duration = time.perf_counter() - start_time
            if operation_name in self._metrics:
                self._metrics[operation_name].labels(**labels).observe(duration)


_default_collector: Optional[MetricsCollector] = None
_default_lock = threading.Lock()


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector.

    Without an explicit registry the collector is bound to the default
    prometheus registry and shared process-wide, since metric names can
    only be registered there once.
    """
    global _default_collector

    if registry is not None:
        return MetricsCollector(service_name, registry)

    with _default_lock:
        if _default_collector is None:
            _default_collector = MetricsCollector(service_name, REGISTRY)
        return _default_collector
