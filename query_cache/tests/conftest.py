"""
Shared fixtures for query cache unit tests.
"""

import pytest
from prometheus_client import CollectorRegistry

from query_cache.interceptor import QueryInterceptor
from query_cache.query import Collection
from query_cache.shared.metrics import MetricsCollector
from query_cache.shared.test_helpers import BlogDataFactory, BlogRecord, FakeClock, InMemoryExecutor
from query_cache.store.memory_store import MemoryQueryCacheStore


@pytest.fixture
def clock():
    """Manually advanced clock."""
    return FakeClock()


@pytest.fixture
def memory_store(clock):
    """In-memory store driven by the fake clock."""
    return MemoryQueryCacheStore(clock=clock)


@pytest.fixture
def registry():
    """Isolated prometheus registry."""
    return CollectorRegistry()


@pytest.fixture
def metrics(registry):
    """Metrics collector bound to the isolated registry."""
    return MetricsCollector("query-cache-test", registry)


@pytest.fixture
def executor():
    """Fake blog executor over three documents."""
    return InMemoryExecutor(BlogDataFactory.create_test_blogs())


@pytest.fixture
def interceptor(memory_store, metrics):
    """Interceptor writing to the cache inline."""
    return QueryInterceptor(memory_store, default_ttl=10, background_writes=False, metrics=metrics)


@pytest.fixture
def blogs(executor, interceptor):
    """Blogs collection routed through the interceptor."""
    return Collection("blogs", BlogRecord, executor, interceptor=interceptor)
