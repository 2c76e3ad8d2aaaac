"""
Tests for configuration and store selection.
"""

import pytest
from pydantic import ValidationError

from query_cache.shared.config import QueryCacheConfig, get_config
from query_cache.shared.errors import InvalidAnnotationError
from query_cache.store import MemoryQueryCacheStore, RedisQueryCacheStore, create_cache_store


class TestQueryCacheConfig:
    """Settings resolution."""

    def test_defaults(self, monkeypatch):
        for name in ("QUERY_CACHE_BACKEND", "QUERY_CACHE_DEFAULT_TTL_SECONDS", "QUERY_CACHE_REDIS_URL"):
            monkeypatch.delenv(name, raising=False)

        config = QueryCacheConfig(_env_file=None)

        assert config.backend == "redis"
        assert config.default_ttl_seconds == 10
        assert config.failure_status == 400
        assert config.background_writes is True
        assert config.key_prefix == "query_cache:"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("QUERY_CACHE_BACKEND", "memory")
        monkeypatch.setenv("QUERY_CACHE_DEFAULT_TTL_SECONDS", "45")
        monkeypatch.setenv("QUERY_CACHE_BACKGROUND_WRITES", "false")

        config = get_config()

        assert config.backend == "memory"
        assert config.default_ttl_seconds == 45
        assert config.background_writes is False

    def test_explicit_overrides_win(self, monkeypatch):
        monkeypatch.setenv("QUERY_CACHE_DEFAULT_TTL_SECONDS", "45")

        assert get_config(default_ttl_seconds=5).default_ttl_seconds == 5

    @pytest.mark.parametrize("overrides", [
        {"backend": "memcached"},
        {"default_ttl_seconds": 0},
        {"failure_status": 99},
    ])
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValidationError):
            QueryCacheConfig(**overrides)


class TestCreateCacheStore:
    """Backend factory."""

    def test_memory_backend(self):
        store = create_cache_store(QueryCacheConfig(backend="memory"))

        assert isinstance(store, MemoryQueryCacheStore)

    def test_redis_backend(self):
        config = QueryCacheConfig(backend="redis", redis_url="redis://cache:6379/3", key_prefix="qc:")

        store = create_cache_store(config)

        assert isinstance(store, RedisQueryCacheStore)
        assert store.redis_url == "redis://cache:6379/3"
        assert store.namespace_key("u1") == "qc:u1"


class TestErrorResponses:
    """Error payloads."""

    def test_to_response(self):
        error = InvalidAnnotationError("Cache namespace must not be blank", {"namespace": " "})

        response = error.to_response()

        assert response.code == "INVALID_ANNOTATION"
        assert response.details == {"namespace": " "}
