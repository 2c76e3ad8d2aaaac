"""
Shared configuration management for the query cache.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="QUERY_CACHE_",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    service_name: str = Field(default="query-cache")


class QueryCacheConfig(BaseConfig):
    """Cache backend and policy settings."""

    # Backend
    backend: Literal["redis", "memory"] = Field(default="redis")
    redis_url: str = Field(default="redis://localhost:6379/0")
    key_prefix: str = Field(default="query_cache:")
    max_connections: int = Field(default=10, ge=1)
    socket_timeout: float = Field(default=5.0, gt=0)
    connect_timeout: float = Field(default=5.0, gt=0)

    # Policy
    default_ttl_seconds: int = Field(default=10, ge=1)
    failure_status: int = Field(default=400, ge=100, le=599)
    background_writes: bool = Field(default=True)


def get_config(**overrides) -> QueryCacheConfig:
    """Get cache configuration, environment first, explicit overrides last."""
    return QueryCacheConfig(**overrides)
