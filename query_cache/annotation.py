"""
Per-query cache-control annotation.

Caching is opt-in per query: a query only goes through the cache when a
``CacheOptions`` with ``use_cache=True`` has been attached to it. Options
are validated when attached, so a bad namespace or TTL fails at the call
site that built the query rather than deep inside execution.
"""

import math
from dataclasses import dataclass
from datetime import timedelta
from numbers import Real
from typing import Any, Optional, Union

from .shared.errors import InvalidAnnotationError

TTLLike = Union[int, float, timedelta]

# The shared partition used when no namespace is given
DEFAULT_NAMESPACE = ""


def normalize_namespace(namespace: Any) -> str:
    """Reduce a namespace (usually a principal id) to its storage form.

    Used on both the read path and the invalidation path so that a user id
    passed as ``42`` and as ``"42"`` address the same partition.
    """
    if namespace is None:
        return DEFAULT_NAMESPACE
    if isinstance(namespace, bool) or not isinstance(namespace, (str, int)):
        raise InvalidAnnotationError(
            "Cache namespace must be a string or integer identifier",
            {"namespace_type": type(namespace).__name__}
        )
    value = str(namespace)
    if value and not value.strip():
        raise InvalidAnnotationError("Cache namespace must not be blank", {"namespace": value})
    return value


def normalize_ttl(ttl: Optional[TTLLike]) -> Optional[int]:
    """Convert a TTL to whole seconds, ``None`` meaning "use the default"."""
    if ttl is None:
        return None
    if isinstance(ttl, timedelta):
        seconds = ttl.total_seconds()
    elif isinstance(ttl, Real) and not isinstance(ttl, bool):
        try:
            seconds = float(ttl)
        except OverflowError:
            seconds = math.inf
    else:
        raise InvalidAnnotationError(
            "Cache TTL must be a number of seconds or a timedelta",
            {"ttl_type": type(ttl).__name__}
        )
    if not math.isfinite(seconds):
        raise InvalidAnnotationError("Cache TTL must be finite", {"ttl_seconds": str(seconds)})
    if seconds < 1:
        raise InvalidAnnotationError("Cache TTL must be at least one second", {"ttl_seconds": seconds})
    return int(seconds)


@dataclass(frozen=True)
class CacheOptions:
    """Cache annotation state for a single query."""

    use_cache: bool = False
    namespace: str = DEFAULT_NAMESPACE
    ttl: Optional[int] = None

    @classmethod
    def enabled(cls, namespace: Any = None, ttl: Optional[TTLLike] = None) -> "CacheOptions":
        """Build validated options that turn caching on."""
        return cls(
            use_cache=True,
            namespace=normalize_namespace(namespace),
            ttl=normalize_ttl(ttl)
        )


DISABLED = CacheOptions()


def with_cache(query, namespace: Any = None, ttl: Optional[TTLLike] = None):
    """Attach cache options to ``query`` and return it for chaining."""
    query.cache_options = CacheOptions.enabled(namespace, ttl)
    return query
