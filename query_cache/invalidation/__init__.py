"""
Cache invalidation package.

Write requests invalidate the acting principal's cache namespace once
their response has been sent and only when it succeeded.
"""

from .middleware import WRITE_METHODS, CacheInvalidationMiddleware, principal_from_state
from .trigger import InvalidationTrigger, ResponseOutcome

__all__ = [
    "WRITE_METHODS",
    "CacheInvalidationMiddleware",
    "InvalidationTrigger",
    "ResponseOutcome",
    "principal_from_state",
]
