"""
Abstract two-level cache store: namespace -> fingerprint -> payload.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class CacheEntry:
    """One cached query result."""

    namespace: str
    fingerprint: str
    payload: bytes
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class QueryCacheStore(ABC):
    """Backend contract used by the interceptor and the invalidation trigger.

    ``get`` treats a missing or expired entry as a normal ``None`` result.
    Any failure to talk to the backend is raised as
    ``BackendUnavailableError`` so callers can degrade to a miss.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name for logs and health output."""

    async def start(self) -> None:
        """Open the shared backend handle."""

    async def stop(self) -> None:
        """Release the shared backend handle."""

    @abstractmethod
    async def get(self, namespace: str, fingerprint: str) -> Optional[bytes]:
        """Return the live payload stored under (namespace, fingerprint)."""

    @abstractmethod
    async def put(self, namespace: str, fingerprint: str, payload: bytes, ttl: int) -> None:
        """Store ``payload``, replacing any previous entry, expiring after ``ttl`` seconds."""

    @abstractmethod
    async def delete_namespace(self, namespace: str) -> bool:
        """Drop every entry in ``namespace``. Returns whether anything was removed."""

    async def health_check(self) -> bool:
        return True
