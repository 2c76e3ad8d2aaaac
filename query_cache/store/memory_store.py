"""
In-process cache store for local runs and tests.
"""

import time
from typing import Callable, Dict, Optional

from ..shared.logging import get_logger
from .base import CacheEntry, QueryCacheStore


class MemoryQueryCacheStore(QueryCacheStore):
    """Dictionary-backed store with lazy expiry.

    The clock is injectable so TTL behaviour can be driven from tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._namespaces: Dict[str, Dict[str, CacheEntry]] = {}
        self.logger = get_logger("query_cache.store.memory")

    @property
    def name(self) -> str:
        return "memory"

    async def stop(self) -> None:
        self._namespaces.clear()

    async def get(self, namespace: str, fingerprint: str) -> Optional[bytes]:
        entries = self._namespaces.get(namespace)
        if not entries:
            return None

        entry = entries.get(fingerprint)
        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            del entries[fingerprint]
            if not entries:
                del self._namespaces[namespace]
            return None

        return entry.payload

    async def put(self, namespace: str, fingerprint: str, payload: bytes, ttl: int) -> None:
        entry = CacheEntry(
            namespace=namespace,
            fingerprint=fingerprint,
            payload=payload,
            expires_at=self._clock() + ttl,
        )
        self._namespaces.setdefault(namespace, {})[fingerprint] = entry

    async def delete_namespace(self, namespace: str) -> bool:
        removed = self._namespaces.pop(namespace, None)
        if removed:
            self.logger.debug("Deleted cache namespace", namespace=namespace, entries=len(removed))
        return bool(removed)

    def entry_count(self, namespace: Optional[str] = None) -> int:
        """Number of stored entries, expired ones included until next read."""
        if namespace is not None:
            return len(self._namespaces.get(namespace, {}))
        return sum(len(entries) for entries in self._namespaces.values())
