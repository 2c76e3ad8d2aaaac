"""
Write-completion invalidation.
"""

from typing import Any, Optional, TYPE_CHECKING

from ..annotation import normalize_namespace
from ..shared.errors import BackendUnavailableError, InvalidAnnotationError
from ..shared.logging import get_logger
from ..store.base import QueryCacheStore

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..shared.config import QueryCacheConfig
    from ..shared.metrics import MetricsCollector


class InvalidationTrigger:
    """Clears the acting principal's namespace after a successful write.

    Must only be invoked once the write's response has been finalized;
    ``ResponseOutcome`` guards the once-per-request part.
    """

    def __init__(
        self,
        store: QueryCacheStore,
        *,
        failure_status: int = 400,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.store = store
        self.failure_status = failure_status
        self.metrics = metrics
        self.logger = get_logger("query_cache.invalidation")

    @classmethod
    def from_config(
        cls,
        store: QueryCacheStore,
        config: "QueryCacheConfig",
        metrics: Optional["MetricsCollector"] = None,
    ) -> "InvalidationTrigger":
        return cls(store, failure_status=config.failure_status, metrics=metrics)

    def is_success(self, status_code: int) -> bool:
        return status_code < self.failure_status

    async def on_response_finalized(self, status_code: int, principal: Any) -> bool:
        """Handle one finalized write. Returns whether a namespace was dropped."""
        if not self.is_success(status_code):
            self.logger.debug("Write failed, keeping cache", status_code=status_code)
            self._record("skipped_failure")
            return False

        if principal is None:
            self.logger.warning("Successful write without a principal, cache not invalidated", status_code=status_code)
            self._record("skipped_anonymous")
            return False

        try:
            namespace = normalize_namespace(principal)
        except InvalidAnnotationError as e:
            self.logger.warning("Unusable principal for invalidation", error=str(e))
            self._record("skipped_anonymous")
            return False

        if not namespace:
            self.logger.warning("Successful write by an empty principal, shared cache kept", status_code=status_code)
            self._record("skipped_anonymous")
            return False

        try:
            removed = await self.store.delete_namespace(namespace)
        except BackendUnavailableError as e:
            self.logger.error("Cache invalidation failed", namespace=namespace, error=str(e))
            self._record("error")
            if self.metrics:
                self.metrics.record_backend_error("delete_namespace")
            return False

        self._record("invalidated")
        return removed

    def _record(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.record_invalidation(outcome)


class ResponseOutcome:
    """Tracks one request's response and lets the trigger fire at most once."""

    def __init__(self):
        self.status_code: Optional[int] = None
        self.finalized = False
        self._fired = False

    def observe(self, message: dict) -> None:
        """Feed an ASGI message that has already been delivered."""
        message_type = message.get("type")
        if message_type == "http.response.start":
            self.status_code = message["status"]
        elif message_type == "http.response.body" and not message.get("more_body", False):
            if self.status_code is not None:
                self.finalized = True

    def claim(self) -> bool:
        """True exactly once, and only for a finalized response."""
        if not self.finalized or self._fired:
            return False
        self._fired = True
        return True
