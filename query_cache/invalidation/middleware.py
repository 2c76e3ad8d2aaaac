"""
ASGI middleware that runs cache invalidation after write responses.

Installable on any ASGI app (FastAPI, Starlette)::

    app.add_middleware(
        CacheInvalidationMiddleware,
        trigger=InvalidationTrigger(store),
        path_prefixes=("/api/blogs",),
    )

The principal is read after the handler has run, so authentication
dependencies that populate ``request.state.user_info`` are visible.
"""

from collections.abc import Mapping
from typing import Any, Callable, Iterable, Optional

from ..shared.logging import clear_context, get_logger, request_id_var, set_principal, set_request_id
from .trigger import InvalidationTrigger, ResponseOutcome

WRITE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

PrincipalResolver = Callable[[dict], Optional[Any]]


def principal_from_state(scope: dict) -> Optional[Any]:
    """Principal id from ``request.state.user_info``, as set by auth middleware."""
    state = scope.get("state")
    if state is None:
        return None

    user_info = state.get("user_info") if isinstance(state, Mapping) else getattr(state, "user_info", None)
    if isinstance(user_info, Mapping):
        return user_info.get("user_id")
    return getattr(user_info, "user_id", None)


def request_id_from_headers(scope: dict) -> Optional[str]:
    """Inbound ``X-Request-ID`` header, if the client sent one."""
    for name, value in scope.get("headers") or ():
        if name.lower() == b"x-request-id":
            return value.decode("latin-1") or None
    return None


class CacheInvalidationMiddleware:
    """Fires ``InvalidationTrigger`` once per completed write request."""

    def __init__(
        self,
        app,
        trigger: InvalidationTrigger,
        *,
        methods: Iterable[str] = WRITE_METHODS,
        path_prefixes: Optional[Iterable[str]] = None,
        principal_resolver: PrincipalResolver = principal_from_state,
    ):
        self.app = app
        self.trigger = trigger
        self.methods = frozenset(method.upper() for method in methods)
        self.path_prefixes = tuple(path_prefixes) if path_prefixes else ()
        self.principal_resolver = principal_resolver
        self.logger = get_logger("query_cache.invalidation_middleware")

    def applies_to(self, scope: dict) -> bool:
        if scope.get("type") != "http" or scope.get("method", "").upper() not in self.methods:
            return False
        if not self.path_prefixes:
            return True
        return scope.get("path", "").startswith(self.path_prefixes)

    async def __call__(self, scope, receive, send):
        if not self.applies_to(scope):
            await self.app(scope, receive, send)
            return

        # Bind a request id unless an outer layer already did
        owns_context = request_id_var.get() is None
        if owns_context:
            set_request_id(request_id_from_headers(scope))

        outcome = ResponseOutcome()

        async def send_and_observe(message):
            # A send that raises (client gone) never counts as delivered
            await send(message)
            outcome.observe(message)

        try:
            await self.app(scope, receive, send_and_observe)
        finally:
            try:
                if outcome.claim():
                    await self._invalidate(scope, outcome)
            finally:
                if owns_context:
                    clear_context()

    async def _invalidate(self, scope: dict, outcome: ResponseOutcome) -> None:
        try:
            principal = self.principal_resolver(scope)
        except Exception as e:
            self.logger.error("Principal resolution failed", path=scope.get("path"), error=str(e))
            return

        if principal is not None:
            set_principal(str(principal))
        await self.trigger.on_response_finalized(outcome.status_code, principal)
