"""
Shared error handling for the query cache.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class QueryCacheException(Exception):
    """Base exception for query cache components."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class BackendUnavailableError(QueryCacheException):
    """The cache backend could not be reached or refused the command.

    Always recovered inside the cache layer; callers only see it in logs
    and metrics.
    """

    def __init__(self, operation: str, message: str = "Cache backend unavailable", details: Optional[Dict[str, Any]] = None):
        self.operation = operation
        super().__init__("BACKEND_UNAVAILABLE", f"{operation}: {message}", details)


class SerializationError(QueryCacheException):
    """A result could not be turned into a payload, or a payload back into records."""

    def __init__(self, message: str = "Serialization failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("SERIALIZATION_ERROR", message, details)


class InvalidAnnotationError(QueryCacheException):
    """Cache annotation rejected at the point it was attached to a query."""

    def __init__(self, message: str = "Invalid cache annotation", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_ANNOTATION", message, details)
