"""
Test helper functions and factory methods for the query cache.
"""

from datetime import datetime, timezone
from operator import itemgetter
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..query import QueryDescriptor


class BlogRecord(BaseModel):
    """Native record type used by the fake data-access layer."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    title: str
    content: str
    user: str = Field(alias="_user")
    created_at: datetime

    def summary(self) -> str:
        return f"{self.title} ({self.user})"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryExecutor:
    """Stand-in for the data store's own query execution.

    Supports equality filters, sort, skip and limit, and records every
    descriptor it was asked to run.
    """

    def __init__(self, documents: List[Dict[str, Any]], model=BlogRecord):
        self.documents = documents
        self.model = model
        self.calls: List[QueryDescriptor] = []
        self.error: Optional[Exception] = None

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def __call__(self, descriptor: QueryDescriptor):
        self.calls.append(descriptor)
        if self.error is not None:
            raise self.error

        matches = [
            document for document in self.documents
            if all(document.get(field) == value for field, value in descriptor.filter.items())
        ]
        for field, direction in reversed(descriptor.sort):
            matches.sort(key=itemgetter(field), reverse=direction < 0)
        matches = matches[descriptor.skip:]
        if descriptor.limit is not None:
            matches = matches[:descriptor.limit]

        records = [self.model.model_validate(document) for document in matches]
        if descriptor.single:
            return records[0] if records else None
        return records


class BlogDataFactory:
    """Factory for creating test data."""

    @staticmethod
    def create_test_blogs() -> List[Dict[str, Any]]:
        """Create blog documents for two users."""
        created = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        return [
            {
                "_id": "blog-1",
                "title": "Caching 101",
                "content": "Read-through caches in practice",
                "_user": "u1",
                "created_at": created,
            },
            {
                "_id": "blog-2",
                "title": "Redis hashes",
                "content": "One hash per namespace",
                "_user": "u1",
                "created_at": created.replace(hour=13),
            },
            {
                "_id": "blog-3",
                "title": "Invalidation",
                "content": "The second hard problem",
                "_user": "u2",
                "created_at": created.replace(hour=14),
            },
        ]

    @staticmethod
    def create_blog(blog_id: str, user_id: str, title: str = "Untitled") -> Dict[str, Any]:
        """Create a single blog document."""
        return {
            "_id": blog_id,
            "title": title,
            "content": f"Content of {title}",
            "_user": user_id,
            "created_at": datetime.now(timezone.utc),
        }
