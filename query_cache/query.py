"""
Query descriptors and the chainable query builder.

The builder is the data-access extension point: a ``Collection`` hands out
``Query`` objects bound to the real executor and, optionally, to a
``QueryInterceptor``. Call sites build and await queries the same way
whether or not caching is switched on.
"""

import copy
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, Type, Union, TYPE_CHECKING

from .annotation import DISABLED, CacheOptions, TTLLike, with_cache

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from .interceptor import QueryInterceptor

ASCENDING = 1
DESCENDING = -1

SortKey = Union[str, Tuple[str, int]]


@dataclass(frozen=True)
class QueryDescriptor:
    """Immutable shape of a pending read."""

    collection: str
    filter: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    projection: Tuple[str, ...] = ()
    sort: Tuple[Tuple[str, int], ...] = ()
    limit: Optional[int] = None
    skip: int = 0
    single: bool = False
    # Rehydration target; not part of the query's identity
    model: Optional[Type[Any]] = field(default=None, compare=False)


Executor = Callable[[QueryDescriptor], Awaitable[Any]]


class Query:
    """Mutable builder for a single read against one collection."""

    def __init__(
        self,
        collection: str,
        model: Optional[Type[Any]] = None,
        executor: Optional[Executor] = None,
        *,
        single: bool = False,
        interceptor: Optional["QueryInterceptor"] = None,
    ):
        if not collection:
            raise ValueError("Query requires a collection name")
        self.collection = collection
        self.model = model
        self.executor = executor
        self.single = single
        self.interceptor = interceptor
        self.cache_options: CacheOptions = DISABLED

        self._filter: Dict[str, Any] = {}
        self._projection: List[str] = []
        self._sort: List[Tuple[str, int]] = []
        self._limit: Optional[int] = None
        self._skip: int = 0

    def where(self, conditions: Optional[Mapping[str, Any]] = None, **fields: Any) -> "Query":
        """Merge predicates into the filter."""
        if conditions:
            self._filter.update(conditions)
        self._filter.update(fields)
        return self

    def select(self, *fields: str) -> "Query":
        """Restrict the returned fields."""
        for name in fields:
            if name not in self._projection:
                self._projection.append(name)
        return self

    def sort(self, *keys: SortKey) -> "Query":
        """Append sort keys; ``"-field"`` sorts descending."""
        for key in keys:
            if isinstance(key, tuple):
                name, direction = key
                if direction not in (ASCENDING, DESCENDING):
                    raise ValueError(f"Invalid sort direction for {name!r}: {direction!r}")
            elif key.startswith("-"):
                name, direction = key[1:], DESCENDING
            else:
                name, direction = key, ASCENDING
            self._sort.append((name, direction))
        return self

    def limit(self, count: int) -> "Query":
        if count < 0:
            raise ValueError("limit must be non-negative")
        self._limit = count
        return self

    def skip(self, count: int) -> "Query":
        if count < 0:
            raise ValueError("skip must be non-negative")
        self._skip = count
        return self

    def cache(self, namespace: Any = None, ttl: Optional[TTLLike] = None) -> "Query":
        """Opt this query into the cache under ``namespace``."""
        return with_cache(self, namespace, ttl)

    def to_descriptor(self) -> QueryDescriptor:
        """Snapshot the builder into an immutable descriptor."""
        return QueryDescriptor(
            collection=self.collection,
            filter=MappingProxyType(copy.deepcopy(self._filter)),
            projection=tuple(self._projection),
            sort=tuple(self._sort),
            limit=1 if self.single else self._limit,
            skip=self._skip,
            single=self.single,
            model=self.model,
        )

    async def exec(self) -> Any:
        """Run the query through the interceptor when one is bound."""
        if self.executor is None:
            raise RuntimeError(f"Query on {self.collection!r} has no executor bound")

        descriptor = self.to_descriptor()
        if self.interceptor is None:
            return await self.executor(descriptor)
        return await self.interceptor.execute(descriptor, self.cache_options, self.executor)

    def __await__(self):
        return self.exec().__await__()

    def __repr__(self) -> str:
        return (
            f"Query(collection={self.collection!r}, filter={self._filter!r}, "
            f"single={self.single}, cache={self.cache_options.use_cache})"
        )


class Collection:
    """Factory for queries against one collection/table."""

    def __init__(
        self,
        name: str,
        model: Optional[Type[Any]] = None,
        executor: Optional[Executor] = None,
        interceptor: Optional["QueryInterceptor"] = None,
    ):
        self.name = name
        self.model = model
        self.executor = executor
        self.interceptor = interceptor

    def find(self, conditions: Optional[Mapping[str, Any]] = None, **fields: Any) -> Query:
        return self._query(single=False).where(conditions, **fields)

    def find_one(self, conditions: Optional[Mapping[str, Any]] = None, **fields: Any) -> Query:
        return self._query(single=True).where(conditions, **fields)

    def _query(self, single: bool) -> Query:
        return Query(
            self.name,
            self.model,
            self.executor,
            single=single,
            interceptor=self.interceptor,
        )
