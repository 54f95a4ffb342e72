"""
CRC — domain/repositories.py

Name
- Domain Store Interfaces (Protocols) + query value objects

Responsibilities
- Define the persistence contract `Store[T]` shared by every entity (ports).
- Keep application code independent from infrastructure (PostgreSQL, in-memory).
- Describe queries with explicit value objects (Criterion, SortKey) instead of
  free-form dicts, and paginated results with Page[T].

Collaborators
- domain.filters: per-entity filters lowered to Criterion lists
- application.crud: CrudRepository composes a Store with cache + uniqueness rules
- infrastructure.stores: in_memory / postgres implementations

Constraints
- Pure interfaces only: no side effects, no infrastructure imports, no SQL.
- All store methods are coroutines (every store call is a suspension point).
- Stores return None for "not found"; classified errors are raised above them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Protocol, Sequence, TypeVar
from uuid import UUID

T = TypeVar("T")


class CriterionOp(str, Enum):
    EQ = "eq"
    ICONTAINS = "icontains"


@dataclass(frozen=True, slots=True)
class Criterion:
    """R: One tagged filter condition: `field <op> value`."""

    field: str
    op: CriterionOp
    value: Any

    def matches(self, candidate: Any) -> bool:
        if self.op is CriterionOp.ICONTAINS:
            if candidate is None:
                return False
            return str(self.value).lower() in str(candidate).lower()
        return candidate == self.value


@dataclass(frozen=True, slots=True)
class SortKey:
    field: str
    descending: bool = False


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    """R: Paginated result `{data, total, page, limit, totalPages}`."""

    data: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit > 0 else 0

    def to_dict(self, serialize: Callable[[T], Any]) -> dict[str, Any]:
        return {
            "data": [serialize(item) for item in self.data],
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.total_pages,
        }


class Store(Protocol[T]):
    """
    R: Persistence port for one entity collection.

    Entities are identified by their `id` attribute (UUID).
    """

    async def get(self, entity_id: UUID) -> T | None:
        """R: Fetch by primary key, or None."""
        ...

    async def find_first(self, criteria: Sequence[Criterion]) -> T | None:
        """R: First entity matching ALL criteria, or None."""
        ...

    async def list(
        self,
        *,
        criteria: Sequence[Criterion] = (),
        order_by: Sequence[SortKey] = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> list[T]:
        """R: Entities matching ALL criteria, ordered and sliced."""
        ...

    async def count(self, criteria: Sequence[Criterion] = ()) -> int:
        """R: Number of entities matching ALL criteria."""
        ...

    async def insert(self, entity: T) -> T:
        """R: Persist a new entity."""
        ...

    async def replace(self, entity: T) -> T:
        """R: Overwrite the stored entity with the same id."""
        ...

    async def delete(self, entity_id: UUID) -> bool:
        """R: Remove by id; False if it did not exist."""
        ...

    async def ping(self) -> bool:
        """R: Health probe for the backing store."""
        ...
