"""
============================================================
TARJETA CRC — infrastructure/stores/in_memory.py
============================================================
Class: InMemoryStore[T]

Responsibilities:
  - Implementar el contrato Store[T] sobre un dict (tests / local dev).
  - Aplicar Criterion (EQ / ICONTAINS) y SortKey igual que el store Postgres.
  - Mantener ordering determinístico para tests estables.

Collaborators:
  - domain.repositories.Store / Criterion / SortKey (contrato a implementar)
  - container.Container: lo elige cuando DATABASE_URL está vacío.

Constraints / Notes:
  - Sin locks: todo corre en el event loop (las corrutinas no ceden entre
    lectura y escritura del dict).
  - Entidades inmutables (frozen dataclasses): no hace falta copiar.
============================================================
"""

from __future__ import annotations

from typing import Any, Generic, Sequence, TypeVar
from uuid import UUID

from ...domain.repositories import Criterion, SortKey

T = TypeVar("T")


def _matches_all(entity: Any, criteria: Sequence[Criterion]) -> bool:
    return all(c.matches(getattr(entity, c.field, None)) for c in criteria)


def _sort_value(value: Any) -> tuple[bool, Any]:
    # R: None al final en orden ascendente (emula NULLS LAST).
    if hasattr(value, "value") and not isinstance(value, (int, float, str)):
        value = value.value
    return (value is None, value if value is not None else 0)


class InMemoryStore(Generic[T]):
    """
    Store en memoria.

    Modelo mental:
    - _items es la "tabla" (UUID -> entidad).
    - list/count/find_first filtran con los mismos Criterion que Postgres.
    """

    def __init__(self, name: str = "memory") -> None:
        self.name = name
        self._items: dict[UUID, T] = {}

    async def get(self, entity_id: UUID) -> T | None:
        return self._items.get(entity_id)

    async def find_first(self, criteria: Sequence[Criterion]) -> T | None:
        for entity in self._items.values():
            if _matches_all(entity, criteria):
                return entity
        return None

    async def list(
        self,
        *,
        criteria: Sequence[Criterion] = (),
        order_by: Sequence[SortKey] = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> list[T]:
        items = [e for e in self._items.values() if _matches_all(e, criteria)]

        # Sort estable: se aplica desde la última clave hacia la primera.
        for key in reversed(order_by):
            items.sort(
                key=lambda e, f=key.field: _sort_value(getattr(e, f, None)),
                reverse=key.descending,
            )

        offset = max(0, offset)
        if limit is None:
            return items[offset:]
        return items[offset : offset + max(0, limit)]

    async def count(self, criteria: Sequence[Criterion] = ()) -> int:
        return sum(1 for e in self._items.values() if _matches_all(e, criteria))

    async def insert(self, entity: T) -> T:
        entity_id = getattr(entity, "id")
        if entity_id in self._items:
            raise KeyError(f"{self.name}: id duplicado {entity_id}")
        self._items[entity_id] = entity
        return entity

    async def replace(self, entity: T) -> T:
        entity_id = getattr(entity, "id")
        if entity_id not in self._items:
            raise KeyError(f"{self.name}: id inexistente {entity_id}")
        self._items[entity_id] = entity
        return entity

    async def delete(self, entity_id: UUID) -> bool:
        return self._items.pop(entity_id, None) is not None

    async def ping(self) -> bool:
        return True

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
