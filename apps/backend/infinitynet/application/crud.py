"""
===============================================================================
TARJETA CRC — application/crud.py (CRUD genérico por composición)
===============================================================================

Responsabilidades:
  - Implementar el contrato de repositorio por entidad sobre Store[T] + cache:
      find_all / find_by_id / find_by_field / create / update / delete
  - Verificar campos únicos antes de escribir (excluyendo el propio id en update).
  - Read-through de find_by_id con clave "<entidad>:<id>" y write-through /
    evicción en create / update / delete.

Colaboradores:
  - domain.repositories.Store (persistencia)
  - domain.cache.CachePort (infrastructure.cache.CacheFacade)
  - application.identity_repository / reference_data (componen este CRUD)

Patrones aplicados:
  - Composición en lugar de jerarquía: cada entidad se describe con un
    EntityDescriptor y las variantes agregan reglas envolviendo este objeto.

Reglas:
  - NotFound en update/delete: "Registro não encontrado: {id}".
  - Conflict por unicidad: "Já existe um registro com este {campo}: {valor}"
    (o el mensaje fijo del UniqueField).
  - Un payload corrupto en cache se descarta y se lee del store.
===============================================================================
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Generic, Mapping, Sequence, TypeVar
from uuid import UUID

from ..crosscutting.exceptions import AppError
from ..crosscutting.logger import logger
from ..domain.cache import CachePort
from ..domain.entities import utcnow
from ..domain.repositories import Criterion, CriterionOp, Page, SortKey, Store

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


@dataclass(frozen=True, slots=True)
class UniqueField:
    """Campo con unicidad por colección."""

    field: str
    label: str | None = None
    message: str | None = None

    def conflict_message(self, value: Any) -> str:
        if self.message:
            return self.message
        return f"Já existe um registro com este {self.label or self.field}: {value}"


@dataclass(frozen=True, slots=True)
class EntityDescriptor(Generic[T]):
    """
    Describe una entidad para el CRUD genérico.

    name: prefijo de cache ("role" -> "role:<id>").
    factory: construye la entidad desde valores validados.
    """

    name: str
    factory: Callable[..., T]
    to_dict: Callable[[T], dict[str, Any]]
    from_dict: Callable[[dict[str, Any]], T]
    unique_fields: tuple[UniqueField, ...] = ()
    default_order: tuple[SortKey, ...] = field(
        default=(SortKey("created_at", descending=True),)
    )


class CrudRepository(Generic[T]):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      CrudRepository[T]

    Responsabilidades:
      - CRUD paginado con unicidad + cache

    Colaboradores:
      - Store[T], CachePort, EntityDescriptor[T]
    ----------------------------------------------------------------------------
    """

    def __init__(
        self,
        store: Store[T],
        cache: CachePort,
        descriptor: EntityDescriptor[T],
        *,
        cache_ttl: int | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.descriptor = descriptor
        self.cache_ttl = cache_ttl

    @property
    def name(self) -> str:
        return self.descriptor.name

    def cache_key(self, entity_id: UUID | str) -> str:
        return f"{self.descriptor.name}:{entity_id}"

    # ---------------------------------------------------------------------
    # Lecturas
    # ---------------------------------------------------------------------
    async def find_all(
        self,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
        criteria: Sequence[Criterion] = (),
    ) -> Page[T]:
        page = max(1, int(page))
        limit = max(1, int(limit))

        total = await self.store.count(criteria)
        data = await self.store.list(
            criteria=criteria,
            order_by=self.descriptor.default_order,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return Page(data=data, total=total, page=page, limit=limit)

    async def find_by_id(self, entity_id: UUID) -> T | None:
        key = self.cache_key(entity_id)

        cached = await self.cache.get(key)
        if cached is not None:
            try:
                return self.descriptor.from_dict(json.loads(cached))
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning(
                    "Entrada de cache inválida, se descarta",
                    extra={"cache_key": key, "error": str(exc)},
                )
                await self.cache.delete(key)

        entity = await self.store.get(entity_id)
        if entity is not None:
            await self._cache_put(entity)
        return entity

    async def find_by_field(self, field_name: str, value: Any) -> T | None:
        return await self.store.find_first(
            [Criterion(field=field_name, op=CriterionOp.EQ, value=value)]
        )

    async def count_where(self, field_name: str, value: Any) -> int:
        return await self.store.count(
            [Criterion(field=field_name, op=CriterionOp.EQ, value=value)]
        )

    # ---------------------------------------------------------------------
    # Escrituras
    # ---------------------------------------------------------------------
    async def create(self, values: Mapping[str, Any]) -> T:
        await self.check_unique_constraints(values)
        entity = self.descriptor.factory(**values)
        await self.store.insert(entity)
        await self._cache_put(entity)
        return entity

    async def update(self, entity_id: UUID, changes: Mapping[str, Any]) -> T:
        existing = await self.require(entity_id)
        await self.check_unique_constraints(changes, exclude_id=entity_id)

        updated = replace(existing, **dict(changes), updated_at=utcnow())
        await self.store.replace(updated)
        await self._cache_put(updated)
        return updated

    async def delete(self, entity_id: UUID) -> T:
        existing = await self.require(entity_id)
        await self.store.delete(entity_id)
        await self.cache.delete(self.cache_key(entity_id))
        return existing

    async def require(self, entity_id: UUID) -> T:
        entity = await self.find_by_id(entity_id)
        if entity is None:
            raise AppError.not_found(f"Registro não encontrado: {entity_id}")
        return entity

    async def check_unique_constraints(
        self, values: Mapping[str, Any], exclude_id: UUID | None = None
    ) -> None:
        for unique in self.descriptor.unique_fields:
            value = values.get(unique.field)
            if value is None:
                continue
            found = await self.find_by_field(unique.field, value)
            if found is not None and getattr(found, "id") != exclude_id:
                raise AppError.conflict(
                    unique.conflict_message(value), details={"field": unique.field}
                )

    async def _cache_put(self, entity: T) -> None:
        await self.cache.set(
            self.cache_key(getattr(entity, "id")),
            json.dumps(self.descriptor.to_dict(entity), default=str),
            self.cache_ttl,
        )
