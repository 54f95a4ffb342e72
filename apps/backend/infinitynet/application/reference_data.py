"""
===============================================================================
TARJETA CRC — application/reference_data.py
===============================================================================

Módulo:
    Repositorios de datos de referencia (perfiles y status)

Responsabilidades:
    - Componer CrudRepository para Role y Status con su orden y unicidad.
    - Impedir el borrado mientras alguna identidad (de cualquier variante)
      referencie el registro.

Colaboradores:
    - application.crud.CrudRepository
    - application.identity_repository.IdentityRepository (dependientes)

Reglas:
    - Roles se listan por level ascendente; status por nombre ascendente.
    - Borrado con referencias -> Conflict "... está sendo utilizado ...".
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, Mapping, TypeVar
from uuid import UUID

from ..crosscutting.exceptions import AppError
from ..domain.cache import CachePort
from ..domain.entities import Role, Status
from ..domain.filters import RoleFilter, StatusFilter
from ..domain.repositories import Page, SortKey, Store
from .crud import DEFAULT_LIMIT, DEFAULT_PAGE, CrudRepository, EntityDescriptor, UniqueField

if TYPE_CHECKING:
    from .identity_repository import IdentityRepository

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ReferenceKind:
    """Campo de IdentityRecord que apunta a esta entidad + mensaje de guarda."""

    reference_field: str
    in_use_message: str


ROLE_DESCRIPTOR: EntityDescriptor[Role] = EntityDescriptor(
    name="role",
    factory=Role,
    to_dict=Role.to_dict,
    from_dict=Role.from_dict,
    unique_fields=(UniqueField("name", message="Já existe um perfil com este nome"),),
    default_order=(SortKey("level"),),
)

STATUS_DESCRIPTOR: EntityDescriptor[Status] = EntityDescriptor(
    name="status",
    factory=Status,
    to_dict=Status.to_dict,
    from_dict=Status.from_dict,
    unique_fields=(UniqueField("name", message="Já existe um status com este nome"),),
    default_order=(SortKey("name"),),
)

ROLE_REFERENCE = ReferenceKind(
    reference_field="role_id",
    in_use_message="Este perfil está sendo utilizado por usuários e não pode ser excluído",
)

STATUS_REFERENCE = ReferenceKind(
    reference_field="status_id",
    in_use_message="Este status está sendo utilizado por usuários e não pode ser excluído",
)


class ReferenceDataRepository(Generic[T]):
    """
    CRUD de referencia con guarda de borrado.

    Los dependientes se registran después de construir los repositorios de
    identidad (que a su vez necesitan este repositorio para validar ids).
    """

    def __init__(
        self,
        store: Store[T],
        cache: CachePort,
        descriptor: EntityDescriptor[T],
        reference: ReferenceKind,
        *,
        cache_ttl: int | None = None,
    ) -> None:
        self.crud = CrudRepository(store, cache, descriptor, cache_ttl=cache_ttl)
        self.reference = reference
        self._dependents: list["IdentityRepository"] = []

    def register_dependent(self, repository: "IdentityRepository") -> None:
        self._dependents.append(repository)

    async def find_all(
        self,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
        filters: RoleFilter | StatusFilter | None = None,
    ) -> Page[T]:
        criteria = filters.to_criteria() if filters else []
        return await self.crud.find_all(page, limit, criteria)

    async def find_by_id(self, entity_id: UUID) -> T | None:
        return await self.crud.find_by_id(entity_id)

    async def find_by_field(self, field_name: str, value: Any) -> T | None:
        return await self.crud.find_by_field(field_name, value)

    async def find_by_name(self, name: str) -> T | None:
        return await self.crud.find_by_field("name", name)

    async def create(self, values: Mapping[str, Any]) -> T:
        return await self.crud.create(values)

    async def update(self, entity_id: UUID, changes: Mapping[str, Any]) -> T:
        return await self.crud.update(entity_id, changes)

    async def delete(self, entity_id: UUID) -> T:
        await self.crud.require(entity_id)

        for dependent in self._dependents:
            in_use = await dependent.crud.count_where(
                self.reference.reference_field, entity_id
            )
            if in_use > 0:
                raise AppError.conflict(self.reference.in_use_message)

        return await self.crud.delete(entity_id)


def build_role_repository(
    store: Store[Role], cache: CachePort, *, cache_ttl: int | None = None
) -> ReferenceDataRepository[Role]:
    return ReferenceDataRepository(
        store, cache, ROLE_DESCRIPTOR, ROLE_REFERENCE, cache_ttl=cache_ttl
    )


def build_status_repository(
    store: Store[Status], cache: CachePort, *, cache_ttl: int | None = None
) -> ReferenceDataRepository[Status]:
    return ReferenceDataRepository(
        store, cache, STATUS_DESCRIPTOR, STATUS_REFERENCE, cache_ttl=cache_ttl
    )
