"""
===============================================================================
TARJETA CRC — application/identity_repository.py
===============================================================================

Módulo:
    Repositorio de identidades (una instancia por variante)

Responsabilidades:
    - Componer CrudRepository[IdentityRecord] sobre el store de la variante.
    - Validar que role_id / status_id existan antes de create/update.
    - Hashear la credencial (password / PIN) antes de persistirla.
    - Búsquedas por identificador de login (email / cpf / phone).
    - Contador de lockout: increment / register_successful_login / reset.

Colaboradores:
    - application.crud.CrudRepository
    - identity.passwords.CredentialHasher
    - application.reference_data (roles / status como referencias)
    - application.auth_service (login y lockout)

Reglas:
    - El secreto llega bajo la clave "secret" y nunca se persiste en claro.
    - Toda mutación del contador pasa por update() (cache incluido).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping
from uuid import UUID

from ..crosscutting.exceptions import AppError
from ..domain.cache import CachePort
from ..domain.entities import IdentityRecord, UserSource, utcnow
from ..domain.filters import IdentityFilter
from ..domain.repositories import Page, SortKey, Store
from ..identity.passwords import CredentialHasher
from .crud import DEFAULT_LIMIT, DEFAULT_PAGE, CrudRepository, EntityDescriptor, UniqueField

if TYPE_CHECKING:
    from .reference_data import ReferenceDataRepository

SECRET_KEY = "secret"

ROLE_NOT_FOUND_MESSAGE = "Perfil (role) não encontrado"
STATUS_NOT_FOUND_MESSAGE = "Status não encontrado"


@dataclass(frozen=True, slots=True)
class IdentityProfile:
    """
    Lo que distingue a una variante de identidad.

    login_field: campo que identifica al usuario en el login.
    display_name: nombre legible para mensajes ("usuário administrativo").
    """

    source: UserSource
    entity_name: str
    display_name: str
    login_field: str
    secret_field: str = "password"
    address_required: bool = True


IDENTITY_PROFILES: dict[UserSource, IdentityProfile] = {
    UserSource.USER: IdentityProfile(
        source=UserSource.USER,
        entity_name="user",
        display_name="usuário",
        login_field="email",
        address_required=False,
    ),
    UserSource.ADMIN: IdentityProfile(
        source=UserSource.ADMIN,
        entity_name="user_admin",
        display_name="usuário administrativo",
        login_field="cpf",
    ),
    UserSource.AFFILIATE: IdentityProfile(
        source=UserSource.AFFILIATE,
        entity_name="user_affiliate",
        display_name="usuário afiliado",
        login_field="cpf",
    ),
    UserSource.PHONE: IdentityProfile(
        source=UserSource.PHONE,
        entity_name="user_phone",
        display_name="usuário do aplicativo",
        login_field="phone",
        secret_field="pin",
    ),
}


def identity_descriptor(profile: IdentityProfile) -> EntityDescriptor[IdentityRecord]:
    def factory(**values: Any) -> IdentityRecord:
        return IdentityRecord(source=profile.source, **values)

    return EntityDescriptor(
        name=profile.entity_name,
        factory=factory,
        to_dict=IdentityRecord.to_dict,
        from_dict=IdentityRecord.from_dict,
        unique_fields=(
            UniqueField("email"),
            UniqueField("cpf"),
            UniqueField("phone", label="telefone"),
        ),
        default_order=(SortKey("created_at", descending=True),),
    )


class IdentityRepository:
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      IdentityRepository

    Responsabilidades:
      - CRUD de una variante + referencias + hashing + lockout

    Colaboradores:
      - CrudRepository[IdentityRecord]
      - ReferenceDataRepository (roles, status)
      - CredentialHasher
    ----------------------------------------------------------------------------
    """

    def __init__(
        self,
        profile: IdentityProfile,
        store: Store[IdentityRecord],
        cache: CachePort,
        *,
        roles: "ReferenceDataRepository",
        statuses: "ReferenceDataRepository",
        hasher: CredentialHasher,
        cache_ttl: int | None = None,
    ) -> None:
        self.profile = profile
        self.crud = CrudRepository(
            store, cache, identity_descriptor(profile), cache_ttl=cache_ttl
        )
        self.roles = roles
        self.statuses = statuses
        self.hasher = hasher

    @property
    def source(self) -> UserSource:
        return self.profile.source

    # ---------------------------------------------------------------------
    # Lecturas
    # ---------------------------------------------------------------------
    async def find_all(
        self,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
        filters: IdentityFilter | None = None,
    ) -> Page[IdentityRecord]:
        criteria = filters.to_criteria() if filters else []
        return await self.crud.find_all(page, limit, criteria)

    async def find_by_id(self, identity_id: UUID) -> IdentityRecord | None:
        return await self.crud.find_by_id(identity_id)

    async def find_by_field(self, field_name: str, value: Any) -> IdentityRecord | None:
        return await self.crud.find_by_field(field_name, value)

    async def find_by_email(self, email: str) -> IdentityRecord | None:
        return await self.crud.find_by_field("email", email)

    async def find_by_cpf(self, cpf: str) -> IdentityRecord | None:
        return await self.crud.find_by_field("cpf", cpf)

    async def find_by_phone(self, phone: str) -> IdentityRecord | None:
        return await self.crud.find_by_field("phone", phone)

    async def find_by_login(self, identifier: str) -> IdentityRecord | None:
        return await self.crud.find_by_field(self.profile.login_field, identifier)

    async def count_by_role(self, role_id: UUID) -> int:
        return await self.crud.count_where("role_id", role_id)

    async def count_by_status(self, status_id: UUID) -> int:
        return await self.crud.count_where("status_id", status_id)

    # ---------------------------------------------------------------------
    # Escrituras
    # ---------------------------------------------------------------------
    async def create(self, values: Mapping[str, Any]) -> IdentityRecord:
        data = dict(values)
        await self._check_references(data)
        data = await self._hash_secret(data)
        return await self.crud.create(data)

    async def update(self, identity_id: UUID, changes: Mapping[str, Any]) -> IdentityRecord:
        data = dict(changes)
        await self._check_references(data)
        data = await self._hash_secret(data)
        return await self.crud.update(identity_id, data)

    async def delete(self, identity_id: UUID) -> IdentityRecord:
        return await self.crud.delete(identity_id)

    # ---------------------------------------------------------------------
    # Lockout
    # ---------------------------------------------------------------------
    async def increment_failed_attempts(self, identity_id: UUID) -> IdentityRecord:
        record = await self.crud.require(identity_id)
        return await self.crud.update(
            identity_id, {"failed_attempts": record.failed_attempts + 1}
        )

    async def register_successful_login(self, identity_id: UUID) -> IdentityRecord:
        return await self.crud.update(
            identity_id, {"failed_attempts": 0, "last_login_at": utcnow()}
        )

    async def reset_failed_attempts(self, identity_id: UUID) -> IdentityRecord:
        return await self.crud.update(identity_id, {"failed_attempts": 0})

    # ---------------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------------
    async def _check_references(self, data: Mapping[str, Any]) -> None:
        role_id = data.get("role_id")
        if role_id is not None and await self.roles.find_by_id(role_id) is None:
            raise AppError.bad_request(ROLE_NOT_FOUND_MESSAGE)

        status_id = data.get("status_id")
        if status_id is not None and await self.statuses.find_by_id(status_id) is None:
            raise AppError.bad_request(STATUS_NOT_FOUND_MESSAGE)

    async def _hash_secret(self, data: dict[str, Any]) -> dict[str, Any]:
        secret = data.pop(SECRET_KEY, None)
        if secret:
            data["credential_hash"] = await self.hasher.hash(secret)
        return data
