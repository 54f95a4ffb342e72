"""
===============================================================================
TARJETA CRC — interfaces/api/http/routers/identities.py
===============================================================================

Class/Module:
    Routers de identidades (uno por variante)

Responsibilities:
    - Exponer CRUD + búsquedas + desbloqueo para cada variante de usuario.
    - Enforce de auth en el borde: Bearer token (lecturas), nivel mínimo
      (escrituras), X-API-Key (rutas legacy /api-key).
    - Traducir DTOs -> valores del servicio y entidades -> envelope.
    - CPF / teléfono de path y query se reducen a dígitos antes de buscar.

Collaborators:
    - application.services.IdentityService (vía Container)
    - identity.access (require_auth, require_level, require_api_key)
    - schemas.identities (DTOs Pydantic)

Patterns:
    - Controller / Router
    - Factory: build_identity_router(IdentityRoute) genera un router por variante.
===============================================================================
"""

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel

from .....container import Container
from .....crosscutting.error_responses import SuccessEnvelope, success
from .....domain.entities import IdentityRecord, UserSource
from .....domain.filters import IdentityFilter
from .....identity.access import require_api_key, require_auth, require_level
from ..dependencies import Pagination, get_container, page_envelope, pagination_params
from ..schemas.common import PageRes
from ..schemas.identities import (
    CreateAddressedUserReq,
    CreatePhoneUserReq,
    CreateUserReq,
    IdentityRes,
    UpdateIdentityReq,
    UpdatePhoneUserReq,
    digits_only,
)

ADMIN_LEVEL = 100
MANAGER_LEVEL = 50


@dataclass(frozen=True)
class IdentityRoute:
    """Contrato HTTP de una variante."""

    source: UserSource
    prefix: str
    tag: str
    create_model: type[BaseModel]
    update_model: type[BaseModel]
    write_level: int = MANAGER_LEVEL
    delete_level: int = ADMIN_LEVEL


IDENTITY_ROUTES: tuple[IdentityRoute, ...] = (
    IdentityRoute(
        source=UserSource.USER,
        prefix="/users",
        tag="users",
        create_model=CreateUserReq,
        update_model=UpdateIdentityReq,
    ),
    IdentityRoute(
        source=UserSource.ADMIN,
        prefix="/users-admin",
        tag="users-admin",
        create_model=CreateAddressedUserReq,
        update_model=UpdateIdentityReq,
        write_level=ADMIN_LEVEL,
    ),
    IdentityRoute(
        source=UserSource.AFFILIATE,
        prefix="/users-affiliate",
        tag="users-affiliate",
        create_model=CreateAddressedUserReq,
        update_model=UpdateIdentityReq,
    ),
    IdentityRoute(
        source=UserSource.PHONE,
        prefix="/users-phone",
        tag="users-phone",
        create_model=CreatePhoneUserReq,
        update_model=UpdatePhoneUserReq,
    ),
)


def _public(record: IdentityRecord) -> dict[str, Any]:
    return record.to_public_dict()


def build_identity_router(route: IdentityRoute) -> APIRouter:
    """
    Construye el router de una variante.

    Nota:
      Los modelos de body se capturan como variables locales: este módulo no
      usa `from __future__ import annotations` para que FastAPI vea las clases.
    """
    router = APIRouter(prefix=route.prefix, tags=[route.tag])
    CreateModel = route.create_model
    UpdateModel = route.update_model
    source = route.source

    def service(container: Container):
        return container.identity_services[source]

    # -------------------------------------------------------------------------
    # Lecturas (cualquier usuario autenticado)
    # -------------------------------------------------------------------------
    @router.get(
        "",
        response_model=SuccessEnvelope[PageRes[IdentityRes]],
        dependencies=[Depends(require_auth)],
    )
    async def list_identities(
        pagination: Pagination = Depends(pagination_params),
        name: str | None = Query(None),
        email: str | None = Query(None),
        phone: str | None = Query(None),
        cpf: str | None = Query(None),
        city: str | None = Query(None),
        state: str | None = Query(None),
        role_id: UUID | None = Query(None),
        status_id: UUID | None = Query(None),
        container: Container = Depends(get_container),
    ):
        filters = IdentityFilter(
            name=name,
            email=email,
            phone=digits_only(phone),
            cpf=digits_only(cpf),
            city=city,
            state=state,
            role_id=role_id,
            status_id=status_id,
        )
        page = await service(container).list(pagination.page, pagination.limit, filters)
        return page_envelope(page, _public, "Usuários listados com sucesso")

    @router.get(
        "/email/{email}",
        response_model=SuccessEnvelope[IdentityRes],
        dependencies=[Depends(require_auth)],
    )
    async def get_by_email(email: str, container: Container = Depends(get_container)):
        record = await service(container).get_by_field("email", email.strip().lower())
        return success(_public(record))

    @router.get(
        "/cpf/{cpf}",
        response_model=SuccessEnvelope[IdentityRes],
        dependencies=[Depends(require_auth)],
    )
    async def get_by_cpf(cpf: str, container: Container = Depends(get_container)):
        record = await service(container).get_by_field("cpf", digits_only(cpf))
        return success(_public(record))

    @router.get(
        "/telefone/{phone}",
        response_model=SuccessEnvelope[IdentityRes],
        dependencies=[Depends(require_auth)],
    )
    async def get_by_phone(phone: str, container: Container = Depends(get_container)):
        record = await service(container).get_by_field("phone", digits_only(phone))
        return success(_public(record))

    @router.get(
        "/{identity_id}",
        response_model=SuccessEnvelope[IdentityRes],
        dependencies=[Depends(require_auth)],
    )
    async def get_identity(
        identity_id: UUID, container: Container = Depends(get_container)
    ):
        record = await service(container).get(identity_id)
        return success(_public(record))

    # -------------------------------------------------------------------------
    # Escrituras con token (nivel mínimo por variante)
    # -------------------------------------------------------------------------
    async def _create(body: BaseModel, container: Container) -> dict[str, Any]:
        record = await service(container).create(body.to_values())
        return success(_public(record), "Usuário criado com sucesso")

    async def _update(
        identity_id: UUID, body: BaseModel, container: Container
    ) -> dict[str, Any]:
        record = await service(container).update(identity_id, body.to_values())
        return success(_public(record), "Usuário atualizado com sucesso")

    async def _delete(identity_id: UUID, container: Container) -> Response:
        await service(container).delete(identity_id)
        return Response(status_code=204)

    @router.post(
        "",
        status_code=201,
        response_model=SuccessEnvelope[IdentityRes],
        dependencies=[Depends(require_level(route.write_level))],
    )
    async def create_identity(
        body: CreateModel, container: Container = Depends(get_container)
    ):
        return await _create(body, container)

    @router.put(
        "/{identity_id}",
        response_model=SuccessEnvelope[IdentityRes],
        dependencies=[Depends(require_level(route.write_level))],
    )
    async def update_identity(
        identity_id: UUID,
        body: UpdateModel,
        container: Container = Depends(get_container),
    ):
        return await _update(identity_id, body, container)

    @router.delete(
        "/{identity_id}",
        status_code=204,
        response_class=Response,
        dependencies=[Depends(require_level(route.delete_level))],
    )
    async def delete_identity(
        identity_id: UUID, container: Container = Depends(get_container)
    ):
        return await _delete(identity_id, container)

    @router.post(
        "/{identity_id}/unlock",
        response_model=SuccessEnvelope[IdentityRes],
        dependencies=[Depends(require_level(ADMIN_LEVEL))],
    )
    async def unlock_identity(
        identity_id: UUID, container: Container = Depends(get_container)
    ):
        record = await service(container).unlock(identity_id)
        return success(_public(record), "Usuário desbloqueado com sucesso")

    # -------------------------------------------------------------------------
    # Rutas legacy con X-API-Key
    # -------------------------------------------------------------------------
    @router.post(
        "/api-key",
        status_code=201,
        response_model=SuccessEnvelope[IdentityRes],
        dependencies=[Depends(require_api_key)],
    )
    async def create_identity_with_api_key(
        body: CreateModel, container: Container = Depends(get_container)
    ):
        return await _create(body, container)

    @router.put(
        "/api-key/{identity_id}",
        response_model=SuccessEnvelope[IdentityRes],
        dependencies=[Depends(require_api_key)],
    )
    async def update_identity_with_api_key(
        identity_id: UUID,
        body: UpdateModel,
        container: Container = Depends(get_container),
    ):
        return await _update(identity_id, body, container)

    @router.delete(
        "/api-key/{identity_id}",
        status_code=204,
        response_class=Response,
        dependencies=[Depends(require_api_key)],
    )
    async def delete_identity_with_api_key(
        identity_id: UUID, container: Container = Depends(get_container)
    ):
        return await _delete(identity_id, container)

    return router


def build_identity_routers() -> list[APIRouter]:
    return [build_identity_router(route) for route in IDENTITY_ROUTES]
