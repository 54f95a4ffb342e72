"""
===============================================================================
TARJETA CRC — interfaces/api/http/routers/roles.py
===============================================================================

Responsibilities:
    - CRUD HTTP de perfiles (roles).
    - Lecturas públicas; escrituras con X-API-Key.

Collaborators:
    - Container.role_service (EntityService + breaker)
    - schemas.reference_data
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from .....container import Container
from .....crosscutting.error_responses import SuccessEnvelope, success
from .....domain.entities import Role
from .....domain.filters import RoleFilter
from .....identity.access import require_api_key
from ..dependencies import Pagination, get_container, page_envelope, pagination_params
from ..schemas.common import PageRes
from ..schemas.reference_data import CreateRoleReq, RoleRes, UpdateRoleReq

router = APIRouter(prefix="/roles", tags=["roles"])


@router.get("", response_model=SuccessEnvelope[PageRes[RoleRes]])
async def list_roles(
    pagination: Pagination = Depends(pagination_params),
    name: str | None = Query(None),
    level: int | None = Query(None, ge=1, le=100),
    is_active: bool | None = Query(None),
    container: Container = Depends(get_container),
):
    filters = RoleFilter(name=name, level=level, is_active=is_active)
    page = await container.role_service.list(pagination.page, pagination.limit, filters)
    return page_envelope(page, Role.to_dict, "Perfis listados com sucesso")


@router.get("/{role_id}", response_model=SuccessEnvelope[RoleRes])
async def get_role(role_id: UUID, container: Container = Depends(get_container)):
    role = await container.role_service.get(role_id)
    return success(role.to_dict())


@router.post(
    "",
    status_code=201,
    response_model=SuccessEnvelope[RoleRes],
    dependencies=[Depends(require_api_key)],
)
async def create_role(body: CreateRoleReq, container: Container = Depends(get_container)):
    role = await container.role_service.create(body.to_values())
    return success(role.to_dict(), "Perfil criado com sucesso")


@router.put(
    "/{role_id}",
    response_model=SuccessEnvelope[RoleRes],
    dependencies=[Depends(require_api_key)],
)
async def update_role(
    role_id: UUID, body: UpdateRoleReq, container: Container = Depends(get_container)
):
    role = await container.role_service.update(role_id, body.to_values())
    return success(role.to_dict(), "Perfil atualizado com sucesso")


@router.delete(
    "/{role_id}",
    status_code=204,
    response_class=Response,
    dependencies=[Depends(require_api_key)],
)
async def delete_role(role_id: UUID, container: Container = Depends(get_container)):
    await container.role_service.delete(role_id)
    return Response(status_code=204)
