"""
===============================================================================
TARJETA CRC — interfaces/api/http/routers/statuses.py
===============================================================================

Responsibilities:
    - CRUD HTTP de status de usuario.
    - Lecturas públicas; escrituras con X-API-Key.
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from .....container import Container
from .....crosscutting.error_responses import SuccessEnvelope, success
from .....domain.entities import Status
from .....domain.filters import StatusFilter
from .....identity.access import require_api_key
from ..dependencies import Pagination, get_container, page_envelope, pagination_params
from ..schemas.common import PageRes
from ..schemas.reference_data import CreateStatusReq, StatusRes, UpdateStatusReq

router = APIRouter(prefix="/status", tags=["status"])


@router.get("", response_model=SuccessEnvelope[PageRes[StatusRes]])
async def list_statuses(
    pagination: Pagination = Depends(pagination_params),
    name: str | None = Query(None),
    container: Container = Depends(get_container),
):
    page = await container.status_service.list(
        pagination.page, pagination.limit, StatusFilter(name=name)
    )
    return page_envelope(page, Status.to_dict, "Status listados com sucesso")


@router.get("/{status_id}", response_model=SuccessEnvelope[StatusRes])
async def get_status(status_id: UUID, container: Container = Depends(get_container)):
    status = await container.status_service.get(status_id)
    return success(status.to_dict())


@router.post(
    "",
    status_code=201,
    response_model=SuccessEnvelope[StatusRes],
    dependencies=[Depends(require_api_key)],
)
async def create_status(
    body: CreateStatusReq, container: Container = Depends(get_container)
):
    status = await container.status_service.create(body.to_values())
    return success(status.to_dict(), "Status criado com sucesso")


@router.put(
    "/{status_id}",
    response_model=SuccessEnvelope[StatusRes],
    dependencies=[Depends(require_api_key)],
)
async def update_status(
    status_id: UUID, body: UpdateStatusReq, container: Container = Depends(get_container)
):
    status = await container.status_service.update(status_id, body.to_values())
    return success(status.to_dict(), "Status atualizado com sucesso")


@router.delete(
    "/{status_id}",
    status_code=204,
    response_class=Response,
    dependencies=[Depends(require_api_key)],
)
async def delete_status(status_id: UUID, container: Container = Depends(get_container)):
    await container.status_service.delete(status_id)
    return Response(status_code=204)
