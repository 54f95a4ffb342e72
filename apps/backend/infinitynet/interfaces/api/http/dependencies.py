"""
===============================================================================
TARJETA CRC — dependencies.py (Dependencias y helpers comunes)
===============================================================================

Responsabilidades:
  - Resolver el Container de la app desde request.app.state.
  - Parámetros de paginación compartidos (page >= 1, 1 <= limit <= 100).
  - Serializar páginas y entidades al envelope de éxito.

Colaboradores:
  - infinitynet.container.Container
  - crosscutting.error_responses.success
  - domain.repositories.Page
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from fastapi import Query, Request

from ....container import Container
from ....crosscutting.error_responses import success
from ....domain.repositories import Page
from .schemas.common import MAX_PAGE_LIMIT


def get_container(request: Request) -> Container:
    return request.app.state.container


@dataclass(frozen=True, slots=True)
class Pagination:
    page: int
    limit: int


def pagination_params(
    page: int = Query(1, ge=1, description="Página (desde 1)"),
    limit: int = Query(10, ge=1, le=MAX_PAGE_LIMIT, description="Itens por página"),
) -> Pagination:
    return Pagination(page=page, limit=limit)


def page_envelope(
    page: Page[Any], serialize: Callable[[Any], dict[str, Any]], message: str
) -> dict[str, Any]:
    return success(page.to_dict(serialize), message)
