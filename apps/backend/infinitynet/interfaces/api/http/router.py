"""
===============================================================================
TARJETA CRC — router.py (Router raíz / Composición)
===============================================================================

Responsabilidades:
  - Definir el APIRouter de recursos que se incluye bajo /api.
  - Centralizar responses de error para OpenAPI.
  - Componer routers por recurso (identidades por variante, roles, status).

Patrones aplicados:
  - Composition over inheritance: router raíz compone sub-routers.
  - Factory: build_router() evita side-effects al importar.

Colaboradores:
  - crosscutting.error_responses.OPENAPI_ERROR_RESPONSES
  - routers.* (sub-routers por recurso)
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter

from ....crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from .routers import build_identity_routers, roles_router, statuses_router


def build_router() -> APIRouter:
    """Construye el router de recursos (sin prefijo /api)."""
    api_router = APIRouter(responses=OPENAPI_ERROR_RESPONSES)

    for identity_router in build_identity_routers():
        api_router.include_router(identity_router)
    api_router.include_router(roles_router)
    api_router.include_router(statuses_router)

    return api_router


__all__ = ["build_router"]
