"""
===============================================================================
TARJETA CRC — interfaces/api/http/routers/__init__.py
===============================================================================

Name:
    Routers Package (HTTP)

Responsibilities:
    - Re-exportar routers por recurso para el router raíz.

Notas:
    - Este archivo NO define endpoints.
===============================================================================
"""

from .identities import IDENTITY_ROUTES, build_identity_router, build_identity_routers
from .roles import router as roles_router
from .statuses import router as statuses_router

__all__ = [
    "IDENTITY_ROUTES",
    "build_identity_router",
    "build_identity_routers",
    "roles_router",
    "statuses_router",
]
