"""
===============================================================================
TARJETA CRC — domain/__init__.py
===============================================================================

Módulo:
    Exportaciones de la Capa de Dominio (API pública del dominio)

Responsabilidades:
    - Centralizar exports para imports limpios en application/api.
    - Evitar imports profundos y acoplamientos innecesarios.

Reglas:
    - Solo re-exporta contratos/entidades del dominio.
    - No importar infraestructura aquí.
===============================================================================
"""

from .cache import CachePort
from .entities import (
    ACTIVE_STATUS_NAME,
    INACTIVE_STATUS_NAME,
    IdentityRecord,
    Role,
    RoleSnapshot,
    Status,
    UserSource,
)
from .filters import IdentityFilter, RoleFilter, StatusFilter
from .repositories import Criterion, CriterionOp, Page, SortKey, Store

__all__ = [
    "ACTIVE_STATUS_NAME",
    "INACTIVE_STATUS_NAME",
    "CachePort",
    "Criterion",
    "CriterionOp",
    "IdentityFilter",
    "IdentityRecord",
    "Page",
    "Role",
    "RoleFilter",
    "RoleSnapshot",
    "SortKey",
    "Status",
    "StatusFilter",
    "Store",
    "UserSource",
]
