"""
===============================================================================
TARJETA CRC — domain/filters.py
===============================================================================

Módulo:
    Filtros explícitos por entidad (listados paginados)

Responsabilidades:
    - Declarar qué campos se pueden filtrar por entidad.
    - Fijar la semántica de comparación por campo (EQ / ICONTAINS).
    - Bajar el filtro a una lista de Criterion para el Store.

Colaboradores:
    - domain.repositories.Criterion
    - api/routers/*: construyen el filtro desde query params.

Reglas:
    - Campos en None no generan condición.
    - Nombres y ciudad: ICONTAINS. Identificadores y referencias: EQ.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import ClassVar
from uuid import UUID

from .repositories import Criterion, CriterionOp


class _CriteriaMixin:
    # R: campo -> operador; los no listados usan EQ.
    _OPS: ClassVar[dict[str, CriterionOp]] = {}

    def to_criteria(self) -> list[Criterion]:
        criteria: list[Criterion] = []
        for f in fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            if value is None:
                continue
            op = self._OPS.get(f.name, CriterionOp.EQ)
            criteria.append(Criterion(field=f.name, op=op, value=value))
        return criteria


@dataclass(frozen=True)
class IdentityFilter(_CriteriaMixin):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    cpf: str | None = None
    city: str | None = None
    state: str | None = None
    role_id: UUID | None = None
    status_id: UUID | None = None

    _OPS: ClassVar[dict[str, CriterionOp]] = {
        "name": CriterionOp.ICONTAINS,
        "city": CriterionOp.ICONTAINS,
    }


@dataclass(frozen=True)
class RoleFilter(_CriteriaMixin):
    name: str | None = None
    level: int | None = None
    is_active: bool | None = None

    _OPS: ClassVar[dict[str, CriterionOp]] = {"name": CriterionOp.ICONTAINS}


@dataclass(frozen=True)
class StatusFilter(_CriteriaMixin):
    name: str | None = None

    _OPS: ClassVar[dict[str, CriterionOp]] = {"name": CriterionOp.ICONTAINS}
