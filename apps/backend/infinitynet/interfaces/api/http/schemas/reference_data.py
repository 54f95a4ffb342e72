"""
===============================================================================
TARJETA CRC — schemas/reference_data.py
===============================================================================

Módulo:
    Schemas HTTP para perfiles (roles) y status

Responsabilidades:
    - Validar nombre (2–50) y nivel (1–100).
    - Exigir al menos un campo en las actualizaciones.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from .identities import EMPTY_UPDATE_MESSAGE


class _RequireSomeField(BaseModel):
    @model_validator(mode="after")
    def require_some_field(self):
        if not any(getattr(self, name) is not None for name in self.model_fields_set):
            raise ValueError(EMPTY_UPDATE_MESSAGE)
        return self

    def to_values(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)


# -----------------------------------------------------------------------------
# Roles
# -----------------------------------------------------------------------------
class CreateRoleReq(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    level: int = Field(..., ge=1, le=100)
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    def to_values(self) -> dict[str, Any]:
        return self.model_dump()


class UpdateRoleReq(_RequireSomeField):
    name: str | None = Field(default=None, min_length=2, max_length=50)
    level: int | None = Field(default=None, ge=1, le=100)
    is_active: bool | None = None


class RoleRes(BaseModel):
    id: UUID
    name: str
    level: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


# -----------------------------------------------------------------------------
# Status
# -----------------------------------------------------------------------------
class CreateStatusReq(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    def to_values(self) -> dict[str, Any]:
        return self.model_dump()


class UpdateStatusReq(_RequireSomeField):
    name: str | None = Field(default=None, min_length=2, max_length=50)


class StatusRes(BaseModel):
    id: UUID
    name: str
    created_at: datetime
    updated_at: datetime
