"""
===============================================================================
TARJETA CRC — schemas/identities.py
===============================================================================

Módulo:
    Schemas HTTP para identidades (usuarios de las cuatro variantes)

Responsabilidades:
    - Validar altas y actualizaciones (formatos de CPF, teléfono, PIN, etc.).
    - Normalizar CPF y teléfono a solo dígitos (forma canónica almacenada).
    - Convertir el DTO al dict de valores que espera IdentityRepository
      (el secreto viaja bajo la clave "secret").
    - Definir la respuesta pública (sin credential_hash).

Colaboradores:
    - application.identity_repository (SECRET_KEY)
    - routers/identities.py
===============================================================================
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, HttpUrl, field_validator, model_validator

from .....application.identity_repository import SECRET_KEY

CPF_PATTERN = r"^\d{3}\.\d{3}\.\d{3}-\d{2}$|^\d{11}$"
PHONE_PATTERN = r"^\(\d{2}\)\s\d{4,5}-\d{4}$|^\d{10,11}$"
PIN_PATTERN = r"^\d{4,6}$"

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

EMPTY_UPDATE_MESSAGE = "É necessário fornecer pelo menos um campo para atualização"


def _normalize_email(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip().lower()
    if not _EMAIL_RE.match(v):
        raise ValueError("E-mail inválido")
    return v


def digits_only(v: str | None) -> str | None:
    """CPF y teléfono se guardan y se buscan solo con dígitos."""
    if v is None:
        return None
    return re.sub(r"\D", "", v)


def _values(model: BaseModel, *, secret_field: str, partial: bool) -> dict[str, Any]:
    data = model.model_dump(exclude_unset=partial, exclude_none=partial)
    secret = data.pop(secret_field, None)
    if secret:
        data[SECRET_KEY] = secret
    if data.get("avatar") is not None:
        data["avatar"] = str(data["avatar"])
    return data


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------
class _IdentityFields(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    email: str = Field(..., min_length=3, max_length=320)
    phone: str = Field(..., pattern=PHONE_PATTERN)
    cpf: str = Field(..., pattern=CPF_PATTERN)
    city: str = Field(..., min_length=2)
    state: str = Field(..., min_length=2, max_length=2)
    avatar: HttpUrl | None = None
    role_id: UUID
    status_id: UUID

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("phone", "cpf")
    @classmethod
    def keep_digits(cls, v: str) -> str:
        return digits_only(v)

    @field_validator("name", "city")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


class CreateUserReq(_IdentityFields):
    """Alta de usuario genérico (address opcional)."""

    address: str | None = Field(default=None, min_length=5, max_length=200)
    password: str = Field(..., min_length=6, max_length=100)

    def to_values(self) -> dict[str, Any]:
        return _values(self, secret_field="password", partial=False)


class CreateAddressedUserReq(_IdentityFields):
    """Alta de usuario administrativo / afiliado (address obligatorio)."""

    address: str = Field(..., min_length=5, max_length=200)
    password: str = Field(..., min_length=6, max_length=100)

    def to_values(self) -> dict[str, Any]:
        return _values(self, secret_field="password", partial=False)


class CreatePhoneUserReq(_IdentityFields):
    """Alta de usuario de la app (PIN numérico)."""

    address: str = Field(..., min_length=5, max_length=200)
    pin: str = Field(..., pattern=PIN_PATTERN)

    def to_values(self) -> dict[str, Any]:
        return _values(self, secret_field="pin", partial=False)


class _UpdateIdentityFields(BaseModel):
    name: str | None = Field(default=None, min_length=3, max_length=100)
    email: str | None = Field(default=None, min_length=3, max_length=320)
    phone: str | None = Field(default=None, pattern=PHONE_PATTERN)
    cpf: str | None = Field(default=None, pattern=CPF_PATTERN)
    address: str | None = Field(default=None, min_length=5, max_length=200)
    city: str | None = Field(default=None, min_length=2)
    state: str | None = Field(default=None, min_length=2, max_length=2)
    avatar: HttpUrl | None = None
    role_id: UUID | None = None
    status_id: UUID | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return _normalize_email(v)

    @field_validator("phone", "cpf")
    @classmethod
    def keep_digits(cls, v: str | None) -> str | None:
        return digits_only(v)

    @model_validator(mode="after")
    def require_some_field(self):
        if not any(getattr(self, name) is not None for name in self.model_fields_set):
            raise ValueError(EMPTY_UPDATE_MESSAGE)
        return self


class UpdateIdentityReq(_UpdateIdentityFields):
    password: str | None = Field(default=None, min_length=6, max_length=100)

    def to_values(self) -> dict[str, Any]:
        return _values(self, secret_field="password", partial=True)


class UpdatePhoneUserReq(_UpdateIdentityFields):
    pin: str | None = Field(default=None, pattern=PIN_PATTERN)

    def to_values(self) -> dict[str, Any]:
        return _values(self, secret_field="pin", partial=True)


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------
class IdentityRes(BaseModel):
    id: UUID
    source: str
    name: str
    email: str
    phone: str
    cpf: str
    address: str | None = None
    city: str
    state: str
    avatar: str | None = None
    role_id: UUID
    status_id: UUID
    failed_attempts: int
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
