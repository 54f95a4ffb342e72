"""
===============================================================================
TARJETA CRC — infinitynet/api/auth_routes.py (Autenticación multi-perfil)
===============================================================================

Responsabilidades:
  - Exponer login por variante (email / cpf / teléfono) y refresh de token.
  - Validar formato de credenciales antes de tocar el servicio.
  - Devolver { user, token, refreshToken } dentro del envelope de éxito.

Patrones aplicados:
  - Adapter / Presentation Layer: traduce HTTP ↔ AuthService.
  - Fail-safe security: cualquier falla de credenciales -> 401.

Colaboradores:
  - application.auth_service.AuthService (vía Container)
  - crosscutting.error_responses.success
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..container import Container
from ..crosscutting.error_responses import OPENAPI_ERROR_RESPONSES, success
from ..interfaces.api.http.dependencies import get_container
from ..interfaces.api.http.schemas.identities import (
    CPF_PATTERN,
    PHONE_PATTERN,
    PIN_PATTERN,
    digits_only,
)

router = APIRouter(prefix="/auth", tags=["auth"], responses=OPENAPI_ERROR_RESPONSES)

LOGIN_MESSAGE = "Login realizado com sucesso"


# -----------------------------------------------------------------------------
# Modelos HTTP (DTOs)
# -----------------------------------------------------------------------------
class EmailLoginReq(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=100)

    @field_validator("email")
    @classmethod
    def normalizar_email(cls, v: str) -> str:
        return v.strip().lower()


class CpfLoginReq(BaseModel):
    cpf: str = Field(..., pattern=CPF_PATTERN)
    password: str = Field(..., min_length=1, max_length=100)

    @field_validator("cpf")
    @classmethod
    def somente_digitos(cls, v: str) -> str:
        return digits_only(v)


class PhoneLoginReq(BaseModel):
    phone: str = Field(..., pattern=PHONE_PATTERN)
    pin: str = Field(..., pattern=PIN_PATTERN)

    @field_validator("phone")
    @classmethod
    def somente_digitos(cls, v: str) -> str:
        return digits_only(v)


class RefreshReq(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = Field(..., min_length=1, alias="refreshToken")


# -----------------------------------------------------------------------------
# Endpoints públicos
# -----------------------------------------------------------------------------
@router.post("/login")
async def login(req: EmailLoginReq, container: Container = Depends(get_container)):
    """Login de usuario genérico (email + password)."""
    result = await container.auth_service.login_user(req.email, req.password)
    return success(result.to_dict(), LOGIN_MESSAGE)


@router.post("/login/admin")
async def login_admin(req: CpfLoginReq, container: Container = Depends(get_container)):
    result = await container.auth_service.login_admin(req.cpf, req.password)
    return success(result.to_dict(), LOGIN_MESSAGE)


@router.post("/login/affiliate")
async def login_affiliate(
    req: CpfLoginReq, container: Container = Depends(get_container)
):
    result = await container.auth_service.login_affiliate(req.cpf, req.password)
    return success(result.to_dict(), LOGIN_MESSAGE)


@router.post("/login/phone")
async def login_phone(req: PhoneLoginReq, container: Container = Depends(get_container)):
    result = await container.auth_service.login_phone(req.phone, req.pin)
    return success(result.to_dict(), LOGIN_MESSAGE)


@router.post("/refresh")
async def refresh(req: RefreshReq, container: Container = Depends(get_container)):
    """Emite un access token nuevo (el refresh token no rota)."""
    data = await container.auth_service.refresh(req.refresh_token)
    return success(data, "Token atualizado com sucesso")
