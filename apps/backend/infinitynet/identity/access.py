"""
===============================================================================
TARJETA CRC — identity/access.py
===============================================================================

Módulo:
    Dependencias FastAPI de autenticación / autorización

Responsabilidades:
    - Extraer el Bearer token del header Authorization.
    - Validarlo con el TokenCodec del Container y exponer un Principal.
    - Exigir nivel mínimo de rol (require_level).
    - Validar la API key legacy (X-API-Key) en tiempo constante.

Colaboradores:
    - identity.tokens.TokenCodec (vía request.app.state.container)
    - crosscutting.config.Settings.api_key
    - context.set_subject (correlación en logs)

Reglas:
    - Sin header -> 401 "Token não fornecido".
    - Header sin esquema Bearer -> 401 "Formato de token inválido".
    - Nivel insuficiente -> 403 "Acesso negado. Nível mínimo requerido: {n}".
    - API key vacía en settings deshabilita las rutas legacy (siempre 401).
===============================================================================
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from typing import Callable

from fastapi import Depends, Header, Request

from ..context import set_subject
from ..crosscutting.exceptions import AuthenticationError, AuthorizationError
from ..domain.entities import RoleSnapshot
from .tokens import AccessClaims

MISSING_TOKEN_MESSAGE = "Token não fornecido"
MALFORMED_TOKEN_MESSAGE = "Formato de token inválido"
INVALID_API_KEY_MESSAGE = "API Key inválida"


@dataclass(frozen=True, slots=True)
class Principal:
    """Sujeto autenticado por JWT."""

    user_id: str
    name: str
    email: str
    source: str
    role: RoleSnapshot

    @property
    def level(self) -> int:
        return self.role.level

    @classmethod
    def from_claims(cls, claims: AccessClaims) -> "Principal":
        return cls(
            user_id=claims.sub,
            name=claims.name,
            email=claims.email,
            source=claims.source,
            role=claims.role,
        )


def extract_bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise AuthenticationError(MISSING_TOKEN_MESSAGE)

    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError(MALFORMED_TOKEN_MESSAGE)
    return token


async def require_auth(
    request: Request,
    authorization: str | None = Header(None, alias="Authorization"),
) -> Principal:
    """Dependency: exige un access token válido (cualquier nivel)."""
    token = extract_bearer_token(authorization)
    claims = request.app.state.container.tokens.verify_access(token)

    principal = Principal.from_claims(claims)
    request.state.principal = principal
    set_subject(principal.user_id, principal.source)
    return principal


def require_level(min_level: int) -> Callable:
    """Dependency factory: exige rol con level >= min_level."""

    async def dependency(principal: Principal = Depends(require_auth)) -> Principal:
        if principal.level < min_level:
            raise AuthorizationError(
                f"Acesso negado. Nível mínimo requerido: {min_level}"
            )
        return principal

    dependency.min_level = min_level
    return dependency


async def require_api_key(
    request: Request,
    api_key: str | None = Header(None, alias="X-API-Key"),
) -> None:
    """Dependency: valida X-API-Key contra API_KEY (comparación constante)."""
    expected = request.app.state.container.settings.api_key
    if not expected or not api_key:
        raise AuthenticationError(INVALID_API_KEY_MESSAGE)
    if not hmac.compare_digest(api_key.encode("utf-8"), expected.encode("utf-8")):
        raise AuthenticationError(INVALID_API_KEY_MESSAGE)
