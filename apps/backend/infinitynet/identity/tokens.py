"""
===============================================================================
TARJETA CRC — identity/tokens.py
===============================================================================

Módulo:
    Codec de tokens JWT (access / refresh)

Responsabilidades:
    - Emitir access tokens (vida corta, con snapshot del rol).
    - Emitir refresh tokens (vida larga, solo sub + source).
    - Verificar firma, expiración, issuer, tipo y claims mínimos.
    - Traducir cualquier falla a AuthenticationError.

Colaboradores:
    - PyJWT (HS256, secreto único)
    - crosscutting.config.Settings: secreto y lifetimes.
    - application/auth_service.py: login / refresh.
    - identity/access.py: dependencias FastAPI que validan el Bearer token.

Decisiones de diseño:
    - Sin rotación ni multi-key: un secreto estático leído al arrancar.
    - `typ` distingue access de refresh (un refresh no sirve como access).
    - Reloj inyectable para testear expiración sin sleeps.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import jwt

from ..crosscutting.exceptions import AuthenticationError
from ..domain.entities import RoleSnapshot

JWT_ALGORITHM: str = "HS256"
TOKEN_ISSUER: str = "api-infinitynet"

CLAIM_SUB: str = "sub"
CLAIM_NAME: str = "name"
CLAIM_EMAIL: str = "email"
CLAIM_SOURCE: str = "source"
CLAIM_ROLE: str = "role"
CLAIM_ISS: str = "iss"
CLAIM_IAT: str = "iat"
CLAIM_EXP: str = "exp"
CLAIM_TYP: str = "typ"

TOKEN_TYPE_ACCESS: str = "access"
TOKEN_TYPE_REFRESH: str = "refresh"

INVALID_TOKEN_MESSAGE = "Token inválido ou expirado"


@dataclass(frozen=True, slots=True)
class AccessClaims:
    sub: str
    name: str
    email: str
    source: str
    role: RoleSnapshot

    def to_payload(self) -> dict[str, Any]:
        return {
            CLAIM_SUB: self.sub,
            CLAIM_NAME: self.name,
            CLAIM_EMAIL: self.email,
            CLAIM_SOURCE: self.source,
            CLAIM_ROLE: self.role.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class RefreshClaims:
    sub: str
    source: str

    def to_payload(self) -> dict[str, Any]:
        return {CLAIM_SUB: self.sub, CLAIM_SOURCE: self.source}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    """
    Firma y verifica JWT.

    Args:
        secret: secreto HS256 compartido.
        access_ttl_seconds / refresh_ttl_seconds: lifetimes.
        issuer: tag de emisor embebido y exigido al verificar.
        now: reloj UTC inyectable.
    """

    def __init__(
        self,
        secret: str,
        *,
        access_ttl_seconds: int,
        refresh_ttl_seconds: int,
        issuer: str = TOKEN_ISSUER,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise ValueError("secret is required")
        self._secret = secret
        self.access_ttl_seconds = int(access_ttl_seconds)
        self.refresh_ttl_seconds = int(refresh_ttl_seconds)
        self.issuer = issuer
        self._now = now

    # ---------------------------------------------------------------------
    # Emisión
    # ---------------------------------------------------------------------
    def issue(
        self, payload: dict[str, Any], lifetime_seconds: int, token_type: str
    ) -> str:
        issued_at = self._now()
        claims = {
            **payload,
            CLAIM_ISS: self.issuer,
            CLAIM_IAT: int(issued_at.timestamp()),
            CLAIM_EXP: int((issued_at + timedelta(seconds=lifetime_seconds)).timestamp()),
            CLAIM_TYP: token_type,
        }
        return jwt.encode(claims, self._secret, algorithm=JWT_ALGORITHM)

    def issue_access(self, claims: AccessClaims) -> str:
        return self.issue(claims.to_payload(), self.access_ttl_seconds, TOKEN_TYPE_ACCESS)

    def issue_refresh(self, claims: RefreshClaims) -> str:
        return self.issue(
            claims.to_payload(), self.refresh_ttl_seconds, TOKEN_TYPE_REFRESH
        )

    # ---------------------------------------------------------------------
    # Verificación
    # ---------------------------------------------------------------------
    def verify(
        self,
        token: str,
        *,
        token_type: str,
        required: tuple[str, ...] = (CLAIM_SUB,),
        message: str = INVALID_TOKEN_MESSAGE,
    ) -> dict[str, Any]:
        """
        Decodifica y valida un JWT.

        Errores (todos AuthenticationError con `message`):
            - firma inválida / expirado / issuer distinto
            - claims requeridos ausentes o vacíos
            - tipo de token distinto al esperado
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                issuer=self.issuer,
                options={"require": [CLAIM_EXP, CLAIM_ISS, *required]},
            )
        except jwt.PyJWTError as exc:
            raise AuthenticationError(message) from exc

        # R: PyJWT valida exp contra el reloj real; acá aplicamos el reloj inyectado.
        if int(payload[CLAIM_EXP]) <= int(self._now().timestamp()):
            raise AuthenticationError(message)

        if any(not payload.get(claim) for claim in required):
            raise AuthenticationError(message)

        if payload.get(CLAIM_TYP) != token_type:
            raise AuthenticationError(message)

        return payload

    def verify_access(self, token: str) -> AccessClaims:
        payload = self.verify(token, token_type=TOKEN_TYPE_ACCESS)
        role = payload.get(CLAIM_ROLE) or {}
        try:
            snapshot = RoleSnapshot(
                id=str(role["id"]), name=str(role["name"]), level=int(role["level"])
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise AuthenticationError(INVALID_TOKEN_MESSAGE) from exc

        return AccessClaims(
            sub=str(payload[CLAIM_SUB]),
            name=str(payload.get(CLAIM_NAME, "")),
            email=str(payload.get(CLAIM_EMAIL, "")),
            source=str(payload.get(CLAIM_SOURCE, "")),
            role=snapshot,
        )

    def verify_refresh(
        self, token: str, *, message: str = INVALID_TOKEN_MESSAGE
    ) -> RefreshClaims:
        payload = self.verify(
            token,
            token_type=TOKEN_TYPE_REFRESH,
            required=(CLAIM_SUB, CLAIM_SOURCE),
            message=message,
        )
        return RefreshClaims(sub=str(payload[CLAIM_SUB]), source=str(payload[CLAIM_SOURCE]))
