"""
===============================================================================
TARJETA CRC — application/auth_service.py
===============================================================================

Módulo:
    Autenticación multi-perfil (login + refresh)

Responsabilidades:
    - Login por variante: resolver identificador, chequear status y lockout,
      verificar credencial, emitir access + refresh token.
    - Contabilizar intentos fallidos y resetearlos en login exitoso.
    - Refresh: validar refresh token y emitir un access token nuevo.

Colaboradores:
    - application.identity_repository.IdentityRepository (una por variante)
    - application.reference_data (roles / status)
    - identity.tokens.TokenCodec
    - identity.passwords.CredentialHasher

Reglas:
    - Identificador inexistente y secreto incorrecto devuelven el mismo mensaje.
    - failed_attempts >= MAX_FAILED_ATTEMPTS bloquea aunque el secreto sea correcto.
    - El refresh token no rota.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping
from uuid import UUID

from ..crosscutting.exceptions import AuthenticationError
from ..crosscutting.logger import logger
from ..domain.entities import IdentityRecord, RoleSnapshot, UserSource
from ..identity.passwords import CredentialHasher
from ..identity.tokens import AccessClaims, RefreshClaims, TokenCodec
from .identity_repository import IdentityRepository
from .reference_data import ReferenceDataRepository

MAX_FAILED_ATTEMPTS = 5

INVALID_CREDENTIALS_MESSAGE = "Credenciais inválidas"
INACTIVE_USER_MESSAGE = "Usuário inativo"
LOCKED_ACCOUNT_MESSAGE = (
    "Conta bloqueada por excesso de tentativas incorretas. "
    "Por favor, contate o suporte."
)
INVALID_REFRESH_MESSAGE = "Refresh token inválido ou expirado"
INVALID_SOURCE_MESSAGE = "Fonte de usuário inválida"
USER_NOT_FOUND_MESSAGE = "Usuário não encontrado"


@dataclass(frozen=True, slots=True)
class AuthResult:
    """Resultado de un login exitoso."""

    user: IdentityRecord
    role: RoleSnapshot
    token: str
    refresh_token: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "user": {
                "id": str(self.user.id),
                "name": self.user.name,
                "email": self.user.email,
                "source": self.user.source.value,
                "role": self.role.to_dict(),
            },
            "token": self.token,
            "refreshToken": self.refresh_token,
        }


class AuthService:
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      AuthService

    Responsabilidades:
      - login(source, identifier, secret) / refresh(refresh_token)

    Colaboradores:
      - IdentityRepository por UserSource, roles, status, TokenCodec, hasher
    ----------------------------------------------------------------------------
    """

    def __init__(
        self,
        identities: Mapping[UserSource, IdentityRepository],
        *,
        roles: ReferenceDataRepository,
        statuses: ReferenceDataRepository,
        tokens: TokenCodec,
        hasher: CredentialHasher,
        max_failed_attempts: int = MAX_FAILED_ATTEMPTS,
    ) -> None:
        self.identities = dict(identities)
        self.roles = roles
        self.statuses = statuses
        self.tokens = tokens
        self.hasher = hasher
        self.max_failed_attempts = max_failed_attempts

    # ---------------------------------------------------------------------
    # Login
    # ---------------------------------------------------------------------
    async def login(self, source: UserSource, identifier: str, secret: str) -> AuthResult:
        repository = self.identities[source]

        record = await repository.find_by_login(identifier)
        if record is None:
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        if not await self._is_active(record):
            raise AuthenticationError(INACTIVE_USER_MESSAGE)

        if record.failed_attempts >= self.max_failed_attempts:
            logger.warning(
                "login rechazado: cuenta bloqueada",
                extra={"source": source.value, "user_id": str(record.id)},
            )
            raise AuthenticationError(LOCKED_ACCOUNT_MESSAGE)

        if not await self.hasher.verify(secret, record.credential_hash):
            updated = await repository.increment_failed_attempts(record.id)
            logger.info(
                "login fallido",
                extra={
                    "source": source.value,
                    "user_id": str(record.id),
                    "failed_attempts": updated.failed_attempts,
                },
            )
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        record = await repository.register_successful_login(record.id)
        role = await self._role_snapshot(record)

        access = self.tokens.issue_access(
            AccessClaims(
                sub=str(record.id),
                name=record.name,
                email=record.email,
                source=source.value,
                role=role,
            )
        )
        refresh = self.tokens.issue_refresh(
            RefreshClaims(sub=str(record.id), source=source.value)
        )
        return AuthResult(user=record, role=role, token=access, refresh_token=refresh)

    async def login_user(self, email: str, password: str) -> AuthResult:
        return await self.login(UserSource.USER, email, password)

    async def login_admin(self, cpf: str, password: str) -> AuthResult:
        return await self.login(UserSource.ADMIN, cpf, password)

    async def login_affiliate(self, cpf: str, password: str) -> AuthResult:
        return await self.login(UserSource.AFFILIATE, cpf, password)

    async def login_phone(self, phone: str, pin: str) -> AuthResult:
        return await self.login(UserSource.PHONE, phone, pin)

    # ---------------------------------------------------------------------
    # Refresh
    # ---------------------------------------------------------------------
    async def refresh(self, refresh_token: str) -> dict[str, str]:
        claims = self.tokens.verify_refresh(refresh_token, message=INVALID_REFRESH_MESSAGE)

        try:
            source = UserSource(claims.source)
        except ValueError as exc:
            raise AuthenticationError(INVALID_SOURCE_MESSAGE) from exc
        repository = self.identities.get(source)
        if repository is None:
            raise AuthenticationError(INVALID_SOURCE_MESSAGE)

        try:
            identity_id = UUID(claims.sub)
        except ValueError as exc:
            raise AuthenticationError(USER_NOT_FOUND_MESSAGE) from exc

        record = await repository.find_by_id(identity_id)
        if record is None:
            raise AuthenticationError(USER_NOT_FOUND_MESSAGE)

        if not await self._is_active(record):
            raise AuthenticationError(INACTIVE_USER_MESSAGE)

        role = await self._role_snapshot(record)
        token = self.tokens.issue_access(
            AccessClaims(
                sub=str(record.id),
                name=record.name,
                email=record.email,
                source=source.value,
                role=role,
            )
        )
        return {"token": token}

    # ---------------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------------
    async def _is_active(self, record: IdentityRecord) -> bool:
        status = await self.statuses.find_by_id(record.status_id)
        return status is not None and status.is_active_marker

    async def _role_snapshot(self, record: IdentityRecord) -> RoleSnapshot:
        role = await self.roles.find_by_id(record.role_id)
        if role is None:
            logger.error(
                "usuario sin perfil asociado",
                extra={"source": record.source.value, "user_id": str(record.id)},
            )
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
        return RoleSnapshot.of(role)
