"""
===============================================================================
TARJETA CRC — identity/passwords.py
===============================================================================

Módulo:
    Hash y verificación de credenciales (password / PIN) con Argon2

Responsabilidades:
    - Hashear la credencial antes de persistirla.
    - Verificar credencial en texto plano contra el hash almacenado.
    - Correr Argon2 en el threadpool para no bloquear el event loop.

Colaboradores:
    - argon2.PasswordHasher (primitiva de hash, caja negra)
    - starlette.concurrency.run_in_threadpool
    - application/identity_repository.py (hash en create/update)
    - application/auth_service.py (verify en login)

Decisiones de diseño:
    - Un hash inválido/corrupto se trata como "no coincide" (nunca 500).
    - No loguear credenciales ni hashes.
===============================================================================
"""

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from starlette.concurrency import run_in_threadpool


class CredentialHasher:
    """Fachada async sobre argon2.PasswordHasher."""

    def __init__(self, hasher: PasswordHasher | None = None) -> None:
        self._hasher = hasher or PasswordHasher()

    def hash_sync(self, secret: str) -> str:
        return self._hasher.hash(secret)

    def verify_sync(self, secret: str, credential_hash: str) -> bool:
        try:
            return self._hasher.verify(credential_hash, secret)
        except (VerifyMismatchError, VerificationError, InvalidHashError):
            return False

    async def hash(self, secret: str) -> str:
        return await run_in_threadpool(self.hash_sync, secret)

    async def verify(self, secret: str, credential_hash: str) -> bool:
        if not secret or not credential_hash:
            return False
        return await run_in_threadpool(self.verify_sync, secret, credential_hash)
