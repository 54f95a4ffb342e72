# apps/backend/infinitynet/crosscutting/exceptions.py
"""
===============================================================================
MÓDULO: Taxonomía de errores del backend
===============================================================================

Objetivo
--------
Que dominio, repositorios y servicios levanten errores clasificados
directamente, cada uno con:
- type estable (ErrorType) para clientes
- status HTTP asociado
- details estructurados opcionales (ej: errores por campo)

Los errores de infraestructura (DatabaseError) NO son AppError: el service
layer los envuelve como InternalError y el breaker los cuenta como fallas.

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  AppError + subclases + DatabaseError

Responsabilidades:
  - Estandarizar errores que luego se mapean al envelope HTTP
  - Proveer factories de errores frecuentes
  - Generar error_id para rastreo de fallas de infraestructura

Colaboradores:
  - crosscutting/error_responses.py (envelope)
  - api/exception_handlers.py (mapea a JSONResponse)
  - application/services.py (normaliza errores no clasificados)
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Any
from uuid import uuid4


class ErrorType(str, Enum):
    VALIDATION = "VALIDATION_ERROR"
    AUTHENTICATION = "AUTHENTICATION_ERROR"
    AUTHORIZATION = "AUTHORIZATION_ERROR"
    NOT_FOUND = "NOT_FOUND_ERROR"
    CONFLICT = "CONFLICT_ERROR"
    BAD_REQUEST = "BAD_REQUEST_ERROR"
    INTERNAL = "INTERNAL_ERROR"


class AppError(Exception):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      AppError

    Responsabilidades:
      - Transportar message + ErrorType + status HTTP + details
      - Marcar el error como "operacional" (esperado, se loguea en warning)

    Colaboradores:
      - api/exception_handlers.py
    ----------------------------------------------------------------------------
    """

    error_type: ErrorType = ErrorType.INTERNAL
    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_type: ErrorType | None = None,
        status_code: int | None = None,
        details: Any = None,
        *,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if error_type is not None:
            self.error_type = error_type
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        self.headers = headers

    @property
    def is_operational(self) -> bool:
        return self.status_code < 500

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------
    @staticmethod
    def validation(message: str, details: Any = None) -> "ValidationError":
        return ValidationError(message, details=details)

    @staticmethod
    def authentication(message: str = "Não autorizado") -> "AuthenticationError":
        return AuthenticationError(message)

    @staticmethod
    def authorization(message: str = "Acesso proibido") -> "AuthorizationError":
        return AuthorizationError(message)

    @staticmethod
    def not_found(message: str) -> "NotFoundError":
        return NotFoundError(message)

    @staticmethod
    def conflict(message: str, details: Any = None) -> "ConflictError":
        return ConflictError(message, details=details)

    @staticmethod
    def bad_request(message: str, details: Any = None) -> "BadRequestError":
        return BadRequestError(message, details=details)

    @staticmethod
    def internal(message: str = "Erro interno do servidor") -> "InternalError":
        return InternalError(message)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"type={self.error_type.value}, status={self.status_code})"
        )


class ValidationError(AppError):
    error_type = ErrorType.VALIDATION
    status_code = 400


class AuthenticationError(AppError):
    error_type = ErrorType.AUTHENTICATION
    status_code = 401


class AuthorizationError(AppError):
    error_type = ErrorType.AUTHORIZATION
    status_code = 403


class NotFoundError(AppError):
    error_type = ErrorType.NOT_FOUND
    status_code = 404


class ConflictError(AppError):
    error_type = ErrorType.CONFLICT
    status_code = 409


class BadRequestError(AppError):
    error_type = ErrorType.BAD_REQUEST
    status_code = 400


class InternalError(AppError):
    error_type = ErrorType.INTERNAL
    status_code = 500


class DatabaseError(Exception):
    """Falla del store (conexión, SQL, mapping). Siempre con error_id."""

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)
