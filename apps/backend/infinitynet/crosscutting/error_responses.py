# apps/backend/infinitynet/crosscutting/error_responses.py
"""
===============================================================================
MÓDULO: Envelope estándar de respuestas (éxito / error)
===============================================================================

Objetivo
--------
Uniformar TODAS las respuestas HTTP para que:
- El cliente pueda manejar por "status" y "type"
- El backend pueda correlacionar por request_id
- Detalles y stack solo salgan fuera de producción

Formato:
  éxito -> {"status": "success", "message"?, "data"}
  error -> {"status": "error", "type", "message", "details"?, "stack"?,
            "timestamp", "request_id"?}

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  SuccessEnvelope / ErrorEnvelope + builders

Responsabilidades:
  - Definir modelos pydantic del envelope (también para OpenAPI)
  - Construir JSONResponse de error a partir de un AppError
  - Proveer helper success() para handlers

Colaboradores:
  - crosscutting/exceptions.py (AppError, ErrorType)
  - crosscutting/middleware.py / rate_limit.py (respuestas ASGI tempranas)
  - api/exception_handlers.py
===============================================================================
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Generic, Literal, TypeVar

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .exceptions import AppError, ErrorType

T = TypeVar("T")


class SuccessEnvelope(BaseModel, Generic[T]):
    status: Literal["success"] = "success"
    message: str | None = None
    data: T | None = None


class ErrorEnvelope(BaseModel):
    """
    Envelope de error.

    Campos opcionales:
    - details: lista/dict de detalles (ej: [{"path":"email","message":"..."}])
    - stack: traceback (solo fuera de producción)
    """

    status: Literal["error"] = "error"
    type: ErrorType
    message: str
    details: Any = None
    stack: list[str] | None = None
    timestamp: str
    request_id: str | None = None


OPENAPI_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    code: {"description": description, "model": ErrorEnvelope}
    for code, description in (
        (400, "Bad Request / Validation"),
        (401, "Unauthorized"),
        (403, "Forbidden"),
        (404, "Not Found"),
        (409, "Conflict"),
        (429, "Too Many Requests"),
        (500, "Internal Server Error"),
    )
}


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def success(data: Any = None, message: str | None = None) -> dict[str, Any]:
    """Envelope de éxito (dict listo para FastAPI)."""
    body: dict[str, Any] = {"status": "success"}
    if message:
        body["message"] = message
    body["data"] = data
    return body


def build_error_body(
    *,
    error_type: ErrorType,
    message: str,
    details: Any = None,
    stack: list[str] | None = None,
    request_id: str | None = None,
    include_debug: bool = False,
) -> dict[str, Any]:
    """
    Construye el body de error.

    include_debug=False descarta details y stack (producción).
    """
    envelope = ErrorEnvelope(
        type=error_type,
        message=message,
        details=details if include_debug else None,
        stack=stack if include_debug else None,
        timestamp=utc_timestamp(),
        request_id=request_id or None,
    )
    return envelope.model_dump(mode="json", exclude_none=True)


def request_id_from(request: Request) -> str | None:
    return getattr(getattr(request, "state", None), "request_id", None)


def error_response(
    request: Request,
    exc: AppError,
    *,
    include_debug: bool,
    stack: list[str] | None = None,
) -> JSONResponse:
    """JSONResponse para un AppError (propaga headers como Retry-After)."""
    body = build_error_body(
        error_type=exc.error_type,
        message=exc.message,
        details=exc.details,
        stack=stack,
        request_id=request_id_from(request),
        include_debug=include_debug,
    )
    return JSONResponse(
        status_code=exc.status_code, content=body, headers=exc.headers
    )
