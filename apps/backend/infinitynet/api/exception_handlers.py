"""
===============================================================================
TARJETA CRC — infinitynet/api/exception_handlers.py (Manejo Centralizado de Excepciones)
===============================================================================

Responsabilidades:
  - Traducir excepciones a respuestas HTTP con el envelope de error.
  - Centralizar logging de errores con request_id.
  - Evitar filtrar detalles internos en producción (details/stack).

Patrones aplicados:
  - Exception Mapping (Presentation Layer).
  - Fail-safe: cualquier excepción no tipada -> INTERNAL_ERROR (con logging).

Colaboradores:
  - crosscutting.error_responses (build_error_body, error_response)
  - crosscutting.exceptions (AppError y derivadas)
  - request.app.state.container.settings (nivel de detalle)
===============================================================================
"""

from __future__ import annotations

import traceback

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..crosscutting.error_responses import build_error_body, error_response, request_id_from
from ..crosscutting.exceptions import (
    AppError,
    BadRequestError,
    ErrorType,
    InternalError,
    NotFoundError,
    ValidationError,
)
from ..crosscutting.logger import logger

VALIDATION_MESSAGE = "Erro de validação"
INTERNAL_MESSAGE = "Erro interno do servidor"


def _include_debug(request: Request) -> bool:
    container = getattr(request.app.state, "container", None)
    if container is None:
        return False
    return not container.settings.is_production()


def _field_path(loc: tuple) -> str:
    # R: descarta el origen ("body", "query", "path") salvo que sea lo único.
    parts = [str(p) for p in loc]
    if len(parts) > 1 and parts[0] in {"body", "query", "path", "header"}:
        parts = parts[1:]
    return ".".join(parts)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    log = logger.warning if exc.is_operational else logger.error
    log(
        exc.message,
        extra={
            "error_type": exc.error_type.value,
            "status_code": exc.status_code,
            "request_id": request_id_from(request),
        },
    )
    return error_response(request, exc, include_debug=_include_debug(request))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = [
        {"path": _field_path(tuple(err.get("loc", ()))), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    logger.warning(
        VALIDATION_MESSAGE,
        extra={"request_id": request_id_from(request), "error_count": len(details)},
    )
    return error_response(
        request,
        ValidationError(VALIDATION_MESSAGE, details=details),
        include_debug=_include_debug(request),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code == 404:
        app_exc: AppError = NotFoundError(
            f"Rota não encontrada: {request.method} {request.url.path}"
        )
    elif exc.status_code == 405:
        app_exc = BadRequestError(f"Método não permitido: {request.method}")
    elif exc.status_code >= 500:
        app_exc = InternalError(INTERNAL_MESSAGE)
    else:
        app_exc = AppError(
            str(exc.detail),
            error_type=ErrorType.BAD_REQUEST,
            status_code=exc.status_code,
        )
    app_exc.headers = dict(exc.headers) if exc.headers else None
    return await app_error_handler(request, app_exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler defensivo para excepciones no tipadas.

    - Log completo (stacktrace).
    - Respuesta genérica; el stack solo viaja fuera de producción.
    """
    request_id = request_id_from(request)
    logger.error(
        "Excepción no controlada",
        exc_info=exc,
        extra={"request_id": request_id, "error": str(exc)},
    )

    include_debug = _include_debug(request)
    body = build_error_body(
        error_type=ErrorType.INTERNAL,
        message=INTERNAL_MESSAGE,
        stack=traceback.format_exception(type(exc), exc, exc.__traceback__),
        request_id=request_id,
        include_debug=include_debug,
    )
    return JSONResponse(status_code=500, content=body)


def register_exception_handlers(app) -> None:
    """
    Registra handlers en la app FastAPI.

    Exception genérica se registra al final como fallback.
    """
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["register_exception_handlers"]
