# apps/backend/infinitynet/crosscutting/middleware.py
"""
===============================================================================
MÓDULO: Middlewares HTTP (contexto + guardas de request)
===============================================================================

Objetivo
--------
1) RequestContextMiddleware:
   - Generar/propagar request_id
   - Setear contextvars (method/path)
   - Log por request con latencia

2) BodyLimitMiddleware:
   - Defender la API de payloads gigantes (Content-Length y chunked) -> 413

3) ContentTypeMiddleware:
   - POST/PUT/PATCH con body deben ser application/json -> 415

4) SanitizeParamsMiddleware:
   - Rechazar query params con patrones de inyección de script -> 400

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componentes:
  - RequestContextMiddleware
  - BodyLimitMiddleware
  - ContentTypeMiddleware
  - SanitizeParamsMiddleware

Responsabilidades:
  - Observabilidad (request_id + logs)
  - Seguridad (límites y validaciones previas al routing)

Colaboradores:
  - infinitynet/context.py
  - crosscutting/error_responses.py (envelope de error)
  - crosscutting/logger.py
===============================================================================
"""

from __future__ import annotations

import json
import re
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..context import clear_context, set_request_context
from .error_responses import build_error_body
from .exceptions import ErrorType
from .logger import logger

_JSON_CONTENT_TYPE = "application/json"
_BODY_METHODS = {"POST", "PUT", "PATCH"}


async def _send_error(
    send,
    *,
    status: int,
    error_type: ErrorType,
    message: str,
    request_id: str | None = None,
) -> None:
    """Respuesta de error directa sobre ASGI (antes del routing de FastAPI)."""
    body = json.dumps(
        build_error_body(error_type=error_type, message=message, request_id=request_id),
        ensure_ascii=False,
    ).encode("utf-8")

    headers = [(b"content-type", _JSON_CONTENT_TYPE.encode())]
    if request_id:
        headers.append((b"x-request-id", request_id.encode()))

    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": body})


def _headers_of(scope) -> dict[str, str]:
    return {k.decode().lower(): v.decode() for k, v in scope.get("headers", [])}


def format_size(num_bytes: int) -> str:
    """1048576 -> "1mb", 2048 -> "2kb", 10 -> "10b"."""
    if num_bytes % (1024 * 1024) == 0:
        return f"{num_bytes // (1024 * 1024)}mb"
    if num_bytes % 1024 == 0:
        return f"{num_bytes // 1024}kb"
    return f"{num_bytes}b"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      RequestContextMiddleware

    Responsabilidades:
      - Generar/aceptar X-Request-Id
      - Setear contextvars para correlación de logs
      - Emitir log de finalización por request
      - Garantizar clear_context() para evitar leaks

    Colaboradores:
      - infinitynet.context
      - crosscutting.logger
    ----------------------------------------------------------------------------
    """

    _QUIET_PATHS = {"/api/health"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        incoming = (request.headers.get("x-request-id") or "").strip()
        request_id = incoming if 0 < len(incoming) <= 128 else str(uuid.uuid4())

        set_request_context(
            request_id=request_id, method=request.method, path=request.url.path
        )
        request.state.request_id = request_id

        start = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Request-Id"] = request_id
            return response
        finally:
            latency_ms = round((time.perf_counter() - start) * 1000, 2)
            if request.url.path not in self._QUIET_PATHS:
                logger.info(
                    "request completado",
                    extra={"status_code": status_code, "latency_ms": latency_ms},
                )
            clear_context()


class _BodyTooLarge(Exception):
    pass


class BodyLimitMiddleware:
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      BodyLimitMiddleware

    Responsabilidades:
      - Rechazar requests cuyo body exceda max_bytes
      - Funciona tanto con Content-Length como con transferencia chunked

    Colaboradores:
      - crosscutting.error_responses (envelope)
      - crosscutting.logger
    ----------------------------------------------------------------------------
    """

    def __init__(self, app, max_bytes: int):
        self.app = app
        self._max_bytes = int(max_bytes)
        self._message = (
            f"Payload excede o tamanho máximo permitido ({format_size(self._max_bytes)})"
        )

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = _headers_of(scope)
        path = scope.get("path", "")

        cl = headers.get("content-length")
        if cl and cl.isdigit() and int(cl) > self._max_bytes:
            logger.warning(
                "payload demasiado grande (por content-length)",
                extra={"content_length": cl, "max_bytes": self._max_bytes, "path": path},
            )
            await self._send_413(send)
            return

        started = False

        async def send_wrapper(message):
            nonlocal started
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        received = 0

        async def receive_limited():
            nonlocal received
            msg = await receive()
            if msg["type"] == "http.request":
                received += len(msg.get("body", b"") or b"")
                if received > self._max_bytes:
                    raise _BodyTooLarge()
            return msg

        try:
            await self.app(scope, receive_limited, send_wrapper)
        except _BodyTooLarge:
            # Si ya arrancó la respuesta, no podemos enviar otra sin romper el protocolo
            if started:
                logger.error(
                    "payload excedió límite luego de iniciar respuesta",
                    extra={"path": path},
                )
                raise
            logger.warning(
                "payload demasiado grande (streaming)",
                extra={"received_bytes": received, "max_bytes": self._max_bytes},
            )
            await self._send_413(send)

    async def _send_413(self, send) -> None:
        await _send_error(
            send, status=413, error_type=ErrorType.BAD_REQUEST, message=self._message
        )


class ContentTypeMiddleware:
    """Exige application/json en POST/PUT/PATCH que traen body."""

    MESSAGE = "Content-Type não suportado. Utilize application/json"

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or scope.get("method", "").upper() not in _BODY_METHODS:
            await self.app(scope, receive, send)
            return

        headers = _headers_of(scope)
        has_body = (
            headers.get("content-length", "0") not in ("", "0")
            or "transfer-encoding" in headers
        )
        content_type = headers.get("content-type", "")

        if has_body and _JSON_CONTENT_TYPE not in content_type.lower():
            logger.warning(
                "content-type rechazado",
                extra={"content_type": content_type, "path": scope.get("path", "")},
            )
            await _send_error(
                send, status=415, error_type=ErrorType.VALIDATION, message=self.MESSAGE
            )
            return

        await self.app(scope, receive, send)


class SanitizeParamsMiddleware:
    """Rechaza query params con patrones típicos de XSS / inyección de script."""

    MESSAGE = "Parâmetro suspeito detectado"

    SUSPICIOUS_PATTERNS = tuple(
        re.compile(p, re.IGNORECASE)
        for p in (
            r"javascript:",
            r"<script>",
            r"onclick",
            r"onerror",
            r"alert\(",
            r"document\.cookie",
            r"eval\(",
            r"execCommand",
        )
    )

    def __init__(self, app):
        self.app = app

    @classmethod
    def is_suspicious(cls, value: str) -> bool:
        return any(p.search(value) for p in cls.SUSPICIOUS_PATTERNS)

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        for key, value in request.query_params.multi_items():
            if self.is_suspicious(value):
                logger.warning(
                    "parámetro sospechoso rechazado",
                    extra={"param": key, "path": scope.get("path", "")},
                )
                await _send_error(
                    send,
                    status=400,
                    error_type=ErrorType.BAD_REQUEST,
                    message=self.MESSAGE,
                )
                return

        await self.app(scope, receive, send)
