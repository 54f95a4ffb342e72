# apps/backend/infinitynet/crosscutting/rate_limit.py
"""
===============================================================================
MÓDULO: Rate limiting (ventana fija) - in-memory
===============================================================================

Objetivo
--------
Limitar abuso por cliente (IP, respetando X-Forwarded-For):
- N requests por ventana fija (default 100 cada 15 minutos)
- Header X-Rate-Limit-Remaining en cada respuesta permitida
- 429 con Retry-After y envelope estándar cuando se excede

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componentes:
  - FixedWindowRateLimiter
  - RateLimitMiddleware

Responsabilidades:
  - Decidir allow/deny por ventana
  - Emitir 429 con Retry-After
  - Mantener estado por cliente (sin locks: un único event loop)

Colaboradores:
  - container.py (construye el limiter; un limiter por app)
  - crosscutting.error_responses
  - crosscutting.logger
===============================================================================
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable

from starlette.requests import Request
from starlette.responses import JSONResponse

from .error_responses import build_error_body
from .exceptions import ErrorType
from .logger import logger

RATE_LIMIT_MESSAGE = "Muitas requisições, tente novamente mais tarde"


@dataclass
class Window:
    count: int
    reset_at: float


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: int


class FixedWindowRateLimiter:
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      FixedWindowRateLimiter

    Responsabilidades:
      - Contar requests por key dentro de una ventana fija
      - Reiniciar la ventana cuando vence (lazy, en el próximo hit)
      - Calcular remaining / retry_after

    Colaboradores:
      - RateLimitMiddleware
    ----------------------------------------------------------------------------
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests <= 0:
            raise ValueError("max_requests debe ser > 0")
        if window_seconds <= 0:
            raise ValueError("window_seconds debe ser > 0")
        self.max_requests = int(max_requests)
        self.window_seconds = float(window_seconds)
        self._clock = clock
        self._windows: dict[str, Window] = {}

    def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        window = self._windows.get(key)

        if window is None or now > window.reset_at:
            window = Window(count=1, reset_at=now + self.window_seconds)
            self._windows[key] = window
        else:
            window.count += 1

        remaining = max(0, self.max_requests - window.count)
        if window.count > self.max_requests:
            retry_after = max(1, math.ceil(window.reset_at - now))
            return RateLimitDecision(False, 0, retry_after)
        return RateLimitDecision(True, remaining, 0)

    def clear(self) -> None:
        self._windows.clear()

    def __len__(self) -> int:
        return len(self._windows)


def get_client_identifier(request: Request) -> str:
    # 1) Proxy header (primer hop)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        ip = forwarded_for.split(",")[0].strip()
        if ip:
            return f"ip:{ip}"

    # 2) IP directa
    client = request.client
    if client:
        return f"ip:{client.host}"

    return "ip:unknown"


class RateLimitMiddleware:
    """
    ASGI middleware de rate limit.

    - Excluye endpoints de infraestructura y docs.
    - El limiter se inyecta (vive en el Container de la app).
    """

    EXCLUDED_PATHS = {"/api/health", "/openapi.json", "/docs", "/redoc"}

    def __init__(self, app, limiter: FixedWindowRateLimiter):
        self.app = app
        self.limiter = limiter

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        if path in self.EXCLUDED_PATHS or scope.get("method", "").upper() == "OPTIONS":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        client_id = get_client_identifier(request)
        decision = self.limiter.hit(client_id)

        if not decision.allowed:
            logger.warning(
                "rate limit excedido",
                extra={
                    "client_id": client_id,
                    "path": path,
                    "retry_after": decision.retry_after,
                },
            )
            response = JSONResponse(
                status_code=429,
                content=build_error_body(
                    error_type=ErrorType.BAD_REQUEST, message=RATE_LIMIT_MESSAGE
                ),
                headers={
                    "Retry-After": str(decision.retry_after),
                    "X-Rate-Limit-Remaining": "0",
                },
            )
            await response(scope, receive, send)
            return

        remaining = str(decision.remaining).encode()

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                hdrs = list(message.get("headers", []))
                hdrs.append((b"x-rate-limit-remaining", remaining))
                message["headers"] = hdrs
            await send(message)

        await self.app(scope, receive, send_with_headers)
