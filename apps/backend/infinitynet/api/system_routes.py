"""
===============================================================================
TARJETA CRC — infinitynet/api/system_routes.py (Info, health y diagnóstico)
===============================================================================

Responsabilidades:
  - GET /api: metadata de la API.
  - GET /api/health: estado de storage y cache (sin auth, excluido del rate limit).
  - GET /api/diagnostics: entorno, runtime, settings redactados, breakers
    (404 en producción).

Colaboradores:
  - Container (settings, cache, breakers, ping de storage)
  - crosscutting.logger.redact
===============================================================================
"""

from __future__ import annotations

import platform
import sys

from fastapi import APIRouter, Depends

from ..container import Container
from ..crosscutting.error_responses import success, utc_timestamp
from ..crosscutting.exceptions import AppError
from ..crosscutting.logger import logger, redact
from ..interfaces.api.http.dependencies import get_container

router = APIRouter(tags=["system"])


@router.get("")
async def api_info(container: Container = Depends(get_container)):
    return {
        "status": "success",
        "message": "API InfinityNet",
        "version": container.settings.app_version,
        "docs": "/docs",
    }


@router.get("/health")
async def health(container: Container = Depends(get_container)):
    """
    Health check liviano.

    database: "connected" / "disconnected" (memoria siempre conectado).
    cache: backend activo ("redis" / "memory").
    """
    database = "disconnected"
    try:
        if await container.ping_database():
            database = "connected"
    except Exception as exc:
        logger.warning("Health check: storage no disponible", extra={"error": str(exc)})

    return {
        "status": "success",
        "message": "API funcionando normalmente",
        "version": container.settings.app_version,
        "environment": container.settings.app_env,
        "timestamp": utc_timestamp(),
        "cache": container.cache.backend_name,
        "database": database,
        "storage": container.storage_backend,
    }


@router.get("/diagnostics")
async def diagnostics(container: Container = Depends(get_container)):
    settings = container.settings
    if settings.is_production():
        raise AppError.not_found("Rota não encontrada: GET /api/diagnostics")

    return success(
        {
            "environment": settings.app_env,
            "timestamp": utc_timestamp(),
            "runtime": {
                "python": sys.version.split()[0],
                "implementation": platform.python_implementation(),
                "platform": platform.platform(),
            },
            "settings": redact(settings.model_dump()),
            "cache": container.cache.backend_name,
            "storage": container.storage_backend,
            "breakers": [breaker.snapshot() for breaker in container.breakers()],
            "rate_limit": {
                "tracked_clients": len(container.limiter),
                "max_requests": container.limiter.max_requests,
                "window_seconds": container.limiter.window_seconds,
            },
        }
    )
