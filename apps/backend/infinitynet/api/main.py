"""
Name: FastAPI Application Factory

Responsibilities:
  - Build the FastAPI app with metadata (title, version) and lifespan
  - Attach the per-app Container (stores, cache, breakers, services)
  - Configure middleware (rate limit, request context, security headers,
    CORS, payload guards)
  - Mount system, auth and resource routes under /api

Collaborators:
  - container.build_container: composition root
  - api.exception_handlers: error envelope mapping
  - api.auth_routes / api.system_routes / interfaces.api.http.router

Notes:
  - Middleware order matters (last added = outermost):
    RateLimit -> RequestContext -> SecurityHeaders -> CORS -> Sanitize ->
    BodyLimit -> ContentType -> routes
  - create_app() receives explicit Settings/Container so tests get fresh state
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..container import Container, build_container
from ..crosscutting.config import Settings, get_settings
from ..crosscutting.logger import logger
from ..crosscutting.middleware import (
    BodyLimitMiddleware,
    ContentTypeMiddleware,
    RequestContextMiddleware,
    SanitizeParamsMiddleware,
)
from ..crosscutting.rate_limit import RateLimitMiddleware
from ..crosscutting.security import SecurityHeadersMiddleware
from ..interfaces.api.http.router import build_router
from .auth_routes import router as auth_router
from .exception_handlers import register_exception_handlers
from .system_routes import router as system_router

API_PREFIX = "/api"


def create_app(
    settings: Settings | None = None, container: Container | None = None
) -> FastAPI:
    """Construye una app independiente (un Container por app)."""
    if settings is None:
        settings = container.settings if container is not None else get_settings()
    if container is None:
        container = build_container(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown: abre pool + cache, aplica seed si corresponde."""
        await container.start()
        logger.info(
            "API InfinityNet iniciando",
            extra={
                "environment": settings.app_env,
                "storage": container.storage_backend,
                "cache": container.cache.backend_name,
                "rate_limit_max": settings.rate_limit_max_requests,
                "rate_limit_window": settings.rate_limit_window_seconds,
            },
        )
        try:
            yield
        finally:
            await container.stop()
            logger.info("API InfinityNet detenida")

    app = FastAPI(
        title="API InfinityNet",
        version=settings.app_version,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "auth", "description": "Login multi-perfil e refresh (JWT)"},
            {"name": "users", "description": "Usuários genéricos"},
            {"name": "users-admin", "description": "Usuários administrativos"},
            {"name": "users-affiliate", "description": "Usuários afiliados"},
            {"name": "users-phone", "description": "Usuários do aplicativo (PIN)"},
            {"name": "roles", "description": "Perfis de acesso"},
            {"name": "status", "description": "Status de usuário"},
            {"name": "system", "description": "Info, health e diagnóstico"},
        ],
    )
    app.state.container = container

    register_exception_handlers(app)

    app.include_router(system_router, prefix=API_PREFIX)
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(build_router(), prefix=API_PREFIX)

    # R: innermost first
    app.add_middleware(ContentTypeMiddleware)
    app.add_middleware(BodyLimitMiddleware, max_bytes=settings.max_body_bytes)
    app.add_middleware(SanitizeParamsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins_list(),
        allow_credentials=False,
        allow_methods=settings.get_allowed_methods_list(),
        allow_headers=["Content-Type", "Authorization", "X-API-Key", "X-Request-Id"],
        expose_headers=["X-Request-Id", "X-Rate-Limit-Remaining", "Retry-After"],
    )
    app.add_middleware(SecurityHeadersMiddleware, is_production=settings.is_production())
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(RateLimitMiddleware, limiter=container.limiter)

    return app
