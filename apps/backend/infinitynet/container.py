"""
===============================================================================
TARJETA CRC — infinitynet/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer stores, cache, breakers, repositorios y servicios según Settings.
  - Elegir stores en memoria (DATABASE_URL vacío) o Postgres.
  - Ciclo de vida: start() abre pool + cache (+ seed); stop() libera todo.

Colaboradores:
  - crosscutting.config.Settings
  - infrastructure.* (stores, pool, cache)
  - application.* (repositorios, servicios, auth)
  - identity.tokens / identity.passwords

Patrones aplicados:
  - Composition Root
  - Un Container por app: cada test obtiene estado fresco (rate limit,
    cache en memoria, breakers).

Notas:
  - Este archivo NO contiene lógica de negocio.
  - Este archivo NO depende de FastAPI (api/main.py lo cuelga de app.state).
===============================================================================
"""

from __future__ import annotations

from typing import Any, Callable

from psycopg_pool import AsyncConnectionPool

from .application.auth_service import AuthService
from .application.identity_repository import IDENTITY_PROFILES, IdentityRepository
from .application.reference_data import (
    ReferenceDataRepository,
    build_role_repository,
    build_status_repository,
)
from .application.seed import ensure_seed_data
from .application.services import EntityService, IdentityService, counts_as_failure
from .crosscutting.circuit_breaker import CircuitBreaker
from .crosscutting.config import Settings, get_settings
from .crosscutting.logger import logger
from .crosscutting.rate_limit import FixedWindowRateLimiter
from .domain.entities import IdentityRecord, Role, Status, UserSource
from .domain.repositories import Store
from .identity.passwords import CredentialHasher
from .identity.tokens import TokenCodec
from .infrastructure.cache import CacheFacade
from .infrastructure.db import close_pool, create_pool, open_pool
from .infrastructure.stores import (
    ROLES_TABLE,
    STATUSES_TABLE,
    InMemoryStore,
    PostgresStore,
    identity_table,
)


class Container:
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      Container

    Responsabilidades:
      - Mantener las instancias compartidas de una app
      - start() / stop() para el lifespan

    Colaboradores:
      - build_container() (factory)
    ----------------------------------------------------------------------------
    """

    def __init__(
        self,
        *,
        settings: Settings,
        cache: CacheFacade,
        limiter: FixedWindowRateLimiter,
        tokens: TokenCodec,
        hasher: CredentialHasher,
        roles: ReferenceDataRepository[Role],
        statuses: ReferenceDataRepository[Status],
        identity_repositories: dict[UserSource, IdentityRepository],
        role_service: EntityService,
        status_service: EntityService,
        identity_services: dict[UserSource, IdentityService],
        auth_service: AuthService,
        pool: AsyncConnectionPool | None = None,
    ) -> None:
        self.settings = settings
        self.cache = cache
        self.limiter = limiter
        self.tokens = tokens
        self.hasher = hasher
        self.roles = roles
        self.statuses = statuses
        self.identity_repositories = identity_repositories
        self.role_service = role_service
        self.status_service = status_service
        self.identity_services = identity_services
        self.auth_service = auth_service
        self.pool = pool

    @property
    def storage_backend(self) -> str:
        return "postgres" if self.pool is not None else "memory"

    def breakers(self) -> list[CircuitBreaker]:
        services: list[EntityService] = [
            self.role_service,
            self.status_service,
            *self.identity_services.values(),
        ]
        return [service.breaker for service in services]

    async def ping_database(self) -> bool:
        return await self.roles.crud.store.ping()

    async def start(self) -> None:
        if self.pool is not None:
            await open_pool(self.pool)
        await self.cache.connect()

        if self.settings.dev_seed:
            await ensure_seed_data(self)

        logger.info(
            "Container iniciado",
            extra={
                "storage": self.storage_backend,
                "cache": self.cache.backend_name,
                "dev_seed": self.settings.dev_seed,
            },
        )

    async def stop(self) -> None:
        await self.cache.close()
        await close_pool(self.pool)
        logger.info("Container detenido")


def _breaker_factory(settings: Settings) -> Callable[[str], CircuitBreaker]:
    def make(name: str) -> CircuitBreaker:
        return CircuitBreaker(
            failure_threshold=settings.breaker_failure_threshold,
            reset_timeout=settings.breaker_reset_timeout_seconds,
            name=name,
            is_failure=counts_as_failure,
        )

    return make


def build_container(
    settings: Settings | None = None,
    *,
    hasher: CredentialHasher | None = None,
    cache: CacheFacade | None = None,
    stores: dict[str, Store[Any]] | None = None,
) -> Container:
    """
    Construye el grafo de dependencias de una app.

    Args:
        settings: Settings explícitos (default: get_settings()).
        hasher: CredentialHasher (tests inyectan parámetros argon2 baratos).
        cache: CacheFacade ya construido.
        stores: stores explícitos por nombre ("roles", "statuses", o el
            valor de UserSource); los faltantes se eligen según DATABASE_URL.
    """
    settings = settings or get_settings()
    hasher = hasher or CredentialHasher()
    cache = cache or CacheFacade(
        redis_url=settings.redis_url, default_ttl=settings.cache_default_ttl
    )
    stores = dict(stores or {})

    pool: AsyncConnectionPool | None = None
    if settings.uses_database():
        pool = create_pool(
            settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            statement_timeout_ms=settings.db_statement_timeout_ms,
        )

    def store_for(name: str, table_spec) -> Store[Any]:
        if name in stores:
            return stores[name]
        if pool is not None:
            return PostgresStore(pool, table_spec)
        return InMemoryStore(name)

    ttl = settings.cache_default_ttl
    roles = build_role_repository(store_for("roles", ROLES_TABLE), cache, cache_ttl=ttl)
    statuses = build_status_repository(
        store_for("statuses", STATUSES_TABLE), cache, cache_ttl=ttl
    )

    identity_repositories: dict[UserSource, IdentityRepository] = {}
    for source, profile in IDENTITY_PROFILES.items():
        store: Store[IdentityRecord] = store_for(source.value, identity_table(source))
        repository = IdentityRepository(
            profile,
            store,
            cache,
            roles=roles,
            statuses=statuses,
            hasher=hasher,
            cache_ttl=ttl,
        )
        roles.register_dependent(repository)
        statuses.register_dependent(repository)
        identity_repositories[source] = repository

    make_breaker = _breaker_factory(settings)
    identity_services = {
        source: IdentityService(repository, make_breaker(f"identity:{source.value}"))
        for source, repository in identity_repositories.items()
    }

    tokens = TokenCodec(
        settings.jwt_secret,
        access_ttl_seconds=settings.access_token_ttl_seconds,
        refresh_ttl_seconds=settings.refresh_token_ttl_seconds,
    )

    return Container(
        settings=settings,
        cache=cache,
        limiter=FixedWindowRateLimiter(
            settings.rate_limit_max_requests, settings.rate_limit_window_seconds
        ),
        tokens=tokens,
        hasher=hasher,
        roles=roles,
        statuses=statuses,
        identity_repositories=identity_repositories,
        role_service=EntityService(roles, make_breaker("roles"), entity_label="perfil"),
        status_service=EntityService(
            statuses, make_breaker("statuses"), entity_label="status"
        ),
        identity_services=identity_services,
        auth_service=AuthService(
            identity_repositories,
            roles=roles,
            statuses=statuses,
            tokens=tokens,
            hasher=hasher,
        ),
        pool=pool,
    )
