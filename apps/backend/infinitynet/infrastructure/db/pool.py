"""
===============================================================================
CRC CARD — infrastructure/db/pool.py
===============================================================================

Componente:
  Pool async de conexiones PostgreSQL

Responsabilidades:
  - Construir, abrir y cerrar el pool (psycopg_pool.AsyncConnectionPool).
  - Configurar cada conexión: statement_timeout + autocommit.

Colaboradores:
  - container.Container: abre el pool en start() y lo cierra en stop().
  - infrastructure/stores/postgres.PostgresStore: usa pool.connection().

Principios:
  - Fail-fast: si el pool no abre dentro del timeout, el arranque falla.
  - Sin singleton global: el pool pertenece al Container de la app.
===============================================================================
"""

from __future__ import annotations

from psycopg import AsyncConnection
from psycopg_pool import AsyncConnectionPool, PoolTimeout

from ...crosscutting.logger import logger
from .errors import DatabaseConnectionError


def _make_configure(statement_timeout_ms: int):
    async def configure(conn: AsyncConnection) -> None:
        # Guardrail contra queries colgadas
        if statement_timeout_ms > 0:
            await conn.execute(f"SET statement_timeout = {int(statement_timeout_ms)}")
        await conn.set_autocommit(True)

    return configure


def create_pool(
    database_url: str,
    *,
    min_size: int,
    max_size: int,
    statement_timeout_ms: int = 0,
) -> AsyncConnectionPool:
    """Construye el pool cerrado; los stores lo referencian antes de abrirlo."""
    return AsyncConnectionPool(
        conninfo=database_url,
        min_size=min_size,
        max_size=max_size,
        configure=_make_configure(statement_timeout_ms),
        open=False,
    )


async def open_pool(pool: AsyncConnectionPool, *, timeout: float = 10.0) -> None:
    """Abre el pool y espera a que haya min_size conexiones listas."""
    logger.info(
        "Inicializando pool DB",
        extra={"min_size": pool.min_size, "max_size": pool.max_size},
    )
    try:
        await pool.open(wait=True, timeout=timeout)
    except PoolTimeout as exc:
        await pool.close()
        raise DatabaseConnectionError(
            f"No se pudo abrir el pool DB en {timeout}s: {exc}", timeout=timeout
        ) from exc

    logger.info("Pool DB inicializado")


async def close_pool(pool: AsyncConnectionPool | None) -> None:
    """Cierra el pool (idempotente)."""
    if pool is None or pool.closed:
        return
    logger.info("Cerrando pool DB")
    await pool.close()
    logger.info("Pool DB cerrado")
