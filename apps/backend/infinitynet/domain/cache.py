"""
===============================================================================
TARJETA CRC — domain/cache.py
===============================================================================

Módulo:
    Puerto de Cache clave/valor (Dominio)

Responsabilidades:
    - Definir el contrato (Protocol) del cache usado por los repositorios.
    - Habilitar Inversión de Dependencias:
        * application/crud depende de esta interfaz
        * infrastructure/cache implementa la fachada (Redis / memoria)

Colaboradores:
    - infrastructure/cache.CacheFacade: implementación con fallback.
    - application/crud.CrudRepository: read-through / write-through.

Restricciones / Reglas:
    - Este módulo ES dominio: no importa Redis.
    - Ninguna operación lanza excepciones hacia el caller.
    - Valores string (la serialización JSON la hace el repositorio).
===============================================================================
"""

from __future__ import annotations

from typing import Protocol


class CachePort(Protocol):
    """
    Interfaz de cache con expiración.

    Semántica:
      - get(key) retorna None si no existe / expiró
      - set(key, value, ttl_seconds) guarda o sobreescribe la entrada
      - increment(key) retorna el nuevo valor entero
    """

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def increment(self, key: str) -> int: ...

    async def expire(self, key: str, seconds: int) -> None: ...
