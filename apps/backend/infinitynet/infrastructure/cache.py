"""
============================================================
TARJETA CRC — infrastructure/cache.py
============================================================
Module: Cache Facade (Redis + fallback en memoria)

Responsibilities:
  - Exponer get / set / delete / increment / expire async para los repositorios.
  - Usar Redis (redis.asyncio) cuando REDIS_URL está configurado y responde.
  - Degradar a un mapa en memoria (TTL por clave, chequeado al leer) ante:
      - REDIS_URL vacío
      - ping fallido en connect()
      - cualquier error de Redis en cualquier llamada
  - La degradación es PERMANENTE para la vida del proceso (sin reconexión).

Collaborators:
  - domain.cache.CachePort (contrato que implementa la fachada)
  - application.crud.CrudRepository (read-through / write-through)
  - container.Container (connect/close en el lifespan)
  - redis.asyncio (cliente async de redis-py)

Policy / Design Notes:
  - Cache es best-effort: ningún método lanza hacia el caller.
  - NO “silenciar” todo: la degradación se loguea una vez en warning.
  - TTL coherente:
      - En memoria: expira por timestamp monotónico.
      - En Redis: TTL nativo (SET EX / EXPIRE).
============================================================
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

import redis.asyncio as aioredis

from ..crosscutting.logger import logger


# ============================================================
# Abstracción de backend
# ============================================================
class CacheBackend(ABC):
    """Contrato mínimo de un backend clave/valor con expiración."""

    name: str = "abstract"

    @abstractmethod
    async def get(self, key: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int | None) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def increment(self, key: str) -> int:
        raise NotImplementedError

    @abstractmethod
    async def expire(self, key: str, seconds: int) -> None:
        raise NotImplementedError


# ============================================================
# In-memory backend (TTL lazy)
# ============================================================
@dataclass(slots=True)
class CacheEntry:
    value: str
    expires_at: float | None = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class InMemoryCacheBackend(CacheBackend):
    """
    Mapa en memoria con expiración por clave.

    Nota:
      - Sin locks: vive en un único event loop.
      - Sin eviction proactiva: las claves vencidas se borran al leerlas.
    """

    name = "memory"

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def _live_entry(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._entries.pop(key, None)
            return None
        return entry

    async def get(self, key: str) -> str | None:
        entry = self._live_entry(key)
        return entry.value if entry else None

    async def set(self, key: str, value: str, ttl_seconds: int | None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        self._entries[key] = CacheEntry(value=value, expires_at=expires_at)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def increment(self, key: str) -> int:
        entry = self._live_entry(key)
        try:
            current = int(entry.value) if entry else 0
        except ValueError:
            current = 0
        new_value = current + 1
        self._entries[key] = CacheEntry(
            value=str(new_value), expires_at=entry.expires_at if entry else None
        )
        return new_value

    async def expire(self, key: str, seconds: int) -> None:
        entry = self._live_entry(key)
        if entry is not None:
            entry.expires_at = self._clock() + seconds

    def __len__(self) -> int:
        return len(self._entries)


# ============================================================
# Redis backend
# ============================================================
class RedisCacheBackend(CacheBackend):
    """Backend Redis (redis.asyncio). Los errores se propagan a la fachada."""

    name = "redis"

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisCacheBackend":
        if not redis_url:
            raise ValueError("redis_url is required")
        return cls(aioredis.from_url(redis_url, decode_responses=True))

    async def ping(self) -> bool:
        return bool(await self._client.ping())

    async def get(self, key: str) -> str | None:
        return await self._client.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int | None) -> None:
        if ttl_seconds:
            await self._client.set(key, value, ex=int(ttl_seconds))
        else:
            await self._client.set(key, value)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def increment(self, key: str) -> int:
        return int(await self._client.incr(key))

    async def expire(self, key: str, seconds: int) -> None:
        await self._client.expire(key, int(seconds))

    async def close(self) -> None:
        await self._client.aclose()


# ============================================================
# Facade principal
# ============================================================
class CacheFacade:
    """
    Fachada de cache con selección de backend y degradación permanente.

    Uso:
        cache = CacheFacade(redis_url=settings.redis_url, default_ttl=3600)
        await cache.connect()
        await cache.set("role:<id>", payload)
    """

    def __init__(
        self,
        *,
        redis_url: str = "",
        default_ttl: int = 3600,
        redis_backend: RedisCacheBackend | None = None,
        memory_backend: InMemoryCacheBackend | None = None,
    ) -> None:
        if default_ttl <= 0:
            raise ValueError("default_ttl must be > 0")

        self.default_ttl = int(default_ttl)
        self._redis_url = (redis_url or "").strip()
        self._redis = redis_backend
        self._memory = memory_backend or InMemoryCacheBackend()
        self._redis_available = redis_backend is not None

    @property
    def backend_name(self) -> str:
        return RedisCacheBackend.name if self._redis_available else InMemoryCacheBackend.name

    async def connect(self) -> None:
        """
        Healthcheck temprano: si Redis no responde, caemos a memoria.

        Se llama una vez desde el lifespan de la app.
        """
        if self._redis is None:
            if not self._redis_url:
                logger.info("Cache en memoria (REDIS_URL no configurado)")
                return
            try:
                self._redis = RedisCacheBackend.from_url(self._redis_url)
            except Exception as exc:
                self._downgrade(exc)
                return
            self._redis_available = True

        try:
            await self._redis.ping()
            logger.info("Cache conectado a Redis")
        except Exception as exc:
            self._downgrade(exc)

    async def close(self) -> None:
        if self._redis is None:
            return
        try:
            await self._redis.close()
        except Exception as exc:
            logger.warning("Error cerrando cliente Redis", extra={"error": str(exc)})

    def _downgrade(self, exc: BaseException) -> None:
        if self._redis_available or self._redis is not None:
            logger.warning(
                "Redis no disponible, cache degradado a memoria",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
        self._redis_available = False

    async def _call(self, op: str, *args: Any) -> Any:
        if self._redis_available and self._redis is not None:
            try:
                return await getattr(self._redis, op)(*args)
            except Exception as exc:
                self._downgrade(exc)
        return await getattr(self._memory, op)(*args)

    async def get(self, key: str) -> str | None:
        return await self._call("get", key)

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        await self._call("set", key, value, ttl_seconds or self.default_ttl)

    async def delete(self, key: str) -> None:
        await self._call("delete", key)

    async def increment(self, key: str) -> int:
        return await self._call("increment", key)

    async def expire(self, key: str, seconds: int) -> None:
        await self._call("expire", key, seconds)
