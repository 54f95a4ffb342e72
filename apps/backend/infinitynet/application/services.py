"""
===============================================================================
TARJETA CRC — application/services.py
===============================================================================

Módulo:
    Capa de servicios (breaker + normalización de errores)

Responsabilidades:
    - Ejecutar cada operación de repositorio dentro del breaker del servicio.
    - Traducir "no encontrado" a NotFound con el nombre de la entidad.
    - Envolver cualquier error no clasificado en InternalError
      ("Erro ao {verbo} {entidad}") y loguearlo con stack.
    - Re-lanzar AppError sin cambios (log en warning).

Colaboradores:
    - crosscutting.circuit_breaker.CircuitBreaker
    - application.identity_repository / reference_data (duck typing:
      find_all, find_by_id, find_by_field, create, update, delete)
    - api/routers/* (consumidores)

Reglas:
    - Un breaker por servicio, compartido por todas sus operaciones.
    - Errores de cliente (AppError < 500) no cuentan como falla del breaker.
===============================================================================
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping, TypeVar
from uuid import UUID

from ..crosscutting.circuit_breaker import CircuitBreaker
from ..crosscutting.exceptions import AppError, InternalError
from ..crosscutting.logger import logger
from ..domain.repositories import Page
from .identity_repository import IdentityRepository

R = TypeVar("R")


def counts_as_failure(exc: BaseException) -> bool:
    """El breaker solo cuenta fallas de infraestructura, no errores de cliente."""
    return not (isinstance(exc, AppError) and exc.is_operational)


class EntityService:
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      EntityService

    Responsabilidades:
      - list / get / get_by_field / create / update / delete protegidos

    Colaboradores:
      - repositorio de la entidad, CircuitBreaker, logger
    ----------------------------------------------------------------------------
    """

    def __init__(self, repository: Any, breaker: CircuitBreaker, *, entity_label: str) -> None:
        self.repository = repository
        self.breaker = breaker
        self.entity_label = entity_label

    @property
    def not_found_message(self) -> str:
        return f"{self.entity_label[:1].upper()}{self.entity_label[1:]} não encontrado"

    async def _run(self, verb: str, operation: Callable[[], Awaitable[R]]) -> R:
        try:
            return await self.breaker.execute(operation)
        except AppError as exc:
            logger.warning(
                f"Erro ao {verb} {self.entity_label}",
                extra={"error_type": exc.error_type.value, "error": exc.message},
            )
            raise
        except Exception as exc:
            logger.error(
                f"Erro ao {verb} {self.entity_label}",
                exc_info=True,
                extra={"error": str(exc), "breaker": self.breaker.name},
            )
            raise InternalError(f"Erro ao {verb} {self.entity_label}") from exc

    async def list(self, page: int = 1, limit: int = 10, filters: Any = None) -> Page[Any]:
        return await self._run(
            "listar", lambda: self.repository.find_all(page, limit, filters)
        )

    async def get(self, entity_id: UUID) -> Any:
        entity = await self._run("buscar", lambda: self.repository.find_by_id(entity_id))
        if entity is None:
            raise AppError.not_found(self.not_found_message)
        return entity

    async def get_by_field(self, field_name: str, value: Any) -> Any:
        entity = await self._run(
            "buscar", lambda: self.repository.find_by_field(field_name, value)
        )
        if entity is None:
            raise AppError.not_found(self.not_found_message)
        return entity

    async def create(self, values: Mapping[str, Any]) -> Any:
        return await self._run("criar", lambda: self.repository.create(values))

    async def update(self, entity_id: UUID, changes: Mapping[str, Any]) -> Any:
        return await self._run(
            "atualizar", lambda: self.repository.update(entity_id, changes)
        )

    async def delete(self, entity_id: UUID) -> Any:
        return await self._run("remover", lambda: self.repository.delete(entity_id))


class IdentityService(EntityService):
    """Servicio de una variante de identidad: agrega desbloqueo de cuenta."""

    repository: IdentityRepository

    def __init__(self, repository: IdentityRepository, breaker: CircuitBreaker) -> None:
        super().__init__(
            repository, breaker, entity_label=repository.profile.display_name
        )

    async def unlock(self, identity_id: UUID) -> Any:
        await self.get(identity_id)
        return await self._run(
            "desbloquear", lambda: self.repository.reset_failed_attempts(identity_id)
        )
