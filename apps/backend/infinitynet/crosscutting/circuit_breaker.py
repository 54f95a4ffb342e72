"""
===============================================================================
TARJETA CRC — crosscutting/circuit_breaker.py (Circuit Breaker async)
===============================================================================

Responsabilidades:
  - Envolver operaciones async (llamadas al repositorio) y contar fallas
    consecutivas.
  - Transicionar CLOSED -> OPEN -> HALF_OPEN -> CLOSED/OPEN.
  - Cortar en seco (sin invocar la operación) mientras esté OPEN y no haya
    vencido el reset_timeout.
  - Re-lanzar SIEMPRE el error original de la operación.

Colaboradores:
  - application/services.py: un breaker por servicio (compartido entre ops).
  - container.py: construye los breakers con los parámetros de Settings.
  - api/system_routes.py: expone snapshot() en diagnostics.

Reglas:
  - La transición OPEN -> HALF_OPEN ocurre en el próximo intento, no por timer.
  - is_failure permite que el servicio no cuente errores de cliente (4xx).
  - Sin locks: el estado vive en un único event loop.
===============================================================================
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

from .logger import logger

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitOpenError(Exception):
    """La operación no se invocó porque el circuito está abierto."""

    def __init__(self, name: str = ""):
        self.name = name
        super().__init__("Circuit breaker is OPEN")


def _always(_: BaseException) -> bool:
    return True


class CircuitBreaker:
    """
    Máquina de estados clásica (closed / open / half-open).

    Args:
        failure_threshold: fallas consecutivas para abrir (default 5).
        reset_timeout: segundos en OPEN antes de permitir un intento (default 30).
        name: etiqueta para logs/diagnóstico.
        clock: fuente de tiempo monotónica (inyectable en tests).
        is_failure: decide si una excepción cuenta como falla.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout: float = 30.0,
        *,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
        is_failure: Callable[[BaseException], bool] = _always,
    ):
        if failure_threshold <= 0:
            raise ValueError("failure_threshold debe ser > 0")
        if reset_timeout < 0:
            raise ValueError("reset_timeout debe ser >= 0")

        self.failure_threshold = int(failure_threshold)
        self.reset_timeout = float(reset_timeout)
        self.name = name
        self._clock = clock
        self._is_failure = is_failure

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_at: float | None = None

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        if self._state is CircuitState.OPEN:
            if self._reset_timeout_elapsed():
                self._transition(CircuitState.HALF_OPEN)
            else:
                raise CircuitOpenError(self.name)

        try:
            result = await operation()
        except Exception as exc:
            # R: una excepción clasificada (ej. 4xx) prueba que la dependencia respondió.
            if self._is_failure(exc):
                self._on_failure()
            else:
                self._on_success()
            raise

        self._on_success()
        return result

    def snapshot(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "state": self._state.value,
            "failure_count": self._failure_count,
            "failure_threshold": self.failure_threshold,
            "reset_timeout": self.reset_timeout,
        }

    # --------------------------- internos ---------------------------

    def _reset_timeout_elapsed(self) -> bool:
        if self._last_failure_at is None:
            return True
        return (self._clock() - self._last_failure_at) > self.reset_timeout

    def _on_success(self) -> None:
        self._failure_count = 0
        if self._state is not CircuitState.CLOSED:
            self._transition(CircuitState.CLOSED)

    def _on_failure(self) -> None:
        self._failure_count += 1
        self._last_failure_at = self._clock()
        if (
            self._state is CircuitState.HALF_OPEN
            or self._failure_count >= self.failure_threshold
        ):
            self._transition(CircuitState.OPEN)

    def _transition(self, new_state: CircuitState) -> None:
        if new_state is self._state:
            return
        log = logger.warning if new_state is CircuitState.OPEN else logger.info
        log(
            "circuit breaker cambió de estado",
            extra={
                "breaker": self.name,
                "from_state": self._state.value,
                "to_state": new_state.value,
                "failure_count": self._failure_count,
            },
        )
        self._state = new_state
