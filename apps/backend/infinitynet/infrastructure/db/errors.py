"""
Errores del pool de PostgreSQL.

Container.start() los deja propagar: una app con DATABASE_URL que no logra
conectar no debe arrancar en modo degradado.
"""

from __future__ import annotations


class DatabasePoolError(Exception):
    """Base de errores de pool."""


class DatabaseConnectionError(DatabasePoolError):
    """El pool no obtuvo min_size conexiones dentro del timeout."""

    def __init__(self, message: str, *, timeout: float | None = None):
        super().__init__(message)
        self.timeout = timeout
