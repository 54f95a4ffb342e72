"""Stores: implementaciones de domain.repositories.Store (memoria / Postgres)."""

from .in_memory import InMemoryStore
from .postgres import (
    IDENTITY_TABLES,
    ROLES_TABLE,
    STATUSES_TABLE,
    PostgresStore,
    TableSpec,
    identity_table,
)

__all__ = [
    "IDENTITY_TABLES",
    "InMemoryStore",
    "PostgresStore",
    "ROLES_TABLE",
    "STATUSES_TABLE",
    "TableSpec",
    "identity_table",
]
