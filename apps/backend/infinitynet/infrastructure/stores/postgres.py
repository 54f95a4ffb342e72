"""
============================================================
TARJETA CRC — infrastructure/stores/postgres.py
============================================================
Class: PostgresStore[T]

Responsibilities:
  - Implementar Store[T] con SQL parametrizado sobre psycopg 3 (async).
  - Traducir Criterion / SortKey a WHERE / ORDER BY con psycopg.sql
    (identificadores siempre escapados, valores siempre como parámetros).
  - Mapear filas (dict_row) <-> entidades vía TableSpec.
  - Exponer fallos consistentes vía DatabaseError con logging estructurado.
  - Traducir violaciones de UNIQUE / FOREIGN KEY a AppError.conflict (409).

Collaborators:
  - psycopg_pool.AsyncConnectionPool (infrastructure.db.pool)
  - domain.repositories (Criterion, SortKey)
  - domain.entities (Role, Status, IdentityRecord)
  - crosscutting.exceptions (DatabaseError, AppError)
  - alembic/versions/001_identity_foundation.py (contrato de esquema)

Constraints / Notes:
  - Store puro: NO define reglas de negocio (unicidad, referencias).
  - Retorna None cuando no existe el recurso (no exception por “not found”).
  - Nunca interpolar input de usuario: solo columnas declaradas en TableSpec.
============================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Sequence, TypeVar
from uuid import UUID

from psycopg import errors as pg_errors
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from ...crosscutting.exceptions import AppError, DatabaseError
from ...crosscutting.logger import logger
from ...domain.entities import IdentityRecord, Role, Status, UserSource
from ...domain.repositories import Criterion, CriterionOp, SortKey

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class TableSpec(Generic[T]):
    """
    Contrato tabla <-> entidad.

    columns es la lista explícita de columnas: si el esquema cambia,
    este tuple obliga a ajustar todo en un solo lugar.
    """

    table: str
    columns: tuple[str, ...]
    to_row: Callable[[T], dict[str, Any]]
    from_row: Callable[[dict[str, Any]], T]


# ============================================================
# Mappers por entidad
# ============================================================
def _role_to_row(role: Role) -> dict[str, Any]:
    return {
        "id": role.id,
        "name": role.name,
        "level": role.level,
        "is_active": role.is_active,
        "created_at": role.created_at,
        "updated_at": role.updated_at,
    }


def _status_to_row(status: Status) -> dict[str, Any]:
    return {
        "id": status.id,
        "name": status.name,
        "created_at": status.created_at,
        "updated_at": status.updated_at,
    }


_IDENTITY_COLUMNS = (
    "id",
    "name",
    "email",
    "phone",
    "cpf",
    "address",
    "city",
    "state",
    "avatar",
    "credential_hash",
    "role_id",
    "status_id",
    "failed_attempts",
    "last_login_at",
    "created_at",
    "updated_at",
)


def _identity_to_row(record: IdentityRecord) -> dict[str, Any]:
    return {column: getattr(record, column) for column in _IDENTITY_COLUMNS}


def _identity_from_row(source: UserSource) -> Callable[[dict[str, Any]], IdentityRecord]:
    def from_row(row: dict[str, Any]) -> IdentityRecord:
        return IdentityRecord(source=source, **row)

    return from_row


ROLES_TABLE: TableSpec[Role] = TableSpec(
    table="roles",
    columns=("id", "name", "level", "is_active", "created_at", "updated_at"),
    to_row=_role_to_row,
    from_row=lambda row: Role(**row),
)

STATUSES_TABLE: TableSpec[Status] = TableSpec(
    table="statuses",
    columns=("id", "name", "created_at", "updated_at"),
    to_row=_status_to_row,
    from_row=lambda row: Status(**row),
)

IDENTITY_TABLES: dict[UserSource, str] = {
    UserSource.USER: "users",
    UserSource.ADMIN: "admin_users",
    UserSource.AFFILIATE: "affiliate_users",
    UserSource.PHONE: "app_users",
}


def identity_table(source: UserSource) -> TableSpec[IdentityRecord]:
    return TableSpec(
        table=IDENTITY_TABLES[source],
        columns=_IDENTITY_COLUMNS,
        to_row=_identity_to_row,
        from_row=_identity_from_row(source),
    )


# ============================================================
# SQL helpers
# ============================================================
def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


_FIELD_LABELS = {"email": "email", "cpf": "cpf", "phone": "telefone", "name": "nome"}


class PostgresStore(Generic[T]):
    """
    Store Postgres genérico.

    Todas las consultas pasan por _fetchone / _fetchall / _execute, que
    centralizan logging + DatabaseError.
    """

    def __init__(self, pool: AsyncConnectionPool, table_spec: TableSpec[T]) -> None:
        self._pool = pool
        self._table_spec = table_spec
        self._table = sql.Identifier(table_spec.table)
        self._select_list = sql.SQL(", ").join(sql.Identifier(c) for c in table_spec.columns)

    # ---------------------------------------------------------
    # Construcción de cláusulas
    # ---------------------------------------------------------
    def _column(self, name: str) -> sql.Identifier:
        if name not in self._table_spec.columns:
            raise DatabaseError(f"{self._table_spec.table}: columna desconocida {name!r}")
        return sql.Identifier(name)

    def _where(self, criteria: Sequence[Criterion]) -> tuple[sql.Composable, list[Any]]:
        if not criteria:
            return sql.SQL(""), []

        parts: list[sql.Composable] = []
        params: list[Any] = []
        for c in criteria:
            column = self._column(c.field)
            if c.op is CriterionOp.ICONTAINS:
                parts.append(sql.SQL("{} ILIKE %s").format(column))
                params.append(f"%{_escape_like(str(c.value))}%")
            else:
                parts.append(sql.SQL("{} = %s").format(column))
                params.append(c.value)
        return sql.SQL(" WHERE ") + sql.SQL(" AND ").join(parts), params

    def _order_by(self, order_by: Sequence[SortKey]) -> sql.Composable:
        keys = [*order_by, SortKey("id")]
        return sql.SQL(" ORDER BY ") + sql.SQL(", ").join(
            sql.SQL("{} {}").format(
                self._column(k.field), sql.SQL("DESC" if k.descending else "ASC")
            )
            for k in keys
        )

    # ---------------------------------------------------------
    # Ejecución con errores consistentes
    # ---------------------------------------------------------
    def _integrity_error(self, exc: pg_errors.IntegrityError, op: str) -> AppError:
        """
        Traduce violaciones de constraint a 409.

        La unicidad se valida antes en el repositorio; llegar acá indica una
        carrera entre dos escrituras (o un borrado concurrente de la referencia).
        """
        constraint = exc.diag.constraint_name or ""
        details = {"table": self._table_spec.table, "constraint": constraint}
        logger.warning(
            "PostgresStore: constraint violada",
            extra={**details, "operation": op, "sqlstate": exc.sqlstate},
        )

        if isinstance(exc, pg_errors.UniqueViolation):
            field = constraint.removeprefix(f"uq_{self._table_spec.table}_")
            label = _FIELD_LABELS.get(field)
            if label:
                return AppError.conflict(f"Já existe um registro com este {label}", details)
            return AppError.conflict("Já existe um registro com estes dados", details)

        if op == "delete":
            return AppError.conflict(
                "Este registro está sendo utilizado e não pode ser excluído", details
            )
        return AppError.conflict("Registro referenciado não existe mais", details)

    async def _fetchall(
        self, query: sql.Composable, params: Sequence[Any], *, op: str
    ) -> list[dict[str, Any]]:
        try:
            async with self._pool.connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    await cur.execute(query, tuple(params))
                    return await cur.fetchall()
        except (pg_errors.UniqueViolation, pg_errors.ForeignKeyViolation) as exc:
            raise self._integrity_error(exc, op) from exc
        except Exception as exc:
            log_msg = f"PostgresStore: {op} failed"
            logger.exception(log_msg, extra={"table": self._table_spec.table, "error": str(exc)})
            raise DatabaseError(f"{log_msg}: {exc}", original_error=exc) from exc

    async def _fetchone(
        self, query: sql.Composable, params: Sequence[Any], *, op: str
    ) -> dict[str, Any] | None:
        rows = await self._fetchall(query, params, op=op)
        return rows[0] if rows else None

    async def _execute(
        self, query: sql.Composable, params: Sequence[Any], *, op: str
    ) -> int:
        try:
            async with self._pool.connection() as conn:
                cur = await conn.execute(query, tuple(params))
                return cur.rowcount
        except (pg_errors.UniqueViolation, pg_errors.ForeignKeyViolation) as exc:
            raise self._integrity_error(exc, op) from exc
        except Exception as exc:
            log_msg = f"PostgresStore: {op} failed"
            logger.exception(log_msg, extra={"table": self._table_spec.table, "error": str(exc)})
            raise DatabaseError(f"{log_msg}: {exc}", original_error=exc) from exc

    # ---------------------------------------------------------
    # Store[T]
    # ---------------------------------------------------------
    async def get(self, entity_id: UUID) -> T | None:
        query = sql.SQL("SELECT {} FROM {} WHERE id = %s").format(
            self._select_list, self._table
        )
        row = await self._fetchone(query, (entity_id,), op="get")
        return self._table_spec.from_row(row) if row else None

    async def find_first(self, criteria: Sequence[Criterion]) -> T | None:
        where, params = self._where(criteria)
        query = sql.SQL("SELECT {} FROM {}{} LIMIT 1").format(
            self._select_list, self._table, where
        )
        row = await self._fetchone(query, params, op="find_first")
        return self._table_spec.from_row(row) if row else None

    async def list(
        self,
        *,
        criteria: Sequence[Criterion] = (),
        order_by: Sequence[SortKey] = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> list[T]:
        where, params = self._where(criteria)
        query = sql.SQL("SELECT {} FROM {}{}{}").format(
            self._select_list, self._table, where, self._order_by(order_by)
        )
        if limit is not None:
            query = query + sql.SQL(" LIMIT %s")
            params.append(max(0, limit))
        query = query + sql.SQL(" OFFSET %s")
        params.append(max(0, offset))

        rows = await self._fetchall(query, params, op="list")
        return [self._table_spec.from_row(r) for r in rows]

    async def count(self, criteria: Sequence[Criterion] = ()) -> int:
        where, params = self._where(criteria)
        query = sql.SQL("SELECT COUNT(*) AS total FROM {}{}").format(self._table, where)
        row = await self._fetchone(query, params, op="count")
        return int(row["total"]) if row else 0

    async def insert(self, entity: T) -> T:
        row = self._table_spec.to_row(entity)
        columns = list(row.keys())
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({})").format(
            self._table,
            sql.SQL(", ").join(self._column(c) for c in columns),
            sql.SQL(", ").join(sql.Placeholder() for _ in columns),
        )
        await self._execute(query, [row[c] for c in columns], op="insert")
        return entity

    async def replace(self, entity: T) -> T:
        row = self._table_spec.to_row(entity)
        columns = [c for c in row if c != "id"]
        query = sql.SQL("UPDATE {} SET {} WHERE id = %s").format(
            self._table,
            sql.SQL(", ").join(
                sql.SQL("{} = %s").format(self._column(c)) for c in columns
            ),
        )
        await self._execute(query, [*(row[c] for c in columns), row["id"]], op="replace")
        return entity

    async def delete(self, entity_id: UUID) -> bool:
        query = sql.SQL("DELETE FROM {} WHERE id = %s").format(self._table)
        return await self._execute(query, (entity_id,), op="delete") > 0

    async def ping(self) -> bool:
        try:
            async with self._pool.connection() as conn:
                await conn.execute("SELECT 1")
            return True
        except Exception as exc:
            logger.warning("PostgresStore: ping failed", extra={"error": str(exc)})
            return False
