"""
============================================================
TARJETA CRC (Class / Responsibilities / Collaborators)
============================================================
Class: 001_identity_foundation (Alembic Migration)

Responsibilities:
  - Crear el esquema de identidad desde cero.
  - statuses y roles (datos de referencia).
  - Una tabla por variante de usuario, todas con el mismo shape:
      users, admin_users, affiliate_users, app_users

Collaborators:
  - infrastructure/stores/postgres.py (TableSpec: contrato de columnas)

Policy:
  - Migración BASELINE.
  - Convención de nombres:
      pk_<tabla>, uq_<tabla>_<col>, ix_<tabla>_<col>, fk_<tabla>_<col>__<ref_tabla>
  - FKs con ON DELETE RESTRICT: la guarda de borrado vive en la aplicación,
    la base la respalda.
============================================================
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_identity_foundation"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

IDENTITY_TABLES = ("users", "admin_users", "affiliate_users", "app_users")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def _create_identity_table(table: str) -> None:
    op.create_table(
        table,
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("cpf", sa.String(14), nullable=False),
        sa.Column("address", sa.String(200), nullable=True),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("state", sa.String(2), nullable=False),
        sa.Column("avatar", sa.Text, nullable=True),
        sa.Column("credential_hash", sa.Text, nullable=False),
        sa.Column("role_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "failed_attempts",
            sa.Integer,
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=f"pk_{table}"),
        sa.UniqueConstraint("email", name=f"uq_{table}_email"),
        sa.UniqueConstraint("cpf", name=f"uq_{table}_cpf"),
        sa.UniqueConstraint("phone", name=f"uq_{table}_phone"),
        sa.ForeignKeyConstraint(
            ["role_id"],
            ["roles.id"],
            name=f"fk_{table}_role_id__roles",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["status_id"],
            ["statuses.id"],
            name=f"fk_{table}_status_id__statuses",
            ondelete="RESTRICT",
        ),
    )
    op.create_index(f"ix_{table}_role_id", table, ["role_id"])
    op.create_index(f"ix_{table}_status_id", table, ["status_id"])
    op.create_index(f"ix_{table}_created_at", table, ["created_at"])


def upgrade() -> None:
    """
    Orden:
      1) Datos de referencia (statuses, roles)
      2) Identidades por variante
    """
    op.create_table(
        "statuses",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_statuses"),
        sa.UniqueConstraint("name", name="uq_statuses_name"),
    )

    op.create_table(
        "roles",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("level", sa.Integer, nullable=False),
        sa.Column(
            "is_active",
            sa.Boolean,
            nullable=False,
            server_default=sa.text("true"),
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_roles"),
        sa.UniqueConstraint("name", name="uq_roles_name"),
        sa.CheckConstraint("level BETWEEN 1 AND 100", name="ck_roles_level_range"),
    )
    op.create_index("ix_roles_level", "roles", ["level"])

    for table in IDENTITY_TABLES:
        _create_identity_table(table)


def downgrade() -> None:
    for table in reversed(IDENTITY_TABLES):
        op.drop_table(table)
    op.drop_table("roles")
    op.drop_table("statuses")
