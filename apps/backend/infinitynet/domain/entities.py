"""
===============================================================================
TARJETA CRC — domain/entities.py
===============================================================================

Módulo:
    Entidades del dominio de identidad (roles, status, usuarios)

Responsabilidades:
    - Modelar Role, Status e IdentityRecord como dataclasses inmutables.
    - Definir el discriminador de variante (UserSource).
    - Serializar a/desde dict de primitivos (cache, respuestas).

Colaboradores:
    - application/*: repositorios y servicios operan sobre estas entidades.
    - infrastructure/stores/*: persisten y reconstruyen entidades.

Reglas:
    - credential_hash NUNCA contiene texto plano (se hashea antes de persistir).
    - to_public_dict() nunca incluye credential_hash.
===============================================================================
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

ACTIVE_STATUS_NAME = "Ativo"
INACTIVE_STATUS_NAME = "Inativo"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_dt(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _parse_uuid(value: Any) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


class UserSource(str, Enum):
    """Variante de identidad (también viaja como claim `source` en tokens)."""

    USER = "user"
    ADMIN = "admin"
    AFFILIATE = "affiliate"
    PHONE = "phone"


@dataclass(frozen=True, slots=True)
class Role:
    name: str
    level: int
    is_active: bool = True
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "level": self.level,
            "is_active": self.is_active,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Role":
        return cls(
            id=_parse_uuid(data["id"]),
            name=data["name"],
            level=int(data["level"]),
            is_active=bool(data.get("is_active", True)),
            created_at=_parse_dt(data["created_at"]),
            updated_at=_parse_dt(data["updated_at"]),
        )


@dataclass(frozen=True, slots=True)
class Status:
    name: str
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_active_marker(self) -> bool:
        return self.name == ACTIVE_STATUS_NAME

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Status":
        return cls(
            id=_parse_uuid(data["id"]),
            name=data["name"],
            created_at=_parse_dt(data["created_at"]),
            updated_at=_parse_dt(data["updated_at"]),
        )


@dataclass(frozen=True, slots=True)
class IdentityRecord:
    """
    Registro de identidad (mismo shape para las cuatro variantes).

    Cada variante vive en su propia colección; `source` solo la etiqueta.
    """

    source: UserSource
    name: str
    email: str
    phone: str
    cpf: str
    city: str
    state: str
    credential_hash: str
    role_id: UUID
    status_id: UUID
    address: str | None = None
    avatar: str | None = None
    failed_attempts: int = 0
    last_login_at: datetime | None = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["source"] = self.source.value
        data["id"] = str(self.id)
        data["role_id"] = str(self.role_id)
        data["status_id"] = str(self.status_id)
        data["last_login_at"] = _iso(self.last_login_at)
        data["created_at"] = _iso(self.created_at)
        data["updated_at"] = _iso(self.updated_at)
        return data

    def to_public_dict(self) -> dict[str, Any]:
        data = self.to_dict()
        data.pop("credential_hash", None)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IdentityRecord":
        return cls(
            id=_parse_uuid(data["id"]),
            source=UserSource(data["source"]),
            name=data["name"],
            email=data["email"],
            phone=data["phone"],
            cpf=data["cpf"],
            address=data.get("address"),
            city=data["city"],
            state=data["state"],
            avatar=data.get("avatar"),
            credential_hash=data["credential_hash"],
            role_id=_parse_uuid(data["role_id"]),
            status_id=_parse_uuid(data["status_id"]),
            failed_attempts=int(data.get("failed_attempts") or 0),
            last_login_at=_parse_dt(data.get("last_login_at")),
            created_at=_parse_dt(data["created_at"]),
            updated_at=_parse_dt(data["updated_at"]),
        )


@dataclass(frozen=True, slots=True)
class RoleSnapshot:
    """Copia del rol embebida en el access token."""

    id: str
    name: str
    level: int

    @classmethod
    def of(cls, role: Role) -> "RoleSnapshot":
        return cls(id=str(role.id), name=role.name, level=role.level)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "level": self.level}
