"""
Datos iniciales para desarrollo (DEV_SEED=true).

Idempotente: busca cada registro por su campo único antes de crearlo.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..crosscutting.logger import logger
from ..domain.entities import ACTIVE_STATUS_NAME, INACTIVE_STATUS_NAME, UserSource

if TYPE_CHECKING:
    from ..container import Container

SEED_STATUSES = (ACTIVE_STATUS_NAME, INACTIVE_STATUS_NAME)
SEED_ROLES = (("Administrador", 100), ("Gerente", 50), ("Operador", 10))

SEED_ADMIN = {
    "name": "Administrador",
    "email": "admin@exemplo.com",
    "phone": "11999999999",
    "cpf": "12345678900",
    "city": "São Paulo",
    "state": "SP",
    "secret": "admin123",
}


async def ensure_seed_data(container: "Container") -> None:
    statuses = container.statuses
    roles = container.roles
    users = container.identity_repositories[UserSource.USER]

    for name in SEED_STATUSES:
        if await statuses.find_by_name(name) is None:
            await statuses.create({"name": name})
            logger.info("seed: status creado", extra={"seed_name": name})

    for name, level in SEED_ROLES:
        if await roles.find_by_name(name) is None:
            await roles.create({"name": name, "level": level})
            logger.info("seed: perfil creado", extra={"seed_name": name})

    if await users.find_by_email(SEED_ADMIN["email"]) is None:
        admin_role = await roles.find_by_name("Administrador")
        active = await statuses.find_by_name(ACTIVE_STATUS_NAME)
        await users.create(
            {**SEED_ADMIN, "role_id": admin_role.id, "status_id": active.id}
        )
        logger.info("seed: usuario administrador creado")
