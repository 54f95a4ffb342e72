"""
Capa de aplicación: repositorios compuestos, servicios y autenticación.
"""

from .auth_service import MAX_FAILED_ATTEMPTS, AuthResult, AuthService
from .crud import CrudRepository, EntityDescriptor, UniqueField
from .identity_repository import IDENTITY_PROFILES, IdentityProfile, IdentityRepository
from .reference_data import (
    ReferenceDataRepository,
    build_role_repository,
    build_status_repository,
)
from .services import EntityService, IdentityService, counts_as_failure

__all__ = [
    "MAX_FAILED_ATTEMPTS",
    "AuthResult",
    "AuthService",
    "CrudRepository",
    "EntityDescriptor",
    "UniqueField",
    "IDENTITY_PROFILES",
    "IdentityProfile",
    "IdentityRepository",
    "ReferenceDataRepository",
    "build_role_repository",
    "build_status_repository",
    "EntityService",
    "IdentityService",
    "counts_as_failure",
]
