"""
Shared fixtures for application-layer tests.

Builds repositories directly over InMemoryStore + an in-memory CacheFacade
(no HTTP, no Container) so each rule is tested at its own layer.
"""

from typing import Any
from uuid import uuid4

import pytest

from infinitynet.application.identity_repository import (
    IDENTITY_PROFILES,
    IdentityRepository,
)
from infinitynet.application.reference_data import (
    build_role_repository,
    build_status_repository,
)
from infinitynet.domain.entities import UserSource
from infinitynet.infrastructure.cache import CacheFacade
from infinitynet.infrastructure.stores import InMemoryStore


@pytest.fixture
def cache() -> CacheFacade:
    return CacheFacade(redis_url="", default_ttl=60)


@pytest.fixture
def roles(cache):
    return build_role_repository(InMemoryStore("roles"), cache, cache_ttl=60)


@pytest.fixture
def statuses(cache):
    return build_status_repository(InMemoryStore("statuses"), cache, cache_ttl=60)


@pytest.fixture
def identities(cache, roles, statuses, fast_hasher) -> dict[UserSource, IdentityRepository]:
    repos: dict[UserSource, IdentityRepository] = {}
    for source, profile in IDENTITY_PROFILES.items():
        repo = IdentityRepository(
            profile,
            InMemoryStore(source.value),
            cache,
            roles=roles,
            statuses=statuses,
            hasher=fast_hasher,
            cache_ttl=60,
        )
        roles.register_dependent(repo)
        statuses.register_dependent(repo)
        repos[source] = repo
    return repos


@pytest.fixture
def users(identities) -> IdentityRepository:
    return identities[UserSource.USER]


def _identity_values(role_id, status_id, **overrides: Any) -> dict[str, Any]:
    suffix = uuid4().int % 10**8
    values: dict[str, Any] = {
        "name": "Maria Silva",
        "email": f"maria{suffix}@exemplo.com",
        "phone": f"119{suffix:08d}",
        "cpf": f"123{suffix:08d}",
        "city": "São Paulo",
        "state": "SP",
        "secret": "senha123",
        "role_id": role_id,
        "status_id": status_id,
    }
    values.update(overrides)
    return values


@pytest.fixture
def identity_values():
    """R: Factory of valid repository values (unique fields randomized)."""
    return _identity_values
