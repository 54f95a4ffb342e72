"""
Name: IdentityRepository + reference guard Tests

Responsibilities:
  - Secret hashed on create/update, never stored in clear
  - role_id / status_id must exist
  - Unique email / cpf / phone per variant (not across variants)
  - Lockout counter helpers
  - Role / status deletion blocked while referenced by any variant
"""

from uuid import uuid4

import pytest
import pytest_asyncio

from infinitynet.crosscutting.exceptions import BadRequestError, ConflictError
from infinitynet.domain.entities import UserSource
from infinitynet.domain.filters import IdentityFilter

pytestmark = pytest.mark.unit


@pytest_asyncio.fixture
async def refs(roles, statuses):
    role = await roles.create({"name": "Gerente", "level": 50})
    active = await statuses.create({"name": "Ativo"})
    return role, active


@pytest.mark.asyncio
async def test_create_hashes_secret(users, refs, fast_hasher, identity_values):
    role, active = refs

    record = await users.create(identity_values(role.id, active.id))

    assert record.source is UserSource.USER
    assert record.credential_hash != "senha123"
    assert await fast_hasher.verify("senha123", record.credential_hash)
    assert record.failed_attempts == 0


@pytest.mark.asyncio
async def test_update_rehashes_secret(users, refs, fast_hasher, identity_values):
    role, active = refs
    record = await users.create(identity_values(role.id, active.id))

    updated = await users.update(record.id, {"secret": "nova-senha"})

    assert await fast_hasher.verify("nova-senha", updated.credential_hash)
    assert not await fast_hasher.verify("senha123", updated.credential_hash)


@pytest.mark.asyncio
async def test_unknown_role_or_status_rejected(users, refs, identity_values):
    role, active = refs

    with pytest.raises(BadRequestError, match="Perfil \\(role\\) não encontrado"):
        await users.create(identity_values(uuid4(), active.id))
    with pytest.raises(BadRequestError, match="Status não encontrado"):
        await users.create(identity_values(role.id, uuid4()))


@pytest.mark.asyncio
async def test_unique_fields_within_variant(users, refs, identity_values):
    role, active = refs
    first = await users.create(identity_values(role.id, active.id))

    with pytest.raises(ConflictError, match="Já existe um registro com este email"):
        await users.create(identity_values(role.id, active.id, email=first.email))
    with pytest.raises(ConflictError, match="Já existe um registro com este telefone"):
        await users.create(identity_values(role.id, active.id, phone=first.phone))


@pytest.mark.asyncio
async def test_same_cpf_allowed_in_other_variant(identities, refs, identity_values):
    role, active = refs
    values = identity_values(role.id, active.id, address="Rua A, 123")

    await identities[UserSource.ADMIN].create(values)
    other = await identities[UserSource.AFFILIATE].create(values)

    assert other.source is UserSource.AFFILIATE


@pytest.mark.asyncio
async def test_find_by_login_field(identities, refs, identity_values):
    role, active = refs
    values = identity_values(role.id, active.id, address="Rua A, 123")
    admin = await identities[UserSource.ADMIN].create(values)
    app_user = await identities[UserSource.PHONE].create(values)

    assert await identities[UserSource.ADMIN].find_by_login(values["cpf"]) == admin
    assert await identities[UserSource.PHONE].find_by_login(values["phone"]) == app_user
    assert await identities[UserSource.USER].find_by_login(values["email"]) is None


@pytest.mark.asyncio
async def test_filters(users, refs, identity_values):
    role, active = refs
    await users.create(identity_values(role.id, active.id, name="Maria Silva"))
    await users.create(identity_values(role.id, active.id, name="João Souza"))

    page = await users.find_all(filters=IdentityFilter(name="silva"))

    assert [r.name for r in page.data] == ["Maria Silva"]
    assert (await users.find_all(filters=IdentityFilter(role_id=role.id))).total == 2


@pytest.mark.asyncio
async def test_lockout_counter(users, refs, identity_values):
    role, active = refs
    record = await users.create(identity_values(role.id, active.id))

    await users.increment_failed_attempts(record.id)
    counted = await users.increment_failed_attempts(record.id)
    assert counted.failed_attempts == 2

    logged = await users.register_successful_login(record.id)
    assert logged.failed_attempts == 0
    assert logged.last_login_at is not None

    await users.increment_failed_attempts(record.id)
    assert (await users.reset_failed_attempts(record.id)).failed_attempts == 0


class TestReferenceGuard:
    @pytest.mark.asyncio
    async def test_role_in_use_cannot_be_deleted(
        self, roles, identities, refs, identity_values
    ):
        role, active = refs
        values = identity_values(role.id, active.id, address="Rua A, 123")
        admin = await identities[UserSource.ADMIN].create(values)

        with pytest.raises(ConflictError, match="perfil está sendo utilizado"):
            await roles.delete(role.id)

        await identities[UserSource.ADMIN].delete(admin.id)
        deleted = await roles.delete(role.id)
        assert deleted.id == role.id

    @pytest.mark.asyncio
    async def test_status_in_use_cannot_be_deleted(
        self, statuses, users, refs, identity_values
    ):
        role, active = refs
        await users.create(identity_values(role.id, active.id))

        with pytest.raises(ConflictError, match="status está sendo utilizado"):
            await statuses.delete(active.id)

    @pytest.mark.asyncio
    async def test_unused_role_deleted(self, roles, identities):
        role = await roles.create({"name": "Temporário", "level": 5})

        await roles.delete(role.id)

        assert await roles.find_by_id(role.id) is None
