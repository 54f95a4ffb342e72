"""
Name: AuthService Tests

Responsibilities:
  - Login per variant (email / cpf / phone + PIN)
  - Same message for unknown identifier and wrong secret
  - Inactive status and lockout after 5 failures
  - Successful login resets the counter and records last_login_at
  - Refresh issues a new access token (no rotation)
"""

import pytest
import pytest_asyncio

from infinitynet.application.auth_service import (
    INACTIVE_USER_MESSAGE,
    INVALID_CREDENTIALS_MESSAGE,
    INVALID_REFRESH_MESSAGE,
    INVALID_SOURCE_MESSAGE,
    LOCKED_ACCOUNT_MESSAGE,
    MAX_FAILED_ATTEMPTS,
    USER_NOT_FOUND_MESSAGE,
    AuthService,
)
from infinitynet.crosscutting.exceptions import AuthenticationError
from infinitynet.domain.entities import UserSource
from infinitynet.identity.tokens import RefreshClaims, TokenCodec

pytestmark = pytest.mark.unit

SECRET = "auth-service-secret-with-enough-length"


@pytest.fixture
def tokens() -> TokenCodec:
    return TokenCodec(SECRET, access_ttl_seconds=300, refresh_ttl_seconds=3600)


@pytest.fixture
def auth(identities, roles, statuses, tokens, fast_hasher) -> AuthService:
    return AuthService(
        identities, roles=roles, statuses=statuses, tokens=tokens, hasher=fast_hasher
    )


@pytest_asyncio.fixture
async def refs(roles, statuses):
    role = await roles.create({"name": "Gerente", "level": 50})
    active = await statuses.create({"name": "Ativo"})
    inactive = await statuses.create({"name": "Inativo"})
    return {"role": role, "active": active, "inactive": inactive}


@pytest_asyncio.fixture
async def user(users, refs, identity_values):
    values = identity_values(refs["role"].id, refs["active"].id)
    return await users.create(values)


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_by_email(self, auth, user, tokens):
        result = await auth.login_user(user.email, "senha123")

        claims = tokens.verify_access(result.token)
        assert claims.sub == str(user.id)
        assert claims.source == "user"
        assert claims.role.level == 50
        assert tokens.verify_refresh(result.refresh_token).source == "user"

        body = result.to_dict()
        assert set(body) == {"user", "token", "refreshToken"}
        assert body["user"]["role"]["name"] == "Gerente"

    @pytest.mark.asyncio
    async def test_login_admin_by_cpf_and_phone_by_pin(
        self, auth, identities, refs, identity_values
    ):
        values = identity_values(
            refs["role"].id, refs["active"].id, address="Rua A, 123"
        )
        await identities[UserSource.ADMIN].create(values)
        await identities[UserSource.PHONE].create({**values, "secret": "1234"})

        admin = await auth.login_admin(values["cpf"], "senha123")
        phone = await auth.login_phone(values["phone"], "1234")

        assert admin.user.source is UserSource.ADMIN
        assert phone.user.source is UserSource.PHONE

    @pytest.mark.asyncio
    async def test_unknown_identifier_and_wrong_secret_same_message(self, auth, user):
        with pytest.raises(AuthenticationError, match=f"^{INVALID_CREDENTIALS_MESSAGE}$"):
            await auth.login_user("ninguem@exemplo.com", "senha123")
        with pytest.raises(AuthenticationError, match=f"^{INVALID_CREDENTIALS_MESSAGE}$"):
            await auth.login_user(user.email, "errada")

    @pytest.mark.asyncio
    async def test_variants_are_isolated(self, auth, user):
        with pytest.raises(AuthenticationError, match=INVALID_CREDENTIALS_MESSAGE):
            await auth.login_affiliate(user.cpf, "senha123")

    @pytest.mark.asyncio
    async def test_inactive_user_rejected(self, auth, users, refs, user):
        await users.update(user.id, {"status_id": refs["inactive"].id})

        with pytest.raises(AuthenticationError, match=INACTIVE_USER_MESSAGE):
            await auth.login_user(user.email, "senha123")

    @pytest.mark.asyncio
    async def test_any_status_other_than_active_is_rejected(
        self, auth, users, statuses, user
    ):
        suspended = await statuses.create({"name": "Suspenso"})
        await users.update(user.id, {"status_id": suspended.id})

        assert suspended.is_active_marker is False
        with pytest.raises(AuthenticationError, match=INACTIVE_USER_MESSAGE):
            await auth.login_user(user.email, "senha123")


class TestLockout:
    @pytest.mark.asyncio
    async def test_wrong_secret_increments_counter(self, auth, users, user):
        with pytest.raises(AuthenticationError):
            await auth.login_user(user.email, "errada")

        assert (await users.find_by_id(user.id)).failed_attempts == 1

    @pytest.mark.asyncio
    async def test_locked_after_max_failures_even_with_correct_secret(
        self, auth, users, user
    ):
        for _ in range(MAX_FAILED_ATTEMPTS):
            with pytest.raises(AuthenticationError, match=INVALID_CREDENTIALS_MESSAGE):
                await auth.login_user(user.email, "errada")

        with pytest.raises(AuthenticationError, match="Conta bloqueada"):
            await auth.login_user(user.email, "senha123")

        record = await users.find_by_id(user.id)
        assert record.failed_attempts == MAX_FAILED_ATTEMPTS
        assert LOCKED_ACCOUNT_MESSAGE.startswith("Conta bloqueada")

    @pytest.mark.asyncio
    async def test_success_resets_counter_and_records_login(self, auth, users, user):
        for _ in range(MAX_FAILED_ATTEMPTS - 1):
            with pytest.raises(AuthenticationError):
                await auth.login_user(user.email, "errada")

        result = await auth.login_user(user.email, "senha123")

        assert result.user.failed_attempts == 0
        assert result.user.last_login_at is not None
        assert (await users.find_by_id(user.id)).failed_attempts == 0

    @pytest.mark.asyncio
    async def test_unlock_allows_login_again(self, auth, users, user):
        for _ in range(MAX_FAILED_ATTEMPTS):
            with pytest.raises(AuthenticationError):
                await auth.login_user(user.email, "errada")

        await users.reset_failed_attempts(user.id)

        assert (await auth.login_user(user.email, "senha123")).token


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_issues_new_access_token(self, auth, user, tokens):
        login = await auth.login_user(user.email, "senha123")

        refreshed = await auth.refresh(login.refresh_token)

        assert set(refreshed) == {"token"}
        assert tokens.verify_access(refreshed["token"]).sub == str(user.id)

    @pytest.mark.asyncio
    async def test_invalid_refresh_token(self, auth):
        with pytest.raises(AuthenticationError, match=INVALID_REFRESH_MESSAGE):
            await auth.refresh("garbage")

    @pytest.mark.asyncio
    async def test_access_token_cannot_refresh(self, auth, user):
        login = await auth.login_user(user.email, "senha123")
        with pytest.raises(AuthenticationError, match=INVALID_REFRESH_MESSAGE):
            await auth.refresh(login.token)

    @pytest.mark.asyncio
    async def test_unknown_source(self, auth, tokens, user):
        token = tokens.issue_refresh(RefreshClaims(sub=str(user.id), source="robot"))
        with pytest.raises(AuthenticationError, match=INVALID_SOURCE_MESSAGE):
            await auth.refresh(token)

    @pytest.mark.asyncio
    async def test_deleted_user(self, auth, users, user):
        login = await auth.login_user(user.email, "senha123")
        await users.delete(user.id)

        with pytest.raises(AuthenticationError, match=USER_NOT_FOUND_MESSAGE):
            await auth.refresh(login.refresh_token)

    @pytest.mark.asyncio
    async def test_inactive_user(self, auth, users, refs, user):
        login = await auth.login_user(user.email, "senha123")
        await users.update(user.id, {"status_id": refs["inactive"].id})

        with pytest.raises(AuthenticationError, match=INACTIVE_USER_MESSAGE):
            await auth.refresh(login.refresh_token)
