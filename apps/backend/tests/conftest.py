"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure the test environment (no .env, APP_ENV=test)
  - Provide per-test Settings / Container / FastAPI app / TestClient
  - Provide reference data and identity factories for API tests

Collaborators:
  - pytest: Test framework
  - infinitynet.container.build_container: fresh dependency graph per test
  - infinitynet.api.main.create_app: app factory

Notes:
  - Every app gets its own Container: rate limiter, in-memory stores,
    cache and breakers never leak between tests
  - Argon2 runs with cheap parameters to keep the suite fast
"""

import os
import sys
from pathlib import Path
from typing import Any, Callable
from uuid import uuid4

import pytest
from argon2 import PasswordHasher
from fastapi.testclient import TestClient

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from infinitynet.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from infinitynet.api.main import create_app  # noqa: E402
from infinitynet.container import Container, build_container  # noqa: E402
from infinitynet.crosscutting.config import Settings  # noqa: E402
from infinitynet.identity.passwords import CredentialHasher  # noqa: E402

os.environ.setdefault("APP_ENV", "test")

TEST_API_KEY = "test-api-key"
TEST_JWT_SECRET = "test-secret-with-enough-length-for-hs256"


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Tests against a real PostgreSQL (RUN_INTEGRATION=1)"
    )


# ============================================================================
# Core fixtures
# ============================================================================


@pytest.fixture
def fast_hasher() -> CredentialHasher:
    """R: Argon2 with minimal cost (tests only)."""
    return CredentialHasher(PasswordHasher(time_cost=1, memory_cost=8, parallelism=1))


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    def make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "app_env": "test",
            "database_url": "",
            "redis_url": "",
            "jwt_secret": TEST_JWT_SECRET,
            "api_key": TEST_API_KEY,
            "dev_seed": False,
            "log_json": False,
        }
        values.update(overrides)
        return Settings(**values)

    return make


@pytest.fixture
def settings(settings_factory) -> Settings:
    return settings_factory()


@pytest.fixture
def container(settings: Settings, fast_hasher: CredentialHasher) -> Container:
    return build_container(settings, hasher=fast_hasher)


@pytest.fixture
def app(settings: Settings, container: Container):
    return create_app(settings, container)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def api_key_headers() -> dict[str, str]:
    return {"X-API-Key": TEST_API_KEY}


# ============================================================================
# Data fixtures (through the HTTP API)
# ============================================================================


@pytest.fixture
def reference_data(client: TestClient, api_key_headers) -> dict[str, str]:
    """R: Creates statuses Ativo/Inativo and roles of level 100 / 50 / 10."""
    ids: dict[str, str] = {}
    for key, name in (("active", "Ativo"), ("inactive", "Inativo")):
        res = client.post("/api/status", json={"name": name}, headers=api_key_headers)
        assert res.status_code == 201, res.text
        ids[key] = res.json()["data"]["id"]

    for key, name, level in (
        ("admin_role", "Administrador", 100),
        ("manager_role", "Gerente", 50),
        ("operator_role", "Operador", 10),
    ):
        res = client.post(
            "/api/roles", json={"name": name, "level": level}, headers=api_key_headers
        )
        assert res.status_code == 201, res.text
        ids[key] = res.json()["data"]["id"]
    return ids


def user_payload(role_id: str, status_id: str, **overrides: Any) -> dict[str, Any]:
    """R: Valid body for POST /api/users (unique fields randomized)."""
    suffix = uuid4().int % 10**8
    payload: dict[str, Any] = {
        "name": "Maria Silva",
        "email": f"maria{suffix}@exemplo.com",
        "phone": f"119{suffix:08d}",
        "cpf": f"123{suffix:08d}",
        "city": "São Paulo",
        "state": "SP",
        "password": "senha123",
        "role_id": role_id,
        "status_id": status_id,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def user_body(reference_data) -> Callable[..., dict[str, Any]]:
    """R: Body builder bound to the reference_data ids."""

    def make(role: str = "admin_role", status: str = "active", **overrides: Any):
        return user_payload(reference_data[role], reference_data[status], **overrides)

    return make


@pytest.fixture
def make_user(client: TestClient, api_key_headers, reference_data):
    """R: Creates a generic user via the legacy X-API-Key route."""

    def make(role: str = "admin_role", status: str = "active", **overrides: Any):
        body = user_payload(reference_data[role], reference_data[status], **overrides)
        res = client.post("/api/users/api-key", json=body, headers=api_key_headers)
        assert res.status_code == 201, res.text
        return {**res.json()["data"], "password": body["password"]}

    return make


@pytest.fixture
def login_as(client: TestClient):
    """R: Logs in a generic user and returns Authorization headers."""

    def login(user: dict[str, Any]) -> dict[str, str]:
        res = client.post(
            "/api/auth/login",
            json={"email": user["email"], "password": user["password"]},
        )
        assert res.status_code == 200, res.text
        return {"Authorization": f"Bearer {res.json()['data']['token']}"}

    return login
