"""
Name: Roles / Status Routes Tests

Responsibilities:
  - Public reads, X-API-Key on writes
  - Unique names -> 409
  - Delete guard while users reference the record
"""

from uuid import uuid4

import pytest

pytestmark = pytest.mark.unit


def test_reads_are_public(client, reference_data):
    roles = client.get("/api/roles")
    role = client.get(f"/api/roles/{reference_data['manager_role']}")
    statuses = client.get("/api/status", params={"name": "ativ"})

    assert roles.status_code == 200
    assert roles.json()["data"]["total"] == 3
    assert role.json()["data"]["level"] == 50
    assert {s["name"] for s in statuses.json()["data"]["data"]} == {"Ativo", "Inativo"}


def test_writes_require_api_key(client):
    missing = client.post("/api/roles", json={"name": "Gerente", "level": 50})
    wrong = client.post(
        "/api/status", json={"name": "Ativo"}, headers={"X-API-Key": "errada"}
    )

    assert missing.status_code == 401
    assert missing.json()["message"] == "API Key inválida"
    assert wrong.status_code == 401


def test_duplicate_names(client, api_key_headers, reference_data):
    role = client.post(
        "/api/roles", json={"name": "Gerente", "level": 40}, headers=api_key_headers
    )
    status = client.post("/api/status", json={"name": "Ativo"}, headers=api_key_headers)

    assert role.status_code == 409
    assert role.json()["message"] == "Já existe um perfil com este nome"
    assert status.status_code == 409
    assert status.json()["message"] == "Já existe um status com este nome"


def test_update_and_empty_update(client, api_key_headers, reference_data):
    url = f"/api/roles/{reference_data['operator_role']}"

    updated = client.put(url, json={"level": 20}, headers=api_key_headers)
    empty = client.put(url, json={}, headers=api_key_headers)

    assert updated.status_code == 200
    assert updated.json()["data"]["level"] == 20
    assert empty.status_code == 400


def test_missing_role(client):
    res = client.get(f"/api/roles/{uuid4()}")

    assert res.status_code == 404
    assert res.json()["message"] == "Perfil não encontrado"


def test_role_in_use_cannot_be_deleted(client, api_key_headers, make_user, reference_data):
    user = make_user(role="operator_role")
    url = f"/api/roles/{reference_data['operator_role']}"

    blocked = client.delete(url, headers=api_key_headers)
    client.delete(f"/api/users/api-key/{user['id']}", headers=api_key_headers)
    deleted = client.delete(url, headers=api_key_headers)

    assert blocked.status_code == 409
    assert blocked.json()["message"] == (
        "Este perfil está sendo utilizado por usuários e não pode ser excluído"
    )
    assert deleted.status_code == 204
    assert client.get(url).status_code == 404


def test_status_in_use_cannot_be_deleted(client, api_key_headers, make_user, reference_data):
    make_user(status="inactive")

    res = client.delete(f"/api/status/{reference_data['inactive']}", headers=api_key_headers)

    assert res.status_code == 409
    assert "sendo utilizado" in res.json()["message"]
