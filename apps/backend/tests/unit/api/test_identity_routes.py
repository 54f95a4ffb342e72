"""
Name: Identity Routes Tests

Responsibilities:
  - Bearer auth on reads, level checks on writes (50 / 100, admin variant 100)
  - Lookups by email / cpf / telefone
  - Public payload never exposes credential_hash
  - Conflicts, bad references and empty updates
"""

from uuid import uuid4

import pytest

pytestmark = pytest.mark.unit


class TestAccess:
    def test_reads_require_token(self, client, reference_data):
        missing = client.get("/api/users")
        malformed = client.get("/api/users", headers={"Authorization": "Token abc"})
        invalid = client.get("/api/users", headers={"Authorization": "Bearer abc"})

        assert missing.status_code == 401
        assert missing.json()["message"] == "Token não fornecido"
        assert malformed.json()["message"] == "Formato de token inválido"
        assert invalid.json()["message"] == "Token inválido ou expirado"

    def test_manager_can_write_users_but_not_admins(
        self, client, make_user, login_as, user_body
    ):
        headers = login_as(make_user(role="manager_role"))

        created = client.post("/api/users", json=user_body("operator_role"), headers=headers)
        admin_attempt = client.post(
            "/api/users-admin",
            json=user_body("admin_role", address="Rua A, 123"),
            headers=headers,
        )

        assert created.status_code == 201
        assert admin_attempt.status_code == 403
        assert admin_attempt.json()["message"] == "Acesso negado. Nível mínimo requerido: 100"

    def test_operator_cannot_write(self, client, make_user, login_as, user_body):
        headers = login_as(make_user(role="operator_role"))

        res = client.post("/api/users", json=user_body(), headers=headers)

        assert res.status_code == 403
        assert res.json()["type"] == "AUTHORIZATION_ERROR"
        assert res.json()["message"] == "Acesso negado. Nível mínimo requerido: 50"

    def test_delete_requires_admin(self, client, make_user, login_as):
        target = make_user(role="operator_role")
        manager_headers = login_as(make_user(role="manager_role"))
        admin_headers = login_as(make_user(role="admin_role"))

        denied = client.delete(f"/api/users/{target['id']}", headers=manager_headers)
        deleted = client.delete(f"/api/users/{target['id']}", headers=admin_headers)
        gone = client.get(f"/api/users/{target['id']}", headers=admin_headers)

        assert denied.status_code == 403
        assert deleted.status_code == 204
        assert gone.status_code == 404
        assert gone.json()["message"] == "Usuário não encontrado"

    def test_api_key_routes(self, client, api_key_headers, make_user):
        user = make_user(role="operator_role")

        no_key = client.put(f"/api/users/api-key/{user['id']}", json={"city": "Campinas"})
        updated = client.put(
            f"/api/users/api-key/{user['id']}",
            json={"city": "Campinas"},
            headers=api_key_headers,
        )
        deleted = client.delete(f"/api/users/api-key/{user['id']}", headers=api_key_headers)

        assert no_key.status_code == 401
        assert no_key.json()["message"] == "API Key inválida"
        assert updated.json()["data"]["city"] == "Campinas"
        assert deleted.status_code == 204


class TestReads:
    @pytest.fixture
    def admin_headers(self, make_user, login_as):
        return login_as(make_user(role="admin_role"))

    def test_lookups(self, client, make_user, admin_headers):
        user = make_user(role="operator_role")

        by_email = client.get(f"/api/users/email/{user['email'].upper()}", headers=admin_headers)
        by_cpf = client.get(f"/api/users/cpf/{user['cpf']}", headers=admin_headers)
        by_phone = client.get(f"/api/users/telefone/{user['phone']}", headers=admin_headers)
        missing = client.get("/api/users/cpf/00000000000", headers=admin_headers)

        assert {r.json()["data"]["id"] for r in (by_email, by_cpf, by_phone)} == {user["id"]}
        assert missing.status_code == 404

    def test_lookups_accept_formatted_cpf_and_phone(self, client, make_user, admin_headers):
        user = make_user(role="operator_role")
        cpf, phone = user["cpf"], user["phone"]

        by_cpf = client.get(
            f"/api/users/cpf/{cpf[:3]}.{cpf[3:6]}.{cpf[6:9]}-{cpf[9:]}", headers=admin_headers
        )
        listed = client.get(
            "/api/users",
            params={"phone": f"({phone[:2]}) {phone[2:7]}-{phone[7:]}"},
            headers=admin_headers,
        )

        assert by_cpf.json()["data"]["id"] == user["id"]
        assert [item["id"] for item in listed.json()["data"]["data"]] == [user["id"]]

    def test_list_paginates_without_credentials(self, client, make_user, admin_headers):
        for _ in range(2):
            make_user(role="operator_role")

        res = client.get("/api/users", params={"page": 1, "limit": 2}, headers=admin_headers)

        page = res.json()["data"]
        assert res.status_code == 200
        assert page["total"] == 3
        assert page["totalPages"] == 2
        assert len(page["data"]) == 2
        assert all("credential_hash" not in item for item in page["data"])

    def test_list_filters(self, client, make_user, admin_headers, reference_data):
        make_user(role="operator_role", city="Recife", state="PE")

        res = client.get(
            "/api/users",
            params={"city": "reci", "role_id": reference_data["operator_role"]},
            headers=admin_headers,
        )

        assert [item["city"] for item in res.json()["data"]["data"]] == ["Recife"]

    def test_limit_is_capped(self, client, admin_headers):
        res = client.get("/api/users", params={"limit": 1000}, headers=admin_headers)

        assert res.status_code == 400

    def test_bad_uuid(self, client, admin_headers):
        res = client.get("/api/users/not-a-uuid", headers=admin_headers)

        assert res.status_code == 400
        assert res.json()["type"] == "VALIDATION_ERROR"

    def test_unknown_id(self, client, admin_headers):
        res = client.get(f"/api/users-affiliate/{uuid4()}", headers=admin_headers)

        assert res.status_code == 404
        assert res.json()["message"] == "Usuário afiliado não encontrado"


class TestWrites:
    @pytest.fixture
    def admin_headers(self, make_user, login_as):
        return login_as(make_user(role="admin_role"))

    def test_duplicate_unique_field(self, client, make_user, admin_headers, user_body):
        existing = make_user(role="operator_role")

        res = client.post(
            "/api/users", json=user_body(email=existing["email"]), headers=admin_headers
        )

        assert res.status_code == 409
        assert res.json()["message"] == (
            f"Já existe um registro com este email: {existing['email']}"
        )

    def test_duplicate_phone_uses_label(self, client, make_user, admin_headers, user_body):
        existing = make_user(role="operator_role")

        res = client.post(
            "/api/users", json=user_body(phone=existing["phone"]), headers=admin_headers
        )

        assert res.status_code == 409
        assert "telefone" in res.json()["message"]

    def test_cpf_and_phone_are_stored_as_digits(
        self, client, make_user, admin_headers, user_body
    ):
        body = user_body(cpf="987.654.321-00", phone="(21) 98765-4321")

        created = client.post("/api/users", json=body, headers=admin_headers)
        duplicate = client.post(
            "/api/users", json=user_body(cpf="98765432100"), headers=admin_headers
        )

        assert created.status_code == 201
        assert created.json()["data"]["cpf"] == "98765432100"
        assert created.json()["data"]["phone"] == "21987654321"
        assert duplicate.status_code == 409
        assert duplicate.json()["message"] == "Já existe um registro com este cpf: 98765432100"

    def test_unknown_role_reference(self, client, admin_headers, user_body):
        body = {**user_body(), "role_id": str(uuid4())}

        res = client.post("/api/users", json=body, headers=admin_headers)

        assert res.status_code == 400
        assert res.json()["message"] == "Perfil (role) não encontrado"

    def test_invalid_email_and_cpf(self, client, admin_headers, user_body):
        res = client.post(
            "/api/users",
            json=user_body(email="sem-arroba", cpf="123"),
            headers=admin_headers,
        )

        assert res.status_code == 400
        assert {d["path"] for d in res.json()["details"]} == {"email", "cpf"}

    def test_empty_update(self, client, make_user, admin_headers):
        user = make_user(role="operator_role")

        res = client.put(f"/api/users/{user['id']}", json={}, headers=admin_headers)

        assert res.status_code == 400
        assert "É necessário fornecer pelo menos um campo" in res.json()["details"][0]["message"]

    def test_update_password_allows_new_login(self, client, make_user, admin_headers):
        user = make_user(role="operator_role")

        res = client.put(
            f"/api/users/{user['id']}", json={"password": "nova-senha"}, headers=admin_headers
        )
        login = client.post(
            "/api/auth/login", json={"email": user["email"], "password": "nova-senha"}
        )

        assert res.status_code == 200
        assert "credential_hash" not in res.json()["data"]
        assert login.status_code == 200

    def test_phone_variant_uses_pin(self, client, admin_headers, user_body):
        body = {**user_body("operator_role", address="Rua B, 45"), "pin": "12ab"}
        body.pop("password")

        invalid = client.post("/api/users-phone", json=body, headers=admin_headers)
        valid = client.post(
            "/api/users-phone", json={**body, "pin": "123456"}, headers=admin_headers
        )

        assert invalid.status_code == 400
        assert valid.status_code == 201
        assert valid.json()["data"]["source"] == "phone"

    def test_admin_variant_requires_address(self, client, admin_headers, user_body):
        res = client.post("/api/users-admin", json=user_body(), headers=admin_headers)

        assert res.status_code == 400
        assert res.json()["details"][0]["path"] == "address"
