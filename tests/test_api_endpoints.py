"""Integration tests for API endpoints.

These tests verify API endpoints work correctly end-to-end.
"""

from unittest.mock import patch

from fastapi.testclient import TestClient


class TestCreateUser:
    """Test POST /api/users."""

    def test_create_user(self, test_client, admin_headers, user_payload):
        response = test_client.post("/api/users", json=user_payload, headers=admin_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["id"] == 1
        assert body["username"] == "johndoe"
        assert body["fullName"] == "John Doe"
        assert body["enabled"] is True
        assert body["roles"] == ["USER"]
        assert body["createdAt"] == body["updatedAt"]
        assert response.headers["Location"] == "/api/users/1"

    def test_create_duplicate_username(self, test_client, admin_headers, user_payload):
        test_client.post("/api/users", json=user_payload, headers=admin_headers)
        response = test_client.post(
            "/api/users",
            json={**user_payload, "email": "other@example.com"},
            headers=admin_headers,
        )
        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "USER_ALREADY_EXISTS"
        assert body["message"] == "Username already exists: johndoe"

    def test_create_invalid_body(self, test_client, admin_headers):
        response = test_client.post(
            "/api/users",
            json={"username": "ab", "email": "invalid-email", "firstName": "John", "lastName": "Doe"},
            headers=admin_headers,
        )
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_FAILED"
        assert body["path"] == "/api/users"
        errors = {fe["field"]: fe for fe in body["fieldErrors"]}
        assert errors["username"]["message"] == "Username must be between 3 and 50 characters"
        assert errors["username"]["rejectedValue"] == "ab"
        assert errors["email"]["message"] == "Email should be valid"

    def test_non_admin_cannot_create(self, test_client, alice_headers, user_payload):
        response = test_client.post("/api/users", json=user_payload, headers=alice_headers)
        assert response.status_code == 403
        assert response.json()["code"] == "ACCESS_DENIED"

    def test_non_admin_denied_before_validation(self, test_client, alice_headers):
        response = test_client.post("/api/users", json={"username": "x"}, headers=alice_headers)
        assert response.status_code == 403


class TestGetUser:
    """Test GET /api/users/{id} and /api/users/username/{username}."""

    def test_admin_gets_missing_user(self, test_client, admin_headers):
        response = test_client.get("/api/users/999", headers=admin_headers)
        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "USER_NOT_FOUND"
        assert body["message"] == "User not found with id: 999"
        assert body["status"] == 404
        assert body["path"] == "/api/users/999"
        assert "correlationId" in body
        assert "fieldErrors" not in body

    def test_self_access_allowed(self, test_client, alice_headers, alice_and_bob):
        alice, _ = alice_and_bob
        response = test_client.get(f"/api/users/{alice.id}", headers=alice_headers)
        assert response.status_code == 200
        assert response.json()["username"] == "alice"

    def test_other_user_denied(self, test_client, alice_headers, alice_and_bob):
        _, bob = alice_and_bob
        response = test_client.get(f"/api/users/{bob.id}", headers=alice_headers)
        assert response.status_code == 403

    def test_non_admin_missing_target_denied(self, test_client, alice_headers, alice_and_bob):
        response = test_client.get("/api/users/999", headers=alice_headers)
        assert response.status_code == 403

    def test_by_username(self, test_client, alice_headers, admin_headers, alice_and_bob):
        assert test_client.get("/api/users/username/alice", headers=alice_headers).status_code == 200
        assert test_client.get("/api/users/username/bob", headers=alice_headers).status_code == 403
        missing = test_client.get("/api/users/username/nobody", headers=admin_headers)
        assert missing.status_code == 404
        assert missing.json()["code"] == "USER_NOT_FOUND"

    def test_non_numeric_id(self, test_client, admin_headers):
        response = test_client.get("/api/users/abc", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_FAILED"


class TestUpdateUser:
    """Test PUT /api/users/{id}."""

    def _body(self, user, **overrides):
        body = {
            "username": user.username,
            "email": user.email,
            "firstName": user.first_name,
            "lastName": user.last_name,
            "enabled": user.enabled,
            "roles": [role.value for role in user.roles],
        }
        body.update(overrides)
        return body

    def test_self_update_profile(self, test_client, alice_headers, alice_and_bob):
        alice, _ = alice_and_bob
        response = test_client.put(
            f"/api/users/{alice.id}", json=self._body(alice, lastName="Liddell"), headers=alice_headers
        )
        assert response.status_code == 200
        assert response.json()["fullName"] == "Alice Liddell"

    def test_self_update_overwrites_enabled_and_roles(self, test_client, alice_headers, alice_and_bob):
        alice, _ = alice_and_bob
        response = test_client.put(
            f"/api/users/{alice.id}",
            json=self._body(alice, enabled=False, roles=["ADMIN", "USER"]),
            headers=alice_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["enabled"] is False
        assert body["roles"] == ["ADMIN", "USER"]

    def test_other_user_cannot_update(self, test_client, alice_headers, alice_and_bob):
        _, bob = alice_and_bob
        response = test_client.put(f"/api/users/{bob.id}", json=self._body(bob), headers=alice_headers)
        assert response.status_code == 403

    def test_admin_changes_roles(self, test_client, admin_headers, alice_and_bob):
        alice, _ = alice_and_bob
        response = test_client.put(
            f"/api/users/{alice.id}", json=self._body(alice, roles=["USER", "ADMIN"]), headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["roles"] == ["ADMIN", "USER"]

    def test_update_missing_user(self, test_client, admin_headers, alice_and_bob):
        alice, _ = alice_and_bob
        response = test_client.put("/api/users/999", json=self._body(alice), headers=admin_headers)
        assert response.status_code == 404

    def test_update_to_taken_email(self, test_client, admin_headers, alice_and_bob):
        alice, bob = alice_and_bob
        response = test_client.put(
            f"/api/users/{alice.id}", json=self._body(alice, email=bob.email), headers=admin_headers
        )
        assert response.status_code == 409


class TestDeleteUser:
    """Test DELETE /api/users/{id}."""

    def test_delete_then_delete_again(self, test_client, admin_headers, alice_and_bob):
        alice, _ = alice_and_bob
        first = test_client.delete(f"/api/users/{alice.id}", headers=admin_headers)
        assert first.status_code == 204
        assert first.content == b""
        second = test_client.delete(f"/api/users/{alice.id}", headers=admin_headers)
        assert second.status_code == 404
        assert test_client.get(f"/api/users/{alice.id}", headers=admin_headers).status_code == 404

    def test_non_admin_cannot_delete_self(self, test_client, alice_headers, alice_and_bob):
        alice, _ = alice_and_bob
        assert test_client.delete(f"/api/users/{alice.id}", headers=alice_headers).status_code == 403


class TestListUsers:
    """Test GET /api/users."""

    def test_list_all(self, test_client, admin_headers, alice_and_bob):
        response = test_client.get("/api/users", headers=admin_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["totalElements"] == 2
        assert body["size"] == 20
        assert body["page"] == 0
        assert [u["username"] for u in body["content"]] == ["alice", "bob"]

    def test_size_clamped(self, test_client, admin_headers, alice_and_bob):
        response = test_client.get("/api/users", params={"size": 1000}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["size"] == 100

    def test_search(self, test_client, admin_headers, alice_and_bob):
        response = test_client.get("/api/users", params={"search": "BOB"}, headers=admin_headers)
        assert [u["username"] for u in response.json()["content"]] == ["bob"]

    def test_blank_search_lists_all(self, test_client, admin_headers, alice_and_bob):
        unfiltered = test_client.get("/api/users", headers=admin_headers).json()
        response = test_client.get("/api/users", params={"search": "   "}, headers=admin_headers)
        body = response.json()
        assert body["totalElements"] == unfiltered["totalElements"] == 2
        assert [u["username"] for u in body["content"]] == [u["username"] for u in unfiltered["content"]]

    def test_huge_page_index_is_empty_page(self, test_client, admin_headers, alice_and_bob):
        response = test_client.get("/api/users", params={"page": 10**18}, headers=admin_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["content"] == []
        assert body["empty"] is True
        assert body["last"] is True
        assert body["totalElements"] == 2

    def test_enabled_only_filter(self, test_client, admin_headers, alice_and_bob):
        alice, _ = alice_and_bob
        test_client.put(
            f"/api/users/{alice.id}",
            json={"username": "alice", "email": "alice@example.com", "firstName": "Alice", "lastName": "Doe", "enabled": False},
            headers=admin_headers,
        )
        response = test_client.get("/api/users", params={"enabledOnly": "true"}, headers=admin_headers)
        assert [u["username"] for u in response.json()["content"]] == ["bob"]

    def test_sort_desc(self, test_client, admin_headers, alice_and_bob):
        response = test_client.get(
            "/api/users", params={"sort": "username", "direction": "DESC"}, headers=admin_headers
        )
        assert [u["username"] for u in response.json()["content"]] == ["bob", "alice"]

    def test_role_filter(self, test_client, admin_headers, alice_and_bob):
        response = test_client.get("/api/users", params={"role": "ADMIN"}, headers=admin_headers)
        assert response.json()["totalElements"] == 0

    def test_negative_page(self, test_client, admin_headers):
        response = test_client.get("/api/users", params={"page": -1}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["fieldErrors"][0]["field"] == "page"

    def test_unknown_sort_field(self, test_client, admin_headers):
        response = test_client.get("/api/users", params={"sort": "password"}, headers=admin_headers)
        assert response.status_code == 400

    def test_non_admin_cannot_list(self, test_client, alice_headers):
        assert test_client.get("/api/users", headers=alice_headers).status_code == 403


class TestExistence:
    """Test GET /api/users/exists/..."""

    def test_username_and_email(self, test_client, alice_headers, alice_and_bob):
        assert test_client.get("/api/users/exists/username/bob", headers=alice_headers).json() is True
        assert test_client.get("/api/users/exists/username/zed", headers=alice_headers).json() is False
        assert test_client.get("/api/users/exists/email/bob@example.com", headers=alice_headers).json() is True

    def test_requires_authentication(self, test_client):
        assert test_client.get("/api/users/exists/username/bob").status_code == 401


class TestUnexpectedErrors:
    def test_internal_error_envelope(self, db_session, admin_headers):
        from cloudready.api.app import app
        from cloudready.database.database import get_db

        app.dependency_overrides[get_db] = lambda: db_session
        try:
            with patch(
                "cloudready.services.user_service.UserService.find_by_id",
                side_effect=RuntimeError("boom: secret detail"),
            ):
                with TestClient(app, raise_server_exceptions=False) as client:
                    response = client.get("/api/users/1", headers=admin_headers)
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "INTERNAL_ERROR"
        assert "secret" not in body["message"]
