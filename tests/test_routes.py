"""
HTTP-level tests for the /auth routes.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from auth.errors import InvalidCredentials, StoreUnavailable
from auth.store import InMemoryCredentialStore
from config.settings import Settings
from main import create_app


def _client(store=None) -> TestClient:
    settings = Settings(bcrypt_rounds=4, jwt_secret="test-secret")
    return TestClient(create_app(store=store or InMemoryCredentialStore(), settings=settings))


class TestAuthRoutes:
    def test_full_scenario(self):
        with _client() as client:
            resp = client.post(
                "/auth/register",
                json={"username": "testuser123", "password": "password123"},
            )
            assert resp.status_code == 201
            user = resp.json()["user"]
            assert user["username"] == "testuser123"
            assert user["id"] == 1
            assert "password_hash" not in user
            assert "password" not in user

            resp = client.post(
                "/auth/login",
                json={"username": "testuser123", "password": "password123"},
            )
            assert resp.status_code == 200
            body = resp.json()
            assert body["user"]["username"] == "testuser123"
            assert body["token_type"] == "bearer"
            assert body["expires_in"] == 3600
            token = body["access_token"]
            assert isinstance(token, str) and token.count(".") == 2

            resp = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
            assert resp.status_code == 200
            assert resp.json() == {"id": "1", "username": "testuser123"}

            resp = client.post(
                "/auth/login",
                json={"username": "testuser123", "password": "wrong"},
            )
            assert resp.status_code == 401

            resp = client.post(
                "/auth/register",
                json={"username": "testuser123", "password": "password123"},
            )
            assert resp.status_code == 409

    def test_unknown_user_and_wrong_password_look_the_same(self):
        with _client() as client:
            client.post("/auth/register", json={"username": "alice", "password": "secret99"})
            wrong = client.post("/auth/login", json={"username": "alice", "password": "nope"})
            unknown = client.post("/auth/login", json={"username": "ghost", "password": "nope"})
            assert wrong.status_code == unknown.status_code == 401
            assert wrong.json() == unknown.json()

    @pytest.mark.parametrize(
        "payload",
        [
            {"username": "ab", "password": "password123"},
            {"username": "a" * 21, "password": "password123"},
            {"username": "alice", "password": "12345"},
            {"username": "alice", "password": "p" * 51},
            {"username": "alice"},
        ],
    )
    def test_register_validation(self, payload):
        with _client() as client:
            assert client.post("/auth/register", json=payload).status_code == 422

    def test_login_requires_non_empty_fields(self):
        with _client() as client:
            resp = client.post("/auth/login", json={"username": "", "password": ""})
            assert resp.status_code == 422

    def test_list_users(self):
        with _client() as client:
            for name in ("alice", "bob"):
                client.post("/auth/register", json={"username": name, "password": "secret99"})
            body = client.get("/auth/users").json()
            assert body["total"] == 2
            assert [u["username"] for u in body["users"]] == ["alice", "bob"]
            assert all("password_hash" not in u for u in body["users"])

    def test_me_rejects_bad_token(self):
        with _client() as client:
            resp = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
            assert resp.status_code == 401

    def test_process_time_header(self):
        with _client() as client:
            assert "X-Process-Time" in client.get("/auth/ping").headers


class TestStatusRoutes:
    def test_status_and_ping(self):
        with _client() as client:
            assert client.get("/auth/status").json()["version"] == "1.0.0"
            assert client.get("/auth/ping").json()["message"] == "pong"

    def test_database_status_stats_health(self):
        with _client() as client:
            client.post("/auth/register", json={"username": "alice", "password": "secret99"})

            db = client.get("/auth/database/status").json()["database"]
            assert db["connected"] is True
            assert db["total_users"] == 1

            stats = client.get("/auth/stats").json()["statistics"]
            assert stats["users_registered_today"] == 1

            health = client.get("/auth/health").json()
            assert health["status"] == "HEALTHY"


class TestStoreUnavailable:
    def test_store_failure_maps_to_503(self):
        store = InMemoryCredentialStore()
        store.find_by_username = AsyncMock(side_effect=StoreUnavailable())
        store.list_all = AsyncMock(side_effect=StoreUnavailable())

        with _client(store) as client:
            resp = client.post("/auth/login", json={"username": "alice", "password": "secret99"})
            assert resp.status_code == 503
            assert resp.json() == {"detail": StoreUnavailable.message}
            assert client.get("/auth/users").status_code == 503


class _PlainTokenIssuer:
    """Unsigned ``<issuer>:<sub>:<username>`` tokens."""

    def sign(self, payload, expires_in, issuer):
        return f"{issuer}:{payload['sub']}:{payload['username']}"

    def verify(self, token, issuer):
        parts = token.split(":")
        if len(parts) != 3 or parts[0] != issuer:
            raise InvalidCredentials("Invalid or expired token")
        return {"sub": parts[1], "username": parts[2], "iss": parts[0]}


class TestCustomTokenIssuer:
    def _client(self) -> TestClient:
        settings = Settings(bcrypt_rounds=4)
        app = create_app(
            store=InMemoryCredentialStore(),
            settings=settings,
            token_issuer=_PlainTokenIssuer(),
        )
        return TestClient(app)

    def test_login_and_me_use_injected_issuer(self):
        with self._client() as client:
            client.post("/auth/register", json={"username": "alice", "password": "secret99"})
            token = client.post(
                "/auth/login", json={"username": "alice", "password": "secret99"}
            ).json()["access_token"]
            assert token == "sena-auth-service:1:alice"

            resp = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
            assert resp.status_code == 200
            assert resp.json() == {"id": "1", "username": "alice"}

    def test_me_rejects_token_from_other_issuer(self):
        with self._client() as client:
            resp = client.get("/auth/me", headers={"Authorization": "Bearer elsewhere:1:alice"})
            assert resp.status_code == 401
