"""
Integration tests for authentication flow.

Tests:
- Sign-up (success, duplicate, validation)
- Sign-in (success and failure) and lazy profile creation
- Protected endpoint access (with/without token)
- Sign-out and password reset
- Error response shape
"""

import pytest
from httpx import AsyncClient

from cutroom.services import AccessLayer
from cutroom.store import StoreError

from conftest import ADMIN_EMAIL, PASSWORD, emailed_token, register


class TestSignUp:
    """Tests for the sign-up endpoint."""

    @pytest.mark.asyncio
    async def test_sign_up_success(self, async_client: AsyncClient):
        """Test successful sign-up returns a session and the profile."""
        response = await async_client.post(
            "/api/auth/sign-up",
            json={
                "email": "New.User@Example.com",
                "password": PASSWORD,
                "full_name": "New User",
                "role": "editor",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["confirmation_required"] is False
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["email"] == "new.user@example.com"
        assert data["user"]["role"] == "editor"
        assert data["user"]["full_name"] == "New User"
        # Password should never be returned
        assert "password" not in data
        assert "password_hash" not in data["user"]

    @pytest.mark.asyncio
    async def test_sign_up_duplicate_email(self, async_client: AsyncClient, api_users: dict):
        response = await async_client.post(
            "/api/auth/sign-up",
            json={"email": "client@example.com", "password": PASSWORD, "full_name": "Again"},
        )

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "validation_error"
        assert "already exists" in detail["message"]

    @pytest.mark.asyncio
    async def test_admin_role_not_selectable(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/auth/sign-up",
            json={"email": "x@example.com", "password": PASSWORD, "full_name": "X", "role": "admin"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_admin_email_gets_admin_role(self, async_client: AsyncClient):
        user = await register(async_client, ADMIN_EMAIL, "Ken Admin")
        assert user["user"]["role"] == "admin"

    @pytest.mark.parametrize("payload", [
        {"email": "not-an-email", "password": PASSWORD, "full_name": "X"},
        {"email": "x@example.com", "password": "short", "full_name": "X"},
        {"email": "x@example.com", "password": PASSWORD, "full_name": "   "},
        {"password": PASSWORD, "full_name": "X"},
    ])
    @pytest.mark.asyncio
    async def test_sign_up_validation(self, async_client: AsyncClient, payload: dict):
        response = await async_client.post("/api/auth/sign-up", json=payload)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_confirmation_required(self, async_client: AsyncClient, memory_access: AccessLayer):
        memory_access.store.require_email_confirmation = True

        response = await async_client.post(
            "/api/auth/sign-up",
            json={"email": "c@example.com", "password": PASSWORD, "full_name": "Carol"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["confirmation_required"] is True
        assert data["access_token"] is None
        assert data["user"] is None

        response = await async_client.post(
            "/api/auth/sign-in", json={"email": "c@example.com", "password": PASSWORD}
        )
        assert response.status_code == 401
        assert response.json()["detail"]["reason"] == "email_not_confirmed"


class TestSignIn:
    @pytest.mark.asyncio
    async def test_sign_in_success(self, async_client: AsyncClient, api_users: dict):
        response = await async_client.post(
            "/api/auth/sign-in",
            json={"email": "editor@example.com", "password": PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["access_token"]
        assert data["user"]["id"] == api_users["editor"]["user"]["id"]

    @pytest.mark.asyncio
    async def test_sign_in_creates_missing_profile(self, async_client: AsyncClient, memory_access: AccessLayer):
        """An identity without a profile gets one on first sign-in."""
        memory_access.store.add_user("legacy@example.com", PASSWORD, {"full_name": "Legacy User"})

        response = await async_client.post(
            "/api/auth/sign-in",
            json={"email": "legacy@example.com", "password": PASSWORD},
        )

        assert response.status_code == 200
        assert response.json()["user"]["full_name"] == "Legacy User"
        assert response.json()["user"]["role"] == "client"

    @pytest.mark.asyncio
    async def test_sign_in_wrong_password(self, async_client: AsyncClient, api_users: dict):
        response = await async_client.post(
            "/api/auth/sign-in",
            json={"email": "editor@example.com", "password": "WrongPassword!"},
        )

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["detail"]["error"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_sign_in_unknown_user(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/auth/sign-in",
            json={"email": "ghost@example.com", "password": PASSWORD},
        )
        assert response.status_code == 401


class TestProtectedEndpoints:
    @pytest.mark.asyncio
    async def test_me(self, async_client: AsyncClient, api_users: dict):
        response = await async_client.get("/api/auth/me", headers=api_users["client"]["headers"])

        assert response.status_code == 200
        assert response.json()["email"] == "client@example.com"

    @pytest.mark.asyncio
    async def test_missing_token(self, async_client: AsyncClient):
        response = await async_client.get("/api/projects")

        assert response.status_code == 401
        assert response.json()["detail"]["error"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_invalid_token(self, async_client: AsyncClient):
        response = await async_client.get(
            "/api/auth/me", headers={"Authorization": "Bearer invalid-token"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_sign_out_ends_session(self, async_client: AsyncClient, api_users: dict):
        headers = api_users["editor"]["headers"]

        response = await async_client.post("/api/auth/sign-out", headers=headers)
        assert response.status_code == 200

        response = await async_client.get("/api/auth/me", headers=headers)
        assert response.status_code == 401


class TestPasswordReset:
    @pytest.mark.asyncio
    async def test_reset_unknown_email_is_silent(self, async_client: AsyncClient):
        """The response does not reveal whether an account exists."""
        response = await async_client.post("/api/auth/reset-password", json={"email": "ghost@example.com"})
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_update_password(self, async_client: AsyncClient, api_users: dict, caplog):
        with caplog.at_level("INFO"):
            response = await async_client.post("/api/auth/reset-password", json={"email": "client@example.com"})
        assert response.status_code == 200
        token = emailed_token(caplog.text)

        response = await async_client.post(
            "/api/auth/update-password",
            json={"token": token, "password": "AnotherPassword456!"},
        )
        assert response.status_code == 200

        response = await async_client.post(
            "/api/auth/sign-in",
            json={"email": "client@example.com", "password": "AnotherPassword456!"},
        )
        assert response.status_code == 200

        # Old sessions ended with the reset
        response = await async_client.get("/api/auth/me", headers=api_users["client"]["headers"])
        assert response.status_code == 401

        # The link cannot be used a second time
        response = await async_client.post(
            "/api/auth/update-password",
            json={"token": token, "password": "ThirdPassword789!"},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_password_bad_token(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/auth/update-password",
            json={"token": "garbage", "password": "AnotherPassword456!"},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["field"] == "token"


class TestServiceEndpoints:
    @pytest.mark.asyncio
    async def test_root(self, async_client: AsyncClient):
        response = await async_client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"

    @pytest.mark.asyncio
    async def test_health(self, async_client: AsyncClient):
        response = await async_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"]["data_store"]["status"] == "healthy"
        assert data["checks"]["redis"]["status"] == "disabled"

    @pytest.mark.asyncio
    async def test_backend_not_initialized(
        self, async_client: AsyncClient, memory_access: AccessLayer, api_users: dict, monkeypatch
    ):
        """A missing schema surfaces as 503 with a setup hint."""
        async def undefined_table(*args, **kwargs):
            raise StoreError("undefined_table", 'relation "projects" does not exist')

        monkeypatch.setattr(memory_access.store, "select", undefined_table)

        response = await async_client.get("/api/auth/me", headers=api_users["client"]["headers"])

        assert response.status_code == 503
        detail = response.json()["detail"]
        assert detail["error"] == "backend_not_initialized"
        assert "setup_hint" in detail
