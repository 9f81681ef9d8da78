"""Tests for API key and login session authentication."""

import pytest
from httpx import AsyncClient

API = "/api/v1"

pytestmark = pytest.mark.asyncio


class TestApiKey:
    async def test_missing_key(self, client: AsyncClient, seed):
        response = await client.get(f"{API}/unit/list")
        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized: no api key"

    async def test_invalid_key(self, client: AsyncClient, seed):
        response = await client.get(f"{API}/unit/list", headers={"X-Auth": "c" * 64})
        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized: invalid api key"

    async def test_valid_key(self, client: AsyncClient, seed):
        response = await client.get(f"{API}/unit/list", headers=seed.headers)
        assert response.status_code == 200


class TestLoginSession:
    async def test_login_returns_user_without_password(self, client: AsyncClient, seed):
        response = await client.post(
            f"{API}/auth/login", json={"email": " Admin@Example.org ", "password": "Correct-Horse-1"}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == seed.admin_id
        assert body["role"] == "admin"
        assert "password" not in body
        assert "dts_session=" in response.headers["set-cookie"]

    async def test_wrong_password(self, client: AsyncClient, seed):
        response = await client.post(f"{API}/auth/login", json={"email": "admin@example.org", "password": "nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    async def test_me(self, client: AsyncClient, seed, login_headers):
        response = await client.get(f"{API}/auth/me", headers=login_headers)
        assert response.status_code == 200
        assert response.json()["email"] == "admin@example.org"

    async def test_me_requires_login(self, client: AsyncClient, seed):
        response = await client.get(f"{API}/auth/me")
        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized: not logged in"

    async def test_logout_ends_the_session(self, client: AsyncClient, seed, login_headers):
        response = await client.post(f"{API}/auth/logout", headers=login_headers)
        assert response.status_code == 204

        response = await client.get(f"{API}/auth/me", headers=login_headers)
        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized: session expired"

    async def test_session_cookie_reaches_data_routes(self, client: AsyncClient, seed, login_headers):
        response = await client.get(f"{API}/unit/list", headers=login_headers)
        assert response.status_code == 200

    async def test_api_key_wins_over_cookie(self, client: AsyncClient, seed, login_headers):
        response = await client.get(f"{API}/unit/list", headers={**login_headers, "X-Auth": "c" * 64})
        assert response.status_code == 401
