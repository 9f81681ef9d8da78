"""Tests for user, API key and audit log management."""

import pytest
from httpx import AsyncClient

API = "/api/v1"

pytestmark = pytest.mark.asyncio


class TestUsers:
    async def test_requires_login(self, client: AsyncClient, seed):
        response = await client.get(f"{API}/users", headers=seed.headers)
        assert response.status_code == 401

    async def test_invite_and_list(self, client: AsyncClient, seed, login_headers):
        response = await client.post(
            f"{API}/users",
            json={"email": "Collector@Example.org", "password": "Correct-Horse-2", "role": "data-collector"},
            headers=login_headers,
        )
        assert response.status_code == 201
        assert response.json()["email"] == "collector@example.org"

        response = await client.get(f"{API}/users", headers=login_headers)
        assert [u["email"] for u in response.json()] == ["admin@example.org", "collector@example.org"]

    async def test_weak_password(self, client: AsyncClient, seed, login_headers):
        response = await client.post(
            f"{API}/users", json={"email": "x@example.org", "password": "short"}, headers=login_headers
        )
        assert response.status_code == 400
        assert "errors" in response.json()

    async def test_update_role(self, client: AsyncClient, seed, login_headers):
        created = await client.post(
            f"{API}/users", json={"email": "v@example.org", "password": "Correct-Horse-2"}, headers=login_headers
        )
        user_id = created.json()["id"]

        response = await client.patch(f"{API}/users/{user_id}", json={"role": "data-validator"}, headers=login_headers)

        assert response.status_code == 200
        assert response.json()["role"] == "data-validator"

    async def test_admin_cannot_delete_self(self, client: AsyncClient, seed, login_headers):
        response = await client.delete(f"{API}/users/{seed.admin_id}", headers=login_headers)
        assert response.status_code == 400

    async def test_unknown_user(self, client: AsyncClient, seed, login_headers):
        response = await client.get(f"{API}/users/missing", headers=login_headers)
        assert response.status_code == 404


class TestApiKeys:
    async def test_created_key_authenticates(self, client: AsyncClient, seed, login_headers):
        response = await client.post(f"{API}/api-keys", json={"name": "Import script"}, headers=login_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Import script"
        secret = body["secret"]

        response = await client.get(f"{API}/unit/list", headers={"X-Auth": secret})
        assert response.status_code == 200

        listed = await client.get(f"{API}/api-keys", headers=login_headers)
        assert sorted(k["name"] for k in listed.json()) == ["Import script", "Test key"]
        assert all("secret" not in k for k in listed.json())

    async def test_deleted_key_stops_working(self, client: AsyncClient, seed, login_headers):
        created = await client.post(f"{API}/api-keys", json={"name": "Temp"}, headers=login_headers)
        body = created.json()

        response = await client.delete(f"{API}/api-keys/{body['id']}", headers=login_headers)
        assert response.status_code == 204

        response = await client.get(f"{API}/unit/list", headers={"X-Auth": body["secret"]})
        assert response.status_code == 401


class TestAuditLogs:
    async def test_changes_are_logged(self, client: AsyncClient, seed, login_headers):
        await client.post(f"{API}/unit/add", json=[{"type": "number", "name": "Kg"}], headers=seed.headers)

        response = await client.get(f"{API}/audit-logs", params={"table_name": "unit"}, headers=login_headers)

        assert response.status_code == 200
        assert [entry["action"] for entry in response.json()] == ["create"]
