from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from disaster_tracking import __version__
from disaster_tracking.core.database import get_session
from disaster_tracking.server.main import app

# Mark all tests in this module as async
pytestmark = pytest.mark.asyncio


async def test_health_check(client: AsyncClient):
    response = await client.get("http://localhost/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_health_needs_no_api_key(client: AsyncClient):
    response = await client.get("http://localhost/health", headers={"X-Auth": "not-a-key"})
    assert response.status_code == 200


async def test_ready_when_database_answers(client: AsyncClient):
    response = await client.get("http://localhost/health/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "ok"}


async def test_not_ready_when_database_fails(client: AsyncClient):
    broken = AsyncMock()
    broken.execute.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))

    async def broken_session() -> AsyncGenerator:
        yield broken

    app.dependency_overrides[get_session] = broken_session

    response = await client.get("http://localhost/health/ready")

    assert response.status_code == 503
    assert response.json() == {"status": "unavailable", "database": "unreachable"}


async def test_version(client: AsyncClient):
    response = await client.get("http://localhost/version")
    assert response.status_code == 200
    assert response.json() == {"version": __version__, "api_prefix": "/api/v1"}
