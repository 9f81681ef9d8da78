from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

API = "/api/v1"
SESSION_COOKIE = "dts_session"


@pytest_asyncio.fixture(name="client")
async def client_fixture(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client whose requests share the test session."""
    from disaster_tracking.core.database import get_session
    from disaster_tracking.server.main import app

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
        yield client

    app.dependency_overrides.clear()


def session_cookie(response) -> str:
    """Value of the login cookie set by ``response``."""
    first = response.headers["set-cookie"].split(";")[0]
    name, value = first.split("=", 1)
    assert name == SESSION_COOKIE
    return value


@pytest_asyncio.fixture
async def login_headers(client: AsyncClient, seed) -> dict:
    """Headers carrying the login cookie of the seeded admin."""
    response = await client.post(
        f"{API}/auth/login", json={"email": "admin@example.org", "password": "Correct-Horse-1"}
    )
    assert response.status_code == 200
    return {"Cookie": f"{SESSION_COOKIE}={session_cookie(response)}"}


@pytest_asyncio.fixture
async def super_admin_headers(session: AsyncSession, seed) -> dict:
    """API key headers of a super admin, who may write the shared reference data."""
    from disaster_tracking.core.database.entities.accounts import ApiKey, User

    super_admin = User(email="root@example.org", role="super_admin")
    session.add(super_admin)
    await session.flush()
    session.add(ApiKey(secret="c" * 64, name="Root key", manager_id=super_admin.id, country_accounts_id=seed.tenant_id))
    await session.commit()
    return {"X-Auth": "c" * 64}


@pytest_asyncio.fixture
async def collector_headers(session: AsyncSession, seed) -> dict:
    """API key headers of a data collector of the seeded country account."""
    from disaster_tracking.core.database.entities.accounts import ApiKey, User

    collector = User(email="collector@example.org", role="data-collector", country_accounts_id=seed.tenant_id)
    session.add(collector)
    await session.flush()
    session.add(ApiKey(secret="d" * 64, name="Collector key", manager_id=collector.id, country_accounts_id=seed.tenant_id))
    await session.commit()
    return {"X-Auth": "d" * 64}
