"""
Database fixtures shared by the unit tests.

Every test gets its own in-memory SQLite database with all tables created
from the ORM metadata, plus one seeded country account with an admin user
and an API key, and a second country account to check tenant isolation.
"""

from dataclasses import dataclass
from typing import AsyncGenerator

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlmodel.pool import StaticPool

from disaster_tracking.core.auth.passwords import password_hash
from disaster_tracking.core.database.entities.accounts import ApiKey, CountryAccount, User
from disaster_tracking.core.database.utils import create_all, create_sessionmaker

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_EMAIL = "admin@example.org"
ADMIN_PASSWORD = "Correct-Horse-1"


@dataclass(frozen=True)
class Seed:
    """Ids and secrets of the seeded rows; plain strings only."""

    tenant_id: str
    other_tenant_id: str
    admin_id: str
    api_key_secret: str
    other_api_key_secret: str

    @property
    def headers(self) -> dict:
        return {"X-Auth": self.api_key_secret}

    @property
    def other_headers(self) -> dict:
        return {"X-Auth": self.other_api_key_secret}


@pytest_asyncio.fixture
async def test_engine():
    """Create a fresh in-memory database for one test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(name="session")
async def session_fixture(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a new session for each test."""
    async_session_maker = create_sessionmaker(test_engine)

    async with async_session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def seed(session: AsyncSession) -> Seed:
    """Two country accounts, an admin of the first and one API key per account."""
    tenant = CountryAccount(short_description="Test country", country_name="Testland")
    other_tenant = CountryAccount(short_description="Other country", country_name="Otherland")
    session.add_all([tenant, other_tenant])
    await session.flush()

    admin = User(
        email=ADMIN_EMAIL,
        password=password_hash(ADMIN_PASSWORD, rounds=4),
        role="admin",
        first_name="Ada",
        last_name="Admin",
        country_accounts_id=tenant.id,
    )
    other_admin = User(
        email="admin@other.example.org",
        password=password_hash(ADMIN_PASSWORD, rounds=4),
        role="admin",
        country_accounts_id=other_tenant.id,
    )
    session.add_all([admin, other_admin])
    await session.flush()

    api_key = ApiKey(secret="a" * 64, name="Test key", manager_id=admin.id, country_accounts_id=tenant.id)
    other_api_key = ApiKey(
        secret="b" * 64, name="Other key", manager_id=other_admin.id, country_accounts_id=other_tenant.id
    )
    session.add_all([api_key, other_api_key])
    await session.commit()

    return Seed(
        tenant_id=tenant.id,
        other_tenant_id=other_tenant.id,
        admin_id=admin.id,
        api_key_secret=api_key.secret,
        other_api_key_secret=other_api_key.secret,
    )
