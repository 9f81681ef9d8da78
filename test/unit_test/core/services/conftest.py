"""Fixtures for the domain service tests."""

from __future__ import annotations

import pytest
import pytest_asyncio

from disaster_tracking.core.database.entities.sectors import Sector
from disaster_tracking.core.services.context import RequestContext
from disaster_tracking.core.services.disaster_records import disaster_records_resource
from disaster_tracking.core.services.events import disaster_events_resource, hazardous_events_resource

AGRICULTURE = "11"
CROPS = "1101"
INFRASTRUCTURE = "02"


@pytest.fixture
def ctx(seed) -> RequestContext:
    """Admin of the seeded tenant."""
    return RequestContext(country_accounts_id=seed.tenant_id, user_id=seed.admin_id, role="admin")


@pytest.fixture
def other_ctx(seed) -> RequestContext:
    """Acting for the second tenant."""
    return RequestContext(country_accounts_id=seed.other_tenant_id, user_id=None, role="admin")


@pytest_asyncio.fixture
async def sectors(session) -> None:
    """Agriculture with one child and one non-agriculture root."""
    session.add_all(
        [
            Sector(id=AGRICULTURE, sectorname="Agriculture", level=1),
            Sector(id=CROPS, parent_id=AGRICULTURE, sectorname="Crops", level=2),
            Sector(id=INFRASTRUCTURE, sectorname="Infrastructure", level=1),
        ]
    )
    await session.commit()


@pytest.fixture
def make_hazardous_event(session, ctx):
    async def make(**data) -> str:
        return await hazardous_events_resource.create(session, ctx, data)

    return make


@pytest.fixture
def make_disaster_event(session, ctx, make_hazardous_event):
    async def make(**data) -> str:
        if "hazardous_event_id" not in data:
            data["hazardous_event_id"] = await make_hazardous_event()
        data.setdefault("disaster_declaration", "unknown")
        return await disaster_events_resource.create(session, ctx, data)

    return make


@pytest.fixture
def make_record(session, ctx):
    async def make(**data) -> str:
        return await disaster_records_resource.create(session, ctx, data)

    return make
