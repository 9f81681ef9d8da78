from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient

from disaster_tracking.core.database.entities.damages import Damage
from disaster_tracking.core.database.entities.disaster_records import DisasterRecord, SectorDisasterRecordRelation
from disaster_tracking.core.database.entities.sectors import Sector

API = "/api/v1"

pytestmark = pytest.mark.asyncio


class TestAnalytics:
    async def test_summary_counts_own_records(self, client: AsyncClient, seed):
        await client.post(f"{API}/disaster-record/add", json=[{}, {}], headers=seed.headers)
        await client.post(f"{API}/disaster-record/add", json=[{}], headers=seed.other_headers)

        response = await client.get(f"{API}/analytics/summary", headers=seed.headers)

        assert response.status_code == 200
        body = response.json()
        assert sum(body["records_by_status"].values()) == 2
        assert body["disaster_events"] == 0
        assert float(body["effects_total_local_currency"]) == 0

    async def test_hazard_counts(self, client: AsyncClient, seed):
        await client.post(f"{API}/disaster-record/add", json=[{}, {}], headers=seed.headers)

        response = await client.get(f"{API}/analytics/hazard-counts", headers=seed.headers)

        assert response.json() == [{"hip_type_id": None, "name": None, "count": 2}]

    async def test_total_cost_of_unknown_event(self, client: AsyncClient, seed):
        response = await client.get(f"{API}/analytics/total-cost/missing", headers=seed.headers)
        assert response.status_code == 404


class TestDashboards:
    @pytest_asyncio.fixture
    async def flood_damage(self, session, seed):
        """One record of 2024 in the crops sector with a damage of 250."""
        record = DisasterRecord(country_accounts_id=seed.tenant_id, start_date="2024-04-02")
        session.add_all(
            [
                Sector(id="11", sectorname="Agriculture", level=1),
                Sector(id="1101", parent_id="11", sectorname="Crops", level=2),
                record,
            ]
        )
        await session.flush()
        session.add(SectorDisasterRecordRelation(sector_id="1101", disaster_record_id=record.id))
        session.add(Damage(record_id=record.id, sector_id="1101", pd_repair_cost_total=Decimal("250")))
        await session.commit()
        return record.id

    async def test_sector_impact(self, client: AsyncClient, seed, flood_damage):
        response = await client.get(f"{API}/analytics/sector-impact/11", headers=seed.headers)

        assert response.status_code == 200
        body = response.json()
        assert body["record_count"] == 1
        assert float(body["total_damage"]) == 250
        assert body["records_over_time"] == {"2024": 1}

    async def test_sector_impact_is_tenant_scoped(self, client: AsyncClient, seed, flood_damage):
        response = await client.get(f"{API}/analytics/sector-impact/11", headers=seed.other_headers)
        assert response.json()["record_count"] == 0

    async def test_sector_impact_with_date_filter(self, client: AsyncClient, seed, flood_damage):
        response = await client.get(
            f"{API}/analytics/sector-impact/11", params={"from_date": "2025-01-01"}, headers=seed.headers
        )
        assert response.json()["record_count"] == 0

    async def test_unknown_sector(self, client: AsyncClient, seed):
        response = await client.get(f"{API}/analytics/sector-impact/99", headers=seed.headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Sector 99 not found"

    async def test_hazard_impact(self, client: AsyncClient, seed, flood_damage):
        response = await client.get(f"{API}/analytics/hazard-impact", headers=seed.headers)

        assert response.status_code == 200
        damages = response.json()["damages"]
        assert len(damages) == 1
        assert damages[0]["hip_type_id"] is None
        assert damages[0]["percentage"] == 100.0

    async def test_most_damaging_events_rejects_unknown_sort(self, client: AsyncClient, seed):
        response = await client.get(
            f"{API}/analytics/most-damaging-events", params={"sort_by": "hazard"}, headers=seed.headers
        )
        assert response.status_code == 422

    async def test_most_damaging_events_without_events(self, client: AsyncClient, seed, flood_damage):
        response = await client.get(f"{API}/analytics/most-damaging-events", headers=seed.headers)

        assert response.status_code == 200
        assert response.json()["items"] == []
        assert response.json()["pagination"]["total_items"] == 0

    async def test_affected_people_of_empty_tenant(self, client: AsyncClient, seed):
        response = await client.get(f"{API}/analytics/affected-people", headers=seed.headers)

        assert response.status_code == 200
        assert response.json() == {
            "deaths": 0,
            "injured": 0,
            "missing": 0,
            "direct": 0,
            "indirect": 0,
            "displaced": 0,
            "total": 0,
        }


class TestHips:
    async def test_upsert_then_search(self, client: AsyncClient, seed, super_admin_headers):
        hips = [
            {
                "id": "MH0001",
                "type_id": "1",
                "type_name": "Meteorological and Hydrological",
                "cluster_id": "1",
                "cluster_name": "Flood",
                "title": "Coastal flood",
            }
        ]
        response = await client.post(f"{API}/hips/upsert", json=hips, headers=super_admin_headers)
        assert response.status_code == 200
        assert response.json() == {"ok": True, "count": 1}

        response = await client.get(f"{API}/hazards/hazard-clusters", params={"query": "FLO"}, headers=seed.headers)
        assert response.status_code == 200
        assert [row["name_en"] for row in response.json()] == ["Flood"]

    async def test_invalid_search_type(self, client: AsyncClient, seed):
        response = await client.get(f"{API}/hazards/bogus", headers=seed.headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid type"

    async def test_tenant_key_cannot_upsert(self, client: AsyncClient, seed):
        hips = [
            {"id": "MH0002", "title": "Flash flood", "type_id": "1", "type_name": "Hydro", "cluster_id": "1", "cluster_name": "Flood"}
        ]

        response = await client.post(f"{API}/hips/upsert", json=hips, headers=seed.other_headers)

        assert response.status_code == 403
        searched = await client.get(f"{API}/hazards/hazard-clusters", headers=seed.headers)
        assert searched.json() == []

    async def test_tenant_admin_login_cannot_upsert(self, client: AsyncClient, seed, login_headers):
        response = await client.post(f"{API}/hips/upsert", json=[], headers=login_headers)
        assert response.status_code == 403
