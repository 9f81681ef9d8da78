import pytest
from httpx import AsyncClient

from disaster_tracking.core.database.entities.sectors import Sector

API = "/api/v1"

pytestmark = pytest.mark.asyncio


async def add(client, seed, path, *items):
    response = await client.post(f"{API}/{path}/add", json=list(items), headers=seed.headers)
    return response.json()


class TestHazardousEvents:
    async def test_cause_blocks_delete(self, client: AsyncClient, seed):
        parent = (await add(client, seed, "hazardous-event", {"description": "Earthquake"}))["res"][0]["id"]
        await add(client, seed, "hazardous-event", {"description": "Tsunami", "parent": parent})

        response = await client.delete(f"{API}/hazardous-event/{parent}", headers=seed.headers)

        assert response.status_code == 400
        assert response.json()["code"] == "has_children"
        assert response.json()["detail"] == "Delete events that are caused by this event first"


class TestDisasterEvents:
    async def test_hazardous_event_is_required(self, client: AsyncClient, seed):
        body = await add(client, seed, "disaster-event", {"disaster_declaration": "no"})

        assert body["ok"] is False
        errors = body["res"][0]["errors"]["fields"]["hazardous_event_id"]
        assert errors[0]["message"] == "Select hazardous event"

    async def test_total_cost_of_event_without_records(self, client: AsyncClient, seed):
        hazard = (await add(client, seed, "hazardous-event", {}))["res"][0]["id"]
        event = (await add(client, seed, "disaster-event", {"hazardous_event_id": hazard, "disaster_declaration": "yes"}))[
            "res"
        ][0]["id"]

        response = await client.get(f"{API}/analytics/total-cost/{event}", headers=seed.headers)

        assert response.status_code == 200
        body = response.json()
        assert body["disaster_event_id"] == event
        assert float(body["total"]) == 0

        other = await client.get(f"{API}/analytics/total-cost/{event}", headers=seed.other_headers)
        assert other.status_code == 404


class TestSectors:
    @pytest.fixture(autouse=True)
    async def sectors(self, session):
        session.add_all(
            [
                Sector(id="11", sectorname="Agriculture", level=1),
                Sector(id="1101", parent_id="11", sectorname="Crops", level=2),
                Sector(id="02", sectorname="Infrastructure", level=1),
            ]
        )
        await session.commit()

    async def test_roots(self, client: AsyncClient, seed):
        response = await client.get(f"{API}/sectors", headers=seed.headers)
        assert [s["sectorname"] for s in response.json()] == ["Agriculture", "Infrastructure"]

    async def test_children(self, client: AsyncClient, seed):
        response = await client.get(f"{API}/sectors", params={"parent_id": "11"}, headers=seed.headers)
        assert [s["id"] for s in response.json()] == ["1101"]

    async def test_by_level(self, client: AsyncClient, seed):
        response = await client.get(f"{API}/sectors/by-level/2", headers=seed.headers)
        assert response.json() == [{"id": "1101", "name": "Crops (Agriculture)"}]

    async def test_crud_routes_are_included(self, client: AsyncClient, seed):
        response = await client.get(f"{API}/sectors/1101", headers=seed.headers)
        assert response.status_code == 200
        assert response.json()["parent_id"] == "11"

    async def test_wrong_method(self, client: AsyncClient, seed):
        response = await client.put(f"{API}/sectors/list", headers=seed.headers)
        assert response.status_code == 405

    async def test_tenant_key_cannot_change_shared_sectors(self, client: AsyncClient, seed):
        update = await client.post(
            f"{API}/sectors/update", json=[{"id": "11", "sectorname": "Renamed"}], headers=seed.other_headers
        )
        delete = await client.delete(f"{API}/sectors/11", headers=seed.other_headers)
        add = await client.post(f"{API}/sectors/add", json=[{"id": "03", "sectorname": "New"}], headers=seed.headers)

        assert update.status_code == 403
        assert update.json()["detail"] == "Forbidden: missing permission manage_country_accounts"
        assert delete.status_code == 403
        assert add.status_code == 403
        response = await client.get(f"{API}/sectors/11", headers=seed.headers)
        assert response.json()["sectorname"] == "Agriculture"

    async def test_super_admin_changes_sectors(self, client: AsyncClient, seed, super_admin_headers):
        response = await client.post(
            f"{API}/sectors/update", json=[{"id": "11", "sectorname": "Farming"}], headers=super_admin_headers
        )

        assert response.json() == {"ok": True, "res": [{"ok": True, "id": "11"}]}
        assert (await client.get(f"{API}/sectors/11", headers=seed.headers)).json()["sectorname"] == "Farming"
