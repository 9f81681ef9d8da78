"""Tests for the sector, hazard and human effects dashboards."""

from decimal import Decimal

import pytest

from disaster_tracking.core.database.entities.sectors import Sector
from disaster_tracking.core.pagination import pagination_params
from disaster_tracking.core.services import analytics
from disaster_tracking.core.services.analytics import AnalyticsFilters
from disaster_tracking.core.services.damages import damages_resource
from disaster_tracking.core.services.disaster_records import sector_relations_resource
from disaster_tracking.core.services.hip import HipItem, upsert_hip_list
from disaster_tracking.core.services.human_effects import (
    HumanEffectsTable,
    SaveData,
    TableData,
    defs_for_table,
    save,
    table_metric_totals,
)
from disaster_tracking.core.services.losses import losses_resource
from disaster_tracking.core.services.sectors import sector_descendant_ids

AGRICULTURE = "11"
CROPS = "1101"
INFRASTRUCTURE = "02"

DEATHS = HumanEffectsTable.DEATHS
DEATH_DEFS = defs_for_table(DEATHS)


def hazard(hazard_id, type_id, type_name):
    return HipItem(
        id=hazard_id,
        title=f"Hazard {hazard_id}",
        cluster_id=f"c-{type_id}",
        cluster_name=f"Cluster {type_id}",
        type_id=type_id,
        type_name=type_name,
    )


@pytest.fixture
def add_effects(session, ctx):
    """Relate a record to a sector and give it one damage and one loss row there."""

    async def add(record_id, sector_id, damage=None, loss=None):
        await sector_relations_resource.create(session, ctx, {"disaster_record_id": record_id, "sector_id": sector_id})
        if damage is not None:
            await damages_resource.create(
                session, ctx, {"record_id": record_id, "sector_id": sector_id, "pd_repair_cost_total": Decimal(damage)}
            )
        if loss is not None:
            await losses_resource.create(
                session, ctx, {"record_id": record_id, "sector_id": sector_id, "public_cost_total": Decimal(loss)}
            )

    return add


@pytest.mark.usefixtures("sectors")
class TestSectorDescendants:
    async def test_children_follow_the_sector(self, session):
        assert await sector_descendant_ids(session, AGRICULTURE) == [AGRICULTURE, CROPS]

    async def test_leaf(self, session):
        assert await sector_descendant_ids(session, INFRASTRUCTURE) == [INFRASTRUCTURE]

    async def test_parent_loop_is_visited_once(self, session):
        first = Sector(id="a", sectorname="A")
        session.add(first)
        session.add(Sector(id="b", parent_id="a", sectorname="B"))
        await session.flush()
        first.parent_id = "b"
        await session.flush()

        assert await sector_descendant_ids(session, "a") == ["a", "b"]


@pytest.mark.usefixtures("sectors")
class TestSectorImpact:
    async def test_counts_sector_and_sub_sectors(self, session, seed, make_disaster_event, make_record, add_effects):
        event_id = await make_disaster_event()
        first = await make_record(disaster_event_id=event_id, start_date="2023-05-01")
        second = await make_record(start_date="2024-02-01")
        other = await make_record(start_date="2024-03-01")
        await add_effects(first, CROPS, damage="100", loss="40")
        await add_effects(first, INFRASTRUCTURE, damage="1000")
        await add_effects(second, AGRICULTURE, damage="20")
        await add_effects(other, INFRASTRUCTURE, damage="7", loss="7")

        impact = await analytics.sector_impact(session, seed.tenant_id, AGRICULTURE, AnalyticsFilters())

        assert impact["record_count"] == 2
        assert impact["event_count"] == 1
        assert impact["total_damage"] == Decimal("120")
        assert impact["total_loss"] == Decimal("40")
        assert impact["records_over_time"] == {"2023": 1, "2024": 1}
        assert impact["damage_over_time"] == {"2023": Decimal("100"), "2024": Decimal("20")}
        assert impact["loss_over_time"] == {"2023": Decimal("40"), "2024": Decimal("0")}

    async def test_date_filter(self, session, seed, make_record, add_effects):
        old = await make_record(start_date="2019-01-01")
        recent = await make_record(start_date="2024-06-30")
        await add_effects(old, CROPS, damage="5")
        await add_effects(recent, CROPS, damage="8")

        filters = AnalyticsFilters(from_date="2020-01-01", to_date="2024-12-31")
        impact = await analytics.sector_impact(session, seed.tenant_id, AGRICULTURE, filters)

        assert impact["record_count"] == 1
        assert impact["total_damage"] == Decimal("8")

    async def test_other_tenant_sees_nothing(self, session, seed, make_record, add_effects):
        record_id = await make_record(start_date="2024-01-01")
        await add_effects(record_id, CROPS, damage="5")

        impact = await analytics.sector_impact(session, seed.other_tenant_id, AGRICULTURE, AnalyticsFilters())

        assert impact["record_count"] == 0
        assert impact["total_damage"] == Decimal("0")
        assert impact["records_over_time"] == {}


@pytest.mark.usefixtures("sectors")
class TestHazardImpact:
    @pytest.fixture(autouse=True)
    async def hazards(self, session):
        await upsert_hip_list(session, [hazard("h1", "t1", "Hydrological"), hazard("h2", "t2", "Geophysical")])

    async def test_shares_per_hazard_type(self, session, seed, make_record, add_effects):
        flood = await make_record(hip_type_id="t1")
        second_flood = await make_record(hip_type_id="t1")
        quake = await make_record(hip_type_id="t2")
        await add_effects(flood, CROPS, damage="30", loss="10")
        await add_effects(second_flood, INFRASTRUCTURE, damage="30")
        await add_effects(quake, INFRASTRUCTURE, damage="140")

        impact = await analytics.hazard_impact(session, seed.tenant_id, AnalyticsFilters())

        assert [(r["hip_type_id"], r["value"]) for r in impact["records"]] == [("t1", 2), ("t2", 1)]
        assert impact["damages"][0] == {
            "hip_type_id": "t2",
            "name": "Geophysical",
            "value": Decimal("140"),
            "percentage": 70.0,
        }
        assert impact["damages"][1]["percentage"] == 30.0
        assert [(r["hip_type_id"], r["value"]) for r in impact["losses"]] == [
            ("t1", Decimal("10")),
            ("t2", Decimal("0")),
        ]
        assert impact["losses"][0]["percentage"] == 100.0

    async def test_limited_to_a_sector(self, session, seed, make_record, add_effects):
        flood = await make_record(hip_type_id="t1")
        quake = await make_record(hip_type_id="t2")
        await add_effects(flood, CROPS, damage="30")
        await add_effects(quake, INFRASTRUCTURE, damage="140")

        impact = await analytics.hazard_impact(session, seed.tenant_id, AnalyticsFilters(), sector_id=AGRICULTURE)

        assert [(r["hip_type_id"], r["value"]) for r in impact["damages"]] == [("t1", Decimal("30"))]

    async def test_hazard_filter(self, session, seed, make_record):
        await make_record(hip_type_id="t1", hip_hazard_id="h1")
        await make_record(hip_type_id="t2", hip_hazard_id="h2")

        impact = await analytics.hazard_impact(session, seed.tenant_id, AnalyticsFilters(hip_hazard_id="h2"))

        assert [r["hip_type_id"] for r in impact["records"]] == ["t2"]

    async def test_no_records(self, session, seed):
        impact = await analytics.hazard_impact(session, seed.tenant_id, AnalyticsFilters())
        assert impact == {"records": [], "damages": [], "losses": []}


@pytest.mark.usefixtures("sectors")
class TestMostDamagingEvents:
    async def test_sorted_by_damages(self, session, seed, make_disaster_event, make_record, add_effects):
        small = await make_disaster_event(name_national="Small")
        large = await make_disaster_event(name_national="Large")
        await add_effects(await make_record(disaster_event_id=small), CROPS, damage="10", loss="50")
        await add_effects(await make_record(disaster_event_id=large), CROPS, damage="90")
        await add_effects(await make_record(disaster_event_id=large), INFRASTRUCTURE, damage="5")

        result = await analytics.most_damaging_events(session, seed.tenant_id, AnalyticsFilters(), pagination_params())

        assert [(e["name"], e["total_damages"]) for e in result["items"]] == [
            ("Large", Decimal("95")),
            ("Small", Decimal("10")),
        ]
        assert result["pagination"]["total_items"] == 2

    async def test_sorted_by_losses_ascending_and_paged(
        self, session, seed, make_disaster_event, make_record, add_effects
    ):
        for name, loss in (("A", "3"), ("B", "1"), ("C", "2")):
            event_id = await make_disaster_event(name_national=name)
            await add_effects(await make_record(disaster_event_id=event_id), CROPS, loss=loss)

        result = await analytics.most_damaging_events(
            session, seed.tenant_id, AnalyticsFilters(), pagination_params(2, 2), sort_by="losses", descending=False
        )

        assert [e["name"] for e in result["items"]] == ["A"]
        assert result["pagination"]["items_on_this_page"] == 1
        assert result["pagination"]["total_items"] == 3

    async def test_unknown_sort(self, session, seed):
        with pytest.raises(ValueError):
            await analytics.most_damaging_events(
                session, seed.tenant_id, AnalyticsFilters(), pagination_params(), sort_by="hazard"
            )


class TestAffectedPeople:
    def test_totals_row_wins(self):
        current = TableData(ids=["t", "m"], data=[[None, None, None, None, None, 9], ["m", None, None, None, None, 4]])
        assert table_metric_totals(DEATH_DEFS, current) == {"deaths": 9}

    def test_largest_group_without_totals_row(self):
        current = TableData(
            ids=["m", "f", "a"],
            data=[
                ["m", None, None, None, None, 4],
                ["f", None, None, None, None, 3],
                [None, "65+", None, None, None, 6],
            ],
        )
        assert table_metric_totals(DEATH_DEFS, current) == {"deaths": 7}

    async def test_sums_records_and_leaves_out_indirect(self, session, seed, make_record):
        first = await make_record(start_date="2024-01-01")
        second = await make_record(start_date="2024-02-01")
        await session.commit()
        for record_id, deaths in ((first, 2), (second, 5)):
            res = await save(
                session,
                DEATHS,
                record_id,
                seed.tenant_id,
                DEATH_DEFS,
                SaveData(newRows={"t": [None, None, None, None, None, deaths]}),
            )
            assert res.ok
        affected = HumanEffectsTable.AFFECTED
        res = await save(
            session,
            affected,
            first,
            seed.tenant_id,
            defs_for_table(affected),
            SaveData(newRows={"t": [None, None, None, None, None, 10, 100]}),
        )
        assert res.ok

        people = await analytics.affected_people(session, seed.tenant_id, AnalyticsFilters())

        assert people["deaths"] == 7
        assert people["direct"] == 10
        assert people["indirect"] == 100
        assert people["injured"] == 0
        assert people["total"] == 17

    async def test_filters_apply(self, session, seed, make_record):
        record_id = await make_record(start_date="2020-01-01")
        await session.commit()
        await save(
            session, DEATHS, record_id, seed.tenant_id, DEATH_DEFS, SaveData(newRows={"t": [None] * 5 + [3]})
        )

        people = await analytics.affected_people(session, seed.tenant_id, AnalyticsFilters(from_date="2021-01-01"))

        assert people["deaths"] == 0
        assert people["total"] == 0
