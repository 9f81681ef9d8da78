"""Tests for sectors, assets, divisions and units."""

import pytest

from disaster_tracking.core.database.entities.assets import Asset
from disaster_tracking.core.database.entities.divisions import Division
from disaster_tracking.core.database.entities.sectors import Sector
from disaster_tracking.core.errors import BuiltInAssetError, NotFoundError, SectorLoopError
from disaster_tracking.core.forms.fields import ValidationFailed
from disaster_tracking.core.services.assets import assets_for_sector, assets_resource, normalize_sector_ids
from disaster_tracking.core.services.divisions import divisions_resource
from disaster_tracking.core.services.sectors import (
    get_sectors,
    get_sectors_by_level,
    sector_ancestor_ids,
    sector_is_agriculture,
    sectors_resource,
)
from disaster_tracking.core.services.units import units_resource

AGRICULTURE = "11"
CROPS = "1101"
INFRASTRUCTURE = "02"


@pytest.mark.asyncio
@pytest.mark.usefixtures("sectors")
class TestSectors:
    async def test_agriculture_tree(self, session):
        assert await sector_is_agriculture(session, AGRICULTURE) is True
        assert await sector_is_agriculture(session, CROPS) is True
        assert await sector_is_agriculture(session, INFRASTRUCTURE) is False

    async def test_unknown_sector(self, session):
        with pytest.raises(NotFoundError):
            await sector_is_agriculture(session, "99")

    async def test_ancestors(self, session):
        assert await sector_ancestor_ids(session, CROPS) == [CROPS, AGRICULTURE]

    async def test_roots_and_children(self, session):
        assert [s.id for s in await get_sectors(session)] == [AGRICULTURE, INFRASTRUCTURE]
        assert [s.id for s in await get_sectors(session, AGRICULTURE)] == [CROPS]

    async def test_by_level_names_the_parent(self, session):
        assert await get_sectors_by_level(session, 2) == [{"id": CROPS, "name": "Crops (Agriculture)"}]
        assert await get_sectors_by_level(session, 1) == [
            {"id": AGRICULTURE, "name": "Agriculture"},
            {"id": INFRASTRUCTURE, "name": "Infrastructure"},
        ]

    async def test_parent_loop_is_refused(self, session, ctx):
        with pytest.raises(SectorLoopError):
            await sectors_resource.update(session, ctx, AGRICULTURE, {"parent_id": CROPS})

    async def test_create_with_unknown_parent(self, session, ctx):
        with pytest.raises(NotFoundError):
            await sectors_resource.create(session, ctx, {"id": "1102", "parent_id": "77", "sectorname": "Fish"})

    async def test_create(self, session, ctx):
        sector_id = await sectors_resource.create(
            session, ctx, {"id": "1102", "parent_id": AGRICULTURE, "sectorname": "Livestock", "level": 2.0}
        )

        sector = await session.get(Sector, sector_id)
        assert sector.level == 2
        assert await sector_is_agriculture(session, sector_id) is True


class TestNormalizeSectorIds:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, ""),
            ("11, 1101 ,", "11,1101"),
            (["11", " 02 ", ""], "11,02"),
        ],
    )
    def test_normalize(self, value, expected):
        assert normalize_sector_ids(value) == expected


@pytest.mark.asyncio
class TestAssets:
    async def test_built_in_assets_are_read_only(self, session, ctx):
        asset = Asset(name="Road", sector_ids=INFRASTRUCTURE, is_built_in=True)
        session.add(asset)
        await session.flush()

        with pytest.raises(BuiltInAssetError):
            await assets_resource.update(session, ctx, asset.id, {"name": "Street"})
        with pytest.raises(BuiltInAssetError):
            await assets_resource.delete(session, ctx, asset.id)

    async def test_tenant_assets_are_private(self, session, ctx, other_ctx):
        asset_id = await assets_resource.create(session, ctx, {"name": "Bridge", "sector_ids": [INFRASTRUCTURE]})

        asset = await assets_resource.get(session, ctx, asset_id)
        assert asset.sector_ids == INFRASTRUCTURE
        assert asset.is_built_in is False
        assert await assets_resource.get(session, other_ctx, asset_id) is None

    @pytest.mark.usefixtures("sectors")
    async def test_assets_for_sector_include_parent_sectors(self, session, seed, ctx, other_ctx):
        session.add(Asset(name="Tractor", sector_ids=AGRICULTURE, is_built_in=True))
        await assets_resource.create(session, ctx, {"name": "Silo", "sector_ids": CROPS})
        await assets_resource.create(session, other_ctx, {"name": "Barn", "sector_ids": CROPS})
        await assets_resource.create(session, ctx, {"name": "Bridge", "sector_ids": INFRASTRUCTURE})
        await session.flush()

        assets = await assets_for_sector(session, CROPS, seed.tenant_id)

        assert [a.name for a in assets] == ["Silo", "Tractor"]


@pytest.mark.asyncio
class TestDivisions:
    async def test_level_follows_parent(self, session, ctx):
        root = await divisions_resource.create(session, ctx, {"name": {"en": "North"}})
        child = await divisions_resource.create(session, ctx, {"name": {"en": "Hills"}, "parent_id": root})

        assert (await session.get(Division, root)).level == 1
        assert (await session.get(Division, child)).level == 2

    async def test_name_must_map_languages(self, session, ctx):
        with pytest.raises(ValidationFailed) as exc_info:
            await divisions_resource.create(session, ctx, {"name": "North"})
        assert list(exc_info.value.errors.fields) == ["name"]

    async def test_parent_of_other_tenant(self, session, ctx, other_ctx):
        root = await divisions_resource.create(session, other_ctx, {"name": {"en": "Elsewhere"}})

        with pytest.raises(ValidationFailed) as exc_info:
            await divisions_resource.create(session, ctx, {"name": {"en": "Hills"}, "parent_id": root})
        assert exc_info.value.code == "not_found"

    async def test_cannot_become_its_own_ancestor(self, session, ctx):
        root = await divisions_resource.create(session, ctx, {"name": {"en": "North"}})
        child = await divisions_resource.create(session, ctx, {"name": {"en": "Hills"}, "parent_id": root})

        with pytest.raises(ValidationFailed) as exc_info:
            await divisions_resource.update(session, ctx, root, {"parent_id": child})
        assert exc_info.value.code == "circular_reference"

    async def test_delete_with_children(self, session, ctx):
        root = await divisions_resource.create(session, ctx, {"name": {"en": "North"}})
        await divisions_resource.create(session, ctx, {"name": {"en": "Hills"}, "parent_id": root})

        with pytest.raises(ValidationFailed) as exc_info:
            await divisions_resource.delete(session, ctx, root)
        assert exc_info.value.code == "has_children"


@pytest.mark.asyncio
class TestUnits:
    async def test_require_unknown(self, session, ctx):
        with pytest.raises(NotFoundError, match="Unit missing not found"):
            await units_resource.require(session, ctx, "missing")

    async def test_export_rows_ordered_by_name(self, session, ctx):
        await units_resource.create(session, ctx, {"type": "area", "name": "Hectare"})
        await units_resource.create(session, ctx, {"type": "number", "name": "Count"})

        rows = await units_resource.export_rows(session, ctx)

        assert [r["name"] for r in rows] == ["Count", "Hectare"]
        assert set(rows[0]) >= {"id", "type", "name", "api_import_id"}
