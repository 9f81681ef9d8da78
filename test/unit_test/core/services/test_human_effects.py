"""Tests for human effects tables: row validation, save and presence flags."""

from datetime import date

import pytest
from sqlalchemy import select

from disaster_tracking.core.database.entities.human_effects import Deaths, HumanDsg
from disaster_tracking.core.errors import HumanEffectsError
from disaster_tracking.core.services import human_effects
from disaster_tracking.core.services.human_effects import (
    UNSET,
    CustomDsgConfig,
    HumanEffectsTable,
    SaveData,
    TableData,
    TotalGroupFlag,
    calc_total_for_group,
    column_names,
    custom_def,
    defs_for_table,
    defs_for_tenant,
    table_from_string,
    updates_to_rows,
    validate_row,
)

DEATHS = HumanEffectsTable.DEATHS
DEATH_DEFS = defs_for_table(DEATHS)


def deaths_row(sex=None, age=None, deaths=None):
    return [sex, age, None, None, None, deaths]


class TestDefs:
    def test_deaths_columns(self):
        assert column_names(DEATH_DEFS) == [
            "sex",
            "age",
            "disability",
            "global_poverty_line",
            "national_poverty_line",
            "deaths",
        ]

    def test_custom_defs_go_between_shared_and_table_defs(self):
        region = custom_def("region", "Region", [("north", "North"), ("south", "South")])
        names = column_names(defs_for_table(HumanEffectsTable.MISSING, [region]))
        assert names[5:] == ["region", "as_of", "missing"]

    def test_hidden_shared_defs_are_left_out(self):
        names = column_names(defs_for_table(DEATHS, hidden=["age", "disability"]))
        assert names == ["sex", "global_poverty_line", "national_poverty_line", "deaths"]

    def test_table_from_string(self):
        assert table_from_string("Injured") == HumanEffectsTable.INJURED
        with pytest.raises(HumanEffectsError) as exc_info:
            table_from_string("Wounded")
        assert exc_info.value.code == "invalid_table"


class TestValidateRow:
    def test_valid_row(self):
        assert validate_row(DEATH_DEFS, deaths_row("f", "65+", 4)) == deaths_row("f", "65+", 4)

    def test_whole_float_becomes_int(self):
        assert validate_row(DEATH_DEFS, deaths_row(deaths=2.0))[5] == 2

    @pytest.mark.parametrize("value", [2.5, True, "3"])
    def test_bad_numbers(self, value):
        with pytest.raises(HumanEffectsError) as exc_info:
            validate_row(DEATH_DEFS, deaths_row(deaths=value))
        assert exc_info.value.code == "invalid_value"

    def test_unknown_enum_value(self):
        with pytest.raises(HumanEffectsError, match='Invalid enum value "x" for field "sex"'):
            validate_row(DEATH_DEFS, deaths_row(sex="x"))

    def test_strings(self):
        row = validate_row(DEATH_DEFS, ["m", "", "", "", "", "12"], data_strings=True)
        assert row == ["m", None, None, None, None, 12]

    def test_bad_number_string(self):
        with pytest.raises(HumanEffectsError):
            validate_row(DEATH_DEFS, ["m", "", "", "", "", "many"], data_strings=True)

    def test_missing_values(self):
        with pytest.raises(HumanEffectsError, match="Undefined value in row"):
            validate_row(DEATH_DEFS, ["m"])
        assert validate_row(DEATH_DEFS, ["m"], allow_partial=True) == ["m", *[UNSET] * 5]

    def test_dates(self):
        defs = defs_for_table(HumanEffectsTable.MISSING)
        row = [None] * 5 + ["2024-03-01", 1]
        assert validate_row(defs, row)[5] == date(2024, 3, 1)
        with pytest.raises(HumanEffectsError):
            validate_row(defs, [None] * 5 + ["March", 1])
        with pytest.raises(HumanEffectsError):
            validate_row(defs, [None] * 5 + [20240301, 1])


class TestUpdatesToRows:
    def test_pads_with_unset(self):
        ids, rows = updates_to_rows({"r1": {0: "m", 5: 3}}, 6)
        assert ids == ["r1"]
        assert rows == [["m", UNSET, UNSET, UNSET, UNSET, 3]]

    def test_column_out_of_range(self):
        with pytest.raises(HumanEffectsError) as exc_info:
            updates_to_rows({"r1": {6: 1}}, 6)
        assert exc_info.value.row_id == "r1"


@pytest.mark.asyncio
class TestSave:
    """Saving a table applies all changes in one transaction."""

    @pytest.fixture
    async def record_id(self, session, make_record):
        record_id = await make_record()
        await session.commit()
        return record_id

    async def _save(self, session, seed, record_id, **changes):
        return await human_effects.save(session, DEATHS, record_id, seed.tenant_id, DEATH_DEFS, SaveData(**changes))

    async def _rows(self, session, seed, record_id):
        return await human_effects.get(session, DEATHS, record_id, seed.tenant_id, DEATH_DEFS)

    async def test_new_rows_are_stored_and_mark_presence(self, session, seed, record_id):
        res = await self._save(
            session, seed, record_id, newRows={"tmp-1": deaths_row("m", deaths=3), "tmp-2": deaths_row("f", deaths=2)}
        )

        assert res.ok
        table = await self._rows(session, seed, record_id)
        assert sorted(row[5] for row in table.data) == [2, 3]
        presence = await human_effects.category_presence_get(session, record_id, seed.tenant_id, DEATHS, DEATH_DEFS)
        assert presence == {"deaths": True}

    async def test_rows_without_metric_value_leave_presence_unset(self, session, seed, record_id):
        res = await self._save(session, seed, record_id, newRows={"tmp-1": deaths_row("m")})

        assert res.ok
        presence = await human_effects.category_presence_get(session, record_id, seed.tenant_id, DEATHS, DEATH_DEFS)
        assert presence == {}

    async def test_update_and_delete(self, session, seed, record_id):
        await self._save(session, seed, record_id, newRows={"a": deaths_row("m", deaths=3), "b": deaths_row("f", deaths=1)})
        table = await self._rows(session, seed, record_id)
        by_sex = {row[0]: row_id for row_id, row in zip(table.ids, table.data)}

        res = await self._save(session, seed, record_id, updates={by_sex["m"]: {5: 10}}, deletes=[by_sex["f"]])

        assert res.ok
        table = await self._rows(session, seed, record_id)
        assert table.data == [deaths_row("m", deaths=10)]

    async def test_duplicate_dimensions_roll_back(self, session, seed, record_id):
        res = await self._save(
            session, seed, record_id, newRows={"tmp-1": deaths_row("m", deaths=1), "tmp-2": deaths_row("m", deaths=2)}
        )

        assert not res.ok
        assert sorted(e["row_id"] for e in res.errors) == ["tmp-1", "tmp-2"]
        assert {e["code"] for e in res.errors} == {"duplicate_dimension"}
        assert (await session.execute(select(Deaths))).scalars().all() == []
        assert (await session.execute(select(HumanDsg))).scalars().all() == []

    async def test_second_row_without_dimensions(self, session, seed, record_id):
        res = await self._save(
            session, seed, record_id, newRows={"tmp-1": deaths_row(deaths=5), "tmp-2": deaths_row(deaths=7)}
        )

        assert not res.ok
        assert res.errors == [{"code": "no_dimension_data", "message": "Row has no disaggregation values.", "row_id": "tmp-2"}]

    async def test_invalid_value_is_reported_as_error(self, session, seed, record_id):
        res = await self._save(session, seed, record_id, newRows={"tmp-1": deaths_row("x", deaths=5)})

        assert not res.ok
        assert res.error["code"] == "invalid_value"
        assert (await session.execute(select(Deaths))).scalars().all() == []

    async def test_unknown_row_id(self, session, seed, record_id):
        res = await self._save(session, seed, record_id, deletes=["missing"])

        assert not res.ok
        assert res.error["row_id"] == "missing"

    async def test_other_tenant_sees_no_rows(self, session, seed, record_id):
        await self._save(session, seed, record_id, newRows={"a": deaths_row("m", deaths=3)})

        table = await human_effects.get(session, DEATHS, record_id, seed.other_tenant_id, DEATH_DEFS)
        assert table.ids == []


@pytest.mark.asyncio
class TestCategoryPresence:
    async def test_set_and_get(self, session, seed, make_record):
        record_id = await make_record()
        affected_defs = defs_for_table(HumanEffectsTable.AFFECTED)

        await human_effects.category_presence_set(
            session, record_id, HumanEffectsTable.AFFECTED, affected_defs, {"direct": True, "indirect": False}
        )

        assert await human_effects.category_presence_get(
            session, record_id, seed.tenant_id, HumanEffectsTable.AFFECTED, affected_defs
        ) == {"direct": True, "indirect": False}
        assert await human_effects.category_presence_get(
            session, record_id, seed.tenant_id, DEATHS, DEATH_DEFS
        ) == {}

    async def test_clear_data(self, session, seed, make_record):
        record_id = await make_record()
        await human_effects.create(session, DEATHS, record_id, DEATH_DEFS, [deaths_row("m", deaths=1)])

        cleared = await human_effects.clear_data(session, DEATHS, record_id)

        assert len(cleared) == 1
        assert (await human_effects.get(session, DEATHS, record_id, seed.tenant_id, DEATH_DEFS)).ids == []


def region_config(*options):
    return CustomDsgConfig.model_validate(
        {
            "config": [
                {
                    "dbName": "region",
                    "uiName": {"en": "Region", "fr": "Région"},
                    "enum": [{"key": key, "label": label} for key, label in options],
                }
            ]
        }
    )


@pytest.mark.asyncio
class TestDsgConfig:
    async def test_custom_disaggregation_becomes_a_column(self, session, seed):
        await human_effects.custom_config_set(session, seed.tenant_id, region_config(("north", "North"), ("south", "South")))

        defs = await defs_for_tenant(session, DEATHS, seed.tenant_id)
        assert column_names(defs)[5:] == ["region", "deaths"]
        assert defs[5].custom
        assert defs[5].label == "Region"
        assert defs[5].enum_keys() == ["north", "south"]
        assert column_names(await defs_for_tenant(session, DEATHS, seed.other_tenant_id)) == column_names(DEATH_DEFS)

    async def test_config_is_stored_with_client_names(self, session, seed):
        await human_effects.custom_config_set(session, seed.tenant_id, region_config(("n", "North"), ("s", "South")))

        config = await human_effects.dsg_config_get(session, seed.tenant_id)
        assert config.custom.config[0].db_name == "region"
        assert config.custom.model_dump(by_alias=True)["config"][0]["uiName"] == {"en": "Region", "fr": "Région"}
        assert config.hidden.cols == []

    async def test_disaggregation_needs_two_options(self, session, seed):
        with pytest.raises(HumanEffectsError, match='Disaggregation "region" must have at least 2 options.') as exc_info:
            await human_effects.custom_config_set(session, seed.tenant_id, region_config(("north", "North")))
        assert exc_info.value.code == "invalid_config"

    async def test_name_of_built_in_column_is_rejected(self, session, seed):
        config = region_config(("a", "A"), ("b", "B"))
        config.config[0].db_name = "sex"
        with pytest.raises(HumanEffectsError, match='Disaggregation name "sex" is already used.'):
            await human_effects.custom_config_set(session, seed.tenant_id, config)

    async def test_removing_the_config(self, session, seed):
        await human_effects.custom_config_set(session, seed.tenant_id, region_config(("n", "North"), ("s", "South")))
        await human_effects.custom_config_set(session, seed.tenant_id, None)

        assert (await human_effects.dsg_config_get(session, seed.tenant_id)).custom is None
        assert column_names(await defs_for_tenant(session, DEATHS, seed.tenant_id)) == column_names(DEATH_DEFS)

    async def test_hidden_columns(self, session, seed):
        await human_effects.hidden_columns_set(session, seed.tenant_id, ["disability", "age"])

        assert (await human_effects.dsg_config_get(session, seed.tenant_id)).hidden.cols == ["age", "disability"]
        names = column_names(await defs_for_tenant(session, DEATHS, seed.tenant_id))
        assert names == ["sex", "global_poverty_line", "national_poverty_line", "deaths"]

    async def test_unknown_hidden_column(self, session, seed):
        with pytest.raises(HumanEffectsError, match="Unknown shared disaggregation: region"):
            await human_effects.hidden_columns_set(session, seed.tenant_id, ["region"])

    async def test_custom_values_are_saved(self, session, seed, make_record):
        record_id = await make_record()
        await human_effects.custom_config_set(session, seed.tenant_id, region_config(("n", "North"), ("s", "South")))
        defs = await defs_for_tenant(session, DEATHS, seed.tenant_id)

        res = await human_effects.save(
            session, DEATHS, record_id, seed.tenant_id, defs, SaveData(newRows={"a": [None] * 5 + ["n", 4]})
        )

        assert res.ok
        dsg = (await session.execute(select(HumanDsg))).scalars().one()
        assert dsg.custom == {"region": "n"}
        assert (await human_effects.get(session, DEATHS, record_id, seed.tenant_id, defs)).data == [[None] * 5 + ["n", 4]]


SEX_TOTALS = [{"dbName": "sex", "isSet": True}, {"dbName": "age", "isSet": False}]


class TestCalcTotalForGroup:
    def test_only_rows_of_exactly_the_group_count(self):
        current = TableData(
            ids=["a", "b", "c"],
            data=[deaths_row("m", deaths=3), deaths_row("f", deaths=None), deaths_row("f", "0-14", deaths=2)],
        )
        flags = [TotalGroupFlag.model_validate(f) for f in SEX_TOTALS]

        assert calc_total_for_group(DEATH_DEFS, current, flags) == {"deaths": 3}

    def test_group_without_rows(self):
        flags = [TotalGroupFlag(db_name="age", is_set=True)]
        assert calc_total_for_group(DEATH_DEFS, TableData(ids=[], data=[]), flags) == {"deaths": None}

    def test_unknown_dimension(self):
        with pytest.raises(HumanEffectsError, match="Total group uses unknown dimensions: region") as exc_info:
            calc_total_for_group(DEATH_DEFS, TableData(ids=[], data=[]), [TotalGroupFlag(db_name="region", is_set=True)])
        assert exc_info.value.code == "total_group_error"

    def test_no_dimension_set(self):
        with pytest.raises(HumanEffectsError, match="Total group has no dimensions"):
            calc_total_for_group(DEATH_DEFS, TableData(ids=[], data=[]), [TotalGroupFlag(db_name="sex", is_set=False)])


@pytest.mark.asyncio
class TestTotals:
    """The row without dimension values holds the totals of the table."""

    @pytest.fixture
    async def record_id(self, session, make_record):
        record_id = await make_record()
        await session.commit()
        return record_id

    async def _save(self, session, seed, record_id, defs=DEATH_DEFS, table=DEATHS, **changes):
        return await human_effects.save(session, table, record_id, seed.tenant_id, defs, SaveData(**changes))

    async def test_typed_in_totals_are_copied_to_presence(self, session, seed, record_id):
        res = await self._save(session, seed, record_id, newRows={"t": deaths_row(deaths=5), "m": deaths_row("m", deaths=3)})

        assert res.ok
        assert res.warnings == [
            {
                "code": "subtotal_lower_than_total",
                "message": "Subtotal is lower than the total, please check if this is intentional.",
                "row_id": None,
                "group": ["sex"],
            }
        ]
        assert await human_effects.get_total_presence_table(session, record_id, DEATHS) == {"deaths": 5}
        assert await human_effects.total_group_get(session, record_id, DEATHS) is None

    async def test_subtotal_larger_than_total(self, session, seed, record_id):
        res = await self._save(
            session,
            seed,
            record_id,
            newRows={"t": deaths_row(deaths=4), "m": deaths_row("m", deaths=3), "f": deaths_row("f", deaths=2)},
        )

        assert not res.ok
        assert res.error == {
            "code": "subtotal_larger_than_total",
            "message": 'Total for group (sex), column "deaths" exceeds overall total 5 > 4',
            "row_id": None,
            "group": ["sex"],
        }
        assert sorted(e["row_id"] for e in res.errors) == ["f", "m"]
        assert res.errors[0]["message"] == "Row belongs to group, for which total [sex] deaths=5 exceeds overall total (4)"
        assert (await session.execute(select(Deaths))).scalars().all() == []

    async def test_dated_groups_are_not_added_up(self, session, seed, record_id):
        defs = defs_for_table(HumanEffectsTable.MISSING)
        res = await self._save(
            session,
            seed,
            record_id,
            defs=defs,
            table=HumanEffectsTable.MISSING,
            newRows={"t": [None] * 6 + [2], "m": ["m", None, None, None, None, "2024-03-01", 9]},
        )

        assert res.ok
        assert res.warnings is None

    async def test_total_group_computes_the_totals_row(self, session, seed, record_id):
        res = await self._save(
            session,
            seed,
            record_id,
            newRows={"m": deaths_row("m", deaths=3), "f": deaths_row("f", deaths=2), "c": deaths_row(age="0-14", deaths=4)},
            totalGroupFlags=SEX_TOTALS,
        )

        assert res.ok
        table = await human_effects.get(session, DEATHS, record_id, seed.tenant_id, DEATH_DEFS)
        assert table.data[0] == deaths_row(deaths=5)
        assert await human_effects.get_total_presence_table(session, record_id, DEATHS) == {"deaths": 5}
        flags = await human_effects.total_group_get(session, record_id, DEATHS)
        assert [f.model_dump(by_alias=True) for f in flags] == SEX_TOTALS

    async def test_total_group_overwrites_typed_in_totals(self, session, seed, record_id):
        res = await self._save(
            session,
            seed,
            record_id,
            newRows={"t": deaths_row(deaths=1), "m": deaths_row("m", deaths=3)},
            totalGroupFlags=SEX_TOTALS,
        )

        assert res.ok
        table = await human_effects.get(session, DEATHS, record_id, seed.tenant_id, DEATH_DEFS)
        assert table.data == [deaths_row(deaths=3), deaths_row("m", deaths=3)]

    async def test_bad_total_group_rolls_back(self, session, seed, record_id):
        res = await self._save(
            session,
            seed,
            record_id,
            newRows={"m": deaths_row("m", deaths=3)},
            totalGroupFlags=[{"dbName": "region", "isSet": True}],
        )

        assert not res.ok
        assert res.error["code"] == "total_group_error"
        assert (await session.execute(select(Deaths))).scalars().all() == []
        assert await human_effects.total_group_get(session, record_id, DEATHS) is None

    async def test_null_flags_switch_back_to_typed_in_totals(self, session, seed, record_id):
        await self._save(session, seed, record_id, newRows={"m": deaths_row("m", deaths=3)}, totalGroupFlags=SEX_TOTALS)

        res = await self._save(session, seed, record_id, totalGroupFlags=None)

        assert res.ok
        assert await human_effects.total_group_get(session, record_id, DEATHS) is None
        assert await human_effects.get_total_presence_table(session, record_id, DEATHS) == {"deaths": 3}

    async def test_clear_resets_totals(self, session, seed, record_id):
        await self._save(session, seed, record_id, newRows={"m": deaths_row("m", deaths=3)}, totalGroupFlags=SEX_TOTALS)

        await human_effects.clear_data(session, DEATHS, record_id)

        assert await human_effects.total_group_get(session, record_id, DEATHS) is None
        assert await human_effects.get_total_presence_table(session, record_id, DEATHS) is None
