"""
Human effects of a disaster record.

Data is edited as a table per category (deaths, injured, missing, affected,
displaced). Every column of such a table is described by a ``Def``: shared
disaggregation dimensions are stored in ``human_dsg``, custom dimensions in
``human_dsg.custom`` and the remaining dimensions and metrics in the
category's own table. Rows travel as positional lists ordered like the defs.

Custom dimensions and hidden shared dimensions are configured per country
account. The row whose dimensions are all empty holds the table totals; it is
either typed in or computed from one chosen group of dimensions (the "total
group").

Besides the rows, each record keeps per metric a "category presence" flag
saying whether the metric was observed at all, and the totals last saved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from disaster_tracking.core.database.entities.disaster_records import DisasterRecord
from disaster_tracking.core.database.entities.human_effects import (
    Affected,
    Deaths,
    Displaced,
    HumanCategoryPresence,
    HumanDsg,
    HumanDsgConfig,
    Injured,
    Missing,
)
from disaster_tracking.core.errors import HumanEffectsError
from disaster_tracking.core.forms.fields import EnumOption, enum_options
from disaster_tracking.core.logging_config import get_logger

logger = get_logger(__name__)


class HumanEffectsTable(str, Enum):
    DEATHS = "Deaths"
    INJURED = "Injured"
    MISSING = "Missing"
    AFFECTED = "Affected"
    DISPLACED = "Displaced"


def table_from_string(value: str) -> HumanEffectsTable:
    """Raises ``HumanEffectsError`` for an unknown table name."""
    try:
        return HumanEffectsTable(value)
    except ValueError:
        raise HumanEffectsError("invalid_table", f"Invalid table type: {value}")


class _Unset:
    """Marks a column left out of a partial row."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


@dataclass(frozen=True)
class Def:
    """One column of a human effects table.

    ``format`` is ``enum``, ``number`` or ``date``; ``role`` is
    ``dimension`` or ``metric``.
    """

    name: str
    label: str
    format: str
    role: str
    data: Tuple[EnumOption, ...] = field(default_factory=tuple)
    shared: bool = False
    custom: bool = False

    def enum_keys(self) -> List[str]:
        return [o.key for o in self.data]


def _shared(name: str, label: str, data: Tuple[EnumOption, ...]) -> Def:
    return Def(name=name, label=label, format="enum", role="dimension", data=data, shared=True)


def _metric(name: str, label: str) -> Def:
    return Def(name=name, label=label, format="number", role="metric")


_POVERTY_LINE = enum_options(("below", "Below"), ("above", "Above"))

SHARED_DEFS: List[Def] = [
    _shared("sex", "Sex", enum_options(("m", "M-Male"), ("f", "F-Female"), ("o", "O-Other Non-binary"))),
    _shared(
        "age",
        "Age",
        enum_options(("0-14", "Children, (0-14)"), ("15-64", "Adult, (15-64)"), ("65+", "Elder (65-)")),
    ),
    _shared(
        "disability",
        "Disability",
        enum_options(
            ("none", "No disabilities"),
            ("physical_dwarfism", "Physical, dwarfism"),
            ("physical_problems_in_body_functioning", "Physical, Problems in body functioning"),
            ("physical_problems_in_body_structures", "Physical, Problems in body structures"),
            ("physical_other_physical_disability", "Physical, Other physical disability"),
            ("sensorial_visual_impairments_blindness", "Sensorial, visual impairments, blindness"),
            ("sensorial_visual_impairments_partial_sight_loss", "Sensorial, visual impairments, partial sight loss"),
            ("sensorial_visual_impairments_colour_blindness", "Sensorial, visual impairments, colour blindness"),
            (
                "sensorial_hearing_impairments_deafness_hard_of_hearing",
                "Sensorial, Hearing impairments, Deafness, hard of hearing",
            ),
            (
                "sensorial_hearing_impairments_deafness_other_hearing_disability",
                "Sensorial, Hearing impairments, Deafness, other hearing disability",
            ),
            ("sensorial_other_sensory_impairments", "Sensorial, other sensory impairments"),
            ("psychosocial", "Psychosocial"),
            ("intellectual_cognitive", "Intellectual/ Cognitive"),
            ("multiple_deaf_blindness", "Multiple, Deaf blindness"),
            ("multiple_other_multiple", "Multiple, other multiple"),
            ("others", "Others"),
        ),
    ),
    _shared("global_poverty_line", "Global poverty line", _POVERTY_LINE),
    _shared("national_poverty_line", "National poverty line", _POVERTY_LINE),
]

_AS_OF = Def(name="as_of", label="As of", format="date", role="dimension")

TABLE_DEFS: Dict[HumanEffectsTable, List[Def]] = {
    HumanEffectsTable.DEATHS: [_metric("deaths", "Deaths")],
    HumanEffectsTable.INJURED: [_metric("injured", "Injured")],
    HumanEffectsTable.MISSING: [_AS_OF, _metric("missing", "Missing")],
    HumanEffectsTable.AFFECTED: [
        _metric("direct", "Directly Affected (Old DesInventar)"),
        _metric("indirect", "Indirectly Affected (Old DesInventar)"),
    ],
    HumanEffectsTable.DISPLACED: [
        Def(
            name="assisted",
            label="Assisted",
            format="enum",
            role="dimension",
            data=enum_options(("assisted", "Assisted"), ("not_assisted", "Not Assisted")),
        ),
        Def(
            name="timing",
            label="Timing",
            format="enum",
            role="dimension",
            data=enum_options(("pre-emptive", "Pre-emptive"), ("reactive", "Reactive")),
        ),
        Def(
            name="duration",
            label="Duration",
            format="enum",
            role="dimension",
            data=enum_options(
                ("short", "Short Term"),
                ("medium_short", "Medium Short Term"),
                ("medium_long", "Medium Long Term"),
                ("long", "Long Term"),
                ("permanent", "Permanent"),
            ),
        ),
        _AS_OF,
        _metric("displaced", "Displaced"),
    ],
}

METRIC_MODELS: Dict[HumanEffectsTable, Type[SQLModel]] = {
    HumanEffectsTable.DEATHS: Deaths,
    HumanEffectsTable.INJURED: Injured,
    HumanEffectsTable.MISSING: Missing,
    HumanEffectsTable.AFFECTED: Affected,
    HumanEffectsTable.DISPLACED: Displaced,
}

# Column prefix of a table's metrics in human_category_presence
PRESENCE_PREFIX: Dict[HumanEffectsTable, str] = {HumanEffectsTable.AFFECTED: "affected_"}


def custom_def(name: str, label: str, options: Iterable[Tuple[str, str]]) -> Def:
    """A tenant defined enum dimension stored in ``human_dsg.custom``."""
    return Def(name=name, label=label, format="enum", role="dimension", data=enum_options(*options), custom=True)


def defs_for_table(
    table: HumanEffectsTable, custom_defs: Sequence[Def] = (), hidden: Iterable[str] = ()
) -> List[Def]:
    """Columns of ``table``: visible shared dimensions, custom dimensions, then the table's own."""
    hidden = set(hidden)
    return [*(d for d in SHARED_DEFS if d.name not in hidden), *custom_defs, *TABLE_DEFS[table]]


def column_names(defs: Sequence[Def]) -> List[str]:
    return [d.name for d in defs]


# =====================================================================
# Disaggregation config
# =====================================================================

# a label is plain text or text per language code
Label = Union[str, Dict[str, str]]


def label_text(label: Label) -> str:
    """English text of ``label``, else the first language given."""
    if isinstance(label, str):
        return label
    return label.get("en") or next(iter(label.values()), "")


class CustomDsgOption(BaseModel):
    key: str = Field(min_length=1)
    label: Label


class CustomDsgDef(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    db_name: str = Field(alias="dbName", min_length=1, max_length=64)
    ui_name: Label = Field(alias="uiName")
    enum: List[CustomDsgOption] = Field(default_factory=list)


class CustomDsgConfig(BaseModel):
    version: int = 1
    config: List[CustomDsgDef] = Field(default_factory=list)


class HiddenDsgColumns(BaseModel):
    cols: List[str] = Field(default_factory=list)


class DsgConfig(BaseModel):
    custom: Optional[CustomDsgConfig] = None
    hidden: HiddenDsgColumns = Field(default_factory=HiddenDsgColumns)


_BUILT_IN_NAMES = {d.name for d in SHARED_DEFS} | {d.name for defs in TABLE_DEFS.values() for d in defs}


def check_custom_config(config: CustomDsgConfig) -> None:
    """
    Raises:
        HumanEffectsError: code ``invalid_config`` for a disaggregation with
            fewer than two options, a repeated option key, or a name already
            used by another column.
    """
    seen = set()
    for d in config.config:
        if len(d.enum) < 2:
            raise HumanEffectsError("invalid_config", f'Disaggregation "{d.db_name}" must have at least 2 options.')
        if d.db_name in _BUILT_IN_NAMES or d.db_name in seen:
            raise HumanEffectsError("invalid_config", f'Disaggregation name "{d.db_name}" is already used.')
        seen.add(d.db_name)
        keys = [o.key for o in d.enum]
        if len(set(keys)) != len(keys):
            raise HumanEffectsError("invalid_config", f'Disaggregation "{d.db_name}" has repeated option keys.')


def custom_defs_from_config(config: Optional[CustomDsgConfig]) -> List[Def]:
    if config is None:
        return []
    return [
        custom_def(d.db_name, label_text(d.ui_name), [(o.key, label_text(o.label)) for o in d.enum])
        for d in config.config
    ]


async def _config_row(session: AsyncSession, country_accounts_id: str) -> Optional[HumanDsgConfig]:
    stmt = select(HumanDsgConfig).where(HumanDsgConfig.country_accounts_id == country_accounts_id)
    return (await session.execute(stmt)).scalars().first()


async def dsg_config_get(session: AsyncSession, country_accounts_id: str) -> DsgConfig:
    row = await _config_row(session, country_accounts_id)
    if row is None:
        return DsgConfig()
    return DsgConfig(
        custom=CustomDsgConfig.model_validate(row.custom) if row.custom else None,
        hidden=HiddenDsgColumns.model_validate(row.hidden or {}),
    )


async def _config_row_for_update(session: AsyncSession, country_accounts_id: str) -> HumanDsgConfig:
    row = await _config_row(session, country_accounts_id)
    if row is None:
        row = HumanDsgConfig(country_accounts_id=country_accounts_id)
    return row


async def custom_config_set(session: AsyncSession, country_accounts_id: str, config: Optional[CustomDsgConfig]) -> None:
    """Replace the custom disaggregations of a country account; ``None`` removes them all.

    Values already stored for a removed disaggregation stay in ``human_dsg.custom``
    but are no longer shown.
    """
    if config is not None:
        check_custom_config(config)
    row = await _config_row_for_update(session, country_accounts_id)
    row.custom = config.model_dump(by_alias=True) if config is not None else None
    session.add(row)
    await session.flush()


async def hidden_columns_set(session: AsyncSession, country_accounts_id: str, cols: Sequence[str]) -> None:
    """Hide shared dimensions from every table of a country account."""
    shared = [d.name for d in SHARED_DEFS]
    for col in cols:
        if col not in shared:
            raise HumanEffectsError("invalid_config", f"Unknown shared disaggregation: {col}")
    row = await _config_row_for_update(session, country_accounts_id)
    row.hidden = {"cols": [name for name in shared if name in cols]}
    session.add(row)
    await session.flush()


async def defs_for_tenant(session: AsyncSession, table: HumanEffectsTable, country_accounts_id: str) -> List[Def]:
    """Columns of ``table`` as configured for the country account."""
    config = await dsg_config_get(session, country_accounts_id)
    return defs_for_table(table, custom_defs_from_config(config.custom), config.hidden.cols)


# =====================================================================
# Row validation
# =====================================================================


def _invalid(message: str) -> HumanEffectsError:
    return HumanEffectsError("invalid_value", message)


def _parse_date(value: str) -> Optional[date]:
    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _parse_number(d: Def, value: Any, data_strings: bool) -> int:
    if data_strings:
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise _invalid(f'Invalid number string "{value}" for field "{d.name}"')
    else:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise _invalid(f'Invalid number value "{value}" for field "{d.name}"')
        number = value
    if number != number or not float(number).is_integer():
        raise _invalid(f'Invalid number value "{value}" for field "{d.name}"')
    return int(number)


def validate_row(defs: Sequence[Def], row: Sequence[Any], data_strings: bool = False, allow_partial: bool = False) -> List[Any]:
    """Check and convert one positional row.

    Missing trailing values and ``UNSET`` entries are allowed only when
    ``allow_partial`` is set and are returned as ``UNSET``. With
    ``data_strings`` the values come from text input and "" means null.

    Raises:
        HumanEffectsError: code ``invalid_value``
    """
    res: List[Any] = []
    for i, d in enumerate(defs):
        value = row[i] if i < len(row) else UNSET
        if value is UNSET:
            if allow_partial:
                res.append(UNSET)
                continue
            raise _invalid("Undefined value in row")
        if data_strings and value == "":
            res.append(None)
            continue
        if value is None:
            res.append(None)
            continue
        if d.format == "enum":
            if value not in d.enum_keys():
                raise _invalid(f'Invalid enum value "{value}" for field "{d.name}"')
            res.append(value)
        elif d.format == "number":
            res.append(_parse_number(d, value, data_strings))
        elif d.format == "date":
            if not isinstance(value, str):
                raise _invalid(f'Invalid date type, not a string "{value}" for field "{d.name}"')
            parsed = _parse_date(value)
            if parsed is None:
                raise _invalid(f'Invalid date format "{value}" for field "{d.name}"')
            res.append(parsed)
        else:
            raise ValueError(f"Unknown def format: {d.format}")
    return res


@dataclass
class _SplitRow:
    shared: Dict[str, Any]
    custom: Dict[str, Any]
    not_shared: Dict[str, Any]


def _split_row(defs: Sequence[Def], row: Sequence[Any]) -> _SplitRow:
    split = _SplitRow(shared={}, custom={}, not_shared={})
    for d, value in zip(defs, row):
        if value is UNSET:
            continue
        if d.custom:
            split.custom[d.name] = value
        elif d.shared:
            split.shared[d.name] = value
        else:
            split.not_shared[d.name] = value
    return split


# =====================================================================
# Rows
# =====================================================================


async def create(
    session: AsyncSession,
    table: HumanEffectsTable,
    record_id: str,
    defs: Sequence[Def],
    data: Sequence[Sequence[Any]],
    data_strings: bool = False,
) -> List[str]:
    """Insert ``data`` rows for ``record_id``; returns the new row ids in order."""
    model = METRIC_MODELS[table]
    ids: List[str] = []
    for row in data:
        split = _split_row(defs, validate_row(defs, row, data_strings, allow_partial=False))
        dsg = HumanDsg(record_id=record_id, custom=split.custom, **split.shared)
        session.add(dsg)
        await session.flush()
        metric = model(dsg_id=dsg.id, **split.not_shared)
        session.add(metric)
        await session.flush()
        ids.append(metric.id)
    return ids


async def _row_with_dsg(
    session: AsyncSession, table: HumanEffectsTable, row_id: str, record_id: Optional[str]
) -> Tuple[Any, HumanDsg]:
    model = METRIC_MODELS[table]
    metric = await session.get(model, row_id)
    dsg = await session.get(HumanDsg, metric.dsg_id) if metric is not None else None
    if dsg is None or (record_id is not None and dsg.record_id != record_id):
        raise HumanEffectsError("other", f"Record not found for id: {row_id}", row_id=row_id)
    return metric, dsg


async def update(
    session: AsyncSession,
    table: HumanEffectsTable,
    defs: Sequence[Def],
    ids: Sequence[str],
    data: Sequence[Sequence[Any]],
    data_strings: bool = False,
    record_id: Optional[str] = None,
) -> List[str]:
    """Apply partial rows ``data`` to the rows ``ids``; ``UNSET`` keeps a value.

    Custom dimension values are merged into the stored ``custom`` object.
    """
    if len(ids) != len(data):
        raise HumanEffectsError("other", "Mismatch between ids and data rows")
    for row_id, row in zip(ids, data):
        split = _split_row(defs, validate_row(defs, row, data_strings, allow_partial=True))
        metric, dsg = await _row_with_dsg(session, table, row_id, record_id)
        for key, value in split.shared.items():
            setattr(dsg, key, value)
        if split.custom:
            dsg.custom = {**(dsg.custom or {}), **split.custom}
        for key, value in split.not_shared.items():
            setattr(metric, key, value)
        session.add_all([dsg, metric])
    await session.flush()
    return list(ids)


async def delete_rows(
    session: AsyncSession, table: HumanEffectsTable, ids: Sequence[str], record_id: Optional[str] = None
) -> List[str]:
    deleted: List[str] = []
    for row_id in ids:
        metric, dsg = await _row_with_dsg(session, table, row_id, record_id)
        await session.delete(metric)
        await session.flush()
        await session.delete(dsg)
        deleted.append(row_id)
    await session.flush()
    return deleted


async def clear_data(session: AsyncSession, table: HumanEffectsTable, record_id: str) -> List[str]:
    """Delete every row of ``table`` recorded for ``record_id``.

    The table goes back to typed in totals.
    """
    await total_group_set(session, record_id, table, None)
    await set_total_presence_table(session, record_id, table, None)
    model = METRIC_MODELS[table]
    stmt = select(model.id).join(HumanDsg, HumanDsg.id == model.dsg_id).where(HumanDsg.record_id == record_id)
    ids = list((await session.execute(stmt)).scalars().all())
    return await delete_rows(session, table, ids)


async def clear_record(session: AsyncSession, record_id: str) -> None:
    """Delete all human effects data and presence flags of a record."""
    for table in HumanEffectsTable:
        await clear_data(session, table, record_id)
    await session.execute(delete(HumanDsg).where(HumanDsg.record_id == record_id))
    await session.execute(delete(HumanCategoryPresence).where(HumanCategoryPresence.record_id == record_id))


class TableData(BaseModel):
    ids: List[str]
    data: List[List[Any]]


def _sort_key(item: Tuple[str, List[Any]]) -> Tuple:
    return tuple((0, "") if v is None else (1, v) for v in item[1])


def _row_values(defs: Sequence[Def], metric: Any, dsg: HumanDsg) -> List[Any]:
    values: List[Any] = []
    for d in defs:
        if d.custom:
            values.append((dsg.custom or {}).get(d.name))
        elif d.shared:
            values.append(getattr(dsg, d.name))
        else:
            values.append(getattr(metric, d.name))
    return values


async def get(
    session: AsyncSession,
    table: HumanEffectsTable,
    record_id: str,
    country_accounts_id: str,
    defs: Sequence[Def],
) -> TableData:
    """Rows of ``table`` for a record of the tenant, nulls sorted first."""
    model = METRIC_MODELS[table]
    stmt = (
        select(model, HumanDsg)
        .join(HumanDsg, HumanDsg.id == model.dsg_id)
        .join(DisasterRecord, DisasterRecord.id == HumanDsg.record_id)
        .where(HumanDsg.record_id == record_id, DisasterRecord.country_accounts_id == country_accounts_id)
    )
    rows = [(metric.id, _row_values(defs, metric, dsg)) for metric, dsg in (await session.execute(stmt)).all()]
    rows.sort(key=_sort_key)
    return TableData(ids=[r[0] for r in rows], data=[r[1] for r in rows])


def _dimension_indexes(defs: Sequence[Def]) -> List[int]:
    return [i for i, d in enumerate(defs) if d.role == "dimension"]


def _metric_indexes(defs: Sequence[Def]) -> List[int]:
    return [i for i, d in enumerate(defs) if d.role == "metric"]


def split_totals(defs: Sequence[Def], current: TableData) -> Tuple[Optional[str], List[Tuple[str, List[Any]]]]:
    """Separate the totals row, the first row without dimension values, from the others."""
    dimensions = _dimension_indexes(defs)
    totals_id: Optional[str] = None
    rest: List[Tuple[str, List[Any]]] = []
    for row_id, row in zip(current.ids, current.data):
        if totals_id is None and all(row[i] is None for i in dimensions):
            totals_id = row_id
            continue
        rest.append((row_id, row))
    return totals_id, rest


@dataclass
class TableValidation:
    """Outcome of ``validate``; ``warnings`` never block a save."""

    errors: List[HumanEffectsError] = field(default_factory=list)
    group_errors: List[HumanEffectsError] = field(default_factory=list)
    warnings: List[HumanEffectsError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors and not self.group_errors


def _group_key(dimensions: Sequence[int], row: Sequence[Any]) -> Tuple[int, ...]:
    return tuple(i for i in dimensions if row[i] is not None)


def _check_group_totals(
    defs: Sequence[Def], rows: Sequence[Tuple[str, List[Any]]], totals: Sequence[Any], res: TableValidation
) -> None:
    dimensions = _dimension_indexes(defs)
    groups: Dict[Tuple[int, ...], List[Tuple[str, List[Any]]]] = {}
    for row_id, row in rows:
        groups.setdefault(_group_key(dimensions, row), []).append((row_id, row))

    for key, members in groups.items():
        # dated rows are snapshots in time and do not add up
        if any(defs[i].format == "date" for i in key):
            continue
        names = [defs[i].name for i in key]
        for i in _metric_indexes(defs):
            metric = defs[i].name
            subtotal = sum(row[i] or 0 for _, row in members)
            total = totals[i] or 0
            if subtotal > total:
                res.group_errors.append(
                    HumanEffectsError(
                        "subtotal_larger_than_total",
                        f'Total for group ({",".join(names)}), column "{metric}" exceeds overall total {subtotal} > {total}',
                        group=names,
                    )
                )
                for row_id, _ in members:
                    res.errors.append(
                        HumanEffectsError(
                            "subtotal_larger_than_total",
                            f"Row belongs to group, for which total [{','.join(names)}] {metric}={subtotal} "
                            f"exceeds overall total ({total})",
                            row_id=row_id,
                        )
                    )
            elif subtotal < total:
                res.warnings.append(
                    HumanEffectsError(
                        "subtotal_lower_than_total",
                        "Subtotal is lower than the total, please check if this is intentional.",
                        group=names,
                    )
                )


async def validate(
    session: AsyncSession,
    table: HumanEffectsTable,
    record_id: str,
    country_accounts_id: str,
    defs: Sequence[Def],
) -> TableValidation:
    """Table level checks over the stored rows.

    Only one row may lack dimension values, the totals row; any other such
    row is ``no_dimension_data``. Rows sharing all dimension values are
    ``duplicate_dimension``. These row errors come sorted by row id and stop
    further checks. With a totals row, a group of rows filling the same
    dimensions may not add up to more than the total
    (``subtotal_larger_than_total``); adding up to less is only a warning.
    """
    current = await get(session, table, record_id, country_accounts_id, defs)
    dimensions = _dimension_indexes(defs)
    totals_id, rows = split_totals(defs, current)

    errors: Dict[str, HumanEffectsError] = {}
    seen: Dict[Tuple, str] = {}
    for row_id, row in rows:
        key = tuple(row[i] for i in dimensions)
        if all(v is None for v in key):
            errors[row_id] = HumanEffectsError("no_dimension_data", "Row has no disaggregation values.", row_id=row_id)
            continue
        if key in seen:
            for duplicate in (seen[key], row_id):
                errors[duplicate] = HumanEffectsError(
                    "duplicate_dimension", "Two or more rows have the same disaggregation values.", row_id=duplicate
                )
            continue
        seen[key] = row_id

    res = TableValidation(errors=[errors[row_id] for row_id in sorted(errors)])
    if res.errors or totals_id is None:
        return res
    _check_group_totals(defs, rows, current.data[current.ids.index(totals_id)], res)
    return res


# =====================================================================
# Totals
# =====================================================================


class TotalGroupFlag(BaseModel):
    """Whether dimension ``db_name`` is filled in the rows that make up the totals."""

    model_config = ConfigDict(populate_by_name=True)

    db_name: str = Field(alias="dbName")
    is_set: bool = Field(alias="isSet")


Totals = Dict[str, Optional[int]]


def _flags_column(table: HumanEffectsTable) -> str:
    return f"{table.value.lower()}_total_group_flags"


async def _presence_row(session: AsyncSession, record_id: str) -> Optional[HumanCategoryPresence]:
    stmt = select(HumanCategoryPresence).where(HumanCategoryPresence.record_id == record_id)
    return (await session.execute(stmt)).scalars().first()


async def total_group_get(session: AsyncSession, record_id: str, table: HumanEffectsTable) -> Optional[List[TotalGroupFlag]]:
    """The total group of ``table``, ``None`` when totals are typed in."""
    row = await _presence_row(session, record_id)
    value = getattr(row, _flags_column(table)) if row is not None else None
    if not isinstance(value, list):
        if value is not None:
            logger.warning(f"Ignoring malformed total group of {table.value} for record {record_id}: {value!r}")
        return None
    return [TotalGroupFlag.model_validate(v) for v in value]


async def total_group_set(
    session: AsyncSession, record_id: str, table: HumanEffectsTable, flags: Optional[Sequence[TotalGroupFlag]]
) -> None:
    row = await _presence_row(session, record_id)
    if row is None:
        if flags is None:
            return
        row = HumanCategoryPresence(record_id=record_id)
    value = [f.model_dump(by_alias=True) for f in flags] if flags is not None else None
    setattr(row, _flags_column(table), value)
    session.add(row)
    await session.flush()


def calc_total_for_group(defs: Sequence[Def], current: TableData, flags: Sequence[TotalGroupFlag]) -> Totals:
    """Add up the metrics of the rows filling exactly the flagged dimensions.

    Raises:
        HumanEffectsError: code ``total_group_error`` when the flags name no
            dimension or one that is not a column of the table.
    """
    dimensions = _dimension_indexes(defs)
    names = {defs[i].name for i in dimensions}
    chosen = {f.db_name for f in flags if f.is_set}
    unknown = sorted(chosen - names)
    if unknown:
        raise HumanEffectsError("total_group_error", f"Total group uses unknown dimensions: {','.join(unknown)}")
    if not chosen:
        raise HumanEffectsError("total_group_error", "Total group has no dimensions")

    key = tuple(i for i in dimensions if defs[i].name in chosen)
    totals: Totals = {}
    for i in _metric_indexes(defs):
        values = [row[i] for row in current.data if _group_key(dimensions, row) == key and row[i] is not None]
        totals[defs[i].name] = sum(values) if values else None
    return totals


def totals_from_table(defs: Sequence[Def], current: TableData) -> Optional[Totals]:
    """Metric values of the totals row, ``None`` without one."""
    totals_id, _ = split_totals(defs, current)
    if totals_id is None:
        return None
    row = current.data[current.ids.index(totals_id)]
    return {defs[i].name: row[i] for i in _metric_indexes(defs)}


async def set_total(
    session: AsyncSession,
    table: HumanEffectsTable,
    record_id: str,
    country_accounts_id: str,
    defs: Sequence[Def],
    totals: Totals,
) -> None:
    """Write ``totals`` into the totals row, adding the row when missing, and into the presence table."""
    current = await get(session, table, record_id, country_accounts_id, defs)
    totals_id, _ = split_totals(defs, current)
    row = [totals.get(d.name) if d.role == "metric" else None for d in defs]
    if totals_id is not None:
        await update(session, table, defs, [totals_id], [row], record_id=record_id)
    elif any(v is not None for v in totals.values()):
        await create(session, table, record_id, defs, [row])
    await set_total_presence_table(session, record_id, table, totals)


async def get_total_presence_table(session: AsyncSession, record_id: str, table: HumanEffectsTable) -> Optional[Totals]:
    """Totals of ``table`` as last saved for the record."""
    row = await _presence_row(session, record_id)
    if row is None or not row.totals:
        return None
    return row.totals.get(table.value)


async def set_total_presence_table(
    session: AsyncSession, record_id: str, table: HumanEffectsTable, totals: Optional[Totals]
) -> None:
    row = await _presence_row(session, record_id)
    if row is None:
        if totals is None:
            return
        row = HumanCategoryPresence(record_id=record_id)
    stored = dict(row.totals or {})
    if totals is None:
        stored.pop(table.value, None)
    else:
        stored[table.value] = dict(totals)
    row.totals = stored
    session.add(row)
    await session.flush()


def table_metric_totals(defs: Sequence[Def], current: TableData) -> Totals:
    """Reported figures of one record's table.

    The totals row when there is one. Otherwise every group of rows breaks
    down the same people, so the largest group subtotal is taken.
    """
    totals = totals_from_table(defs, current)
    if totals is not None:
        return totals
    dimensions = _dimension_indexes(defs)
    res: Totals = {}
    for i in _metric_indexes(defs):
        sums: Dict[Tuple[int, ...], int] = {}
        for row in current.data:
            if row[i] is not None:
                key = _group_key(dimensions, row)
                sums[key] = sums.get(key, 0) + row[i]
        res[defs[i].name] = max(sums.values()) if sums else None
    return res


async def records_metric_totals(
    session: AsyncSession, table: HumanEffectsTable, record_ids: Sequence[str], defs: Sequence[Def]
) -> Dict[str, int]:
    """``table_metric_totals`` added up over ``record_ids``."""
    res = {d.name: 0 for d in _metric_defs(defs)}
    if not record_ids:
        return res
    model = METRIC_MODELS[table]
    stmt = select(model, HumanDsg).join(HumanDsg, HumanDsg.id == model.dsg_id).where(HumanDsg.record_id.in_(record_ids))
    by_record: Dict[str, List[Tuple[str, List[Any]]]] = {}
    for metric, dsg in (await session.execute(stmt)).all():
        by_record.setdefault(dsg.record_id, []).append((metric.id, _row_values(defs, metric, dsg)))
    for rows in by_record.values():
        rows.sort(key=_sort_key)
        current = TableData(ids=[r[0] for r in rows], data=[r[1] for r in rows])
        for name, value in table_metric_totals(defs, current).items():
            res[name] += value or 0
    return res


# =====================================================================
# Category presence
# =====================================================================


def _presence_column(table: HumanEffectsTable, d: Def) -> str:
    return PRESENCE_PREFIX.get(table, "") + d.name


def _metric_defs(defs: Sequence[Def]) -> List[Def]:
    return [d for d in defs if d.role == "metric"]


async def category_presence_get(
    session: AsyncSession,
    record_id: str,
    country_accounts_id: str,
    table: HumanEffectsTable,
    defs: Sequence[Def],
) -> Dict[str, bool]:
    """Presence flags of ``table``'s metrics; unanswered metrics are left out."""
    stmt = (
        select(HumanCategoryPresence)
        .join(DisasterRecord, DisasterRecord.id == HumanCategoryPresence.record_id)
        .where(HumanCategoryPresence.record_id == record_id, DisasterRecord.country_accounts_id == country_accounts_id)
    )
    row = (await session.execute(stmt)).scalars().first()
    if row is None:
        return {}
    res: Dict[str, bool] = {}
    for d in _metric_defs(defs):
        value = getattr(row, _presence_column(table, d))
        if value is not None:
            res[d.name] = value
    return res


async def category_presence_set(
    session: AsyncSession,
    record_id: str,
    table: HumanEffectsTable,
    defs: Sequence[Def],
    data: Mapping[str, Optional[bool]],
) -> None:
    """Store the flags of ``table``'s metrics; a metric missing from ``data`` is reset to unanswered."""
    row = await _presence_row(session, record_id)
    if row is None:
        row = HumanCategoryPresence(record_id=record_id)
    for d in _metric_defs(defs):
        setattr(row, _presence_column(table, d), data.get(d.name))
    session.add(row)
    await session.flush()


# =====================================================================
# Save
# =====================================================================


class SaveData(BaseModel):
    """Pending changes of one table.

    ``total_group_flags`` is applied only when sent; ``null`` switches back
    to typed in totals.
    """

    model_config = ConfigDict(populate_by_name=True)

    deletes: Optional[List[str]] = None
    updates: Optional[Dict[str, Dict[int, Any]]] = None
    new_rows: Optional[Dict[str, List[Any]]] = Field(default=None, alias="newRows")
    total_group_flags: Optional[List[TotalGroupFlag]] = Field(default=None, alias="totalGroupFlags")

    def has_changes(self) -> bool:
        return self.deletes is not None or self.updates is not None or self.new_rows is not None


class SaveResult(BaseModel):
    ok: bool
    error: Optional[Dict[str, Any]] = None
    errors: Optional[List[Dict[str, Any]]] = None
    warnings: Optional[List[Dict[str, Any]]] = None


def updates_to_rows(updates: Mapping[str, Mapping[int, Any]], columns: int) -> Tuple[List[str], List[List[Any]]]:
    """Turn ``{row_id: {column_index: value}}`` into ids and ``UNSET`` padded rows."""
    ids: List[str] = []
    rows: List[List[Any]] = []
    for row_id, changes in updates.items():
        row: List[Any] = [UNSET] * columns
        for index, value in changes.items():
            if not 0 <= int(index) < columns:
                raise HumanEffectsError("invalid_value", f"Invalid column index {index}", row_id=row_id)
            row[int(index)] = value
        ids.append(row_id)
        rows.append(row)
    return ids, rows


async def save(
    session: AsyncSession,
    table: HumanEffectsTable,
    record_id: str,
    country_accounts_id: str,
    defs: Sequence[Def],
    data: SaveData,
) -> SaveResult:
    """Apply deletes, updates and new rows, then validate the whole table.

    With a total group the totals row is recomputed from the group's rows;
    without one the typed in totals row is copied to the presence table.

    Runs in one transaction: any failure rolls back every change. Row errors
    on new rows are reported with the temporary ids the client sent.
    """
    id_map: Dict[str, str] = {}
    try:
        if "total_group_flags" in data.model_fields_set:
            await total_group_set(session, record_id, table, data.total_group_flags)
        if data.deletes:
            await delete_rows(session, table, data.deletes, record_id)
        if data.updates:
            ids, rows = updates_to_rows(data.updates, len(defs))
            await update(session, table, defs, ids, rows, record_id=record_id)
        if data.new_rows:
            temp_ids = list(data.new_rows.keys())
            new_ids = await create(session, table, record_id, defs, list(data.new_rows.values()))
            id_map = dict(zip(new_ids, temp_ids))

        current = await get(session, table, record_id, country_accounts_id, defs)
        if data.total_group_flags:
            totals = calc_total_for_group(defs, current, data.total_group_flags)
            await set_total(session, table, record_id, country_accounts_id, defs, totals)
        else:
            await set_total_presence_table(session, record_id, table, totals_from_table(defs, current))

        res = await validate(session, table, record_id, country_accounts_id, defs)
        if not res.ok:
            await session.rollback()
            for e in res.errors:
                e.row_id = id_map.get(e.row_id, e.row_id)
            return SaveResult(
                ok=False,
                error=res.group_errors[0].to_dict() if res.group_errors else None,
                errors=[e.to_dict() for e in res.errors] or None,
            )

        if data.has_changes():
            await _mark_present_metrics(session, table, record_id, country_accounts_id, defs)
        await session.commit()
    except HumanEffectsError as e:
        await session.rollback()
        logger.info(f"Human effects save of {table.value} for record {record_id} failed: {e.message}")
        return SaveResult(ok=False, error=e.to_dict())
    except Exception:
        await session.rollback()
        raise
    return SaveResult(ok=True, warnings=[w.to_dict() for w in res.warnings] or None)


async def _mark_present_metrics(
    session: AsyncSession,
    table: HumanEffectsTable,
    record_id: str,
    country_accounts_id: str,
    defs: Sequence[Def],
) -> None:
    current = await get(session, table, record_id, country_accounts_id, defs)
    presence = await category_presence_get(session, record_id, country_accounts_id, table, defs)
    for i, d in enumerate(defs):
        if d.role == "metric" and any(row[i] is not None for row in current.data):
            presence[d.name] = True
    await category_presence_set(session, record_id, table, defs, presence)
