"""
Tenant level figures for dashboards.

Damage figures are repair plus replacement costs and loss figures public
plus private costs, both computed per row as the cost calculator does.
Filters select disaster records; a record's year is the year of its start
date.
"""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from disaster_tracking.core.database.entities.damages import Damage
from disaster_tracking.core.database.entities.disaster_records import DisasterRecord, SectorDisasterRecordRelation
from disaster_tracking.core.database.entities.events import DisasterEvent
from disaster_tracking.core.database.entities.hip import HipType
from disaster_tracking.core.database.entities.losses import Loss
from disaster_tracking.core.logging_config import get_logger
from disaster_tracking.core.pagination import PageParams

from . import human_effects
from .cost_calculator import ZERO, CostTotals, damage_cost, loss_cost, reported_totals
from .human_effects import HumanEffectsTable
from .sectors import sector_descendant_ids

logger = get_logger(__name__)

TOP_HAZARDS = 10


class AnalyticsFilters(BaseModel):
    """Record filters shared by the dashboards; dates are ``YYYY-MM-DD``."""

    from_date: Optional[str] = None
    to_date: Optional[str] = None
    hip_type_id: Optional[str] = None
    hip_cluster_id: Optional[str] = None
    hip_hazard_id: Optional[str] = None
    disaster_event_id: Optional[str] = None


def _stored_totals(event: DisasterEvent) -> CostTotals:
    def value(calc: Optional[Decimal]) -> Decimal:
        return Decimal(calc) if calc is not None else ZERO

    return CostTotals(
        repair=value(event.repair_costs_local_currency_calc),
        replacement=value(event.replacement_costs_local_currency_calc),
        recovery=value(event.recovery_needs_local_currency_calc),
        rehabilitation=value(event.rehabilitation_costs_local_currency_calc),
    )


async def records_by_status(session: AsyncSession, country_accounts_id: Optional[str]) -> Dict[str, int]:
    stmt = (
        select(DisasterRecord.approval_status, func.count())
        .where(DisasterRecord.country_accounts_id == country_accounts_id)
        .group_by(DisasterRecord.approval_status)
    )
    return {status: count for status, count in (await session.execute(stmt)).all()}


async def summary(session: AsyncSession, country_accounts_id: Optional[str]) -> Dict[str, Any]:
    """Record counts per approval status, event count and the sum of reported event totals.

    Event totals use the stored ``_calc`` columns, replaced by overrides where set.
    """
    stmt = select(DisasterEvent).where(DisasterEvent.country_accounts_id == country_accounts_id)
    events = list((await session.execute(stmt)).scalars().all())
    effects_total = sum((reported_totals(e, _stored_totals(e)).total for e in events), ZERO)
    return {
        "records_by_status": await records_by_status(session, country_accounts_id),
        "disaster_events": len(events),
        "effects_total_local_currency": effects_total,
    }


async def hazard_counts(session: AsyncSession, country_accounts_id: Optional[str]) -> List[Dict[str, Any]]:
    """Disaster records per HIP type, most frequent first."""
    count = func.count(DisasterRecord.id)
    stmt = (
        select(DisasterRecord.hip_type_id, HipType.name_en, count)
        .outerjoin(HipType, HipType.id == DisasterRecord.hip_type_id)
        .where(DisasterRecord.country_accounts_id == country_accounts_id)
        .group_by(DisasterRecord.hip_type_id, HipType.name_en)
        .order_by(count.desc(), DisasterRecord.hip_type_id)
    )
    return [
        {"hip_type_id": hip_type_id, "name": name, "count": n}
        for hip_type_id, name, n in (await session.execute(stmt)).all()
    ]


# =====================================================================
# Filtered records
# =====================================================================


async def filtered_records(
    session: AsyncSession,
    country_accounts_id: Optional[str],
    filters: AnalyticsFilters,
    sector_ids: Optional[Sequence[str]] = None,
) -> List[DisasterRecord]:
    """Records of the tenant matching ``filters``; with ``sector_ids`` only those related to one of them."""
    stmt = select(DisasterRecord).where(DisasterRecord.country_accounts_id == country_accounts_id)
    if filters.from_date:
        stmt = stmt.where(DisasterRecord.start_date >= filters.from_date)
    if filters.to_date:
        stmt = stmt.where(DisasterRecord.start_date != "", DisasterRecord.start_date <= filters.to_date)
    if filters.hip_type_id:
        stmt = stmt.where(DisasterRecord.hip_type_id == filters.hip_type_id)
    if filters.hip_cluster_id:
        stmt = stmt.where(DisasterRecord.hip_cluster_id == filters.hip_cluster_id)
    if filters.hip_hazard_id:
        stmt = stmt.where(DisasterRecord.hip_hazard_id == filters.hip_hazard_id)
    if filters.disaster_event_id:
        stmt = stmt.where(DisasterRecord.disaster_event_id == filters.disaster_event_id)
    if sector_ids is not None:
        related = select(SectorDisasterRecordRelation.disaster_record_id).where(
            SectorDisasterRecordRelation.sector_id.in_(sector_ids)
        )
        stmt = stmt.where(DisasterRecord.id.in_(related))
    return list((await session.execute(stmt.order_by(DisasterRecord.id))).scalars().all())


async def _costs_by_record(
    session: AsyncSession, record_ids: Sequence[str], sector_ids: Optional[Sequence[str]] = None
) -> Dict[str, Dict[str, Decimal]]:
    """``{record_id: {"damage": ..., "loss": ...}}``, optionally only for rows of ``sector_ids``."""
    res: Dict[str, Dict[str, Decimal]] = defaultdict(lambda: {"damage": ZERO, "loss": ZERO})
    if not record_ids:
        return res
    for model, key, cost in ((Damage, "damage", damage_cost), (Loss, "loss", loss_cost)):
        stmt = select(model).where(model.record_id.in_(record_ids))
        if sector_ids is not None:
            stmt = stmt.where(model.sector_id.in_(sector_ids))
        for row in (await session.execute(stmt)).scalars().all():
            res[row.record_id][key] += cost(row)
    return res


def _year(record: DisasterRecord) -> Optional[str]:
    year = record.start_date[:4]
    return year if len(year) == 4 and year.isdigit() else None


def _with_percentages(values: Dict[Optional[str], Any], names: Dict[str, str]) -> List[Dict[str, Any]]:
    """Largest first, cut to ``TOP_HAZARDS``, each with its share of the listed total."""
    top = sorted(values.items(), key=lambda kv: (-kv[1], kv[0] or ""))[:TOP_HAZARDS]
    total = sum(v for _, v in top)
    return [
        {
            "hip_type_id": key,
            "name": names.get(key) if key is not None else None,
            "value": value,
            "percentage": float(value / total * 100) if total else 0.0,
        }
        for key, value in top
    ]


# =====================================================================
# Dashboards
# =====================================================================


async def sector_impact(
    session: AsyncSession, country_accounts_id: Optional[str], sector_id: str, filters: AnalyticsFilters
) -> Dict[str, Any]:
    """Records, damages and losses of a sector and its sub-sectors, in total and per year."""
    sector_ids = await sector_descendant_ids(session, sector_id)
    records = await filtered_records(session, country_accounts_id, filters, sector_ids)
    costs = await _costs_by_record(session, [r.id for r in records], sector_ids)

    records_over_time: Dict[str, int] = defaultdict(int)
    damage_over_time: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    loss_over_time: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for record in records:
        year = _year(record)
        if year is None:
            continue
        records_over_time[year] += 1
        if record.id in costs:
            damage_over_time[year] += costs[record.id]["damage"]
            loss_over_time[year] += costs[record.id]["loss"]

    logger.debug(f"Sector {sector_id} impact over {len(records)} records and {len(sector_ids)} sectors")
    return {
        "sector_id": sector_id,
        "record_count": len(records),
        "event_count": len({r.disaster_event_id for r in records if r.disaster_event_id}),
        "total_damage": sum((c["damage"] for c in costs.values()), ZERO),
        "total_loss": sum((c["loss"] for c in costs.values()), ZERO),
        "records_over_time": dict(sorted(records_over_time.items())),
        "damage_over_time": dict(sorted(damage_over_time.items())),
        "loss_over_time": dict(sorted(loss_over_time.items())),
    }


async def hazard_impact(
    session: AsyncSession,
    country_accounts_id: Optional[str],
    filters: AnalyticsFilters,
    sector_id: Optional[str] = None,
) -> Dict[str, List[Dict[str, Any]]]:
    """Records, damages and losses per HIP type, the top ones with their share."""
    sector_ids = await sector_descendant_ids(session, sector_id) if sector_id else None
    records = await filtered_records(session, country_accounts_id, filters, sector_ids)
    costs = await _costs_by_record(session, [r.id for r in records], sector_ids)

    counts: Dict[Optional[str], int] = defaultdict(int)
    damages: Dict[Optional[str], Decimal] = defaultdict(lambda: ZERO)
    losses: Dict[Optional[str], Decimal] = defaultdict(lambda: ZERO)
    for record in records:
        counts[record.hip_type_id] += 1
        if record.id in costs:
            damages[record.hip_type_id] += costs[record.id]["damage"]
            losses[record.hip_type_id] += costs[record.id]["loss"]

    type_ids = [k for k in counts if k is not None]
    names: Dict[str, str] = {}
    if type_ids:
        stmt = select(HipType.id, HipType.name_en).where(HipType.id.in_(type_ids))
        names = {type_id: name for type_id, name in (await session.execute(stmt)).all()}
    return {
        "records": _with_percentages(counts, names),
        "damages": _with_percentages(damages, names),
        "losses": _with_percentages(losses, names),
    }


DAMAGING_EVENT_SORTS = ("damages", "losses", "name", "created_at")


async def most_damaging_events(
    session: AsyncSession,
    country_accounts_id: Optional[str],
    filters: AnalyticsFilters,
    params: PageParams,
    sort_by: str = "damages",
    descending: bool = True,
    sector_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Disaster events with the damages and losses of their matching records, one page of them.

    Raises:
        ValueError: for a ``sort_by`` outside ``DAMAGING_EVENT_SORTS``
    """
    if sort_by not in DAMAGING_EVENT_SORTS:
        raise ValueError(f"Unknown sort column: {sort_by}")
    sector_ids = await sector_descendant_ids(session, sector_id) if sector_id else None
    records = [
        r for r in await filtered_records(session, country_accounts_id, filters, sector_ids) if r.disaster_event_id
    ]
    costs = await _costs_by_record(session, [r.id for r in records], sector_ids)

    by_event: Dict[str, Dict[str, Decimal]] = defaultdict(lambda: {"damage": ZERO, "loss": ZERO})
    for record in records:
        by_event[record.disaster_event_id]["damage"] += costs.get(record.id, {}).get("damage", ZERO)
        by_event[record.disaster_event_id]["loss"] += costs.get(record.id, {}).get("loss", ZERO)

    events: List[DisasterEvent] = []
    if by_event:
        stmt = select(DisasterEvent).where(DisasterEvent.id.in_(list(by_event)))
        events = list((await session.execute(stmt)).scalars().all())
    rows = [
        {
            "disaster_event_id": e.id,
            "name": e.name_national,
            "created_at": e.created_at,
            "total_damages": by_event[e.id]["damage"],
            "total_losses": by_event[e.id]["loss"],
        }
        for e in events
    ]
    sort_key = {"damages": "total_damages", "losses": "total_losses"}.get(sort_by, sort_by)
    # ties keep a stable order by id
    rows.sort(key=lambda row: row["disaster_event_id"])
    rows.sort(key=lambda row: row[sort_key], reverse=descending)

    page = rows[params.offset : params.offset + params.page_size]
    return {
        "items": page,
        "pagination": {
            "total_items": len(rows),
            "items_on_this_page": len(page),
            "page": params.page,
            "page_size": params.page_size,
            "extra_params": {"sort_by": sort_by, "descending": descending},
        },
    }


AFFECTED_PEOPLE_TABLES = (
    HumanEffectsTable.DEATHS,
    HumanEffectsTable.INJURED,
    HumanEffectsTable.MISSING,
    HumanEffectsTable.AFFECTED,
    HumanEffectsTable.DISPLACED,
)


async def affected_people(
    session: AsyncSession, country_accounts_id: str, filters: AnalyticsFilters
) -> Dict[str, int]:
    """People per human effects metric over the matching records.

    ``total`` adds deaths, injured, missing, directly affected and displaced;
    indirectly affected people are left out of it.
    """
    record_ids = [r.id for r in await filtered_records(session, country_accounts_id, filters)]
    res: Dict[str, int] = {}
    for table in AFFECTED_PEOPLE_TABLES:
        defs = await human_effects.defs_for_tenant(session, table, country_accounts_id)
        res.update(await human_effects.records_metric_totals(session, table, record_ids, defs))
    res["total"] = sum(value for name, value in res.items() if name != "indirect")
    return res
