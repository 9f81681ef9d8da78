"""
Cost totals of disaster events.

The four local currency totals of a disaster event (repair, replacement,
recovery and rehabilitation) are derived from the damages, disruptions and
sector relations of the event's disaster records. Derived values are stored
in the ``*_calc`` columns of ``disaster_event``; a non-zero user
entered ``*_override`` value takes precedence when reporting.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Sequence

from pydantic import BaseModel, computed_field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from disaster_tracking.core.database.entities.damages import Damage
from disaster_tracking.core.database.entities.disaster_records import DisasterRecord, SectorDisasterRecordRelation
from disaster_tracking.core.database.entities.disruptions import Disruption
from disaster_tracking.core.database.entities.events import DisasterEvent
from disaster_tracking.core.database.entities.losses import Loss
from disaster_tracking.core.logging_config import get_logger

logger = get_logger(__name__)

ZERO = Decimal("0")


class CostTotals(BaseModel):
    repair: Decimal = ZERO
    replacement: Decimal = ZERO
    recovery: Decimal = ZERO
    rehabilitation: Decimal = ZERO

    @computed_field
    @property
    def total(self) -> Decimal:
        return self.repair + self.replacement + self.recovery + self.rehabilitation


def _cost(total: Optional[Decimal], unit_cost: Optional[Decimal], amount: Optional[float]) -> Decimal:
    # a zero total counts as not entered
    if total:
        return Decimal(total)
    if unit_cost is not None and amount is not None:
        return Decimal(unit_cost) * Decimal(str(amount))
    return ZERO


def damage_cost(damage: Damage) -> Decimal:
    """Repair plus replacement cost of one damage row."""
    return _cost(damage.pd_repair_cost_total, damage.pd_repair_cost_unit, damage.pd_damage_amount) + _cost(
        damage.td_replacement_cost_total, damage.td_replacement_cost_unit, damage.td_damage_amount
    )


def loss_cost(loss: Loss) -> Decimal:
    """Public plus private cost of one loss row."""
    return _cost(loss.public_cost_total, loss.public_cost_unit, loss.public_units) + _cost(
        loss.private_cost_total, loss.private_cost_unit, loss.private_units
    )


async def record_ids_for_event(session: AsyncSession, disaster_event_id: str) -> List[str]:
    stmt = select(DisasterRecord.id).where(DisasterRecord.disaster_event_id == disaster_event_id)
    return list((await session.execute(stmt)).scalars().all())


async def repair_cost(session: AsyncSession, record_ids: Sequence[str]) -> Decimal:
    if not record_ids:
        return ZERO
    stmt = select(Damage.pd_repair_cost_total, Damage.pd_repair_cost_unit, Damage.pd_damage_amount).where(
        Damage.record_id.in_(record_ids)
    )
    return sum((_cost(*row) for row in (await session.execute(stmt)).all()), ZERO)


async def replacement_cost(session: AsyncSession, record_ids: Sequence[str]) -> Decimal:
    if not record_ids:
        return ZERO
    stmt = select(
        Damage.td_replacement_cost_total, Damage.td_replacement_cost_unit, Damage.td_damage_amount
    ).where(Damage.record_id.in_(record_ids))
    return sum((_cost(*row) for row in (await session.execute(stmt)).all()), ZERO)


async def rehabilitation_cost(session: AsyncSession, record_ids: Sequence[str]) -> Decimal:
    if not record_ids:
        return ZERO
    stmt = select(Disruption.response_cost).where(Disruption.record_id.in_(record_ids))
    costs = (await session.execute(stmt)).scalars().all()
    return sum((Decimal(c) for c in costs if c is not None), ZERO)


async def recovery_cost(session: AsyncSession, record_ids: Sequence[str]) -> Decimal:
    """Sum of recovery needs over the sector relations of ``record_ids``.

    A relation with ``damage_recovery_cost`` contributes that value, any
    other relation contributes the ``total_recovery`` of the damages
    recorded for the same record and sector.
    """
    if not record_ids:
        return ZERO
    stmt = select(SectorDisasterRecordRelation).where(SectorDisasterRecordRelation.disaster_record_id.in_(record_ids))
    total = ZERO
    for relation in (await session.execute(stmt)).scalars().all():
        if relation.damage_recovery_cost is not None:
            total += Decimal(relation.damage_recovery_cost)
            continue
        damages = select(Damage.total_recovery).where(
            Damage.record_id == relation.disaster_record_id,
            Damage.sector_id == relation.sector_id,
        )
        total += sum((Decimal(v) for v in (await session.execute(damages)).scalars().all() if v is not None), ZERO)
    return total


async def calculate_totals(session: AsyncSession, disaster_event_id: str) -> CostTotals:
    """Totals derived from the records of the event, ignoring overrides."""
    record_ids = await record_ids_for_event(session, disaster_event_id)
    return CostTotals(
        repair=await repair_cost(session, record_ids),
        replacement=await replacement_cost(session, record_ids),
        recovery=await recovery_cost(session, record_ids),
        rehabilitation=await rehabilitation_cost(session, record_ids),
    )


def reported_totals(event: DisasterEvent, calculated: CostTotals) -> CostTotals:
    """Totals as reported for ``event``: the override when non-zero, else ``calculated``."""

    def pick(override: Optional[Decimal], calc: Decimal) -> Decimal:
        return Decimal(override) if override else calc

    return CostTotals(
        repair=pick(event.repair_costs_local_currency_override, calculated.repair),
        replacement=pick(event.replacement_costs_local_currency_override, calculated.replacement),
        recovery=pick(event.recovery_needs_local_currency_override, calculated.recovery),
        rehabilitation=pick(event.rehabilitation_costs_local_currency_override, calculated.rehabilitation),
    )


async def update_totals(session: AsyncSession, disaster_event_id: str) -> Optional[CostTotals]:
    """Recompute and store the ``*_calc`` columns of one disaster event."""
    event = await session.get(DisasterEvent, disaster_event_id)
    if event is None:
        return None
    totals = await calculate_totals(session, disaster_event_id)
    event.repair_costs_local_currency_calc = totals.repair
    event.replacement_costs_local_currency_calc = totals.replacement
    event.recovery_needs_local_currency_calc = totals.recovery
    event.rehabilitation_costs_local_currency_calc = totals.rehabilitation
    session.add(event)
    await session.flush()
    logger.debug(f"Updated cost totals of disaster event {disaster_event_id}: {totals.total}")
    return totals


async def update_totals_using_disaster_record_id(session: AsyncSession, record_id: Optional[str]) -> None:
    """Recompute the totals of the event owning ``record_id``; no-op without one."""
    if not record_id:
        return
    stmt = select(DisasterRecord.disaster_event_id).where(DisasterRecord.id == record_id)
    disaster_event_id = (await session.execute(stmt)).scalar_one_or_none()
    if disaster_event_id:
        await update_totals(session, disaster_event_id)
