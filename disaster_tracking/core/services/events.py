"""
Hazardous and disaster events.

Both kinds share their id with a row in ``event``. Hazardous events can be
chained: ``event_relationship`` stores "child caused_by parent" links, and a
link that would make an event its own ancestor is refused.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Set

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from disaster_tracking.core.database.entities.disaster_records import DisasterRecord
from disaster_tracking.core.database.entities.events import DisasterEvent, Event, EventRelationship, HazardousEvent
from disaster_tracking.core.database.repositories.base import SqlRepository
from disaster_tracking.core.errors import RelationCycleError
from disaster_tracking.core.forms.fields import (
    API_IMPORT_ID,
    ATTACHMENTS,
    SPATIAL_FOOTPRINT,
    FieldDef,
    FieldType,
    ValidationFailed,
    enum_options,
)
from disaster_tracking.core.logging_config import get_logger

from .context import RequestContext, check_approval_status
from .resource import CrudResource, tenant_scope
from .shared_fields import APPROVAL_STATUS, END_DATE, HIP_FIELDS, START_DATE

logger = get_logger(__name__)

RELATION_CAUSED_BY = "caused_by"
MAX_RELATION_DEPTH = 1000

DELETE_CHILDREN_FIRST_ERROR = "Delete events that are caused by this event first"
DELETE_DISASTER_EVENTS_FIRST_ERROR = "Delete disaster events linked to this hazardous event first"
DELETE_RECORDS_FIRST_ERROR = "Delete disaster records linked to this disaster event first"

HAZARDOUS_EVENT_STATUS = enum_options(
    ("forecasted", "Forecasted"),
    ("ongoing", "Ongoing"),
    ("passed", "Passed"),
)

DISASTER_DECLARATION = enum_options(
    ("unknown", "Unknown"),
    ("yes", "Yes"),
    ("no", "No"),
)

HAZARDOUS_EVENT_FIELDS = [
    FieldDef(key="parent", label="Caused By", type=FieldType.OTHER),
    *HIP_FIELDS,
    FieldDef(key="national_specification", label="National Specification", type=FieldType.TEXT),
    START_DATE,
    END_DATE,
    FieldDef(key="description", label="Description", type=FieldType.TEXTAREA),
    FieldDef(key="chains_explanation", label="Composite Event - Chains Explanation", type=FieldType.TEXTAREA),
    FieldDef(key="magnitude", label="Magnitude", type=FieldType.TEXT),
    FieldDef(key="record_originator", label="Record Originator", type=FieldType.TEXT),
    FieldDef(key="data_source", label="Data Source", type=FieldType.TEXT),
    FieldDef(
        key="hazardous_event_status", label="Hazardous Event Status", type=FieldType.ENUM, enum_data=HAZARDOUS_EVENT_STATUS
    ),
    APPROVAL_STATUS,
    SPATIAL_FOOTPRINT,
    ATTACHMENTS,
]

HAZARDOUS_EVENT_API_FIELDS = [*HAZARDOUS_EVENT_FIELDS, API_IMPORT_ID]

DISASTER_EVENT_FIELDS = [
    FieldDef(key="hazardous_event_id", label="Hazardous Event", type=FieldType.UUID),
    FieldDef(key="national_disaster_id", label="National Disaster ID", type=FieldType.TEXT),
    FieldDef(key="name_national", label="National name", type=FieldType.TEXT),
    FieldDef(key="glide", label="GLIDE Number", type=FieldType.TEXT),
    START_DATE,
    END_DATE,
    FieldDef(
        key="disaster_declaration",
        label="Disaster Declaration",
        type=FieldType.ENUM,
        required=True,
        enum_data=DISASTER_DECLARATION,
    ),
    APPROVAL_STATUS,
    FieldDef(key="effects_total_usd", label="Effects total (USD)", type=FieldType.MONEY),
    FieldDef(key="rehabilitation_costs_local_currency_override", label="Rehabilitation costs", type=FieldType.MONEY),
    FieldDef(key="repair_costs_local_currency_override", label="Repair costs", type=FieldType.MONEY),
    FieldDef(key="replacement_costs_local_currency_override", label="Replacement costs", type=FieldType.MONEY),
    FieldDef(key="recovery_needs_local_currency_override", label="Recovery needs", type=FieldType.MONEY),
    ATTACHMENTS,
    SPATIAL_FOOTPRINT,
]

DISASTER_EVENT_API_FIELDS = [*DISASTER_EVENT_FIELDS, API_IMPORT_ID]


# =====================================================================
# Event relations
# =====================================================================


async def parent_ids(session: AsyncSession, event_id: str) -> List[str]:
    stmt = select(EventRelationship.parent_id).where(EventRelationship.child_id == event_id)
    return list((await session.execute(stmt)).scalars().all())


async def ancestor_ids(session: AsyncSession, event_id: str) -> Set[str]:
    """Every event reachable from ``event_id`` through caused_by links."""
    seen: Set[str] = set()
    pending = await parent_ids(session, event_id)
    while pending:
        current = pending.pop()
        if current in seen:
            continue
        seen.add(current)
        if len(seen) > MAX_RELATION_DEPTH:
            break
        pending.extend(await parent_ids(session, current))
    return seen


async def set_parent(session: AsyncSession, event_id: str, parent_id: Optional[str]) -> None:
    """Replace the caused_by link of ``event_id``; empty ``parent_id`` clears it.

    Raises:
        RelationCycleError: ``parent_id`` is the event itself or one of its descendants
    """
    await session.execute(delete(EventRelationship).where(EventRelationship.child_id == event_id))
    if not parent_id:
        return
    if parent_id == event_id or event_id in await ancestor_ids(session, parent_id):
        raise RelationCycleError()
    session.add(EventRelationship(parent_id=parent_id, child_id=event_id, type=RELATION_CAUSED_BY))
    await session.flush()


async def has_children(session: AsyncSession, event_id: str) -> bool:
    stmt = select(EventRelationship.child_id).where(EventRelationship.parent_id == event_id).limit(1)
    return (await session.execute(stmt)).first() is not None


# =====================================================================
# Hazardous events
# =====================================================================


async def _new_event(session: AsyncSession, data: Dict[str, Any]) -> Event:
    event = Event(description=data.get("description") or "")
    session.add(event)
    await session.flush()
    return event


async def hazardous_event_create(session: AsyncSession, ctx: RequestContext, data: Dict[str, Any]) -> str:
    check_approval_status(ctx, data)
    values = dict(data)
    parent = values.pop("parent", None)
    event = await _new_event(session, values)
    await SqlRepository(session, HazardousEvent).create(
        HazardousEvent(**values, id=event.id, country_accounts_id=ctx.country_accounts_id)
    )
    if parent:
        await set_parent(session, event.id, parent)
    return event.id


async def hazardous_event_update(
    session: AsyncSession, ctx: RequestContext, hazardous_event: HazardousEvent, data: Dict[str, Any]
) -> None:
    check_approval_status(ctx, data)
    values = dict(data)
    has_parent = "parent" in values
    parent = values.pop("parent", None)
    repo = SqlRepository(session, HazardousEvent)
    await repo.update(repo.apply(hazardous_event, values))
    if has_parent:
        await set_parent(session, hazardous_event.id, parent)


async def hazardous_event_delete(session: AsyncSession, ctx: RequestContext, hazardous_event: HazardousEvent) -> None:
    if await has_children(session, hazardous_event.id):
        raise ValidationFailed.general(DELETE_CHILDREN_FIRST_ERROR, code="has_children")
    linked = select(DisasterEvent.id).where(DisasterEvent.hazardous_event_id == hazardous_event.id).limit(1)
    if (await session.execute(linked)).first() is not None:
        raise ValidationFailed.general(DELETE_DISASTER_EVENTS_FIRST_ERROR, code="has_disaster_events")
    await session.execute(delete(EventRelationship).where(EventRelationship.child_id == hazardous_event.id))
    await session.delete(hazardous_event)
    await session.flush()
    await session.execute(delete(Event).where(Event.id == hazardous_event.id))
    logger.debug(f"Deleted hazardous event {hazardous_event.id}")


# =====================================================================
# Disaster events
# =====================================================================


async def _check_hazardous_event(session: AsyncSession, ctx: RequestContext, hazardous_event_id: Optional[str]) -> None:
    if not hazardous_event_id:
        raise ValidationFailed.for_field("hazardous_event_id", "required", "Select hazardous event")
    stmt = select(HazardousEvent.id).where(
        HazardousEvent.id == hazardous_event_id,
        HazardousEvent.country_accounts_id == ctx.country_accounts_id,
    )
    if (await session.execute(stmt)).first() is None:
        raise ValidationFailed.for_field(
            "hazardous_event_id", "not_found", f"Hazardous event {hazardous_event_id} not found"
        )


async def disaster_event_create(session: AsyncSession, ctx: RequestContext, data: Dict[str, Any]) -> str:
    await _check_hazardous_event(session, ctx, data.get("hazardous_event_id"))
    check_approval_status(ctx, data)
    event = await _new_event(session, data)
    await SqlRepository(session, DisasterEvent).create(
        DisasterEvent(**data, id=event.id, country_accounts_id=ctx.country_accounts_id)
    )
    return event.id


async def disaster_event_update(
    session: AsyncSession, ctx: RequestContext, disaster_event: DisasterEvent, data: Dict[str, Any]
) -> None:
    if "hazardous_event_id" in data:
        await _check_hazardous_event(session, ctx, data["hazardous_event_id"])
    check_approval_status(ctx, data)
    repo = SqlRepository(session, DisasterEvent)
    await repo.update(repo.apply(disaster_event, data))


async def disaster_event_delete(session: AsyncSession, ctx: RequestContext, disaster_event: DisasterEvent) -> None:
    linked = select(DisasterRecord.id).where(DisasterRecord.disaster_event_id == disaster_event.id).limit(1)
    if (await session.execute(linked)).first() is not None:
        raise ValidationFailed.general(DELETE_RECORDS_FIRST_ERROR, code="has_records")
    await session.delete(disaster_event)
    await session.flush()
    await session.execute(delete(Event).where(Event.id == disaster_event.id))


hazardous_events_resource = CrudResource(
    name="hazardous-event",
    label="Hazardous event",
    model=HazardousEvent,
    fields_def=HAZARDOUS_EVENT_API_FIELDS,
    order_by=(HazardousEvent.start_date.desc(), HazardousEvent.id),
    tenant_column="country_accounts_id",
    scope=tenant_scope(HazardousEvent),
    on_create=hazardous_event_create,
    on_update=hazardous_event_update,
    on_delete=hazardous_event_delete,
)

disaster_events_resource = CrudResource(
    name="disaster-event",
    label="Disaster event",
    model=DisasterEvent,
    fields_def=DISASTER_EVENT_API_FIELDS,
    order_by=(DisasterEvent.start_date.desc(), DisasterEvent.id),
    tenant_column="country_accounts_id",
    scope=tenant_scope(DisasterEvent),
    on_create=disaster_event_create,
    on_update=disaster_event_update,
    on_delete=disaster_event_delete,
)
