"""
Disaster records and the sectors they affect.

Also provides the hooks shared by every table hanging off a record
(losses, damages, disruptions, sector relations): the record must belong to
the acting tenant, and writes refresh the cost totals of the record's
disaster event.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Tuple, Type

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from disaster_tracking.core.database.entities.damages import Damage
from disaster_tracking.core.database.entities.disaster_records import DisasterRecord, SectorDisasterRecordRelation
from disaster_tracking.core.database.entities.disruptions import Disruption
from disaster_tracking.core.database.entities.events import DisasterEvent
from disaster_tracking.core.database.entities.losses import Loss
from disaster_tracking.core.database.repositories.base import SqlRepository
from disaster_tracking.core.forms.fields import (
    API_IMPORT_ID,
    ATTACHMENTS,
    SPATIAL_FOOTPRINT,
    FieldDef,
    FieldType,
    FormErrors,
    ValidationFailed,
)
from disaster_tracking.core.logging_config import get_logger

from . import human_effects
from .context import RequestContext, check_approval_status
from .cost_calculator import update_totals, update_totals_using_disaster_record_id
from .resource import CreateHook, CrudResource, DeleteHook, UpdateHook, record_scope, tenant_scope
from .shared_fields import APPROVAL_STATUS, END_DATE, HIP_FIELDS, START_DATE, money_with_currency

logger = get_logger(__name__)

PUBLISHED = "published"

CREATE_TENANT_ERROR = "Cannot create disaster record with disaster event from another tenant"
UPDATE_TENANT_ERROR = "Cannot update disaster record with disaster event from another tenant"
RECORD_NOT_FOUND_ERROR = "Disaster record not found or you don't have permission to use it"

DISASTER_RECORD_FIELDS = [
    FieldDef(key="disaster_event_id", label="Disaster Event", type=FieldType.UUID),
    *HIP_FIELDS,
    FieldDef(key="location_desc", label="Location Description", type=FieldType.TEXT),
    START_DATE,
    END_DATE,
    FieldDef(key="primary_data_source", label="Primary Data Source", type=FieldType.TEXT),
    FieldDef(key="other_data_source", label="Other Data Source", type=FieldType.TEXT),
    FieldDef(key="originator_recorded_by", label="Recorded By", type=FieldType.TEXT),
    FieldDef(key="validated_by", label="Validated By", type=FieldType.TEXT),
    APPROVAL_STATUS,
    SPATIAL_FOOTPRINT,
    ATTACHMENTS,
]

DISASTER_RECORD_API_FIELDS = [*DISASTER_RECORD_FIELDS, API_IMPORT_ID]

SECTOR_RELATION_FIELDS = [
    FieldDef(key="sector_id", label="Sector", type=FieldType.TEXT, required=True),
    FieldDef(key="disaster_record_id", label="Disaster Record", type=FieldType.TEXT, required=True),
    FieldDef(key="with_damage", label="With Damage", type=FieldType.BOOL),
    *money_with_currency("damage_cost", "Damage Cost"),
    *money_with_currency("damage_recovery_cost", "Damage Recovery Cost"),
    FieldDef(key="with_disruption", label="With Disruption", type=FieldType.BOOL),
    FieldDef(key="with_losses", label="With Losses", type=FieldType.BOOL),
    *money_with_currency("losses_cost", "Losses Cost"),
]

SECTOR_RELATION_API_FIELDS = [*SECTOR_RELATION_FIELDS, API_IMPORT_ID]


# =====================================================================
# Records
# =====================================================================


async def require_record(session: AsyncSession, ctx: RequestContext, record_id: Optional[str]) -> DisasterRecord:
    """The record ``record_id`` of the acting tenant.

    Raises:
        ValidationFailed: the record does not exist or belongs to another tenant
    """
    record = await session.get(DisasterRecord, record_id) if record_id else None
    if record is None or record.country_accounts_id != ctx.country_accounts_id:
        raise ValidationFailed.general(RECORD_NOT_FOUND_ERROR, code="record_not_found")
    return record


async def _check_disaster_event(session: AsyncSession, ctx: RequestContext, disaster_event_id: str, message: str) -> None:
    stmt = select(DisasterEvent.id).where(
        DisasterEvent.id == disaster_event_id,
        DisasterEvent.country_accounts_id == ctx.country_accounts_id,
    )
    if (await session.execute(stmt)).first() is None:
        raise ValidationFailed.general(message, code="tenant_mismatch")


def _blank_event_to_none(data: Dict[str, Any]) -> Dict[str, Any]:
    values = dict(data)
    if values.get("disaster_event_id") == "":
        values["disaster_event_id"] = None
    return values


async def disaster_record_create(session: AsyncSession, ctx: RequestContext, data: Dict[str, Any]) -> str:
    values = _blank_event_to_none(data)
    if values.get("disaster_event_id"):
        await _check_disaster_event(session, ctx, values["disaster_event_id"], CREATE_TENANT_ERROR)
    check_approval_status(ctx, values)
    record = await SqlRepository(session, DisasterRecord).create(
        DisasterRecord(**values, country_accounts_id=ctx.country_accounts_id)
    )
    return record.id


async def disaster_record_update(
    session: AsyncSession, ctx: RequestContext, record: DisasterRecord, data: Dict[str, Any]
) -> None:
    values = _blank_event_to_none(data)
    if values.get("disaster_event_id"):
        await _check_disaster_event(session, ctx, values["disaster_event_id"], UPDATE_TENANT_ERROR)
    check_approval_status(ctx, values)
    previous_event_id = record.disaster_event_id
    repo = SqlRepository(session, DisasterRecord)
    await repo.update(repo.apply(record, values))
    if previous_event_id and previous_event_id != record.disaster_event_id:
        await update_totals(session, previous_event_id)
    await update_totals_using_disaster_record_id(session, record.id)


async def disaster_record_delete(session: AsyncSession, ctx: RequestContext, record: DisasterRecord) -> None:
    """Delete ``record`` with everything recorded under it."""
    await human_effects.clear_record(session, record.id)
    for model in (Loss, Damage, Disruption):
        await session.execute(delete(model).where(model.record_id == record.id))
    await session.execute(
        delete(SectorDisasterRecordRelation).where(SectorDisasterRecordRelation.disaster_record_id == record.id)
    )
    disaster_event_id = record.disaster_event_id
    await session.delete(record)
    await session.flush()
    if disaster_event_id:
        await update_totals(session, disaster_event_id)


async def public_record_info(session: AsyncSession, record_id: str) -> Optional[DisasterRecord]:
    """Basic info of a published record, readable without a tenant."""
    stmt = select(DisasterRecord).where(DisasterRecord.id == record_id, DisasterRecord.approval_status == PUBLISHED)
    return (await session.execute(stmt)).scalars().first()


# =====================================================================
# Tables hanging off a record
# =====================================================================


def record_effect_hooks(
    model: Type[SQLModel],
    record_column: str = "record_id",
    validate: Optional[Callable[[Dict[str, Any]], FormErrors]] = None,
) -> Tuple[CreateHook, UpdateHook, DeleteHook]:
    """Create, update and delete hooks for a table keyed by ``record_column``.

    Each hook checks that the record belongs to the tenant and refreshes the
    cost totals of the affected disaster event(s). ``validate`` runs on the
    submitted values before any write.
    """

    def check(data: Dict[str, Any]) -> None:
        if validate is None:
            return
        errors = validate(data)
        if errors.has_errors():
            raise ValidationFailed(errors)

    async def create(session: AsyncSession, ctx: RequestContext, data: Dict[str, Any]) -> str:
        check(data)
        await require_record(session, ctx, data.get(record_column))
        entity = await SqlRepository(session, model).create(model(**data))
        await update_totals_using_disaster_record_id(session, data.get(record_column))
        return entity.id

    async def update(session: AsyncSession, ctx: RequestContext, entity: Any, data: Dict[str, Any]) -> None:
        check(data)
        previous_record_id = getattr(entity, record_column)
        if record_column in data:
            await require_record(session, ctx, data[record_column])
        repo = SqlRepository(session, model)
        await repo.update(repo.apply(entity, data))
        current_record_id = getattr(entity, record_column)
        if previous_record_id != current_record_id:
            await update_totals_using_disaster_record_id(session, previous_record_id)
        await update_totals_using_disaster_record_id(session, current_record_id)

    async def remove(session: AsyncSession, ctx: RequestContext, entity: Any) -> None:
        record_id = getattr(entity, record_column)
        await session.delete(entity)
        await session.flush()
        await update_totals_using_disaster_record_id(session, record_id)

    return create, update, remove


_relation_create, _relation_update, _relation_delete = record_effect_hooks(
    SectorDisasterRecordRelation, "disaster_record_id"
)

disaster_records_resource = CrudResource(
    name="disaster-record",
    label="Disaster record",
    model=DisasterRecord,
    fields_def=DISASTER_RECORD_API_FIELDS,
    order_by=(DisasterRecord.start_date.desc(), DisasterRecord.id),
    tenant_column="country_accounts_id",
    scope=tenant_scope(DisasterRecord),
    on_create=disaster_record_create,
    on_update=disaster_record_update,
    on_delete=disaster_record_delete,
)

sector_relations_resource = CrudResource(
    name="sector-disaster-record-relation",
    label="Sector disaster record relation",
    model=SectorDisasterRecordRelation,
    fields_def=SECTOR_RELATION_API_FIELDS,
    order_by=(SectorDisasterRecordRelation.sector_id, SectorDisasterRecordRelation.id),
    scope=record_scope(SectorDisasterRecordRelation, "disaster_record_id"),
    on_create=_relation_create,
    on_update=_relation_update,
    on_delete=_relation_delete,
)
