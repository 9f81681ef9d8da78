"""
Losses of a disaster record in one sector.

Agriculture sectors use their own type and "related to" lists; which pair
applies is decided from the sector tree, and the value of the other pair is
cleared on save.
"""

from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from disaster_tracking.core.database.entities.losses import Loss
from disaster_tracking.core.database.repositories.base import SqlRepository
from disaster_tracking.core.forms.fields import (
    API_IMPORT_ID,
    ATTACHMENTS,
    SPATIAL_FOOTPRINT,
    EnumOption,
    FieldDef,
    FieldType,
    FormErrors,
    ValidationFailed,
    enum_options,
)

from .context import RequestContext
from .disaster_records import require_record
from .resource import CrudResource, record_scope
from .sectors import sector_is_agriculture
from .units import UNITS_ENUM

NEGATIVE_VALUE_ERROR = "must be >= 0"

LOSS_TYPES = (
    ("infrastructure_temporary", "Infrastructure- temporary for service/production continuity"),
    ("production_service_delivery_and_availability", "Production,Service delivery and availability of/access to goods and services"),
    ("governance_and_decision_making", "Governance and decision-making"),
    ("risk_and_vulnerabilities", "Risk and vulnerabilities"),
    ("other_losses", "Other losses"),
    ("employment_and_livelihoods_losses", "Employment and Livelihoods losses"),
)

LOSS_TYPES_AGRICULTURE = (LOSS_TYPES[0], ("production_losses", "Production losses"), *LOSS_TYPES[1:])

# (key, label, loss type)
RELATED_TO_NOT_AGRICULTURE = (
    ("increase_in_expenditure_infrastructure_temporary", "Increase in expenditure, Infrastructure temporary", "infrastructure_temporary"),
    ("decrease_in_revenues_infrastructure_temporary", "Decrease in revenues, Infrastructure temporary", "infrastructure_temporary"),
    ("cost_for_service_or_production_continuity_incurred_but_not_assessed", "Cost for service or production continuity incurred but not assessed", "infrastructure_temporary"),
    ("increase_in_expenditure_for_production_service_delivery_and_availability", "Increase in expenditure for Production, Service delivery and availability", "production_service_delivery_and_availability"),
    ("decrease_in_revenues_due_to_drop_on_production_service_delivery_and_availability", "Decrease in revenues due to drop on Production, Service delivery and availability", "production_service_delivery_and_availability"),
    ("access_difficultied", "Access difficulted", "production_service_delivery_and_availability"),
    ("availability_decreased", "Availability decreased", "production_service_delivery_and_availability"),
    ("increase_in_expenditure_governance", "Increase in expenditure, Governance", "governance_and_decision_making"),
    ("decrease_in_revenue_governance", "Decrease in revenue, Governance", "governance_and_decision_making"),
    ("governance_processes_difficulted", "Governance processes difficulted", "governance_and_decision_making"),
    ("increase_in_expenditure_to_address_risk_and_vulnerabilities", "Increase in expenditure to address risk and vulnerabilities", "risk_and_vulnerabilities"),
    ("decrease_in_revenue_from_risk_protection", "Decrease in revenue from risk protection", "risk_and_vulnerabilities"),
    ("risks_and_vulnerabilities_increased", "Risks and vulnerabilities increased", "risk_and_vulnerabilities"),
    ("increase_in_expenditure", "Increase in expenditure", "other_losses"),
    ("decrease_in_revenues", "Decrease in revenues", "other_losses"),
    ("non_quantified_other_losses", "Non quantified - other losses", "other_losses"),
    ("number_of_work_days_lost", "# of work days lost", "employment_and_livelihoods_losses"),
    ("number_of_workers_who_loss_their_jobs", "# of workers who loss their jobs", "employment_and_livelihoods_losses"),
    ("number_of_persons_whose_livelihoods_related_to_sector_lost", "# of persons whose livelihoods related to sector lost", "employment_and_livelihoods_losses"),
)

RELATED_TO_AGRICULTURE = (
    *RELATED_TO_NOT_AGRICULTURE[:3],
    ("production_inputs", "Production inputs", "production_losses"),
    ("production_outputs", "Production outputs", "production_losses"),
    *RELATED_TO_NOT_AGRICULTURE[3:18],
    ("number_of_workers_who_loss_their_jobs_permanently", "# of workers who loss their jobs permanently", "employment_and_livelihoods_losses"),
    RELATED_TO_NOT_AGRICULTURE[18],
)


def _related_options(items) -> tuple:
    return tuple(EnumOption(key=key, label=label) for key, label, _ in items)


def _public_or_private(prefix: str) -> List[FieldDef]:
    return [
        FieldDef(key=f"{prefix}_unit", label="Value Unit", type=FieldType.ENUM, enum_data=UNITS_ENUM),
        FieldDef(key=f"{prefix}_units", label="Value", type=FieldType.NUMBER),
        FieldDef(key=f"{prefix}_cost_unit", label="Cost Per Unit", type=FieldType.MONEY),
        FieldDef(key=f"{prefix}_cost_unit_currency", label="Cost Currency", type=FieldType.ENUM_FLEX),
        FieldDef(key=f"{prefix}_cost_total", label="Total Cost", type=FieldType.MONEY),
        FieldDef(key=f"{prefix}_cost_total_override", label="Override", type=FieldType.BOOL),
    ]


LOSS_FIELDS = [
    FieldDef(key="record_id", label="Disaster Record", type=FieldType.UUID, required=True),
    FieldDef(key="sector_id", label="Sector", type=FieldType.OTHER, required=True),
    FieldDef(key="sector_is_agriculture", label="", type=FieldType.BOOL),
    FieldDef(key="type_not_agriculture", label="Type", type=FieldType.ENUM, enum_data=enum_options(*LOSS_TYPES)),
    FieldDef(key="type_agriculture", label="Type", type=FieldType.ENUM, enum_data=enum_options(*LOSS_TYPES_AGRICULTURE)),
    FieldDef(
        key="related_to_not_agriculture",
        label="Related To",
        type=FieldType.ENUM,
        enum_data=_related_options(RELATED_TO_NOT_AGRICULTURE),
    ),
    FieldDef(
        key="related_to_agriculture",
        label="Related To",
        type=FieldType.ENUM,
        enum_data=_related_options(RELATED_TO_AGRICULTURE),
    ),
    FieldDef(key="description", label="Description", type=FieldType.TEXTAREA),
    *_public_or_private("public"),
    *_public_or_private("private"),
    SPATIAL_FOOTPRINT,
    ATTACHMENTS,
]

LOSS_API_FIELDS = [*LOSS_FIELDS, API_IMPORT_ID]

NON_NEGATIVE_FIELDS = (
    "public_units",
    "public_cost_unit",
    "public_cost_total",
    "private_units",
    "private_cost_unit",
    "private_cost_total",
)


def validate_loss(data: Dict[str, Any]) -> FormErrors:
    errors = FormErrors()
    for key in NON_NEGATIVE_FIELDS:
        value = data.get(key)
        if value is not None and value < 0:
            errors.add_field(key, "negative_value", NEGATIVE_VALUE_ERROR)
    return errors


async def _prepare(session: AsyncSession, data: Dict[str, Any], sector_id: str) -> Dict[str, Any]:
    errors = validate_loss(data)
    if errors.has_errors():
        raise ValidationFailed(errors)
    values = dict(data)
    agriculture = await sector_is_agriculture(session, sector_id)
    values["sector_is_agriculture"] = agriculture
    if agriculture:
        values["related_to_not_agriculture"] = None
        values["type_not_agriculture"] = None
    else:
        values["related_to_agriculture"] = None
        values["type_agriculture"] = None
    return values


async def loss_create(session: AsyncSession, ctx: RequestContext, data: Dict[str, Any]) -> str:
    await require_record(session, ctx, data.get("record_id"))
    values = await _prepare(session, data, data["sector_id"])
    loss = await SqlRepository(session, Loss).create(Loss(**values))
    return loss.id


async def loss_update(session: AsyncSession, ctx: RequestContext, loss: Loss, data: Dict[str, Any]) -> None:
    if "record_id" in data:
        await require_record(session, ctx, data["record_id"])
    values = await _prepare(session, data, data.get("sector_id") or loss.sector_id)
    repo = SqlRepository(session, Loss)
    await repo.update(repo.apply(loss, values))


async def delete_by_sector_id(session: AsyncSession, record_id: str, sector_id: str) -> int:
    """Delete the losses of one sector of a record; returns the number removed."""
    result = await session.execute(delete(Loss).where(Loss.record_id == record_id, Loss.sector_id == sector_id))
    return result.rowcount or 0


losses_resource = CrudResource(
    name="losses",
    label="Losses",
    model=Loss,
    fields_def=LOSS_API_FIELDS,
    order_by=(Loss.sector_id, Loss.id),
    scope=record_scope(Loss),
    on_create=loss_create,
    on_update=loss_update,
)
