"""
Service disruptions of a disaster record in one sector.
"""

from __future__ import annotations

from typing import Any, Dict

from disaster_tracking.core.database.entities.disruptions import Disruption
from disaster_tracking.core.forms.fields import (
    API_IMPORT_ID,
    ATTACHMENTS,
    SPATIAL_FOOTPRINT,
    FieldDef,
    FieldType,
    FormErrors,
)

from .disaster_records import record_effect_hooks
from .resource import CrudResource, record_scope

DISRUPTION_FIELDS = [
    FieldDef(key="record_id", label="Disaster Record", type=FieldType.UUID, required=True),
    FieldDef(key="sector_id", label="Sector", type=FieldType.OTHER, required=True),
    FieldDef(key="duration_days", label="Duration (days)", type=FieldType.NUMBER),
    FieldDef(key="duration_hours", label="Duration (hours)", type=FieldType.NUMBER),
    FieldDef(key="users_affected", label="Number of users affected", type=FieldType.NUMBER),
    FieldDef(key="people_affected", label="Number of people affected", type=FieldType.NUMBER),
    FieldDef(key="comment", label="Add comments", type=FieldType.TEXTAREA),
    FieldDef(key="response_operation", label="Response operation", type=FieldType.TEXTAREA),
    FieldDef(key="response_cost", label="Response cost", type=FieldType.MONEY),
    FieldDef(key="response_currency", label="Currency", type=FieldType.ENUM_FLEX),
    SPATIAL_FOOTPRINT,
    ATTACHMENTS,
]

DISRUPTION_API_FIELDS = [*DISRUPTION_FIELDS, API_IMPORT_ID]

NON_NEGATIVE_MESSAGES = {
    "duration_days": "Duration (days) must be >= 0",
    "duration_hours": "Duration (hours) must be >= 0",
    "users_affected": "Users affected must be >= 0",
    "response_cost": "Response cost must be >= 0",
}


def validate_disruption(data: Dict[str, Any]) -> FormErrors:
    errors = FormErrors()
    for key, message in NON_NEGATIVE_MESSAGES.items():
        value = data.get(key)
        if value is not None and value < 0:
            errors.add_field(key, "negative_value", message)
    return errors


_create, _update, _delete = record_effect_hooks(Disruption, validate=validate_disruption)

disruptions_resource = CrudResource(
    name="disruption",
    label="Disruption",
    model=Disruption,
    fields_def=DISRUPTION_API_FIELDS,
    order_by=(Disruption.sector_id, Disruption.id),
    scope=record_scope(Disruption),
    on_create=_create,
    on_update=_update,
    on_delete=_delete,
)
