"""
Damages of a disaster record, per sector and asset.

The ``pd_`` block covers partially damaged units that are repaired, the
``td_`` block totally destroyed units that are replaced.
"""

from __future__ import annotations

from typing import Any, Dict, List

from disaster_tracking.core.database.entities.damages import Damage
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
from .units import UNITS_ENUM

NEGATIVE_VALUE_ERROR = "must be >= 0"


def _damaged_or_destroyed(prefix: str) -> List[FieldDef]:
    cost = "repair" if prefix == "pd" else "replacement"
    title = cost.capitalize()
    return [
        FieldDef(key=f"{prefix}_damage_amount", label="Amount of units", type=FieldType.NUMBER),
        FieldDef(key=f"{prefix}_{cost}_cost_unit", label=f"{title} cost per unit", type=FieldType.MONEY),
        FieldDef(key=f"{prefix}_{cost}_cost_unit_currency", label="Currency", type=FieldType.ENUM_FLEX),
        FieldDef(key=f"{prefix}_{cost}_cost_total", label=f"Total {cost} cost", type=FieldType.MONEY),
        FieldDef(key=f"{prefix}_{cost}_cost_total_override", label="Override", type=FieldType.BOOL),
        FieldDef(key=f"{prefix}_recovery_cost_unit", label="Recovery cost per unit", type=FieldType.MONEY),
        FieldDef(key=f"{prefix}_recovery_cost_unit_currency", label="Currency", type=FieldType.ENUM_FLEX),
        FieldDef(key=f"{prefix}_recovery_cost_total", label="Total recovery cost", type=FieldType.MONEY),
        FieldDef(key=f"{prefix}_recovery_cost_total_override", label="Override", type=FieldType.BOOL),
        FieldDef(key=f"{prefix}_disruption_duration_days", label="Duration (days)", type=FieldType.NUMBER),
        FieldDef(key=f"{prefix}_disruption_duration_hours", label="Duration (hours)", type=FieldType.NUMBER),
        FieldDef(key=f"{prefix}_disruption_users_affected", label="Number of users affected", type=FieldType.NUMBER),
        FieldDef(key=f"{prefix}_disruption_people_affected", label="Number of people affected", type=FieldType.NUMBER),
        FieldDef(key=f"{prefix}_disruption_description", label="Comment", type=FieldType.TEXTAREA),
    ]


DAMAGE_FIELDS = [
    FieldDef(key="record_id", label="Disaster Record", type=FieldType.UUID, required=True),
    FieldDef(key="sector_id", label="Sector", type=FieldType.OTHER, required=True),
    FieldDef(key="asset_id", label="Assets", type=FieldType.UUID),
    FieldDef(key="unit", label="Unit", type=FieldType.ENUM, enum_data=UNITS_ENUM),
    FieldDef(key="total_damage_amount", label="Total number of assets affected", type=FieldType.NUMBER),
    FieldDef(key="total_damage_amount_override", label="Override", type=FieldType.BOOL),
    FieldDef(key="total_recovery", label="Total recovery cost", type=FieldType.MONEY),
    FieldDef(key="total_recovery_override", label="Override", type=FieldType.BOOL),
    FieldDef(key="total_repair_replacement", label="Total repair and replacement cost", type=FieldType.MONEY),
    FieldDef(key="total_repair_replacement_override", label="Override", type=FieldType.BOOL),
    *_damaged_or_destroyed("pd"),
    *_damaged_or_destroyed("td"),
    SPATIAL_FOOTPRINT,
    ATTACHMENTS,
]

DAMAGE_API_FIELDS = [*DAMAGE_FIELDS, API_IMPORT_ID]

NON_NEGATIVE_FIELDS = tuple(
    f.key for f in DAMAGE_FIELDS if f.type in (FieldType.NUMBER, FieldType.MONEY)
)


def validate_damage(data: Dict[str, Any]) -> FormErrors:
    errors = FormErrors()
    for key in NON_NEGATIVE_FIELDS:
        value = data.get(key)
        if value is not None and value < 0:
            errors.add_field(key, "negative_value", NEGATIVE_VALUE_ERROR)
    return errors


_create, _update, _delete = record_effect_hooks(Damage, validate=validate_damage)

damages_resource = CrudResource(
    name="damages",
    label="Damages",
    model=Damage,
    fields_def=DAMAGE_API_FIELDS,
    order_by=(Damage.sector_id, Damage.id),
    scope=record_scope(Damage),
    on_create=_create,
    on_update=_update,
    on_delete=_delete,
)
