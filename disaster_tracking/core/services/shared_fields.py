"""
Field definitions shared by several resources.
"""

from __future__ import annotations

from disaster_tracking.core.auth.roles import APPROVAL_STATUS_LABELS
from disaster_tracking.core.forms.fields import EnumOption, FieldDef, FieldType

APPROVAL_STATUS = FieldDef(
    key="approval_status",
    label="Record Status",
    type=FieldType.ENUM,
    enum_data=tuple(EnumOption(key=s.value, label=label) for s, label in APPROVAL_STATUS_LABELS.items()),
)

HIP_FIELDS = [
    FieldDef(key="hip_hazard_id", label="Hazard", type=FieldType.OTHER),
    FieldDef(key="hip_cluster_id", label="Hazard Cluster", type=FieldType.OTHER),
    FieldDef(key="hip_type_id", label="Hazard Type", type=FieldType.OTHER),
]

START_DATE = FieldDef(key="start_date", label="Start Date", type=FieldType.DATE_OPTIONAL_PRECISION)
END_DATE = FieldDef(key="end_date", label="End Date", type=FieldType.DATE_OPTIONAL_PRECISION)


def money_with_currency(prefix: str, label: str) -> list:
    return [
        FieldDef(key=prefix, label=label, type=FieldType.MONEY),
        FieldDef(key=f"{prefix}_currency", label=f"{label} Currency", type=FieldType.ENUM_FLEX),
    ]
