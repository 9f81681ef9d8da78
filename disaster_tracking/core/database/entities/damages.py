"""
Damages entity model.

Damages are recorded per disaster record, sector and asset. The ``pd_``
columns describe partially damaged units (repaired), the ``td_`` columns
totally destroyed units (replaced).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlmodel import JSON, Field

from ..base import Base, new_id, timestamp_field
from .events import MONEY_DIGITS, MONEY_PLACES


def _money() -> Any:
    return Field(default=None, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)


class Damage(Base, table=True):
    """Table: damages"""

    __tablename__ = "damages"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    api_import_id: Optional[str] = Field(default=None, index=True, max_length=128)
    record_id: str = Field(foreign_key="disaster_records.id", index=True, max_length=36)
    sector_id: str = Field(foreign_key="sector.id", index=True, max_length=64)
    asset_id: Optional[str] = Field(default=None, foreign_key="asset.id", max_length=36)
    unit: Optional[str] = Field(default=None, max_length=32)

    total_damage_amount: Optional[float] = Field(default=None)
    total_damage_amount_override: Optional[bool] = Field(default=None)
    total_repair_replacement: Optional[Decimal] = _money()
    total_repair_replacement_override: Optional[bool] = Field(default=None)
    total_recovery: Optional[Decimal] = _money()
    total_recovery_override: Optional[bool] = Field(default=None)

    pd_damage_amount: Optional[float] = Field(default=None)
    pd_repair_cost_unit: Optional[Decimal] = _money()
    pd_repair_cost_unit_currency: Optional[str] = Field(default=None, max_length=8)
    pd_repair_cost_total: Optional[Decimal] = _money()
    pd_repair_cost_total_override: Optional[bool] = Field(default=None)
    pd_recovery_cost_unit: Optional[Decimal] = _money()
    pd_recovery_cost_unit_currency: Optional[str] = Field(default=None, max_length=8)
    pd_recovery_cost_total: Optional[Decimal] = _money()
    pd_recovery_cost_total_override: Optional[bool] = Field(default=None)
    pd_disruption_duration_days: Optional[float] = Field(default=None)
    pd_disruption_duration_hours: Optional[float] = Field(default=None)
    pd_disruption_users_affected: Optional[float] = Field(default=None)
    pd_disruption_people_affected: Optional[float] = Field(default=None)
    pd_disruption_description: str = Field(default="")

    td_damage_amount: Optional[float] = Field(default=None)
    td_replacement_cost_unit: Optional[Decimal] = _money()
    td_replacement_cost_unit_currency: Optional[str] = Field(default=None, max_length=8)
    td_replacement_cost_total: Optional[Decimal] = _money()
    td_replacement_cost_total_override: Optional[bool] = Field(default=None)
    td_recovery_cost_unit: Optional[Decimal] = _money()
    td_recovery_cost_unit_currency: Optional[str] = Field(default=None, max_length=8)
    td_recovery_cost_total: Optional[Decimal] = _money()
    td_recovery_cost_total_override: Optional[bool] = Field(default=None)
    td_disruption_duration_days: Optional[float] = Field(default=None)
    td_disruption_duration_hours: Optional[float] = Field(default=None)
    td_disruption_users_affected: Optional[float] = Field(default=None)
    td_disruption_people_affected: Optional[float] = Field(default=None)
    td_disruption_description: str = Field(default="")

    spatial_footprint: Optional[Any] = Field(default=None, sa_type=JSON)
    attachments: Optional[Any] = Field(default=None, sa_type=JSON)
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()
