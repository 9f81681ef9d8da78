"""
Disaster record entity models.

A disaster record is the unit of data collection: losses, damages,
disruptions and human effects all hang off a record, and a record
optionally belongs to a disaster event.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlmodel import JSON, Field

from ..base import Base, new_id, timestamp_field
from .events import MONEY_DIGITS, MONEY_PLACES


class DisasterRecord(Base, table=True):
    """Table: disaster_records"""

    __tablename__ = "disaster_records"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    country_accounts_id: Optional[str] = Field(default=None, foreign_key="country_accounts.id", index=True, max_length=36)
    api_import_id: Optional[str] = Field(default=None, index=True, max_length=128)
    disaster_event_id: Optional[str] = Field(default=None, foreign_key="disaster_event.id", index=True, max_length=36)
    hip_type_id: Optional[str] = Field(default=None, foreign_key="hip_type.id", max_length=64)
    hip_cluster_id: Optional[str] = Field(default=None, foreign_key="hip_cluster.id", max_length=64)
    hip_hazard_id: Optional[str] = Field(default=None, foreign_key="hip_hazard.id", max_length=64)
    location_desc: str = Field(default="")
    start_date: str = Field(default="", max_length=10)
    end_date: str = Field(default="", max_length=10)
    primary_data_source: str = Field(default="")
    other_data_source: str = Field(default="")
    originator_recorded_by: str = Field(default="")
    validated_by: str = Field(default="")
    approval_status: str = Field(default="draft", max_length=32)
    spatial_footprint: Optional[Any] = Field(default=None, sa_type=JSON)
    attachments: Optional[Any] = Field(default=None, sa_type=JSON)
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()


class SectorDisasterRecordRelation(Base, table=True):
    """Sectors affected by a record, with summary costs per sector.

    Table: sector_disaster_records_relation
    """

    __tablename__ = "sector_disaster_records_relation"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    api_import_id: Optional[str] = Field(default=None, index=True, max_length=128)
    sector_id: str = Field(foreign_key="sector.id", index=True, max_length=64)
    disaster_record_id: str = Field(foreign_key="disaster_records.id", index=True, max_length=36)
    with_damage: Optional[bool] = Field(default=None)
    damage_cost: Optional[Decimal] = Field(default=None, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    damage_cost_currency: Optional[str] = Field(default=None, max_length=8)
    damage_recovery_cost: Optional[Decimal] = Field(default=None, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    damage_recovery_cost_currency: Optional[str] = Field(default=None, max_length=8)
    with_disruption: Optional[bool] = Field(default=None)
    with_losses: Optional[bool] = Field(default=None)
    losses_cost: Optional[Decimal] = Field(default=None, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    losses_cost_currency: Optional[str] = Field(default=None, max_length=8)
