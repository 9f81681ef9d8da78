"""
Event entity models.

Hazardous events and disaster events share one identity row in ``event``;
the specific tables reuse that id as their own primary key. Causal links
between events ("this event was caused by that one") live in
``event_relationship``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlmodel import JSON, Field

from ..base import Base, new_id, timestamp_field

MONEY_DIGITS = 18
MONEY_PLACES = 2


class Event(Base, table=True):
    """Table: event"""

    __tablename__ = "event"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    name: str = Field(default="", max_length=255)
    description: str = Field(default="")
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()


class EventRelationship(Base, table=True):
    """Directed link from a child event to the event that caused it.

    Table: event_relationship
    """

    __tablename__ = "event_relationship"

    parent_id: str = Field(foreign_key="event.id", primary_key=True, max_length=36)
    child_id: str = Field(foreign_key="event.id", primary_key=True, max_length=36)
    type: str = Field(default="caused_by", max_length=32)


class HazardousEvent(Base, table=True):
    """Table: hazardous_event"""

    __tablename__ = "hazardous_event"

    id: str = Field(foreign_key="event.id", primary_key=True, max_length=36)
    country_accounts_id: Optional[str] = Field(default=None, foreign_key="country_accounts.id", index=True, max_length=36)
    api_import_id: Optional[str] = Field(default=None, index=True, max_length=128)
    hip_type_id: Optional[str] = Field(default=None, foreign_key="hip_type.id", max_length=64)
    hip_cluster_id: Optional[str] = Field(default=None, foreign_key="hip_cluster.id", max_length=64)
    hip_hazard_id: Optional[str] = Field(default=None, foreign_key="hip_hazard.id", max_length=64)
    national_specification: str = Field(default="")
    start_date: str = Field(default="", max_length=10)
    end_date: str = Field(default="", max_length=10)
    description: str = Field(default="")
    chains_explanation: str = Field(default="")
    magnitude: str = Field(default="")
    record_originator: str = Field(default="")
    data_source: str = Field(default="")
    hazardous_event_status: Optional[str] = Field(default=None, max_length=32)
    approval_status: str = Field(default="draft", max_length=32)
    spatial_footprint: Optional[Any] = Field(default=None, sa_type=JSON)
    attachments: Optional[Any] = Field(default=None, sa_type=JSON)
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()


class DisasterEvent(Base, table=True):
    """Disaster event with its cost totals.

    Each cost total has an ``_override`` column entered by users and a
    ``_calc`` column maintained from the event's disaster records. The
    override wins when it is set and non-zero (see ``reported_totals``).

    Table: disaster_event
    """

    __tablename__ = "disaster_event"

    id: str = Field(foreign_key="event.id", primary_key=True, max_length=36)
    country_accounts_id: Optional[str] = Field(default=None, foreign_key="country_accounts.id", index=True, max_length=36)
    api_import_id: Optional[str] = Field(default=None, index=True, max_length=128)
    hazardous_event_id: Optional[str] = Field(default=None, foreign_key="hazardous_event.id", index=True, max_length=36)
    national_disaster_id: str = Field(default="")
    name_national: str = Field(default="")
    glide: str = Field(default="")
    start_date: str = Field(default="", max_length=10)
    end_date: str = Field(default="", max_length=10)
    disaster_declaration: str = Field(default="unknown", max_length=16)
    approval_status: str = Field(default="draft", max_length=32)
    repair_costs_local_currency_override: Optional[Decimal] = Field(
        default=None, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES
    )
    repair_costs_local_currency_calc: Optional[Decimal] = Field(
        default=None, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES
    )
    replacement_costs_local_currency_override: Optional[Decimal] = Field(
        default=None, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES
    )
    replacement_costs_local_currency_calc: Optional[Decimal] = Field(
        default=None, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES
    )
    recovery_needs_local_currency_override: Optional[Decimal] = Field(
        default=None, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES
    )
    recovery_needs_local_currency_calc: Optional[Decimal] = Field(
        default=None, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES
    )
    rehabilitation_costs_local_currency_override: Optional[Decimal] = Field(
        default=None, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES
    )
    rehabilitation_costs_local_currency_calc: Optional[Decimal] = Field(
        default=None, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES
    )
    effects_total_usd: Optional[Decimal] = Field(default=None, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    spatial_footprint: Optional[Any] = Field(default=None, sa_type=JSON)
    attachments: Optional[Any] = Field(default=None, sa_type=JSON)
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()
