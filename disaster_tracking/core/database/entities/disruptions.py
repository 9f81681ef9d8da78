"""
Disruption entity model.

Service disruption caused by a disaster in one sector of a record.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlmodel import JSON, Field

from ..base import Base, new_id, timestamp_field
from .events import MONEY_DIGITS, MONEY_PLACES


class Disruption(Base, table=True):
    """Table: disruption"""

    __tablename__ = "disruption"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    api_import_id: Optional[str] = Field(default=None, index=True, max_length=128)
    record_id: str = Field(foreign_key="disaster_records.id", index=True, max_length=36)
    sector_id: str = Field(foreign_key="sector.id", index=True, max_length=64)
    duration_days: Optional[float] = Field(default=None)
    duration_hours: Optional[float] = Field(default=None)
    users_affected: Optional[float] = Field(default=None)
    people_affected: Optional[float] = Field(default=None)
    comment: str = Field(default="")
    response_operation: str = Field(default="")
    response_cost: Optional[Decimal] = Field(default=None, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    response_currency: Optional[str] = Field(default=None, max_length=8)
    spatial_footprint: Optional[Any] = Field(default=None, sa_type=JSON)
    attachments: Optional[Any] = Field(default=None, sa_type=JSON)
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()
