"""
Losses entity model.

Losses are recorded per disaster record and sector, with a public and a
private block of value/cost columns.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlmodel import JSON, Field

from ..base import Base, new_id, timestamp_field
from .events import MONEY_DIGITS, MONEY_PLACES


class Loss(Base, table=True):
    """Table: losses"""

    __tablename__ = "losses"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    api_import_id: Optional[str] = Field(default=None, index=True, max_length=128)
    record_id: str = Field(foreign_key="disaster_records.id", index=True, max_length=36)
    sector_id: str = Field(foreign_key="sector.id", index=True, max_length=64)
    sector_is_agriculture: bool = Field(default=False)
    type_not_agriculture: Optional[str] = Field(default=None, max_length=64)
    type_agriculture: Optional[str] = Field(default=None, max_length=64)
    related_to_not_agriculture: Optional[str] = Field(default=None, max_length=64)
    related_to_agriculture: Optional[str] = Field(default=None, max_length=64)
    description: str = Field(default="")

    public_unit: Optional[str] = Field(default=None, max_length=32)
    public_units: Optional[float] = Field(default=None)
    public_cost_unit: Optional[Decimal] = Field(default=None, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    public_cost_unit_currency: Optional[str] = Field(default=None, max_length=8)
    public_cost_total: Optional[Decimal] = Field(default=None, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    public_cost_total_override: Optional[bool] = Field(default=None)

    private_unit: Optional[str] = Field(default=None, max_length=32)
    private_units: Optional[float] = Field(default=None)
    private_cost_unit: Optional[Decimal] = Field(default=None, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    private_cost_unit_currency: Optional[str] = Field(default=None, max_length=8)
    private_cost_total: Optional[Decimal] = Field(default=None, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    private_cost_total_override: Optional[bool] = Field(default=None)

    spatial_footprint: Optional[Any] = Field(default=None, sa_type=JSON)
    attachments: Optional[Any] = Field(default=None, sa_type=JSON)
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()
