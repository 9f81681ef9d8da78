"""
Asset entity model.

Assets are the things that get damaged (bridges, schools, crops).
Built-in assets ship with the system and are shared by all tenants.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, new_id, timestamp_field


class Asset(Base, table=True):
    """Table: asset"""

    __tablename__ = "asset"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    api_import_id: Optional[str] = Field(default=None, index=True, max_length=128)
    country_accounts_id: Optional[str] = Field(default=None, foreign_key="country_accounts.id", index=True, max_length=36)
    sector_ids: str = Field(default="", description="Comma separated sector ids")
    name: str = Field(default="", max_length=255)
    category: str = Field(default="", max_length=255)
    national_id: str = Field(default="", max_length=255)
    notes: str = Field(default="")
    custom_name: Optional[str] = Field(default=None, max_length=255)
    is_built_in: bool = Field(default=False)
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()
