"""
Administrative division entity model.

Divisions are the country's administrative areas (provinces, districts),
forming a tree through ``parent_id``. Names are stored per language.
"""

from __future__ import annotations

from typing import Any, Optional

from sqlmodel import JSON, Field

from ..base import Base, new_id


class Division(Base, table=True):
    """Table: division"""

    __tablename__ = "division"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    api_import_id: Optional[str] = Field(default=None, index=True, max_length=128)
    country_accounts_id: Optional[str] = Field(default=None, foreign_key="country_accounts.id", index=True, max_length=36)
    parent_id: Optional[str] = Field(default=None, foreign_key="division.id", index=True, max_length=36)
    import_id: Optional[str] = Field(default=None, max_length=128)
    national_id: Optional[str] = Field(default=None, max_length=128)
    name: Any = Field(default_factory=dict, sa_type=JSON)
    level: int = Field(default=1)
