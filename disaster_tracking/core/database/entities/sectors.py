"""
Sector entity model.

Sectors form a tree through ``parent_id``; ``level`` is the depth starting
at 1 for root sectors.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, timestamp_field


class Sector(Base, table=True):
    """Table: sector"""

    __tablename__ = "sector"

    id: str = Field(primary_key=True, max_length=64)
    parent_id: Optional[str] = Field(default=None, foreign_key="sector.id", index=True, max_length=64)
    sectorname: str = Field(max_length=255)
    description: Optional[str] = Field(default=None)
    level: int = Field(default=1)
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()

    def __repr__(self) -> str:
        return f"Sector(id={self.id}, name={self.sectorname}, level={self.level})"
