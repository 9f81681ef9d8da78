"""
Unit and measure entity models.
"""

from __future__ import annotations

from typing import Optional

from sqlmodel import Field

from ..base import Base, new_id


class Unit(Base, table=True):
    """Table: unit"""

    __tablename__ = "unit"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    api_import_id: Optional[str] = Field(default=None, index=True, max_length=128)
    type: str = Field(default="number", max_length=16)
    name: str = Field(max_length=255)


class Measure(Base, table=True):
    """Table: measure"""

    __tablename__ = "measure"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    api_import_id: Optional[str] = Field(default=None, index=True, max_length=128)
    name: str = Field(max_length=255)
    unit: str = Field(default="", max_length=255)
