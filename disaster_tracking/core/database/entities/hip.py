"""
HIP taxonomy entity models.

Hazard Information Profile classification: type > cluster > hazard.
Ids are the upstream HIP identifiers, not generated UUIDs.
"""

from __future__ import annotations

from typing import Optional

from sqlmodel import Field

from ..base import Base


class HipType(Base, table=True):
    """Table: hip_type"""

    __tablename__ = "hip_type"

    id: str = Field(primary_key=True, max_length=64)
    name_en: str = Field(default="", max_length=255)


class HipCluster(Base, table=True):
    """Table: hip_cluster"""

    __tablename__ = "hip_cluster"

    id: str = Field(primary_key=True, max_length=64)
    type_id: str = Field(foreign_key="hip_type.id", index=True, max_length=64)
    name_en: str = Field(default="", max_length=255)


class HipHazard(Base, table=True):
    """Table: hip_hazard"""

    __tablename__ = "hip_hazard"

    id: str = Field(primary_key=True, max_length=64)
    code: str = Field(default="", max_length=64)
    cluster_id: str = Field(foreign_key="hip_cluster.id", index=True, max_length=64)
    name_en: str = Field(default="", max_length=255)
    description_en: Optional[str] = Field(default=None)
