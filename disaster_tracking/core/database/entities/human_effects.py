"""
Human effects entity models.

Each data row is split in two: the disaggregation dimensions shared by all
categories live in ``human_dsg`` (plus tenant-defined ``custom`` dimensions
as JSON), and the category specific dimensions and metrics live in one
table per category, linked through ``dsg_id``. Which custom dimensions exist
and which shared ones are hidden is configured per country account in
``human_dsg_config``.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from sqlmodel import JSON, Field

from ..base import Base, new_id


class HumanDsg(Base, table=True):
    """Table: human_dsg"""

    __tablename__ = "human_dsg"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    record_id: str = Field(foreign_key="disaster_records.id", index=True, max_length=36)
    sex: Optional[str] = Field(default=None, max_length=16)
    age: Optional[str] = Field(default=None, max_length=16)
    disability: Optional[str] = Field(default=None, max_length=80)
    global_poverty_line: Optional[str] = Field(default=None, max_length=16)
    national_poverty_line: Optional[str] = Field(default=None, max_length=16)
    custom: Optional[Any] = Field(default=None, sa_type=JSON)


class Deaths(Base, table=True):
    """Table: deaths"""

    __tablename__ = "deaths"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    dsg_id: str = Field(foreign_key="human_dsg.id", index=True, max_length=36)
    deaths: Optional[int] = Field(default=None)


class Injured(Base, table=True):
    """Table: injured"""

    __tablename__ = "injured"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    dsg_id: str = Field(foreign_key="human_dsg.id", index=True, max_length=36)
    injured: Optional[int] = Field(default=None)


class Missing(Base, table=True):
    """Table: missing"""

    __tablename__ = "missing"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    dsg_id: str = Field(foreign_key="human_dsg.id", index=True, max_length=36)
    as_of: Optional[date] = Field(default=None)
    missing: Optional[int] = Field(default=None)


class Affected(Base, table=True):
    """Table: affected"""

    __tablename__ = "affected"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    dsg_id: str = Field(foreign_key="human_dsg.id", index=True, max_length=36)
    direct: Optional[int] = Field(default=None)
    indirect: Optional[int] = Field(default=None)


class Displaced(Base, table=True):
    """Table: displaced"""

    __tablename__ = "displaced"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    dsg_id: str = Field(foreign_key="human_dsg.id", index=True, max_length=36)
    assisted: Optional[str] = Field(default=None, max_length=16)
    timing: Optional[str] = Field(default=None, max_length=16)
    duration: Optional[str] = Field(default=None, max_length=16)
    as_of: Optional[date] = Field(default=None)
    displaced: Optional[int] = Field(default=None)


class HumanCategoryPresence(Base, table=True):
    """Whether each human effects metric applies to a record at all.

    ``None`` means "not answered", ``False`` means "confirmed absent".

    Table: human_category_presence
    """

    __tablename__ = "human_category_presence"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    record_id: str = Field(foreign_key="disaster_records.id", unique=True, max_length=36)
    deaths: Optional[bool] = Field(default=None)
    injured: Optional[bool] = Field(default=None)
    missing: Optional[bool] = Field(default=None)
    affected_direct: Optional[bool] = Field(default=None)
    affected_indirect: Optional[bool] = Field(default=None)
    displaced: Optional[bool] = Field(default=None)
    deaths_total_group_flags: Optional[Any] = Field(default=None, sa_type=JSON)
    injured_total_group_flags: Optional[Any] = Field(default=None, sa_type=JSON)
    missing_total_group_flags: Optional[Any] = Field(default=None, sa_type=JSON)
    affected_total_group_flags: Optional[Any] = Field(default=None, sa_type=JSON)
    displaced_total_group_flags: Optional[Any] = Field(default=None, sa_type=JSON)
    # {table: {metric: total}}
    totals: Optional[Any] = Field(default=None, sa_type=JSON)


class HumanDsgConfig(Base, table=True):
    """Custom disaggregations and hidden shared columns of a country account.

    ``custom`` is ``{"version": 1, "config": [{"dbName", "uiName", "enum"}]}``,
    ``hidden`` is ``{"cols": [...]}``.

    Table: human_dsg_config
    """

    __tablename__ = "human_dsg_config"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    country_accounts_id: str = Field(foreign_key="country_accounts.id", unique=True, max_length=36)
    custom: Optional[Any] = Field(default=None, sa_type=JSON)
    hidden: Optional[Any] = Field(default=None, sa_type=JSON)
