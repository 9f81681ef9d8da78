"""
Base database models and utilities.

This module provides the foundational database components used across
all entities in the DTS database layer using SQLModel.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import ConfigDict
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class Base(SQLModel):
    """Base class for all SQLModel entities."""

    model_config = ConfigDict(arbitrary_types_allowed=True)


def new_id() -> str:
    """Generate a UUID string primary key."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Current timezone-aware UTC time."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """
    Normalize a stored timestamp to aware UTC.

    SQLite hands timestamps back without tzinfo; those values were written
    as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def timestamp_field() -> Any:
    """A ``timestamptz`` column defaulting to the current UTC time."""
    return Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
