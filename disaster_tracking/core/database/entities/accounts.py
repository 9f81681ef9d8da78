"""
Account entity models.

This module contains the tenant (country account), user, login session and
API key tables. Every data table that is tenant scoped carries a
``country_accounts_id`` pointing at ``country_accounts``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, new_id, timestamp_field


class CountryAccount(Base, table=True):
    """Tenant owning the data of one country instance.

    Table: country_accounts
    """

    __tablename__ = "country_accounts"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    short_description: str = Field(default="", max_length=255)
    country_name: str = Field(default="", max_length=255)
    type: str = Field(default="official", max_length=32)
    status: int = Field(default=1)
    created_at: datetime = timestamp_field()


class User(Base, table=True):
    """Application user.

    ``password`` holds a bcrypt hash, never the clear text value.

    Table: user
    """

    __tablename__ = "user"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    email: str = Field(max_length=255, unique=True, index=True)
    password: str = Field(default="", max_length=255)
    first_name: str = Field(default="", max_length=255)
    last_name: str = Field(default="", max_length=255)
    role: str = Field(default="data-viewer", max_length=32)
    country_accounts_id: Optional[str] = Field(default=None, foreign_key="country_accounts.id", max_length=36)
    email_verified: bool = Field(default=False)
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email}, role={self.role})"


class UserSession(Base, table=True):
    """Login session referenced by the session cookie.

    Table: session
    """

    __tablename__ = "session"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(foreign_key="user.id", index=True, max_length=36)
    last_active_at: datetime = timestamp_field()
    created_at: datetime = timestamp_field()


class ApiKey(Base, table=True):
    """API key used by the JSON API through the ``X-Auth`` header.

    Table: api_key
    """

    __tablename__ = "api_key"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    secret: str = Field(max_length=128, unique=True, index=True)
    name: str = Field(default="", max_length=255)
    manager_id: str = Field(foreign_key="user.id", max_length=36)
    country_accounts_id: Optional[str] = Field(default=None, foreign_key="country_accounts.id", max_length=36)
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()

    def __repr__(self) -> str:
        return f"ApiKey(id={self.id}, name={self.name})"
