"""
Audit log entity model.

One row per create, update or delete done through the API, with the row
values before and after the change.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlmodel import JSON, Field

from ..base import Base, new_id, timestamp_field


class AuditLog(Base, table=True):
    """Table: audit_logs"""

    __tablename__ = "audit_logs"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    table_name: str = Field(max_length=64, index=True)
    record_id: str = Field(max_length=64, index=True)
    user_id: Optional[str] = Field(default=None, max_length=36)
    action: str = Field(max_length=16)
    old_values: Optional[Any] = Field(default=None, sa_type=JSON)
    new_values: Optional[Any] = Field(default=None, sa_type=JSON)
    timestamp: datetime = timestamp_field()

    def __repr__(self) -> str:
        return f"AuditLog(table={self.table_name}, record={self.record_id}, action={self.action})"
