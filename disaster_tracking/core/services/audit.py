"""
Audit log of data changes.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic_core import to_jsonable_python
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from disaster_tracking.core.database.entities.accounts import User
from disaster_tracking.core.database.entities.audit_logs import AuditLog
from disaster_tracking.core.logging_config import get_logger

logger = get_logger(__name__)

ACTIONS = ("create", "update", "delete")


def _jsonable(values: Any) -> Any:
    if values is None:
        return None
    return to_jsonable_python(values, fallback=str)


async def log_audit(
    session: AsyncSession,
    table_name: str,
    record_id: str,
    user_id: Optional[str],
    action: str,
    old_values: Any = None,
    new_values: Any = None,
) -> AuditLog:
    """Add an audit row to the current transaction."""
    if action not in ACTIONS:
        raise ValueError(f"unknown audit action: {action}")
    entry = AuditLog(
        table_name=table_name,
        record_id=record_id,
        user_id=user_id,
        action=action,
        old_values=_jsonable(old_values),
        new_values=_jsonable(new_values),
    )
    session.add(entry)
    await session.flush()
    logger.debug(f"Audit {action} {table_name}/{record_id} by {user_id}")
    return entry


async def list_audit_logs(
    session: AsyncSession,
    table_name: Optional[str] = None,
    record_id: Optional[str] = None,
    limit: int = 100,
    country_accounts_id: Optional[str] = None,
) -> List[AuditLog]:
    """Newest first; with ``country_accounts_id`` only changes made by users of that tenant."""
    stmt = select(AuditLog).order_by(AuditLog.timestamp.desc())
    if country_accounts_id:
        stmt = stmt.join(User, User.id == AuditLog.user_id).where(User.country_accounts_id == country_accounts_id)
    if table_name:
        stmt = stmt.where(AuditLog.table_name == table_name)
    if record_id:
        stmt = stmt.where(AuditLog.record_id == record_id)
    result = await session.execute(stmt.limit(limit))
    return list(result.scalars().all())
