"""
Audit Log Endpoints.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query

from disaster_tracking.core.services.audit import list_audit_logs
from disaster_tracking.server.services.deps import SessionDep, UserViewerDep

router = APIRouter(tags=["audit-logs"])


@router.get(
    "",
    summary="List Audit Logs",
    description="Most recent changes first, optionally filtered by table and row id. Admins only.",
)
async def get_audit_logs(
    session: SessionDep,
    admin: UserViewerDep,
    table_name: Optional[str] = None,
    record_id: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
) -> List[Dict[str, Any]]:
    logs = await list_audit_logs(
        session,
        table_name=table_name,
        record_id=record_id,
        limit=limit,
        country_accounts_id=admin.country_accounts_id,
    )
    return [entry.model_dump() for entry in logs]
