"""
Sector Endpoints.

The sector tree is browsed one level at a time; ``GET`` without a parent
returns the roots.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends

from disaster_tracking.core.auth.roles import Permission
from disaster_tracking.core.services.context import RequestContext
from disaster_tracking.core.services.sectors import get_sectors, get_sectors_by_level, sectors_resource
from disaster_tracking.server.api.crud import build_crud_router
from disaster_tracking.server.services.auth import require_permission
from disaster_tracking.server.services.deps import SessionDep

router = APIRouter(tags=["sectors"])

can_view = require_permission(Permission.VIEW_DATA)


@router.get(
    "",
    summary="List Sectors",
    description="Children of `parent_id` ordered by name; root sectors when no parent is given.",
)
async def list_sectors(
    session: SessionDep,
    parent_id: Optional[str] = None,
    ctx: RequestContext = Depends(can_view),
) -> List[Dict[str, Any]]:
    sectors = await get_sectors(session, parent_id)
    return [s.model_dump() for s in sectors]


@router.get(
    "/by-level/{level}",
    summary="Sectors of a Level",
    description='Sectors of one tree level, each named "name (parent name)".',
)
async def list_sectors_by_level(
    level: int,
    session: SessionDep,
    ctx: RequestContext = Depends(can_view),
) -> List[Dict[str, Any]]:
    return await get_sectors_by_level(session, level)


router.include_router(build_crud_router(sectors_resource, tags=["sectors"]))
