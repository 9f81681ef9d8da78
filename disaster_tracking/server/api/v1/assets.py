"""
Asset Endpoints.

Besides the generic CRUD routes, assets can be listed for a sector; the
list includes assets attached to any parent of the sector.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from disaster_tracking.core.auth.roles import Permission
from disaster_tracking.core.services.assets import assets_for_sector, assets_resource
from disaster_tracking.core.services.context import RequestContext
from disaster_tracking.server.api.crud import build_crud_router
from disaster_tracking.server.services.auth import require_permission
from disaster_tracking.server.services.deps import SessionDep

router = APIRouter(tags=["assets"])


@router.get(
    "/for-sector/{sector_id}",
    summary="Assets of a Sector",
    description="Built-in and own assets attached to the sector or one of its parents, ordered by name.",
)
async def get_assets_for_sector(
    sector_id: str,
    session: SessionDep,
    ctx: RequestContext = Depends(require_permission(Permission.VIEW_DATA)),
) -> List[Dict[str, Any]]:
    assets = await assets_for_sector(session, sector_id, ctx.country_accounts_id)
    return [a.model_dump() for a in assets]


router.include_router(build_crud_router(assets_resource, tags=["assets"]))
