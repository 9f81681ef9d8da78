"""
Loss Endpoints.
"""

from fastapi import APIRouter, Depends

from disaster_tracking.core.auth.roles import Permission
from disaster_tracking.core.services.context import RequestContext
from disaster_tracking.core.services.disaster_records import require_record
from disaster_tracking.core.services.losses import delete_by_sector_id, losses_resource
from disaster_tracking.server.api.crud import build_crud_router
from disaster_tracking.server.services.auth import require_permission
from disaster_tracking.server.services.deps import SessionDep

router = APIRouter(tags=["losses"])


@router.delete(
    "/by-sector",
    summary="Delete Losses of a Sector",
    description="Delete every loss of the record recorded under the sector.",
    response_description="Number of deleted losses.",
)
async def delete_losses_by_sector(
    record_id: str,
    sector_id: str,
    session: SessionDep,
    ctx: RequestContext = Depends(require_permission(Permission.EDIT_DATA)),
):
    await require_record(session, ctx, record_id)
    deleted = await delete_by_sector_id(session, record_id, sector_id)
    await session.commit()
    return {"deleted": deleted}


router.include_router(build_crud_router(losses_resource, tags=["losses"]))
