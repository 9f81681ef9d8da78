"""
HIP Hazard Taxonomy Endpoints.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from disaster_tracking.core.auth.roles import Permission
from disaster_tracking.core.services.context import RequestContext
from disaster_tracking.core.services.hip import HIP_SEARCH_TYPES, HipItem, search_hips, upsert_hip_list
from disaster_tracking.server.services.auth import require_permission, require_shared_data_editor
from disaster_tracking.server.services.deps import SessionDep

router = APIRouter(tags=["hips"])


@router.get(
    "/hazards/{search_type}",
    summary="Search HIP Taxonomy",
    description=(
        "Case-insensitive search on the English name of hazard types, clusters or specific hazards. "
        "`search_type` is one of: " + ", ".join(HIP_SEARCH_TYPES)
    ),
    responses={400: {"description": "Invalid type"}},
)
async def search_hazards(
    search_type: str,
    session: SessionDep,
    query: str = "",
    ctx: RequestContext = Depends(require_permission(Permission.VIEW_DATA)),
) -> List[Dict[str, Any]]:
    if search_type not in HIP_SEARCH_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid type")
    return await search_hips(session, search_type, query)


@router.post(
    "/hips/upsert",
    summary="Import HIP Taxonomy",
    description="Upsert a list of hazards; each hazard's type and cluster are upserted first. Super admins only.",
    response_description="Number of hazards written.",
)
async def import_hips(
    items: List[HipItem],
    session: SessionDep,
    ctx: RequestContext = Depends(require_shared_data_editor),
) -> Dict[str, Any]:
    count = await upsert_hip_list(session, items)
    await session.commit()
    return {"ok": True, "count": count}
