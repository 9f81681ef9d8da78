"""
Disaster Record Endpoints.

Records are tenant scoped, except for the basic info of published records
which anyone may read.
"""

from fastapi import APIRouter, HTTPException, status

from disaster_tracking.core.services.disaster_records import (
    disaster_records_resource,
    public_record_info,
    sector_relations_resource,
)
from disaster_tracking.server.api.crud import build_crud_router
from disaster_tracking.server.schemas import PublicRecordInfo
from disaster_tracking.server.services.deps import SessionDep

router = APIRouter(tags=["disaster-records"])


@router.get(
    "/public/{record_id}",
    response_model=PublicRecordInfo,
    summary="Public Record Info",
    description="Basic information of a published disaster record. No authentication required.",
    responses={404: {"description": "Record not found or not published"}},
)
async def get_public_record(record_id: str, session: SessionDep) -> PublicRecordInfo:
    record = await public_record_info(session, record_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Disaster record {record_id} not found")
    return PublicRecordInfo.model_validate(record)


router.include_router(build_crud_router(disaster_records_resource, tags=["disaster-records"]))

sector_relations_router = build_crud_router(sector_relations_resource, tags=["disaster-records"])
