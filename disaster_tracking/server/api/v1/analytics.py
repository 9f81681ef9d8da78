"""
Analytics Endpoints.

Dashboard figures and the cost calculator, always scoped to the caller's
country account. The dashboards take the record filters of
``AnalyticsFilters`` as query parameters.
"""

from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select

from disaster_tracking.core.auth.roles import Permission
from disaster_tracking.core.database.entities.events import DisasterEvent
from disaster_tracking.core.pagination import Page, pagination_params
from disaster_tracking.core.services import analytics
from disaster_tracking.core.services.analytics import AnalyticsFilters
from disaster_tracking.core.services.context import RequestContext
from disaster_tracking.core.services.cost_calculator import calculate_totals, reported_totals
from disaster_tracking.core.services.sectors import sector_by_id
from disaster_tracking.server.schemas import (
    AnalyticsSummary,
    DamagingEvent,
    HazardCount,
    HazardImpact,
    SectorImpact,
    TotalCostResponse,
)
from disaster_tracking.server.services.auth import require_permission
from disaster_tracking.server.services.deps import SessionDep

router = APIRouter(tags=["analytics"])

can_view = require_permission(Permission.VIEW_DATA)


async def _check_sector(session, sector_id: Optional[str]) -> None:
    if sector_id and await sector_by_id(session, sector_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Sector {sector_id} not found")


@router.get(
    "/summary",
    response_model=AnalyticsSummary,
    summary="Analytics Summary",
    description="Disaster record counts per approval status, number of disaster events and their total effects.",
)
async def get_summary(session: SessionDep, ctx: RequestContext = Depends(can_view)) -> AnalyticsSummary:
    return AnalyticsSummary(**await analytics.summary(session, ctx.country_accounts_id))


@router.get(
    "/hazard-counts",
    response_model=List[HazardCount],
    summary="Records per Hazard Type",
    description="Number of disaster records per HIP hazard type, most frequent first.",
)
async def get_hazard_counts(session: SessionDep, ctx: RequestContext = Depends(can_view)) -> List[HazardCount]:
    rows = await analytics.hazard_counts(session, ctx.country_accounts_id)
    return [HazardCount(**row) for row in rows]


@router.get(
    "/total-cost/{disaster_event_id}",
    response_model=TotalCostResponse,
    summary="Disaster Event Total Cost",
    description=(
        "Repair, replacement, recovery and rehabilitation costs of a disaster event. "
        "Each value is the override entered on the event when set, otherwise the value calculated from its records."
    ),
    responses={404: {"description": "Disaster event not found"}},
)
async def get_total_cost(
    disaster_event_id: str,
    session: SessionDep,
    ctx: RequestContext = Depends(can_view),
) -> TotalCostResponse:
    stmt = select(DisasterEvent).where(
        DisasterEvent.id == disaster_event_id,
        DisasterEvent.country_accounts_id == ctx.country_accounts_id,
    )
    event = (await session.execute(stmt)).scalars().first()
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Disaster event {disaster_event_id} not found",
        )
    totals = reported_totals(event, await calculate_totals(session, disaster_event_id))
    return TotalCostResponse(
        disaster_event_id=disaster_event_id,
        repair=totals.repair,
        replacement=totals.replacement,
        recovery=totals.recovery,
        rehabilitation=totals.rehabilitation,
        total=totals.total,
    )


@router.get(
    "/sector-impact/{sector_id}",
    response_model=SectorImpact,
    summary="Impact on a Sector",
    description=(
        "Records, disaster events, damages and losses of a sector and all sectors below it, in total and per year "
        "of the record start date. Only damage and loss rows of those sectors are counted."
    ),
    responses={404: {"description": "Sector not found"}},
)
async def get_sector_impact(
    sector_id: str,
    session: SessionDep,
    filters: AnalyticsFilters = Depends(),
    ctx: RequestContext = Depends(can_view),
) -> SectorImpact:
    await _check_sector(session, sector_id)
    return SectorImpact(**await analytics.sector_impact(session, ctx.country_accounts_id, sector_id, filters))


@router.get(
    "/hazard-impact",
    response_model=HazardImpact,
    summary="Impact per Hazard Type",
    description=(
        "Records, damages and losses per HIP hazard type with their share, largest first and at most "
        f"{analytics.TOP_HAZARDS} each. `sector_id` limits the figures to a sector and the sectors below it."
    ),
    responses={404: {"description": "Sector not found"}},
)
async def get_hazard_impact(
    session: SessionDep,
    sector_id: Optional[str] = None,
    filters: AnalyticsFilters = Depends(),
    ctx: RequestContext = Depends(can_view),
) -> HazardImpact:
    await _check_sector(session, sector_id)
    return HazardImpact(**await analytics.hazard_impact(session, ctx.country_accounts_id, filters, sector_id))


@router.get(
    "/most-damaging-events",
    response_model=Page[DamagingEvent],
    summary="Most Damaging Events",
    description="Disaster events with the damages and losses of their matching records, one page at a time.",
    responses={404: {"description": "Sector not found"}},
)
async def get_most_damaging_events(
    session: SessionDep,
    sort_by: Literal["damages", "losses", "name", "created_at"] = "damages",
    direction: Literal["asc", "desc"] = "desc",
    sector_id: Optional[str] = None,
    page: Optional[int] = Query(default=None),
    page_size: Optional[int] = Query(default=None),
    filters: AnalyticsFilters = Depends(),
    ctx: RequestContext = Depends(can_view),
) -> Page[DamagingEvent]:
    await _check_sector(session, sector_id)
    result = await analytics.most_damaging_events(
        session,
        ctx.country_accounts_id,
        filters,
        pagination_params(page, page_size),
        sort_by=sort_by,
        descending=direction == "desc",
        sector_id=sector_id,
    )
    return Page[DamagingEvent](**result)


@router.get(
    "/affected-people",
    response_model=Dict[str, int],
    summary="Affected People",
    description=(
        "People per human effects metric over the matching records. `total` adds deaths, injured, missing, "
        "directly affected and displaced people."
    ),
)
async def get_affected_people(
    session: SessionDep,
    filters: AnalyticsFilters = Depends(),
    ctx: RequestContext = Depends(can_view),
) -> Dict[str, int]:
    return await analytics.affected_people(session, ctx.country_accounts_id, filters)
