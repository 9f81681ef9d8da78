"""
Human Effects Endpoints.

Human effects are edited as one table per category. The client sends its
pending changes (deletes, updates by column index, new rows keyed by a
temporary id) together with the column names it was built for.

The columns depend on the country account: its custom disaggregations are
added and its hidden shared ones left out. Configuring them needs the
``EditHumanEffectsCustomDsg`` permission, checked for API keys too.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from disaster_tracking.core.auth.roles import Permission
from disaster_tracking.core.database.entities.disaster_records import DisasterRecord
from disaster_tracking.core.logging_config import get_logger
from disaster_tracking.core.services import human_effects
from disaster_tracking.core.services.context import RequestContext
from disaster_tracking.core.services.human_effects import (
    CustomDsgConfig,
    Def,
    DsgConfig,
    HiddenDsgColumns,
    HumanEffectsTable,
    SaveResult,
)
from disaster_tracking.server.schemas import CategoryPresenceUpdate, HumanEffectsSaveRequest
from disaster_tracking.server.services.auth import require_permission
from disaster_tracking.server.services.deps import SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["human-effects"])

can_view = require_permission(Permission.VIEW_DATA)
can_edit = require_permission(Permission.EDIT_DATA)
can_configure = require_permission(Permission.EDIT_HUMAN_EFFECTS_CUSTOM_DSG, check_api_keys=True)


async def _tenant_record(session: AsyncSession, ctx: RequestContext, record_id: str) -> DisasterRecord:
    record = await session.get(DisasterRecord, record_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Disaster record {record_id} not found")
    if record.country_accounts_id != ctx.country_accounts_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Disaster record belongs to another country account",
        )
    return record


def _table(table: Optional[str]) -> HumanEffectsTable:
    if not table:
        return HumanEffectsTable.DEATHS
    return human_effects.table_from_string(table)


async def _defs(session: AsyncSession, ctx: RequestContext, table: HumanEffectsTable) -> List[Def]:
    return await human_effects.defs_for_tenant(session, table, ctx.country_accounts_id)


@router.get(
    "",
    summary="Get Human Effects Table",
    description=(
        "Column definitions, rows, category presence, total group and saved totals of one human effects table "
        "of a record."
    ),
    responses={403: {"description": "Record of another country account"}, 404: {"description": "Record not found"}},
)
async def get_table(
    record_id: str,
    session: SessionDep,
    table: Optional[str] = None,
    ctx: RequestContext = Depends(can_view),
) -> Dict[str, Any]:
    await _tenant_record(session, ctx, record_id)
    table_id = _table(table)
    defs = await _defs(session, ctx, table_id)
    current = await human_effects.get(session, table_id, record_id, ctx.country_accounts_id, defs)
    presence = await human_effects.category_presence_get(session, record_id, ctx.country_accounts_id, table_id, defs)
    flags = await human_effects.total_group_get(session, record_id, table_id)
    return {
        "table": table_id.value,
        "record_id": record_id,
        "columns": human_effects.column_names(defs),
        "ids": current.ids,
        "data": current.data,
        "category_presence": presence,
        "total_group_flags": [f.model_dump(by_alias=True) for f in flags] if flags is not None else None,
        "totals": await human_effects.get_total_presence_table(session, record_id, table_id),
    }


@router.post(
    "/save",
    response_model=SaveResult,
    response_model_exclude_none=True,
    summary="Save Human Effects Changes",
    description="Apply deletes, updates and new rows in one transaction and validate the resulting table.",
    response_description="`ok`, or the error of the failing row, or the table validation errors.",
    responses={
        400: {"description": "No data, or columns missing or not matching the table"},
        403: {"description": "Record of another country account"},
    },
)
async def save_table(
    record_id: str,
    body: HumanEffectsSaveRequest,
    session: SessionDep,
    table: Optional[str] = None,
    ctx: RequestContext = Depends(can_edit),
) -> SaveResult:
    await _tenant_record(session, ctx, record_id)
    table_id = _table(table)
    defs = await _defs(session, ctx, table_id)
    expected = ",".join(human_effects.column_names(defs))

    if body.data is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="no data passed")
    if body.data.has_changes():
        if not body.columns:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"when passing data, columns are also required: {expected}",
            )
        if body.columns != human_effects.column_names(defs):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"columns passed do not match expected: {expected} got {','.join(body.columns)}",
            )

    return await human_effects.save(session, table_id, record_id, ctx.country_accounts_id, defs, body.data)


@router.post(
    "/clear",
    summary="Clear Human Effects Table",
    description="Delete every row of one human effects table of a record.",
)
async def clear_table(
    record_id: str,
    table: str,
    session: SessionDep,
    ctx: RequestContext = Depends(can_edit),
) -> Dict[str, Any]:
    await _tenant_record(session, ctx, record_id)
    table_id = human_effects.table_from_string(table)
    deleted = await human_effects.clear_data(session, table_id, record_id)
    await session.commit()
    logger.info(f"Cleared {len(deleted)} {table_id.value} rows of record {record_id}")
    return {"ok": True}


@router.get(
    "/category-presence",
    summary="Get Category Presence",
    description="Whether each metric of the table was observed; unanswered metrics are left out.",
)
async def get_category_presence(
    record_id: str,
    table: str,
    session: SessionDep,
    ctx: RequestContext = Depends(can_view),
) -> Dict[str, bool]:
    await _tenant_record(session, ctx, record_id)
    table_id = human_effects.table_from_string(table)
    defs = await _defs(session, ctx, table_id)
    return await human_effects.category_presence_get(session, record_id, ctx.country_accounts_id, table_id, defs)


@router.post(
    "/category-presence",
    summary="Set Category Presence",
    description="Store the presence flags of the table's metrics; metrics left out become unanswered.",
)
async def set_category_presence(
    record_id: str,
    table: str,
    body: CategoryPresenceUpdate,
    session: SessionDep,
    ctx: RequestContext = Depends(can_edit),
) -> Dict[str, Any]:
    await _tenant_record(session, ctx, record_id)
    table_id = human_effects.table_from_string(table)
    defs = await _defs(session, ctx, table_id)
    await human_effects.category_presence_set(session, record_id, table_id, defs, body.data)
    await session.commit()
    return {"ok": True}


@router.get(
    "/dsg-config",
    response_model=DsgConfig,
    summary="Get Disaggregation Config",
    description="Custom disaggregations and hidden shared disaggregations of the country account.",
)
async def get_dsg_config(session: SessionDep, ctx: RequestContext = Depends(can_configure)) -> DsgConfig:
    return await human_effects.dsg_config_get(session, ctx.country_accounts_id)


@router.post(
    "/dsg-config/custom",
    summary="Set Custom Disaggregations",
    description=(
        "Replace the custom disaggregations of the country account; `null` removes them. "
        "Every disaggregation needs at least 2 options."
    ),
    responses={400: {"description": "Invalid config"}},
)
async def set_custom_dsg(
    session: SessionDep,
    body: Optional[CustomDsgConfig] = None,
    ctx: RequestContext = Depends(can_configure),
) -> Dict[str, Any]:
    await human_effects.custom_config_set(session, ctx.country_accounts_id, body)
    await session.commit()
    logger.info(
        f"Country account {ctx.country_accounts_id} now has "
        f"{len(body.config) if body is not None else 0} custom disaggregations"
    )
    return {"ok": True}


@router.post(
    "/dsg-config/hidden",
    summary="Set Hidden Disaggregations",
    description="Hide shared disaggregations from every human effects table of the country account.",
    responses={400: {"description": "Unknown shared disaggregation"}},
)
async def set_hidden_dsg(
    body: HiddenDsgColumns,
    session: SessionDep,
    ctx: RequestContext = Depends(can_configure),
) -> Dict[str, Any]:
    await human_effects.hidden_columns_set(session, ctx.country_accounts_id, body.cols)
    await session.commit()
    return {"ok": True}
