"""
Administrative divisions of a tenant's country.

A division's ``level`` is derived from its parent (roots are level 1) and
its ``name`` maps language codes to names.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from disaster_tracking.core.database.entities.divisions import Division
from disaster_tracking.core.forms.fields import API_IMPORT_ID, FieldDef, FieldType, ValidationFailed

from .context import RequestContext
from .resource import CrudResource, tenant_scope

DIVISION_FIELDS = [
    FieldDef(key="parent_id", label="Parent", type=FieldType.OTHER),
    FieldDef(key="name", label="Name", type=FieldType.JSON, required=True, json=True),
    FieldDef(key="import_id", label="Import ID", type=FieldType.OTHER),
    FieldDef(key="national_id", label="National ID", type=FieldType.OTHER),
]

DIVISION_API_FIELDS = [*DIVISION_FIELDS, API_IMPORT_ID]

MAX_DIVISION_DEPTH = 100


async def _tenant_division(session: AsyncSession, ctx: RequestContext, division_id: str) -> Optional[Division]:
    stmt = select(Division).where(
        Division.id == division_id,
        Division.country_accounts_id == ctx.country_accounts_id,
    )
    return (await session.execute(stmt)).scalars().first()


def _check_name(name: Any) -> None:
    if not isinstance(name, dict) or not all(isinstance(v, str) for v in name.values()):
        raise ValidationFailed.for_field("name", "invalid_type", 'The field "Name" must map language codes to names.')


async def _level_for_parent(
    session: AsyncSession, ctx: RequestContext, parent_id: Optional[str], division_id: Optional[str] = None
) -> int:
    if not parent_id:
        return 1
    parent = await _tenant_division(session, ctx, parent_id)
    if parent is None:
        raise ValidationFailed.for_field(
            "parent_id",
            "not_found",
            f"Parent division with ID {parent_id} not found or does not belong to the same tenant",
        )
    if division_id is not None:
        current: Optional[Division] = parent
        depth = 0
        while current is not None and depth <= MAX_DIVISION_DEPTH:
            if current.id == division_id:
                raise ValidationFailed.for_field(
                    "parent_id", "circular_reference", "Division cannot be its own ancestor"
                )
            current = await _tenant_division(session, ctx, current.parent_id) if current.parent_id else None
            depth += 1
    return (parent.level or 0) + 1


async def _create(session: AsyncSession, ctx: RequestContext, data: Dict[str, Any]) -> str:
    _check_name(data.get("name"))
    level = await _level_for_parent(session, ctx, data.get("parent_id"))
    division = Division(**data, level=level, country_accounts_id=ctx.country_accounts_id)
    session.add(division)
    await session.flush()
    return division.id


async def _update(session: AsyncSession, ctx: RequestContext, division: Division, data: Dict[str, Any]) -> None:
    if "name" in data:
        _check_name(data["name"])
    if "parent_id" in data:
        division.level = await _level_for_parent(session, ctx, data["parent_id"], division.id)
    for key, value in data.items():
        setattr(division, key, value)
    session.add(division)
    await session.flush()


async def _delete(session: AsyncSession, ctx: RequestContext, division: Division) -> None:
    stmt = select(Division.id).where(Division.parent_id == division.id).limit(1)
    if (await session.execute(stmt)).first() is not None:
        raise ValidationFailed.general("Delete child divisions first", code="has_children")
    await session.delete(division)
    await session.flush()


divisions_resource = CrudResource(
    name="division",
    label="Division",
    model=Division,
    fields_def=DIVISION_API_FIELDS,
    order_by=(Division.id,),
    tenant_column="country_accounts_id",
    scope=tenant_scope(Division),
    on_create=_create,
    on_update=_update,
    on_delete=_delete,
)
