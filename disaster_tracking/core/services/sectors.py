"""
Sector tree.

Sectors form a tree through ``parent_id``. The agriculture branch is rooted
at sector ``"11"``; losses recorded under it use a different set of
categories.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from disaster_tracking.core.database.entities.sectors import Sector
from disaster_tracking.core.errors import NotFoundError, SectorLoopError
from disaster_tracking.core.forms.fields import FieldDef, FieldType

from .resource import CrudResource

AGRICULTURE_SECTOR_ID = "11"
MAX_SECTOR_DEPTH = 100

SECTOR_FIELDS = [
    FieldDef(key="id", label="ID", type=FieldType.TEXT, required=True),
    FieldDef(key="parent_id", label="Parent", type=FieldType.OTHER),
    FieldDef(key="sectorname", label="Name", type=FieldType.TEXT, required=True),
    FieldDef(key="description", label="Description", type=FieldType.TEXTAREA),
    FieldDef(key="level", label="Level", type=FieldType.NUMBER),
]


async def sector_by_id(session: AsyncSession, sector_id: str) -> Optional[Sector]:
    return await session.get(Sector, sector_id)


async def sector_is_agriculture(session: AsyncSession, sector_id: str) -> bool:
    """True when ``sector_id`` is the agriculture sector or one of its descendants."""
    current_id: Optional[str] = sector_id
    depth = 0
    while current_id is not None:
        if depth > MAX_SECTOR_DEPTH:
            raise SectorLoopError()
        row = await sector_by_id(session, current_id)
        if row is None:
            raise NotFoundError(f"Sector {current_id} not found")
        if row.id == AGRICULTURE_SECTOR_ID:
            return True
        current_id = row.parent_id
        depth += 1
    return False


async def sector_ancestor_ids(session: AsyncSession, sector_id: str) -> List[str]:
    """``sector_id`` followed by its parents up to the root."""
    ids: List[str] = []
    current_id: Optional[str] = sector_id
    while current_id is not None:
        if len(ids) > MAX_SECTOR_DEPTH:
            raise SectorLoopError()
        row = await sector_by_id(session, current_id)
        if row is None:
            break
        ids.append(row.id)
        current_id = row.parent_id
    return ids


async def sector_descendant_ids(session: AsyncSession, sector_id: str) -> List[str]:
    """``sector_id`` followed by all sectors below it, level by level; a parent loop is visited once."""
    ids = [sector_id]
    level = [sector_id]
    while level:
        stmt = select(Sector.id).where(Sector.parent_id.in_(level)).order_by(Sector.id)
        level = [i for i in (await session.execute(stmt)).scalars().all() if i not in ids]
        ids.extend(level)
    return ids


async def get_sectors(session: AsyncSession, parent_id: Optional[str] = None) -> List[Sector]:
    """Children of ``parent_id`` (roots when ``None``), ordered by name."""
    stmt = select(Sector)
    if parent_id:
        stmt = stmt.where(Sector.parent_id == parent_id)
    else:
        stmt = stmt.where(Sector.parent_id.is_(None))
    result = await session.execute(stmt.order_by(Sector.sectorname))
    return list(result.scalars().all())


async def get_sectors_by_level(session: AsyncSession, level: int) -> List[Dict[str, Any]]:
    """Sectors of one level named ``"name (parent name)"``."""
    parent = aliased(Sector)
    stmt = (
        select(Sector.id, Sector.sectorname, parent.sectorname)
        .outerjoin(parent, parent.id == Sector.parent_id)
        .where(Sector.level == level)
        .order_by(Sector.sectorname)
    )
    result = await session.execute(stmt)
    rows = []
    for sector_id, name, parent_name in result.all():
        rows.append({"id": sector_id, "name": name if parent_name is None else f"{name} ({parent_name})"})
    return rows


async def _check_parent(session: AsyncSession, sector_id: Optional[str], parent_id: Optional[str]) -> None:
    if not parent_id:
        return
    if await sector_by_id(session, parent_id) is None:
        raise NotFoundError(f"Sector {parent_id} not found")
    if sector_id and sector_id in await sector_ancestor_ids(session, parent_id):
        raise SectorLoopError()


async def _create(session, ctx, data: Dict[str, Any]) -> str:
    await _check_parent(session, data.get("id"), data.get("parent_id"))
    values = dict(data)
    if values.get("level") is not None:
        values["level"] = int(values["level"])
    sector = Sector(**values)
    session.add(sector)
    await session.flush()
    return sector.id


async def _update(session, ctx, sector: Sector, data: Dict[str, Any]) -> None:
    if "parent_id" in data:
        await _check_parent(session, sector.id, data["parent_id"])
    for key, value in data.items():
        if key == "id":
            continue
        if key == "level" and value is not None:
            value = int(value)
        setattr(sector, key, value)
    session.add(sector)
    await session.flush()


sectors_resource = CrudResource(
    name="sector",
    label="Sector",
    model=Sector,
    fields_def=SECTOR_FIELDS,
    order_by=(Sector.sectorname,),
    on_create=_create,
    on_update=_update,
    shared=True,
)
