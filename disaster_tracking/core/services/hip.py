"""
HIP hazard taxonomy.

The taxonomy arrives as a flat list of hazards, each naming its cluster
and type. Upserting a hazard upserts its type and cluster first.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from disaster_tracking.core.database.entities.hip import HipCluster, HipHazard, HipType
from disaster_tracking.core.logging_config import get_logger

logger = get_logger(__name__)


class HipItem(BaseModel):
    """One hazard as published by the HIP API."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    title: str
    description: Optional[str] = None
    notation: str = ""
    cluster_id: str
    cluster_name: str
    type_id: str
    type_name: str


class HipListPage(BaseModel):
    last_page: int = 1
    data: List[HipItem] = Field(default_factory=list)


# search type in the URL -> table
HIP_SEARCH_TYPES: Dict[str, Type[SQLModel]] = {
    "hazard-types": HipType,
    "hazard-classes": HipType,
    "hazard-clusters": HipCluster,
    "specific-hazards": HipHazard,
}


async def _upsert(session: AsyncSession, model: Type[SQLModel], entity_id: str, values: Dict[str, Any]) -> None:
    row = await session.get(model, entity_id)
    if row is None:
        session.add(model(id=entity_id, **values))
    else:
        for key, value in values.items():
            setattr(row, key, value)
        session.add(row)


async def upsert_hip(session: AsyncSession, item: HipItem) -> None:
    await _upsert(session, HipType, item.type_id, {"name_en": item.type_name})
    await _upsert(session, HipCluster, item.cluster_id, {"type_id": item.type_id, "name_en": item.cluster_name})
    await _upsert(
        session,
        HipHazard,
        item.id,
        {
            "code": item.notation,
            "cluster_id": item.cluster_id,
            "name_en": item.title,
            "description_en": item.description,
        },
    )
    await session.flush()


async def upsert_hip_list(session: AsyncSession, items: Iterable[HipItem]) -> int:
    """Upsert every item in order; returns how many were written."""
    count = 0
    for item in items:
        await upsert_hip(session, item)
        count += 1
    logger.info(f"Upserted {count} HIP hazards")
    return count


async def search_hips(session: AsyncSession, search_type: str, query: str = "") -> List[Dict[str, Any]]:
    """Case-insensitive substring search on ``name_en``.

    Raises:
        KeyError: ``search_type`` is not one of ``HIP_SEARCH_TYPES``
    """
    model = HIP_SEARCH_TYPES[search_type]
    stmt = select(model)
    if query:
        stmt = stmt.where(func.lower(model.name_en).contains(query.lower(), autoescape=True))
    result = await session.execute(stmt.order_by(model.name_en))
    return [row.model_dump() for row in result.scalars().all()]
