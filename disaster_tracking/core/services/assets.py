"""
Assets.

Built-in assets are shipped with the system and shared by every tenant;
tenants add their own next to them. Built-in rows are read-only.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from disaster_tracking.core.database.entities.assets import Asset
from disaster_tracking.core.database.repositories.base import SqlRepository
from disaster_tracking.core.errors import BuiltInAssetError
from disaster_tracking.core.forms.fields import API_IMPORT_ID, FieldDef, FieldType

from .context import RequestContext
from .resource import CrudResource
from .sectors import sector_ancestor_ids

ASSET_FIELDS = [
    FieldDef(key="sector_ids", label="Sector", type=FieldType.OTHER),
    FieldDef(key="name", label="Name", type=FieldType.TEXT, required=True),
    FieldDef(key="category", label="Category", type=FieldType.TEXT),
    FieldDef(key="national_id", label="National ID", type=FieldType.TEXT),
    FieldDef(key="notes", label="Notes", type=FieldType.TEXTAREA),
]

ASSET_API_FIELDS = [*ASSET_FIELDS, API_IMPORT_ID]


def normalize_sector_ids(value: Any) -> str:
    """Sector ids are stored comma separated; accept a list as well."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ",".join(str(v).strip() for v in value if str(v).strip())
    return ",".join(part.strip() for part in str(value).split(",") if part.strip())


def _asset_scope(stmt, ctx: RequestContext):
    return stmt.where(or_(Asset.is_built_in.is_(True), Asset.country_accounts_id == ctx.country_accounts_id))


def _values(data: Dict[str, Any]) -> Dict[str, Any]:
    values = dict(data)
    if "sector_ids" in values:
        values["sector_ids"] = normalize_sector_ids(values["sector_ids"])
    values.pop("is_built_in", None)
    return values


async def _create(session: AsyncSession, ctx: RequestContext, data: Dict[str, Any]) -> str:
    asset = Asset(**_values(data), is_built_in=False, country_accounts_id=ctx.country_accounts_id)
    await SqlRepository(session, Asset).create(asset)
    return asset.id


async def _update(session: AsyncSession, ctx: RequestContext, asset: Asset, data: Dict[str, Any]) -> None:
    if asset.is_built_in:
        raise BuiltInAssetError()
    repo = SqlRepository(session, Asset)
    await repo.update(repo.apply(asset, _values(data)))


async def _delete(session: AsyncSession, ctx: RequestContext, asset: Asset) -> None:
    if asset.is_built_in:
        raise BuiltInAssetError("Built-in assets cannot be deleted")
    await session.delete(asset)
    await session.flush()


async def assets_for_sector(session: AsyncSession, sector_id: str, country_accounts_id: Optional[str]) -> List[Asset]:
    """Assets attached to ``sector_id`` or any of its parents, visible to the tenant."""
    sector_ids = set(await sector_ancestor_ids(session, sector_id))
    stmt = select(Asset).where(or_(Asset.is_built_in.is_(True), Asset.country_accounts_id == country_accounts_id))
    result = await session.execute(stmt.order_by(Asset.name))
    return [a for a in result.scalars().all() if sector_ids.intersection(a.sector_ids.split(","))]


assets_resource = CrudResource(
    name="asset",
    label="Asset",
    model=Asset,
    fields_def=ASSET_API_FIELDS,
    order_by=(Asset.name,),
    tenant_column="country_accounts_id",
    scope=_asset_scope,
    on_create=_create,
    on_update=_update,
    on_delete=_delete,
)
