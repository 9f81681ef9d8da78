"""
Generic CRUD over one table.

A ``CrudResource`` describes a table the way the HTTP layer needs it: its
field definitions, ordering, tenant scoping and optional domain hooks.
The router factory in ``disaster_tracking.server.api.crud`` turns one into
list/get/add/update/upsert/delete/CSV endpoints.

Every write goes through ``create``/``update``/``delete`` here so that the
audit log is written for hooked and plain resources alike.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from disaster_tracking.core.database.entities.disaster_records import DisasterRecord
from disaster_tracking.core.database.repositories.base import SqlRepository
from disaster_tracking.core.errors import NotFoundError
from disaster_tracking.core.forms.bulk import ObjectHandlers
from disaster_tracking.core.forms.fields import FieldDef
from disaster_tracking.core.logging_config import get_logger

from .audit import log_audit
from .context import RequestContext

logger = get_logger(__name__)

Scope = Callable[[Any, RequestContext], Any]
CreateHook = Callable[[AsyncSession, RequestContext, Dict[str, Any]], Awaitable[str]]
UpdateHook = Callable[[AsyncSession, RequestContext, Any, Dict[str, Any]], Awaitable[None]]
DeleteHook = Callable[[AsyncSession, RequestContext, Any], Awaitable[None]]


def tenant_scope(model: Type[SQLModel], column: str = "country_accounts_id") -> Scope:
    """Restrict a select to rows of the acting tenant."""

    def scope(stmt, ctx: RequestContext):
        return stmt.where(getattr(model, column) == ctx.country_accounts_id)

    return scope


def record_scope(model: Type[SQLModel], column: str = "record_id") -> Scope:
    """Restrict a select to rows whose disaster record belongs to the tenant."""

    def scope(stmt, ctx: RequestContext):
        return stmt.join(DisasterRecord, DisasterRecord.id == getattr(model, column)).where(
            DisasterRecord.country_accounts_id == ctx.country_accounts_id
        )

    return scope


@dataclass
class CrudResource:
    """Description of one table exposed through the generic CRUD routes.

    Attributes:
        name: URL segment and CSV file name, e.g. ``unit``
        label: Human readable name used in messages, e.g. ``Unit``
        model: SQLModel table class
        fields_def: Fields accepted by the JSON API and CSV import
        order_by: Columns the list and export are ordered by
        tenant_column: Column set to the acting tenant on create
        scope: Extra restriction applied to every select
        on_create / on_update / on_delete: Domain hooks replacing the plain
            insert, update and delete
        shared: Rows are global reference data of every tenant; only super
            admins write them, API keys included
    """

    name: str
    label: str
    model: Type[SQLModel]
    fields_def: Sequence[FieldDef]
    order_by: Sequence[Any] = ()
    tenant_column: Optional[str] = None
    scope: Optional[Scope] = None
    on_create: Optional[CreateHook] = None
    on_update: Optional[UpdateHook] = None
    on_delete: Optional[DeleteHook] = None
    shared: bool = False

    @property
    def table_name(self) -> str:
        return self.model.__tablename__

    @property
    def supports_upsert(self) -> bool:
        return hasattr(self.model, "api_import_id")

    def repository(self, session: AsyncSession) -> SqlRepository:
        return SqlRepository(session, self.model, order_by=self.order_by)

    def select(self, ctx: RequestContext):
        stmt = select(self.model)
        if self.scope is not None:
            stmt = self.scope(stmt, ctx)
        return stmt

    def list_stmt(self, ctx: RequestContext):
        stmt = self.select(ctx)
        if self.order_by:
            stmt = stmt.order_by(*self.order_by)
        return stmt

    async def get(self, session: AsyncSession, ctx: RequestContext, entity_id: str) -> Optional[Any]:
        stmt = self.select(ctx).where(self.model.id == entity_id)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def require(self, session: AsyncSession, ctx: RequestContext, entity_id: str) -> Any:
        entity = await self.get(session, ctx, entity_id)
        if entity is None:
            raise NotFoundError(f"{self.label} {entity_id} not found")
        return entity

    async def id_by_import_id(self, session: AsyncSession, ctx: RequestContext, import_id: str) -> Optional[str]:
        if not self.supports_upsert:
            return None
        stmt = self.select(ctx).where(self.model.api_import_id == import_id)
        result = await session.execute(stmt.limit(1))
        entity = result.scalars().first()
        return entity.id if entity is not None else None

    async def create(self, session: AsyncSession, ctx: RequestContext, data: Dict[str, Any]) -> str:
        if self.on_create is not None:
            new_id = await self.on_create(session, ctx, data)
        else:
            values = dict(data)
            if self.tenant_column:
                values[self.tenant_column] = ctx.country_accounts_id
            entity = await self.repository(session).create(self.model(**values))
            new_id = entity.id
        await log_audit(session, self.table_name, new_id, ctx.user_id, "create", None, data)
        return new_id

    async def update(self, session: AsyncSession, ctx: RequestContext, entity_id: str, data: Dict[str, Any]) -> None:
        entity = await self.require(session, ctx, entity_id)
        old_values = entity.model_dump()
        if self.on_update is not None:
            await self.on_update(session, ctx, entity, data)
        else:
            repo = self.repository(session)
            await repo.update(repo.apply(entity, data))
        await log_audit(session, self.table_name, entity_id, ctx.user_id, "update", old_values, data)

    async def delete(self, session: AsyncSession, ctx: RequestContext, entity_id: str) -> None:
        entity = await self.require(session, ctx, entity_id)
        old_values = entity.model_dump()
        if self.on_delete is not None:
            await self.on_delete(session, ctx, entity)
        else:
            await session.delete(entity)
            await session.flush()
        await log_audit(session, self.table_name, entity_id, ctx.user_id, "delete", old_values, None)
        logger.info(f"Deleted {self.name} {entity_id}")

    async def export_rows(self, session: AsyncSession, ctx: RequestContext) -> List[Dict[str, Any]]:
        result = await session.execute(self.list_stmt(ctx))
        return [entity.model_dump() for entity in result.scalars().all()]

    def handlers(self, ctx: RequestContext) -> ObjectHandlers:
        """Bind this resource to ``ctx`` for the bulk JSON and CSV importers."""

        async def create(session: AsyncSession, data: Dict[str, Any]) -> str:
            return await self.create(session, ctx, data)

        async def update(session: AsyncSession, entity_id: str, data: Dict[str, Any]) -> None:
            await self.update(session, ctx, entity_id, data)

        async def id_by_import_id(session: AsyncSession, import_id: str) -> Optional[str]:
            return await self.id_by_import_id(session, ctx, import_id)

        return ObjectHandlers(
            type_name=self.name,
            fields_def=self.fields_def,
            create=create,
            update=update,
            id_by_import_id=id_by_import_id,
        )
