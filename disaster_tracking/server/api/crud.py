"""
CRUD router factory.

``build_crud_router`` turns a ``CrudResource`` into the same set of routes
for every table: paginated list, get by id, bulk JSON add/update/upsert,
delete, and CSV export/import with an example file.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, Query, Response, UploadFile, status
from fastapi.responses import PlainTextResponse

from disaster_tracking.core.auth.roles import Permission
from disaster_tracking.core.forms.bulk import BulkResult, json_create, json_update, json_upsert
from disaster_tracking.core.forms.csv_export import csv_export_response
from disaster_tracking.core.forms.csv_import import (
    CsvImportResult,
    ErrorWithCode,
    csv_import,
    csv_import_example,
    rows_to_text,
)
from disaster_tracking.core.logging_config import get_logger
from disaster_tracking.core.pagination import pagination_params, paginate
from disaster_tracking.core.services.context import RequestContext
from disaster_tracking.core.services.resource import CrudResource
from disaster_tracking.server.services.auth import require_permission, require_shared_data_editor
from disaster_tracking.server.services.deps import SessionDep

logger = get_logger(__name__)


def build_crud_router(resource: CrudResource, tags: Optional[list] = None) -> APIRouter:
    """
    Build the CRUD routes of ``resource``.

    Static paths are registered before ``/{entity_id}`` so that ``list`` and
    the CSV routes are never taken for an id.
    """
    router = APIRouter(tags=tags or [resource.name])
    can_view = require_permission(Permission.VIEW_DATA)
    can_edit = require_shared_data_editor if resource.shared else require_permission(Permission.EDIT_DATA)

    @router.get(
        "/list",
        summary=f"List {resource.label} Items",
        description=f"Paginated list of {resource.label.lower()} rows visible to the caller.",
        response_description="Items of the requested page and the pagination info.",
    )
    async def list_items(
        session: SessionDep,
        page: Optional[int] = Query(None),
        page_size: Optional[int] = Query(None),
        ctx: RequestContext = Depends(can_view),
    ) -> Dict[str, Any]:
        params = pagination_params(page, page_size)
        result = await paginate(session, resource.list_stmt(ctx), params)
        return {
            "items": [item.model_dump() for item in result.items],
            "pagination": result.pagination.model_dump(),
        }

    @router.get(
        "/csv-export",
        summary=f"Export {resource.label} CSV",
        description=f"All {resource.label.lower()} rows visible to the caller as a CSV file.",
        responses={200: {"content": {"text/csv": {}}}},
    )
    async def export_csv(session: SessionDep, ctx: RequestContext = Depends(can_view)) -> Response:
        rows = await resource.export_rows(session, ctx)
        return csv_export_response(rows, resource.name)

    @router.get(
        "/csv-import-example",
        summary=f"Example {resource.label} CSV",
        description="A CSV file showing the columns expected by the given import type.",
        responses={
            200: {"content": {"text/csv": {}}},
            404: {"description": "Unknown import type"},
        },
    )
    async def import_example(
        import_type: str = Query("create"),
        ctx: RequestContext = Depends(can_view),
    ) -> Response:
        try:
            rows = csv_import_example(resource.fields_def, import_type)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
        return PlainTextResponse(
            rows_to_text(rows),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{resource.name}-{import_type}.csv"'},
        )

    @router.post(
        "/add",
        response_model=BulkResult,
        response_model_exclude_none=True,
        summary=f"Add {resource.label} Items",
        description="Create every object of the JSON array in one transaction.",
        response_description="Per item result; the first failure rolls back the whole batch.",
    )
    async def add_items(
        session: SessionDep,
        data: Any = Body(...),
        ctx: RequestContext = Depends(can_edit),
    ) -> BulkResult:
        return await json_create(session, data, resource.handlers(ctx))

    @router.post(
        "/update",
        response_model=BulkResult,
        response_model_exclude_none=True,
        summary=f"Update {resource.label} Items",
        description="Partially update every object of the JSON array; each object names its `id`.",
    )
    async def update_items(
        session: SessionDep,
        data: Any = Body(...),
        ctx: RequestContext = Depends(can_edit),
    ) -> BulkResult:
        return await json_update(session, data, resource.handlers(ctx))

    if resource.supports_upsert:

        @router.post(
            "/upsert",
            response_model=BulkResult,
            response_model_exclude_none=True,
            summary=f"Upsert {resource.label} Items",
            description="Create or update every object of the JSON array by its `api_import_id`.",
        )
        async def upsert_items(
            session: SessionDep,
            data: Any = Body(...),
            ctx: RequestContext = Depends(can_edit),
        ) -> BulkResult:
            return await json_upsert(session, data, resource.handlers(ctx))

    @router.post(
        "/csv-import",
        response_model=CsvImportResult,
        response_model_exclude_none=True,
        summary=f"Import {resource.label} CSV",
        description="Create, update or upsert rows from an uploaded CSV file in one transaction.",
    )
    async def import_csv(
        session: SessionDep,
        file: UploadFile = File(...),
        import_type: str = Form(...),
        ctx: RequestContext = Depends(can_edit),
    ) -> CsvImportResult:
        try:
            text = (await file.read()).decode("utf-8-sig")
        except UnicodeDecodeError as e:
            logger.info(f"Rejected {resource.name} CSV upload that is not UTF-8: {e}")
            return CsvImportResult(
                ok=False, error=ErrorWithCode(code="invalid_encoding", message="File must be UTF-8 encoded CSV")
            )
        return await csv_import(session, text, import_type, resource.handlers(ctx))

    @router.get(
        "/{entity_id}",
        summary=f"Get {resource.label}",
        responses={
            200: {"description": f"{resource.label} found"},
            404: {"description": f"{resource.label} not found"},
        },
    )
    async def get_item(entity_id: str, session: SessionDep, ctx: RequestContext = Depends(can_view)) -> Dict[str, Any]:
        entity = await resource.require(session, ctx, entity_id)
        return entity.model_dump()

    @router.delete(
        "/{entity_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary=f"Delete {resource.label}",
        responses={
            204: {"description": f"{resource.label} deleted"},
            404: {"description": f"{resource.label} not found"},
        },
    )
    async def delete_item(entity_id: str, session: SessionDep, ctx: RequestContext = Depends(can_edit)) -> Response:
        await resource.delete(session, ctx, entity_id)
        await session.commit()
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router
