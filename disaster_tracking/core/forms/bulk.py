"""
Bulk JSON create, update and upsert.

Each operation takes a list of objects and applies them in a single
transaction. The first object that fails validation (or is rejected by the
resource's own hooks) stops the run, rolls back everything written so far
and is reported as the last entry of ``res``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from disaster_tracking.core.errors import DtsError
from disaster_tracking.core.logging_config import get_logger
from disaster_tracking.core.monitoring import log_import_run

from .fields import FieldDef, FieldType, FormErrors, ValidationFailed
from .validate import validate_from_json

logger = get_logger(__name__)

NOT_A_LIST_ERROR = "Data must be an array of objects"
NOT_AN_OBJECT_ERROR = "Each item must be an object"
UPDATE_MISSING_ID_ERROR = "Missing required field: id"
UPSERT_MISSING_IMPORT_ID_ERROR = "Missing required field: api_import_id"

_ID_FIELD = FieldDef(key="id", label="ID", type=FieldType.TEXT)


@dataclass
class ObjectHandlers:
    """Persistence hooks of one resource, bound to the current request.

    ``create`` returns the new id, ``update`` returns nothing; both raise
    ``ValidationFailed`` when the resource rejects the data.
    """

    type_name: str
    fields_def: Sequence[FieldDef]
    create: Callable[[AsyncSession, dict], Awaitable[str]]
    update: Callable[[AsyncSession, str, dict], Awaitable[None]]
    id_by_import_id: Callable[[AsyncSession, str], Awaitable[Optional[str]]]


class ItemResult(BaseModel):
    ok: bool = True
    id: Optional[str] = None
    status: Optional[str] = None
    errors: Optional[FormErrors] = None


class BulkResult(BaseModel):
    ok: bool
    res: List[ItemResult] = Field(default_factory=list)
    error: Optional[str] = None


class _Abort(Exception):
    pass


def _form_error(message: str, code: str = "general") -> FormErrors:
    errors = FormErrors()
    errors.add_form(code, message)
    return errors


def _errors_of(e: DtsError) -> FormErrors:
    if isinstance(e, ValidationFailed):
        return e.errors
    return _form_error(e.message, e.code)


async def _run(session: AsyncSession, handlers: ObjectHandlers, mode: str, data: Any, apply) -> BulkResult:
    if not isinstance(data, list):
        return BulkResult(ok=False, res=[], error=NOT_A_LIST_ERROR)

    res: List[ItemResult] = []
    try:
        for item in data:
            if not isinstance(item, dict):
                res.append(ItemResult(ok=False, errors=_form_error(NOT_AN_OBJECT_ERROR)))
                raise _Abort()
            await apply(item, res)
        await session.commit()
    except _Abort:
        await session.rollback()
        logger.info(f"{handlers.type_name} {mode} rolled back at item {len(res)}")
        log_import_run(handlers.type_name, mode, ok=False, rows=len(data))
        return BulkResult(ok=False, res=res)
    except Exception:
        await session.rollback()
        raise

    log_import_run(handlers.type_name, mode, ok=True, rows=len(data))
    return BulkResult(ok=True, res=res)


async def json_create(session: AsyncSession, data: Any, handlers: ObjectHandlers) -> BulkResult:
    """Create every object in ``data``; results are ``{id}`` per object."""

    async def apply(item: dict, res: List[ItemResult]) -> None:
        validated = validate_from_json(item, handlers.fields_def, allow_partial=False, check_unknown_fields=True)
        if not validated.ok:
            res.append(ItemResult(ok=False, errors=validated.errors))
            raise _Abort()
        try:
            new_id = await handlers.create(session, validated.data)
        except DtsError as e:
            res.append(ItemResult(ok=False, errors=_errors_of(e)))
            raise _Abort()
        res.append(ItemResult(ok=True, id=new_id))

    return await _run(session, handlers, "create", data, apply)


async def json_update(session: AsyncSession, data: Any, handlers: ObjectHandlers) -> BulkResult:
    """Partially update every object in ``data``, each identified by ``id``."""
    fields_with_id = [*handlers.fields_def, _ID_FIELD]

    async def apply(item: dict, res: List[ItemResult]) -> None:
        item_id = item.get("id")
        if not isinstance(item_id, str) or not item_id:
            res.append(ItemResult(ok=False, errors=_form_error(UPDATE_MISSING_ID_ERROR)))
            raise _Abort()
        validated = validate_from_json(item, fields_with_id, allow_partial=True, check_unknown_fields=True)
        if not validated.ok:
            res.append(ItemResult(ok=False, id=item_id, errors=validated.errors))
            raise _Abort()
        values = {k: v for k, v in validated.data.items() if k != "id"}
        try:
            await handlers.update(session, item_id, values)
        except DtsError as e:
            res.append(ItemResult(ok=False, id=item_id, errors=_errors_of(e)))
            raise _Abort()
        res.append(ItemResult(ok=True, id=item_id))

    return await _run(session, handlers, "update", data, apply)


async def json_upsert(session: AsyncSession, data: Any, handlers: ObjectHandlers) -> BulkResult:
    """Create or update by ``api_import_id``; results carry ``status``."""

    async def apply(item: dict, res: List[ItemResult]) -> None:
        import_id = item.get("api_import_id")
        if not import_id:
            res.append(ItemResult(ok=False, errors=_form_error(UPSERT_MISSING_IMPORT_ID_ERROR)))
            raise _Abort()
        validated = validate_from_json(item, handlers.fields_def, allow_partial=False, check_unknown_fields=True)
        if not validated.ok:
            res.append(ItemResult(ok=False, errors=validated.errors))
            raise _Abort()
        existing_id = await handlers.id_by_import_id(session, str(import_id))
        try:
            if existing_id:
                await handlers.update(session, existing_id, validated.data)
                res.append(ItemResult(ok=True, id=existing_id, status="update"))
            else:
                new_id = await handlers.create(session, validated.data)
                res.append(ItemResult(ok=True, id=new_id, status="create"))
        except DtsError as e:
            res.append(ItemResult(ok=False, errors=_errors_of(e)))
            raise _Abort()

    return await _run(session, handlers, "upsert", data, apply)
