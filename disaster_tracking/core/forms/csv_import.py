"""
CSV import.

A CSV file is a header row of field keys followed by data rows. Imports run
in a single transaction: the first bad row stops the import, rolls back all
rows written before it and is reported as ``row_error`` (row index counted
from 0 over the data rows, header excluded).
"""

from __future__ import annotations

import csv
import io
from typing import List, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from disaster_tracking.core.errors import DtsError
from disaster_tracking.core.logging_config import get_logger
from disaster_tracking.core.monitoring import log_import_run

from .bulk import UPDATE_MISSING_ID_ERROR, UPSERT_MISSING_IMPORT_ID_ERROR, ObjectHandlers
from .fields import FieldDef, FieldType, FormErrors, ValidationFailed
from .validate import validate_from_map

logger = get_logger(__name__)

IMPORT_TYPES = ("create", "update", "upsert")

EXAMPLE_UUID = "f41bd013-23cc-41ba-91d2-4e325f785171"


class ErrorWithCode(BaseModel):
    code: str
    message: str


class RowError(BaseModel):
    row: int
    code: str
    message: str


class CsvImportResult(BaseModel):
    ok: bool
    imported: int = 0
    res: Optional[List[List[str]]] = None
    error: Optional[ErrorWithCode] = None
    row_error: Optional[RowError] = None


class _RowFailed(Exception):
    def __init__(self, row_error: RowError) -> None:
        super().__init__(row_error.message)
        self.row_error = row_error


def parse_csv(text: str) -> List[List[str]]:
    """Split CSV text into rows, dropping a leading BOM and blank lines."""
    if text.startswith("\ufeff"):
        text = text[1:]
    return [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]


def _row_failed(index: int, code: Optional[str], message: Optional[str]) -> _RowFailed:
    return _RowFailed(RowError(row=index, code=code or "unknown_error", message=message or "unknown error"))


def _from_errors(index: int, errors: FormErrors) -> _RowFailed:
    return _row_failed(index, errors.first_code(), errors.first_message())


def _from_exception(index: int, e: DtsError) -> _RowFailed:
    if isinstance(e, ValidationFailed):
        return _from_errors(index, e.errors)
    return _row_failed(index, e.code, e.message)


def _row_dict(headers: Sequence[str], row: Sequence[str]) -> dict:
    return {key: row[i] if i < len(row) else "" for i, key in enumerate(headers)}


async def csv_create(session: AsyncSession, data: List[List[str]], handlers: ObjectHandlers) -> CsvImportResult:
    headers = data[0]
    res: List[List[str]] = [["id", *headers]]
    for i, row in enumerate(data[1:]):
        validated = validate_from_map(_row_dict(headers, row), handlers.fields_def, allow_partial=False)
        if not validated.ok:
            raise _from_errors(i, validated.errors)
        try:
            new_id = await handlers.create(session, validated.data)
        except DtsError as e:
            raise _from_exception(i, e)
        res.append([new_id, *row])
    return CsvImportResult(ok=True, res=res)


async def csv_update(session: AsyncSession, data: List[List[str]], handlers: ObjectHandlers) -> CsvImportResult:
    headers = data[0]
    for i, row in enumerate(data[1:]):
        item = _row_dict(headers, row)
        item_id = item.pop("id", "").strip()
        if not item_id:
            raise _row_failed(i, "update_missing_id", UPDATE_MISSING_ID_ERROR)
        validated = validate_from_map(item, handlers.fields_def, allow_partial=True)
        if not validated.ok:
            raise _from_errors(i, validated.errors)
        try:
            await handlers.update(session, item_id, validated.data)
        except DtsError as e:
            raise _from_exception(i, e)
    return CsvImportResult(ok=True)


async def csv_upsert(session: AsyncSession, data: List[List[str]], handlers: ObjectHandlers) -> CsvImportResult:
    headers = data[0]
    for i, row in enumerate(data[1:]):
        item = _row_dict(headers, row)
        import_id = item.get("api_import_id", "").strip()
        if not import_id:
            raise _row_failed(i, "upsert_missing_api_import_id", UPSERT_MISSING_IMPORT_ID_ERROR)
        validated = validate_from_map(item, handlers.fields_def, allow_partial=False)
        if not validated.ok:
            raise _from_errors(i, validated.errors)
        try:
            existing_id = await handlers.id_by_import_id(session, import_id)
            if existing_id:
                await handlers.update(session, existing_id, validated.data)
            else:
                await handlers.create(session, validated.data)
        except DtsError as e:
            raise _from_exception(i, e)
    return CsvImportResult(ok=True)


_IMPORTERS = {
    "create": csv_create,
    "update": csv_update,
    "upsert": csv_upsert,
}


async def csv_import(
    session: AsyncSession, text: str, import_type: str, handlers: ObjectHandlers
) -> CsvImportResult:
    """Parse ``text`` and run the importer for ``import_type`` in one transaction."""
    importer = _IMPORTERS.get(import_type)
    if importer is None:
        return CsvImportResult(
            ok=False,
            error=ErrorWithCode(code="invalid_import_type", message=f"Invalid import type: {import_type}"),
        )

    data = parse_csv(text)
    if len(data) <= 1:
        return CsvImportResult(ok=False, error=ErrorWithCode(code="no_data", message="Empty file"))

    rows = len(data) - 1
    try:
        result = await importer(session, data, handlers)
        await session.commit()
    except _RowFailed as e:
        await session.rollback()
        logger.info(f"CSV {import_type} of {handlers.type_name} failed at row {e.row_error.row}: {e.row_error.message}")
        log_import_run(handlers.type_name, import_type, ok=False, rows=rows)
        return CsvImportResult(ok=False, row_error=e.row_error)
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"CSV {import_type} of {handlers.type_name} hit a database error", exc_info=True)
        log_import_run(handlers.type_name, import_type, ok=False, rows=rows)
        return CsvImportResult(ok=False, error=ErrorWithCode(code="pg_error", message=str(getattr(e, "orig", None) or e)))
    except Exception as e:
        await session.rollback()
        logger.error(f"CSV {import_type} of {handlers.type_name} failed", exc_info=True)
        log_import_run(handlers.type_name, import_type, ok=False, rows=rows)
        return CsvImportResult(ok=False, error=ErrorWithCode(code="server_error", message=str(e)))

    result.imported = rows
    log_import_run(handlers.type_name, import_type, ok=True, rows=rows)
    return result


# =====================================================================
# Example files
# =====================================================================


def example_value(f: FieldDef) -> str:
    if f.type == FieldType.NUMBER or f.type == FieldType.MONEY:
        return "1"
    if f.type == FieldType.BOOL:
        return "true"
    if f.type == FieldType.DATE:
        return "2025-01-01"
    if f.type == FieldType.DATETIME:
        return "2025-01-01T00:00:00Z"
    if f.type == FieldType.DATE_OPTIONAL_PRECISION:
        return "2025-01-01"
    if f.type == FieldType.ENUM:
        keys = f.enum_keys()
        return keys[0] if keys else ""
    if f.type == FieldType.UUID:
        return EXAMPLE_UUID
    if f.json or f.type == FieldType.JSON:
        return '{"k": "any json"}'
    return "text example"


def csv_import_example(fields: Sequence[FieldDef], import_type: str) -> List[List[str]]:
    """Header and two example rows for an import of ``import_type``.

    Raises ``ValueError`` for an unknown import type.
    """
    if import_type not in IMPORT_TYPES:
        raise ValueError(f"Invalid import type: {import_type}")

    example_fields = [f for f in fields if f.key != "api_import_id"]
    headers = [f.key for f in example_fields]
    values = [example_value(f) for f in example_fields]

    if import_type == "create":
        return [headers, list(values), list(values)]
    lead = "id" if import_type == "update" else "api_import_id"
    return [[lead, *headers], ["id1", *values], ["id2", *values]]


def rows_to_text(rows: List[List[str]]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerows(rows)
    return buffer.getvalue()
