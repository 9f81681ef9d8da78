"""
CSV export.

Rows are plain dicts (one per database row). Columns holding geometry or
file references are left out of exports.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Sequence

from fastapi.responses import PlainTextResponse, Response

SKIPPED_COLUMNS = frozenset({"spatial_footprint", "attachments"})


def format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (str, int, float, Decimal)):
        return str(value)
    return json.dumps(value, default=str)


def rows_to_csv(rows: Sequence[Mapping[str, Any]], skip: Iterable[str] = SKIPPED_COLUMNS) -> str:
    """Render ``rows`` as CSV text, header taken from the first row."""
    if not rows:
        return ""
    skipped = set(skip)
    columns: List[str] = [c for c in rows[0].keys() if c not in skipped]
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(columns)
    for row in rows:
        writer.writerow([format_value(row.get(c)) for c in columns])
    return buffer.getvalue()


def csv_export_response(rows: Sequence[Mapping[str, Any]], type_name: str) -> Response:
    if not rows:
        return PlainTextResponse(f"No data for {type_name}")
    return Response(
        content=rows_to_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{type_name}.csv"'},
    )
