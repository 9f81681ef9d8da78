"""
Form handling shared by every resource.

- fields: field definitions and error types
- validate: JSON and string (CSV/form) validation
- bulk: transactional JSON create/update/upsert
- csv_import / csv_export: CSV formats
"""

from .bulk import BulkResult, ItemResult, ObjectHandlers, json_create, json_update, json_upsert
from .csv_export import csv_export_response, rows_to_csv
from .csv_import import CsvImportResult, csv_import, csv_import_example, parse_csv
from .fields import FieldDef, FieldType, FormErrors, ValidationFailed
from .validate import validate_from_json, validate_from_map

__all__ = [
    "BulkResult",
    "CsvImportResult",
    "FieldDef",
    "FieldType",
    "FormErrors",
    "ItemResult",
    "ObjectHandlers",
    "ValidationFailed",
    "csv_export_response",
    "csv_import",
    "csv_import_example",
    "json_create",
    "json_update",
    "json_upsert",
    "parse_csv",
    "rows_to_csv",
    "validate_from_json",
    "validate_from_map",
]
