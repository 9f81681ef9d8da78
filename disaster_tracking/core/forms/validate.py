"""
Form validation.

Two entry points share one skeleton:

- ``validate_from_json`` checks values decoded from a JSON request body,
  where numbers and booleans already have their native types.
- ``validate_from_map`` checks string values coming from CSV rows or form
  posts, and converts them to their native types.

Only keys present in the input are validated and returned, so the same
functions serve full creates and partial updates.
"""

from __future__ import annotations

import json
import math
import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Mapping, Sequence

from .fields import TEXT_LIKE, FieldDef, FieldError, FieldType, FormErrors

_MISSING = object()

_DATE_OPTIONAL_PRECISION = re.compile(r"^\d{4}(-\d{2}(-\d{2})?)?$")


class _FieldProblem(Exception):
    def __init__(self, error: FieldError) -> None:
        super().__init__(error.message)
        self.error = error


def required_error(f: FieldDef) -> FieldError:
    return FieldError(code="required", message=f'The field "{f.label}" is required.')


def invalid_type_error(f: FieldDef, expected: str) -> _FieldProblem:
    return _FieldProblem(FieldError(code="invalid_type", message=f'The field "{f.label}" must be of type {expected}.'))


def invalid_date_error(f: FieldDef) -> _FieldProblem:
    return _FieldProblem(
        FieldError(code="invalid_date_format", message=f'The field "{f.label}" must be a valid RFC3339 date string.')
    )


def unknown_enum_error(f: FieldDef, value: Any) -> _FieldProblem:
    valid = ", ".join(f.enum_keys())
    return _FieldProblem(
        FieldError(
            code="unknown_enum_value",
            message=f'The field "{f.label}" contains an unknown enum value "{value}". Valid values are: {valid}.',
        )
    )


def unknown_field_error(key: str) -> FieldError:
    return FieldError(code="unknown_field", message=f'The field "{key}" is not recognized.')


@dataclass
class ValidationResult:
    ok: bool
    data: Dict[str, Any] = field(default_factory=dict)
    errors: FormErrors = field(default_factory=FormErrors)


def validate_shared(
    data: Mapping[str, Any],
    fields: Sequence[FieldDef],
    allow_partial: bool,
    check_unknown_fields: bool,
    parse_value: Callable[[FieldDef, Any], Any],
) -> ValidationResult:
    """Run ``parse_value`` over every declared key present in ``data``.

    ``parse_value`` returns ``_MISSING`` to drop a key from the result.
    """
    errors = FormErrors()
    known = {f.key for f in fields}

    if check_unknown_fields:
        for key in data:
            if key not in known:
                errors.form.append(unknown_field_error(key))

    parsed: Dict[str, Any] = {}
    for f in fields:
        if f.key not in data:
            if f.required and not allow_partial:
                errors.fields[f.key] = [required_error(f)]
            continue
        try:
            value = parse_value(f, data[f.key])
        except _FieldProblem as problem:
            errors.fields[f.key] = [problem.error]
            continue
        if f.required and not allow_partial and (value is _MISSING or value is None):
            errors.fields[f.key] = [required_error(f)]
            continue
        if value is not _MISSING:
            parsed[f.key] = value

    return ValidationResult(ok=not errors.has_errors(), data=parsed, errors=errors)


# =====================================================================
# Shared parsers
# =====================================================================


def _parse_date(f: FieldDef, value: str) -> date | datetime:
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        if f.type == FieldType.DATE and len(text) == 10:
            return date.fromisoformat(text)
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise invalid_date_error(f)
    if f.type == FieldType.DATE:
        return parsed.date()
    return parsed


def _parse_money(f: FieldDef, value: Any) -> Decimal | None:
    if isinstance(value, bool):
        raise invalid_type_error(f, "money")
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise invalid_type_error(f, "money")
        return Decimal(str(value))
    text = str(value).strip()
    if text == "":
        return None
    try:
        parsed = Decimal(text)
    except InvalidOperation:
        raise invalid_type_error(f, "money")
    if not parsed.is_finite():
        raise invalid_type_error(f, "money")
    return parsed


def _parse_uuid(f: FieldDef, value: str) -> str | None:
    text = value.strip()
    if text == "":
        return None
    try:
        return str(uuid.UUID(text))
    except ValueError:
        raise invalid_type_error(f, "uuid")


def _check_enum(f: FieldDef, value: Any) -> Any:
    if value not in f.enum_keys():
        raise unknown_enum_error(f, value)
    return value


def _check_date_optional_precision(f: FieldDef, value: str) -> str:
    if value and not _DATE_OPTIONAL_PRECISION.match(value):
        raise invalid_date_error(f)
    return value


# =====================================================================
# JSON input
# =====================================================================


def _parse_json_value(f: FieldDef, value: Any) -> Any:
    if f.type == FieldType.NUMBER:
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise invalid_type_error(f, "number")
        if isinstance(value, float) and not math.isfinite(value):
            raise invalid_type_error(f, "number")
        return value
    if f.type in TEXT_LIKE or f.type == FieldType.DATE_OPTIONAL_PRECISION:
        if value is None:
            return None if f.type == FieldType.UUID else ""
        if not isinstance(value, str):
            raise invalid_type_error(f, "string")
        if f.type == FieldType.UUID:
            return _parse_uuid(f, value)
        if f.type == FieldType.DATE_OPTIONAL_PRECISION:
            return _check_date_optional_precision(f, value.strip())
        return value
    if f.type == FieldType.MONEY:
        if value is None:
            return None
        return _parse_money(f, value)
    if f.type in (FieldType.DATE, FieldType.DATETIME):
        if value is None:
            return None
        if not isinstance(value, str):
            raise invalid_date_error(f)
        return _parse_date(f, value)
    if f.type == FieldType.BOOL:
        if value is None:
            return False
        if not isinstance(value, bool):
            raise invalid_type_error(f, "boolean")
        return value
    if f.type == FieldType.ENUM:
        if value is None and not f.required:
            return None
        return _check_enum(f, value)
    if f.type in (FieldType.JSON, FieldType.OTHER):
        return value
    raise ValueError(f"server error: unknown type defined: {f.type}")


def validate_from_json(
    data: Mapping[str, Any],
    fields: Sequence[FieldDef],
    allow_partial: bool = False,
    check_unknown_fields: bool = True,
) -> ValidationResult:
    """Validate an object decoded from JSON."""
    return validate_shared(data, fields, allow_partial, check_unknown_fields, _parse_json_value)


# =====================================================================
# String input (CSV rows, form posts)
# =====================================================================


def _parse_map_value(f: FieldDef, value: Any) -> Any:
    if value is None:
        return _MISSING

    if f.json or f.type == FieldType.JSON:
        if not isinstance(value, str):
            return value
        if value.strip() == "":
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            raise invalid_type_error(f, "valid JSON")

    if not isinstance(value, str):
        raise invalid_type_error(f, "string")
    text = value.strip()
    if f.required and text == "":
        return _MISSING

    if f.type == FieldType.NUMBER:
        if text == "":
            return None
        try:
            number = float(text)
        except ValueError:
            raise invalid_type_error(f, "number")
        if not math.isfinite(number):
            raise invalid_type_error(f, "number")
        return number
    if f.type == FieldType.MONEY:
        return _parse_money(f, text)
    if f.type == FieldType.UUID:
        return _parse_uuid(f, text)
    if f.type == FieldType.DATE_OPTIONAL_PRECISION:
        return _check_date_optional_precision(f, text)
    if f.type in (FieldType.TEXT, FieldType.TEXTAREA, FieldType.ENUM_FLEX):
        return text
    if f.type in (FieldType.DATE, FieldType.DATETIME):
        if text == "":
            return None
        return _parse_date(f, text)
    if f.type == FieldType.BOOL:
        lowered = text.lower()
        if lowered in ("on", "true"):
            return True
        if lowered in ("", "off", "false"):
            return False
        raise invalid_type_error(f, "bool")
    if f.type == FieldType.ENUM:
        if not f.required and text == "":
            return None
        return _check_enum(f, text)
    if f.type == FieldType.OTHER:
        return None if text == "" else text
    raise ValueError(f"server error: unknown type defined: {f.type}")


def validate_from_map(
    data: Mapping[str, Any],
    fields: Sequence[FieldDef],
    allow_partial: bool = False,
    check_unknown_fields: bool = True,
) -> ValidationResult:
    """Validate string values, e.g. one CSV row keyed by header."""
    return validate_shared(data, fields, allow_partial, check_unknown_fields, _parse_map_value)
