"""
Form field definitions.

Every resource publishes a list of ``FieldDef`` describing the keys it
accepts through the JSON API, CSV import and CSV export. Validation and
example generation are driven entirely by these definitions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from disaster_tracking.core.errors import DtsError


class FieldType(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    MONEY = "money"
    BOOL = "bool"
    DATE = "date"
    DATETIME = "datetime"
    ENUM = "enum"
    ENUM_FLEX = "enum-flex"
    JSON = "json"
    UUID = "uuid"
    OTHER = "other"
    DATE_OPTIONAL_PRECISION = "date_optional_precision"


TEXT_LIKE = frozenset({FieldType.TEXT, FieldType.TEXTAREA, FieldType.ENUM_FLEX, FieldType.UUID})


@dataclass(frozen=True)
class EnumOption:
    key: str
    label: str


@dataclass(frozen=True)
class FieldDef:
    """Definition of one input field.

    ``json`` marks fields that are stored as JSON and must be parsed from
    their string form when they arrive through CSV.
    """

    key: str
    label: str
    type: FieldType
    required: bool = False
    enum_data: Tuple[EnumOption, ...] = field(default_factory=tuple)
    json: bool = False

    def enum_keys(self) -> List[str]:
        return [o.key for o in self.enum_data]


def enum_options(*pairs: Tuple[str, str]) -> Tuple[EnumOption, ...]:
    """Build enum options from ``(key, label)`` pairs."""
    return tuple(EnumOption(key=k, label=v) for k, v in pairs)


def without(fields: Sequence[FieldDef], *keys: str) -> List[FieldDef]:
    return [f for f in fields if f.key not in keys]


API_IMPORT_ID = FieldDef(key="api_import_id", label="", type=FieldType.OTHER)
SPATIAL_FOOTPRINT = FieldDef(key="spatial_footprint", label="Spatial Footprint", type=FieldType.OTHER, json=True)
ATTACHMENTS = FieldDef(key="attachments", label="Attachments", type=FieldType.OTHER, json=True)


# =====================================================================
# Errors
# =====================================================================


class FieldError(BaseModel):
    """A single validation problem."""

    code: str
    message: str


class FormErrors(BaseModel):
    """Validation errors of one object.

    ``form`` holds errors that are not tied to a declared field (e.g. an
    unknown key), ``fields`` maps field keys to their errors.
    """

    form: List[FieldError] = Field(default_factory=list)
    fields: Dict[str, List[FieldError]] = Field(default_factory=dict)

    def add_form(self, code: str, message: str) -> None:
        self.form.append(FieldError(code=code, message=message))

    def add_field(self, key: str, code: str, message: str) -> None:
        self.fields.setdefault(key, []).append(FieldError(code=code, message=message))

    def has_errors(self) -> bool:
        return bool(self.form) or any(self.fields.values())

    def first_message(self) -> Optional[str]:
        if self.form:
            return self.form[0].message
        for errors in self.fields.values():
            if errors:
                return errors[0].message
        return None

    def first_code(self) -> Optional[str]:
        if self.form:
            return self.form[0].code
        for errors in self.fields.values():
            if errors:
                return errors[0].code
        return None


class ValidationFailed(DtsError):
    """Raised by domain hooks when an object cannot be saved."""

    code = "validation_failed"

    def __init__(self, errors: FormErrors) -> None:
        super().__init__(errors.first_message() or "validation failed", code=errors.first_code())
        self.errors = errors

    @classmethod
    def for_field(cls, key: str, code: str, message: str) -> "ValidationFailed":
        errors = FormErrors()
        errors.add_field(key, code, message)
        return cls(errors)

    @classmethod
    def general(cls, message: str, code: str = "general") -> "ValidationFailed":
        errors = FormErrors()
        errors.add_form(code, message)
        return cls(errors)
