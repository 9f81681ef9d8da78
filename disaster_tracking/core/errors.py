"""
Domain exceptions.

Services raise these instead of HTTP errors; the server maps every
``DtsError`` to a response with its ``status_code`` (400 unless overridden)
and its ``code``.
"""

from __future__ import annotations

from typing import List, Optional


class DtsError(Exception):
    """Base class of all expected, user-facing domain failures."""

    code = "error"
    status_code = 400

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class NotFoundError(DtsError):
    code = "not_found"
    status_code = 404


class RelationCycleError(DtsError):
    """Setting a parent event would make the event its own ancestor."""

    code = "ErrRelationCycle"

    def __init__(
        self, message: str = "Event relation cycle not allowed. This event or one of its children is set as the parent."
    ) -> None:
        super().__init__(message)


class TenantMismatchError(DtsError):
    code = "tenant_mismatch"


class BuiltInAssetError(DtsError):
    code = "built_in_asset"

    def __init__(self, message: str = "Built-in assets cannot be modified") -> None:
        super().__init__(message)


class SectorLoopError(DtsError):
    code = "sector_loop"

    def __init__(self, message: str = "sector parent loop detected") -> None:
        super().__init__(message)


class HumanEffectsError(DtsError):
    """Problem with one human effects row or group of rows.

    ``row_id`` names the row when known; ``group`` lists the dimension
    columns of a group of rows.
    """

    code = "other"

    def __init__(
        self, code: str, message: str, row_id: Optional[str] = None, group: Optional[List[str]] = None
    ) -> None:
        super().__init__(message, code=code)
        self.row_id = row_id
        self.group = group

    def to_dict(self) -> dict:
        res = {"code": self.code, "message": self.message, "row_id": self.row_id}
        if self.group is not None:
            res["group"] = self.group
        return res
