"""
Roles and permissions.

Each role has an explicit permission list; a role that is not listed for a
permission still has it when it ranks at or above the permission's minimum
role in ``ROLE_HIERARCHY``.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional


class Role(str, Enum):
    DATA_VIEWER = "data-viewer"
    DATA_COLLECTOR = "data-collector"
    DATA_VALIDATOR = "data-validator"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class Permission(str, Enum):
    VIEW_USERS = "ViewUsers"
    EDIT_USERS = "EditUsers"
    INVITE_USERS = "InviteUsers"
    EDIT_API_KEYS = "EditAPIKeys"
    VIEW_DATA = "ViewData"
    EDIT_DATA = "EditData"
    VIEW_API_DOCS = "ViewApiDocs"
    EDIT_HUMAN_EFFECTS_CUSTOM_DSG = "EditHumanEffectsCustomDsg"
    VALIDATE_DATA = "ValidateData"
    DELETE_VALIDATED_DATA = "DeleteValidatedData"
    MANAGE_COUNTRY_SETTINGS = "ManageCountrySettings"
    MANAGE_COUNTRY_ACCOUNTS = "manage_country_accounts"


ROLE_LABELS: Dict[Role, str] = {
    Role.DATA_VIEWER: "Data Viewer",
    Role.DATA_COLLECTOR: "Data Collector",
    Role.DATA_VALIDATOR: "Data Validator",
    Role.ADMIN: "Admin",
    Role.SUPER_ADMIN: "Super Admin",
}

# minimum role of each permission
PERMISSION_MIN_ROLE: Dict[Permission, Role] = {
    Permission.VIEW_USERS: Role.ADMIN,
    Permission.EDIT_USERS: Role.ADMIN,
    Permission.INVITE_USERS: Role.ADMIN,
    Permission.EDIT_API_KEYS: Role.ADMIN,
    Permission.VIEW_DATA: Role.DATA_VIEWER,
    Permission.EDIT_DATA: Role.DATA_COLLECTOR,
    Permission.VIEW_API_DOCS: Role.DATA_VIEWER,
    Permission.EDIT_HUMAN_EFFECTS_CUSTOM_DSG: Role.ADMIN,
    Permission.VALIDATE_DATA: Role.DATA_VALIDATOR,
    Permission.DELETE_VALIDATED_DATA: Role.DATA_VALIDATOR,
    Permission.MANAGE_COUNTRY_SETTINGS: Role.ADMIN,
    Permission.MANAGE_COUNTRY_ACCOUNTS: Role.SUPER_ADMIN,
}

_VIEWER = [Permission.VIEW_DATA, Permission.VIEW_API_DOCS]
_COLLECTOR = [*_VIEWER, Permission.EDIT_DATA]
_VALIDATOR = [*_COLLECTOR, Permission.VALIDATE_DATA, Permission.DELETE_VALIDATED_DATA]

ROLE_PERMISSIONS: Dict[Role, List[Permission]] = {
    Role.DATA_VIEWER: _VIEWER,
    Role.DATA_COLLECTOR: _COLLECTOR,
    Role.DATA_VALIDATOR: _VALIDATOR,
    Role.ADMIN: [
        *_VALIDATOR,
        Permission.VIEW_USERS,
        Permission.EDIT_USERS,
        Permission.INVITE_USERS,
        Permission.EDIT_API_KEYS,
        Permission.EDIT_HUMAN_EFFECTS_CUSTOM_DSG,
        Permission.MANAGE_COUNTRY_SETTINGS,
    ],
    Role.SUPER_ADMIN: [Permission.MANAGE_COUNTRY_ACCOUNTS],
}

ROLE_HIERARCHY: List[Role] = [
    Role.DATA_VIEWER,
    Role.DATA_COLLECTOR,
    Role.DATA_VALIDATOR,
    Role.ADMIN,
    Role.SUPER_ADMIN,
]


def parse_role(role: Optional[str]) -> Optional[Role]:
    try:
        return Role(role) if role else None
    except ValueError:
        return None


def role_has_permission(role: Optional[str], permission: Permission) -> bool:
    """Check a role against the permission table, then the hierarchy."""
    parsed = parse_role(role)
    if parsed is None:
        return False
    if permission in ROLE_PERMISSIONS[parsed]:
        return True
    min_role = PERMISSION_MIN_ROLE[permission]
    return ROLE_HIERARCHY.index(parsed) >= ROLE_HIERARCHY.index(min_role)


def is_super_admin(role: Optional[str]) -> bool:
    return role == Role.SUPER_ADMIN.value


# =====================================================================
# Approval workflow
# =====================================================================


class ApprovalStatus(str, Enum):
    DRAFT = "draft"
    WAITING_FOR_VALIDATION = "waiting-for-validation"
    NEEDS_REVISION = "needs-revision"
    VALIDATED = "validated"
    PUBLISHED = "published"
    COMPLETED = "completed"


APPROVAL_STATUS_LABELS: Dict[ApprovalStatus, str] = {
    ApprovalStatus.DRAFT: "Draft",
    ApprovalStatus.WAITING_FOR_VALIDATION: "Waiting for validation",
    ApprovalStatus.NEEDS_REVISION: "Needs revision",
    ApprovalStatus.VALIDATED: "Validated",
    ApprovalStatus.PUBLISHED: "Published",
    ApprovalStatus.COMPLETED: "Completed",
}

_COLLECTOR_STATUSES = [
    ApprovalStatus.DRAFT,
    ApprovalStatus.WAITING_FOR_VALIDATION,
    ApprovalStatus.NEEDS_REVISION,
    ApprovalStatus.VALIDATED,
]


def allowed_approval_statuses(role: Optional[str]) -> List[ApprovalStatus]:
    """Statuses a user of ``role`` may set on a record."""
    if role_has_permission(role, Permission.VALIDATE_DATA):
        return list(ApprovalStatus)
    if role_has_permission(role, Permission.EDIT_DATA):
        return list(_COLLECTOR_STATUSES)
    return []
