"""
Who is acting on a request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from disaster_tracking.core.auth.roles import allowed_approval_statuses
from disaster_tracking.core.forms.fields import ValidationFailed


@dataclass(frozen=True)
class RequestContext:
    """Tenant and user a request acts for.

    Requests authenticated with an API key act for the key's tenant and for
    the user assigned to the key (or its manager).
    """

    country_accounts_id: Optional[str]
    user_id: Optional[str] = None
    role: Optional[str] = None
    via_api_key: bool = False


def check_approval_status(ctx: RequestContext, data: Dict[str, Any]) -> None:
    """Reject an ``approval_status`` the acting role may not set."""
    status = data.get("approval_status")
    if not status or ctx.role is None:
        return
    if status not in [s.value for s in allowed_approval_statuses(ctx.role)]:
        raise ValidationFailed.for_field(
            "approval_status", "not_allowed", f'Your role cannot set the approval status "{status}".'
        )
