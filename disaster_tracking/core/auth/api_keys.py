"""
API key secrets and naming.
"""

from __future__ import annotations

import re
import secrets
from typing import Optional

ASSIGNED_USER_SUFFIX = "__ASSIGNED_USER_"

_ASSIGNED_USER = re.compile(re.escape(ASSIGNED_USER_SUFFIX) + r"(.+)$")


def generate_secret() -> str:
    """32 random bytes, hex encoded."""
    return secrets.token_hex(32)


def name_with_assigned_user(name: str, user_id: Optional[str]) -> str:
    base = strip_assigned_user(name)
    if not user_id:
        return base
    return f"{base}{ASSIGNED_USER_SUFFIX}{user_id}"


def assigned_user_id(name: str) -> Optional[str]:
    match = _ASSIGNED_USER.search(name)
    return match.group(1) if match else None


def strip_assigned_user(name: str) -> str:
    index = name.find(ASSIGNED_USER_SUFFIX)
    return name if index < 0 else name[:index]
