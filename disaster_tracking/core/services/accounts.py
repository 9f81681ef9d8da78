"""
Users, login sessions and API keys.
"""

from __future__ import annotations

from datetime import timedelta
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from disaster_tracking.core.auth.api_keys import generate_secret, name_with_assigned_user
from disaster_tracking.core.auth.passwords import check_password_complexity, password_hash, password_hash_compare
from disaster_tracking.core.auth.roles import Role, parse_role
from disaster_tracking.core.database.base import as_utc, utc_now
from disaster_tracking.core.database.entities.accounts import ApiKey, User, UserSession
from disaster_tracking.core.database.repositories.accounts import (
    ApiKeyRepository,
    UserRepository,
    UserSessionRepository,
)
from disaster_tracking.core.errors import NotFoundError
from disaster_tracking.core.forms.fields import ValidationFailed
from disaster_tracking.core.logging_config import get_logger

from .audit import log_audit

logger = get_logger(__name__)

PASSWORD_ERROR_MESSAGES = {
    "EMPTY": "Password is required.",
    "TOO_SHORT": "Password must be at least 12 characters long.",
    "INSUFFICIENT_CHARACTER_CLASSES": (
        "Password must contain at least two of: uppercase letters, lowercase letters, numbers, punctuation."
    ),
}


def _check_password(password: str) -> None:
    complexity = check_password_complexity(password)
    if complexity.error is not None:
        raise ValidationFailed.for_field(
            "password", complexity.error.value, PASSWORD_ERROR_MESSAGES[complexity.error.value]
        )


def _check_role(role: str) -> Role:
    parsed = parse_role(role)
    if parsed is None:
        raise ValidationFailed.for_field("role", "invalid_role", f"Unknown role: {role}")
    return parsed


# =====================================================================
# Users
# =====================================================================


async def create_user(
    session: AsyncSession,
    country_accounts_id: Optional[str],
    email: str,
    password: str,
    role: str = Role.DATA_VIEWER.value,
    first_name: str = "",
    last_name: str = "",
    bcrypt_rounds: int = 10,
    acting_user_id: Optional[str] = None,
) -> User:
    """Create a user of ``country_accounts_id``.

    Raises:
        ValidationFailed: weak password, unknown role or email already in use
    """
    email = email.strip().lower()
    if not email:
        raise ValidationFailed.for_field("email", "required", "Email is required.")
    _check_password(password)
    _check_role(role)
    repo = UserRepository(session)
    if await repo.get_by_email(email) is not None:
        raise ValidationFailed.for_field("email", "email_taken", "A user with this email already exists.")
    user = await repo.create(
        User(
            email=email,
            password=password_hash(password, rounds=bcrypt_rounds),
            role=role,
            first_name=first_name,
            last_name=last_name,
            country_accounts_id=country_accounts_id,
        )
    )
    await log_audit(
        session, "user", user.id, acting_user_id, "create", None, {"email": email, "role": role}
    )
    logger.info(f"Created user {user.id} with role {role}")
    return user


async def require_tenant_user(session: AsyncSession, country_accounts_id: Optional[str], user_id: str) -> User:
    user = await UserRepository(session).get_by_id(user_id)
    if user is None or user.country_accounts_id != country_accounts_id:
        raise NotFoundError(f"User {user_id} not found")
    return user


async def list_users(session: AsyncSession, country_accounts_id: Optional[str]) -> List[User]:
    return await UserRepository(session).list_for_tenant(country_accounts_id)


async def update_user(
    session: AsyncSession,
    user: User,
    role: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    acting_user_id: Optional[str] = None,
) -> User:
    old_values = {"role": user.role, "first_name": user.first_name, "last_name": user.last_name}
    if role is not None:
        _check_role(role)
        user.role = role
    if first_name is not None:
        user.first_name = first_name
    if last_name is not None:
        user.last_name = last_name
    user = await UserRepository(session).update(user)
    new_values = {"role": user.role, "first_name": user.first_name, "last_name": user.last_name}
    await log_audit(session, "user", user.id, acting_user_id, "update", old_values, new_values)
    return user


async def change_password(session: AsyncSession, user: User, password: str, bcrypt_rounds: int = 10) -> None:
    _check_password(password)
    user.password = password_hash(password, rounds=bcrypt_rounds)
    await UserRepository(session).update(user)
    await UserSessionRepository(session).delete_for_user(user.id)


async def delete_user(session: AsyncSession, user: User, acting_user_id: Optional[str] = None) -> None:
    if user.id == acting_user_id:
        raise ValidationFailed.general("You cannot delete your own account.", code="self_delete")
    await UserSessionRepository(session).delete_for_user(user.id)
    await session.delete(user)
    await session.flush()
    await log_audit(session, "user", user.id, acting_user_id, "delete", {"email": user.email}, None)


# =====================================================================
# Login sessions
# =====================================================================


async def authenticate(session: AsyncSession, email: str, password: str) -> Optional[User]:
    """The user with ``email`` when ``password`` matches, else None."""
    user = await UserRepository(session).get_by_email(email)
    if user is None or not password_hash_compare(password, user.password):
        return None
    return user


async def start_session(session: AsyncSession, user: User) -> UserSession:
    return await UserSessionRepository(session).create(UserSession(user_id=user.id))


async def active_session(session: AsyncSession, session_id: str, timeout_minutes: int) -> Optional[UserSession]:
    """The session ``session_id`` unless it was idle for longer than ``timeout_minutes``.

    An active session is touched so the timeout restarts.
    """
    repo = UserSessionRepository(session)
    user_session = await repo.get_by_id(session_id)
    if user_session is None:
        return None
    now = utc_now()
    if now - as_utc(user_session.last_active_at) > timedelta(minutes=timeout_minutes):
        await repo.delete(user_session.id)
        return None
    await repo.touch(user_session, now)
    return user_session


async def end_session(session: AsyncSession, session_id: str) -> None:
    await UserSessionRepository(session).delete(session_id)


# =====================================================================
# API keys
# =====================================================================


async def create_api_key(
    session: AsyncSession,
    country_accounts_id: Optional[str],
    manager_id: str,
    name: str,
    assigned_user_id: Optional[str] = None,
) -> ApiKey:
    if not name.strip():
        raise ValidationFailed.for_field("name", "required", "Name is required.")
    if assigned_user_id:
        await require_tenant_user(session, country_accounts_id, assigned_user_id)
    api_key = await ApiKeyRepository(session).create(
        ApiKey(
            secret=generate_secret(),
            name=name_with_assigned_user(name.strip(), assigned_user_id),
            manager_id=manager_id,
            country_accounts_id=country_accounts_id,
        )
    )
    await log_audit(session, "api_key", api_key.id, manager_id, "create", None, {"name": api_key.name})
    return api_key


async def list_api_keys(session: AsyncSession, country_accounts_id: Optional[str]) -> List[ApiKey]:
    return await ApiKeyRepository(session).list(filters={"country_accounts_id": country_accounts_id})


async def require_api_key(session: AsyncSession, country_accounts_id: Optional[str], api_key_id: str) -> ApiKey:
    api_key = await ApiKeyRepository(session).get_by_id(api_key_id)
    if api_key is None or api_key.country_accounts_id != country_accounts_id:
        raise NotFoundError(f"API key {api_key_id} not found")
    return api_key


async def delete_api_key(session: AsyncSession, api_key: ApiKey, acting_user_id: Optional[str] = None) -> None:
    await session.delete(api_key)
    await session.flush()
    await log_audit(session, "api_key", api_key.id, acting_user_id, "delete", {"name": api_key.name}, None)
