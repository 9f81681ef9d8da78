"""
Authentication Dependencies.

Requests authenticate either with an API key in the ``X-Auth`` header or
with the login session cookie. Both resolve to a ``RequestContext`` naming
the tenant and user the request acts for.
"""

from __future__ import annotations

from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from disaster_tracking.core.auth.api_keys import assigned_user_id
from disaster_tracking.core.auth.roles import Permission, role_has_permission
from disaster_tracking.core.database import get_session
from disaster_tracking.core.database.entities.accounts import User
from disaster_tracking.core.database.repositories.accounts import ApiKeyRepository
from disaster_tracking.core.logging_config import get_logger
from disaster_tracking.core.services.accounts import active_session
from disaster_tracking.core.services.context import RequestContext
from disaster_tracking.server.core.config import settings

logger = get_logger(__name__)

API_KEY_HEADER = "X-Auth"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


async def require_api_key(request: Request, session: AsyncSession = Depends(get_session)) -> RequestContext:
    """
    Resolve the API key sent in ``X-Auth``.

    The key acts for its tenant and for the user assigned to it, falling back
    to the user managing the key.
    """
    secret = request.headers.get(API_KEY_HEADER)
    if not secret:
        raise _unauthorized("Unauthorized: no api key")
    api_key = await ApiKeyRepository(session).get_by_secret(secret)
    if api_key is None:
        logger.info(f"Rejected invalid api key on {request.method} {request.url.path}")
        raise _unauthorized("Unauthorized: invalid api key")
    user_id = assigned_user_id(api_key.name) or api_key.manager_id
    user = await session.get(User, user_id)
    return RequestContext(
        country_accounts_id=api_key.country_accounts_id,
        user_id=user_id,
        role=user.role if user is not None else None,
        via_api_key=True,
    )


async def require_user(request: Request, session: AsyncSession = Depends(get_session)) -> User:
    """The user of the login session cookie; 401 when missing or expired."""
    session_id = request.cookies.get(settings.session_cookie_name)
    if not session_id:
        raise _unauthorized("Unauthorized: not logged in")
    user_session = await active_session(session, session_id, settings.session_timeout_minutes)
    await session.commit()
    if user_session is None:
        raise _unauthorized("Unauthorized: session expired")
    user = await session.get(User, user_session.user_id)
    if user is None:
        raise _unauthorized("Unauthorized: not logged in")
    return user


def user_context(user: User) -> RequestContext:
    return RequestContext(country_accounts_id=user.country_accounts_id, user_id=user.id, role=user.role)


async def require_context(request: Request, session: AsyncSession = Depends(get_session)) -> RequestContext:
    """API key when ``X-Auth`` is sent, login session otherwise."""
    if request.headers.get(API_KEY_HEADER) or not request.cookies.get(settings.session_cookie_name):
        return await require_api_key(request, session)
    return user_context(await require_user(request, session))


def require_permission(permission: Permission, check_api_keys: bool = False) -> Callable:
    """
    Dependency factory checking the acting role for ``permission``.

    API key requests pass unless ``check_api_keys`` is set; their tenant
    scoping still applies.
    """

    async def dependency(ctx: RequestContext = Depends(require_context)) -> RequestContext:
        if ctx.via_api_key and not check_api_keys:
            return ctx
        if not role_has_permission(ctx.role, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Forbidden: missing permission {permission.value}",
            )
        return ctx

    return dependency


def require_user_permission(permission: Permission) -> Callable:
    """Like ``require_permission`` but only for logged in users."""

    async def dependency(user: User = Depends(require_user)) -> User:
        if not role_has_permission(user.role, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Forbidden: missing permission {permission.value}",
            )
        return user

    return dependency


# sectors and the HIP taxonomy are read by every tenant
require_shared_data_editor = require_permission(Permission.MANAGE_COUNTRY_ACCOUNTS, check_api_keys=True)
