"""
Annotated dependencies shared by the API routers.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from disaster_tracking.core.auth.roles import Permission
from disaster_tracking.core.database import get_session
from disaster_tracking.core.database.entities.accounts import User
from disaster_tracking.core.services.context import RequestContext

from .auth import require_context, require_permission, require_user, require_user_permission

SessionDep = Annotated[AsyncSession, Depends(get_session)]
ContextDep = Annotated[RequestContext, Depends(require_context)]
EditorDep = Annotated[RequestContext, Depends(require_permission(Permission.EDIT_DATA))]
UserDep = Annotated[User, Depends(require_user)]
UserAdminDep = Annotated[User, Depends(require_user_permission(Permission.EDIT_USERS))]
UserViewerDep = Annotated[User, Depends(require_user_permission(Permission.VIEW_USERS))]
ApiKeyAdminDep = Annotated[User, Depends(require_user_permission(Permission.EDIT_API_KEYS))]
