"""
User Management Endpoints.

Admins manage the users of their own country account.
"""

from typing import List

from fastapi import APIRouter, Response, status

from disaster_tracking.core.services.accounts import (
    change_password,
    create_user,
    delete_user,
    list_users,
    require_tenant_user,
    update_user,
)
from disaster_tracking.server.core.config import settings
from disaster_tracking.server.schemas import PasswordChange, UserCreate, UserRead, UserUpdate
from disaster_tracking.server.services.deps import SessionDep, UserAdminDep, UserDep, UserViewerDep

router = APIRouter()


@router.get(
    "",
    response_model=List[UserRead],
    summary="List Users",
    description="Users of the caller's country account ordered by email.",
)
async def get_users(session: SessionDep, admin: UserViewerDep) -> List[UserRead]:
    users = await list_users(session, admin.country_accounts_id)
    return [UserRead.model_validate(u) for u in users]


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Invite User",
    description="Create a user in the caller's country account.",
    responses={400: {"description": "Weak password, unknown role or email already in use"}},
)
async def invite_user(body: UserCreate, session: SessionDep, admin: UserAdminDep) -> UserRead:
    user = await create_user(
        session,
        admin.country_accounts_id,
        body.email,
        body.password,
        role=body.role,
        first_name=body.first_name,
        last_name=body.last_name,
        bcrypt_rounds=settings.bcrypt_rounds,
        acting_user_id=admin.id,
    )
    await session.commit()
    return UserRead.model_validate(user)


@router.post(
    "/me/password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change Own Password",
    description="Change the password of the logged in user; every session of the user ends.",
)
async def change_own_password(body: PasswordChange, session: SessionDep, user: UserDep) -> Response:
    await change_password(session, user, body.password, bcrypt_rounds=settings.bcrypt_rounds)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{user_id}",
    response_model=UserRead,
    summary="Get User",
    responses={404: {"description": "User not found in the caller's country account"}},
)
async def get_user(user_id: str, session: SessionDep, admin: UserViewerDep) -> UserRead:
    user = await require_tenant_user(session, admin.country_accounts_id, user_id)
    return UserRead.model_validate(user)


@router.patch(
    "/{user_id}",
    response_model=UserRead,
    summary="Update User",
    description="Change the role or name of a user.",
    responses={404: {"description": "User not found in the caller's country account"}},
)
async def patch_user(user_id: str, body: UserUpdate, session: SessionDep, admin: UserAdminDep) -> UserRead:
    user = await require_tenant_user(session, admin.country_accounts_id, user_id)
    user = await update_user(
        session, user, role=body.role, first_name=body.first_name, last_name=body.last_name, acting_user_id=admin.id
    )
    await session.commit()
    return UserRead.model_validate(user)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete User",
    responses={
        400: {"description": "Admins cannot delete their own account"},
        404: {"description": "User not found in the caller's country account"},
    },
)
async def remove_user(user_id: str, session: SessionDep, admin: UserAdminDep) -> Response:
    user = await require_tenant_user(session, admin.country_accounts_id, user_id)
    await delete_user(session, user, acting_user_id=admin.id)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
