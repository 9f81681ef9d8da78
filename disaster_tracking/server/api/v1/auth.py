"""
Login Session Endpoints.

Browser clients log in with email and password and receive the session
cookie; API clients use API keys instead.
"""

from fastapi import APIRouter, HTTPException, Request, Response, status

from disaster_tracking.core.logging_config import get_logger
from disaster_tracking.core.services.accounts import authenticate, end_session, start_session
from disaster_tracking.server.core.config import settings
from disaster_tracking.server.schemas import LoginRequest, UserRead
from disaster_tracking.server.services.deps import SessionDep, UserDep

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/login",
    response_model=UserRead,
    summary="Log In",
    description="Check email and password and start a login session carried by a cookie.",
    response_description="The logged in user.",
    responses={401: {"description": "Invalid email or password"}},
)
async def login(credentials: LoginRequest, response: Response, session: SessionDep) -> UserRead:
    user = await authenticate(session, credentials.email.strip().lower(), credentials.password)
    if user is None:
        logger.info("Failed login attempt")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    user_session = await start_session(session, user)
    await session.commit()
    response.set_cookie(
        settings.session_cookie_name,
        user_session.id,
        httponly=True,
        samesite="lax",
        max_age=settings.session_timeout_minutes * 60,
    )
    logger.info(f"User {user.id} logged in")
    return UserRead.model_validate(user)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Log Out",
    description="End the current login session and clear its cookie.",
)
async def logout(request: Request, session: SessionDep) -> Response:
    session_id = request.cookies.get(settings.session_cookie_name)
    if session_id:
        await end_session(session, session_id)
        await session.commit()
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(settings.session_cookie_name)
    return response


@router.get(
    "/me",
    response_model=UserRead,
    summary="Current User",
    description="The user of the current login session.",
    responses={401: {"description": "Not logged in or session expired"}},
)
async def me(user: UserDep) -> UserRead:
    return UserRead.model_validate(user)
