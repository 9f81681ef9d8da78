"""
API Key Management Endpoints.
"""

from typing import List

from fastapi import APIRouter, Response, status

from disaster_tracking.core.services.accounts import create_api_key, delete_api_key, list_api_keys, require_api_key
from disaster_tracking.server.schemas import ApiKeyCreate, ApiKeyCreated, ApiKeyRead
from disaster_tracking.server.services.deps import ApiKeyAdminDep, SessionDep

router = APIRouter()


@router.get(
    "",
    response_model=List[ApiKeyRead],
    summary="List API Keys",
    description="API keys of the caller's country account. Secrets are not included.",
)
async def get_api_keys(session: SessionDep, admin: ApiKeyAdminDep) -> List[ApiKeyRead]:
    api_keys = await list_api_keys(session, admin.country_accounts_id)
    return [ApiKeyRead.from_entity(k) for k in api_keys]


@router.post(
    "",
    response_model=ApiKeyCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Create API Key",
    description="Create an API key managed by the caller. The secret is only returned by this call.",
    responses={
        400: {"description": "Missing name"},
        404: {"description": "Assigned user not found in the caller's country account"},
    },
)
async def add_api_key(body: ApiKeyCreate, session: SessionDep, admin: ApiKeyAdminDep) -> ApiKeyCreated:
    api_key = await create_api_key(session, admin.country_accounts_id, admin.id, body.name, body.assigned_user_id)
    await session.commit()
    return ApiKeyCreated(**ApiKeyRead.from_entity(api_key).model_dump(), secret=api_key.secret)


@router.delete(
    "/{api_key_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete API Key",
    responses={404: {"description": "API key not found"}},
)
async def remove_api_key(api_key_id: str, session: SessionDep, admin: ApiKeyAdminDep) -> Response:
    api_key = await require_api_key(session, admin.country_accounts_id, api_key_id)
    await delete_api_key(session, api_key, acting_user_id=admin.id)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
