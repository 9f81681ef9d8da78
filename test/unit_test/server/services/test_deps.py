"""Unit tests for the annotated router dependencies and the auth helpers."""

from unittest.mock import Mock

import pytest
from fastapi import HTTPException

from disaster_tracking.core.auth.roles import Permission
from disaster_tracking.core.database import get_session
from disaster_tracking.core.services.context import RequestContext
from disaster_tracking.server.services.auth import (
    require_context,
    require_permission,
    require_shared_data_editor,
    require_user,
    user_context,
)
from disaster_tracking.server.services.deps import ContextDep, SessionDep, UserDep


class TestAnnotatedDeps:
    def test_session_dep_uses_get_session(self):
        assert SessionDep.__metadata__[0].dependency is get_session

    def test_context_dep_uses_require_context(self):
        assert ContextDep.__metadata__[0].dependency is require_context

    def test_user_dep_uses_require_user(self):
        assert UserDep.__metadata__[0].dependency is require_user


class TestRequirePermission:
    @pytest.mark.asyncio
    async def test_role_with_permission_passes(self):
        ctx = RequestContext(country_accounts_id="t1", user_id="u1", role="data-collector")
        dependency = require_permission(Permission.EDIT_DATA)
        assert await dependency(ctx) is ctx

    @pytest.mark.asyncio
    async def test_role_without_permission_is_forbidden(self):
        ctx = RequestContext(country_accounts_id="t1", user_id="u1", role="data-viewer")
        dependency = require_permission(Permission.EDIT_DATA)

        with pytest.raises(HTTPException) as exc_info:
            await dependency(ctx)

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == "Forbidden: missing permission EditData"

    @pytest.mark.asyncio
    async def test_api_keys_skip_role_checks(self):
        ctx = RequestContext(country_accounts_id="t1", user_id="u1", role="data-viewer", via_api_key=True)
        assert await require_permission(Permission.EDIT_DATA)(ctx) is ctx

    @pytest.mark.asyncio
    async def test_api_keys_checked_when_asked(self):
        ctx = RequestContext(country_accounts_id="t1", user_id="u1", role="data-viewer", via_api_key=True)
        with pytest.raises(HTTPException):
            await require_permission(Permission.EDIT_DATA, check_api_keys=True)(ctx)


class TestSharedDataEditor:
    @pytest.mark.asyncio
    async def test_tenant_admin_key_is_forbidden(self):
        ctx = RequestContext(country_accounts_id="t1", user_id="u1", role="admin", via_api_key=True)
        with pytest.raises(HTTPException) as exc_info:
            await require_shared_data_editor(ctx)
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_super_admin_key_passes(self):
        ctx = RequestContext(country_accounts_id="t1", user_id="u1", role="super_admin", via_api_key=True)
        assert await require_shared_data_editor(ctx) is ctx


def test_user_context():
    user = Mock(country_accounts_id="t1", id="u1", role="admin")
    assert user_context(user) == RequestContext(country_accounts_id="t1", user_id="u1", role="admin")
