"""
Account repositories: users, login sessions and API keys.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..entities.accounts import ApiKey, User, UserSession
from .base import SqlRepository


class UserRepository(SqlRepository[User]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User, order_by=(User.email,))

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_tenant(self, country_accounts_id: Optional[str]) -> List[User]:
        return await self.list(filters={"country_accounts_id": country_accounts_id})


class UserSessionRepository(SqlRepository[UserSession]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UserSession)

    async def touch(self, user_session: UserSession, now: datetime) -> None:
        user_session.last_active_at = now
        self.session.add(user_session)
        await self.session.flush()

    async def delete_for_user(self, user_id: str) -> None:
        await self.session.execute(delete(UserSession).where(UserSession.user_id == user_id))


class ApiKeyRepository(SqlRepository[ApiKey]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ApiKey, order_by=(ApiKey.name,))

    async def get_by_secret(self, secret: str) -> Optional[ApiKey]:
        result = await self.session.execute(select(ApiKey).where(ApiKey.secret == secret))
        return result.scalar_one_or_none()
