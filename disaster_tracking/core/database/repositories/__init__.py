"""
Database repository layer using SQLModel.

Modules:
- base: AsyncBaseRepository interface, SqlRepository and QueryBuilder utilities
- accounts: User, login session and API key lookups
"""

from .accounts import ApiKeyRepository, UserRepository, UserSessionRepository
from .base import AsyncBaseRepository, QueryBuilder, SqlRepository

__all__ = [
    "ApiKeyRepository",
    "AsyncBaseRepository",
    "QueryBuilder",
    "SqlRepository",
    "UserRepository",
    "UserSessionRepository",
]
