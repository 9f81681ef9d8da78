"""
Pagination for list endpoints.

``paginate`` runs a count query and a page query for the same statement and
returns the page together with the numbers a client needs to render paging
controls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

ItemType = TypeVar("ItemType")


@dataclass(frozen=True)
class PageParams:
    page: int
    page_size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def pagination_params(
    page: Optional[int] = None,
    page_size: Optional[int] = None,
    default: int = 10,
    maximum: int = 100,
) -> PageParams:
    """Page parameters for API lists, clamped to ``1..maximum``."""
    if page is None or page < 1:
        page = 1
    if page_size is None:
        page_size = default
    page_size = max(1, min(page_size, maximum))
    return PageParams(page=page, page_size=page_size)


class PaginationInfo(BaseModel):
    total_items: int
    items_on_this_page: int
    page: int
    page_size: int
    extra_params: Dict[str, Any] = Field(default_factory=dict)


class Page(BaseModel, Generic[ItemType]):
    items: List[ItemType]
    pagination: PaginationInfo


async def paginate(
    session: AsyncSession,
    stmt,
    params: PageParams,
    extra_params: Optional[Dict[str, Any]] = None,
) -> Page[Any]:
    """Run ``stmt`` for one page; ``stmt`` must already carry its ordering."""
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await session.execute(count_stmt)).scalar_one()
    result = await session.execute(stmt.offset(params.offset).limit(params.page_size))
    items = list(result.scalars().all())
    return Page[Any](
        items=items,
        pagination=PaginationInfo(
            total_items=total,
            items_on_this_page=len(items),
            page=params.page,
            page_size=params.page_size,
            extra_params=extra_params or {},
        ),
    )
