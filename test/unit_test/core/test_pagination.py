"""Unit tests for page parameter handling and the paginate helper."""

import pytest
from sqlalchemy import select

from disaster_tracking.core.database.entities.units import Unit
from disaster_tracking.core.pagination import paginate, pagination_params


class TestPaginationParams:
    def test_defaults(self):
        params = pagination_params()
        assert (params.page, params.page_size) == (1, 10)

    def test_page_size_is_clamped(self):
        assert pagination_params(1, 500).page_size == 100
        assert pagination_params(1, 0).page_size == 1
        assert pagination_params(1, 500, maximum=20).page_size == 20

    def test_page_below_one_becomes_one(self):
        assert pagination_params(0, 20).page == 1
        assert pagination_params(-3, 20).page == 1

    def test_offset(self):
        assert pagination_params(3, 20).offset == 40


@pytest.mark.asyncio
class TestPaginate:
    async def test_returns_page_and_totals(self, session):
        session.add_all([Unit(type="number", name=f"unit-{i:02d}") for i in range(25)])
        await session.commit()

        page = await paginate(session, select(Unit).order_by(Unit.name), pagination_params(3, 10), {"q": "x"})

        assert [u.name for u in page.items] == [f"unit-{i:02d}" for i in range(20, 25)]
        assert page.pagination.total_items == 25
        assert page.pagination.items_on_this_page == 5
        assert page.pagination.page == 3
        assert page.pagination.page_size == 10
        assert page.pagination.extra_params == {"q": "x"}

    async def test_page_past_the_end_is_empty(self, session):
        session.add(Unit(type="number", name="only"))
        await session.commit()

        page = await paginate(session, select(Unit).order_by(Unit.name), pagination_params(5, 10))

        assert page.items == []
        assert page.pagination.total_items == 1
