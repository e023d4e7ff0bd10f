"""
Tests for the SQLAlchemy order store, run against SQLite.

SQLite drops timezone information, so timestamps read back are compared
without it.
"""

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from orderstream.database import init_db
from orderstream.services.orders.base import OrderStatus, OrderType, new_order_id
from orderstream.services.orders.sql import SqlOrderRepository


@pytest_asyncio.fixture
async def sql_repository(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    await init_db(engine)
    yield SqlOrderRepository(async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False))
    await engine.dispose()


class TestSqlOrderRepository:

    @pytest.mark.asyncio
    async def test_insert_and_get(self, sql_repository, make_order):
        order = make_order(order_type=OrderType.DINE_IN, discount_type="fixed", discount_value=10.0)

        await sql_repository.insert(order)
        stored = await sql_repository.get(order.id)

        assert stored.id == order.id
        assert stored.order_type == OrderType.DINE_IN
        assert stored.status == OrderStatus.PENDING
        assert stored.items == order.items
        assert stored.discount_value == 10.0
        assert stored.created_at.replace(tzinfo=None) == order.created_at.replace(tzinfo=None)

    @pytest.mark.asyncio
    async def test_get_missing(self, sql_repository):
        assert await sql_repository.get(new_order_id()) is None

    @pytest.mark.asyncio
    async def test_update_status(self, sql_repository, make_order):
        order = make_order()
        await sql_repository.insert(order)
        later = datetime(2026, 10, 19, 12, 30, tzinfo=timezone.utc)

        assert await sql_repository.update_status(order.id, OrderStatus.PREPARED, later)

        stored = await sql_repository.get(order.id)
        assert stored.status == OrderStatus.PREPARED
        assert stored.updated_at.replace(tzinfo=None) == datetime(2026, 10, 19, 12, 30)

    @pytest.mark.asyncio
    async def test_update_status_missing(self, sql_repository):
        updated = await sql_repository.update_status(
            new_order_id(), OrderStatus.PREPARED, datetime.now(timezone.utc)
        )

        assert updated is False

    @pytest.mark.asyncio
    async def test_latest_for_contact(self, sql_repository, make_order):
        older = make_order(created_at=datetime(2026, 10, 19, 9, tzinfo=timezone.utc))
        newer = make_order(created_at=datetime(2026, 10, 19, 11, tzinfo=timezone.utc), daily_order_id=2)
        other = make_order(contact_number="5550000000", daily_order_id=3)
        for order in (older, newer, other):
            await sql_repository.insert(order)

        latest = await sql_repository.latest_for_contact("5551234567")

        assert latest.id == newer.id
        assert await sql_repository.latest_for_contact("5559999999") is None

    @pytest.mark.asyncio
    async def test_last_daily_order_id(self, sql_repository, make_order):
        await sql_repository.insert(make_order(daily_order_id=3))
        await sql_repository.insert(make_order(daily_order_id=8))
        await sql_repository.insert(make_order(daily_order_id=20, order_date="2026-10-18"))

        assert await sql_repository.last_daily_order_id("2026-10-19") == 8
        assert await sql_repository.last_daily_order_id("2026-10-20") == 0

    @pytest.mark.asyncio
    async def test_list_filters(self, sql_repository, make_order):
        pending = make_order()
        delivered = make_order(status=OrderStatus.DELIVERED, daily_order_id=2)
        delivered_yesterday = make_order(
            status=OrderStatus.DELIVERED, daily_order_id=1, order_date="2026-10-18"
        )
        for order in (pending, delivered, delivered_yesterday):
            await sql_repository.insert(order)

        active = await sql_repository.list_orders(exclude_status=OrderStatus.DELIVERED)
        past_today = await sql_repository.list_orders(status=OrderStatus.DELIVERED, order_date="2026-10-19")

        assert [o.id for o in active] == [pending.id]
        assert [o.id for o in past_today] == [delivered.id]
        assert len(await sql_repository.list_orders()) == 3

    @pytest.mark.asyncio
    async def test_health_check(self, sql_repository):
        assert sql_repository.provider_name == "sqlalchemy"
        assert await sql_repository.health_check()
