"""
SQLAlchemy Order Repository

Production order store. Each call opens its own session from the
session factory, so the repository can be shared across requests.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderstream.models import Order
from orderstream.services.orders.base import BaseOrderRepository, OrderRecord, OrderStatus

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id",
    "daily_order_id",
    "order_date",
    "customer_name",
    "contact_number",
    "order_type",
    "items",
    "subtotal",
    "total",
    "created_at",
    "updated_at",
    "delivery_address",
    "delivery_charge",
    "packing_charge",
    "discount_type",
    "discount_value",
    "discount_amount",
    "status",
    "payment_status",
    "payment_method",
    "is_admin_order",
)


def _to_record(row: Order) -> OrderRecord:
    return OrderRecord(**{name: getattr(row, name) for name in _COLUMNS})


def _to_row(order: OrderRecord) -> Order:
    return Order(**{name: getattr(order, name) for name in _COLUMNS})


class SqlOrderRepository(BaseOrderRepository):
    """Order store backed by the `orders` table."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker
        logger.info("SqlOrderRepository initialized")

    @property
    def provider_name(self) -> str:
        return "sqlalchemy"

    async def insert(self, order: OrderRecord) -> OrderRecord:
        async with self._session_maker() as session:
            row = _to_row(order)
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return _to_record(row)

    async def get(self, order_id: str) -> Optional[OrderRecord]:
        async with self._session_maker() as session:
            row = await session.get(Order, order_id)
            return _to_record(row) if row else None

    async def update_status(
        self,
        order_id: str,
        status: OrderStatus,
        updated_at: datetime,
    ) -> bool:
        async with self._session_maker() as session:
            result = await session.execute(
                update(Order)
                .where(Order.id == order_id)
                .values(status=status, updated_at=updated_at)
            )
            await session.commit()
            return result.rowcount > 0

    async def latest_for_contact(self, contact_number: str) -> Optional[OrderRecord]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(Order)
                .where(Order.contact_number == contact_number)
                .order_by(Order.created_at.desc())
                .limit(1)
            )
            row = result.scalar_one_or_none()
            return _to_record(row) if row else None

    async def last_daily_order_id(self, order_date: str) -> int:
        async with self._session_maker() as session:
            result = await session.execute(
                select(func.max(Order.daily_order_id)).where(Order.order_date == order_date)
            )
            return result.scalar() or 0

    async def list_orders(
        self,
        status: Optional[OrderStatus] = None,
        exclude_status: Optional[OrderStatus] = None,
        order_date: Optional[str] = None,
    ) -> list[OrderRecord]:
        query = select(Order).order_by(Order.created_at.desc())
        if status is not None:
            query = query.where(Order.status == status)
        if exclude_status is not None:
            query = query.where(Order.status != exclude_status)
        if order_date is not None:
            query = query.where(Order.order_date == order_date)

        async with self._session_maker() as session:
            result = await session.execute(query)
            return [_to_record(row) for row in result.scalars().all()]

    async def health_check(self) -> bool:
        try:
            async with self._session_maker() as session:
                await session.execute(select(1))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False
