"""
In-Memory Order Repository

Keeps orders in a process-local dict for development and tests.
Nothing survives a restart.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from orderstream.services.orders.base import BaseOrderRepository, OrderRecord, OrderStatus

logger = logging.getLogger(__name__)


class InMemoryOrderRepository(BaseOrderRepository):
    """Dict-backed order store."""

    def __init__(self):
        self._orders: dict[str, OrderRecord] = {}
        self._lock = asyncio.Lock()
        logger.info("InMemoryOrderRepository initialized")

    @property
    def provider_name(self) -> str:
        return "memory"

    async def insert(self, order: OrderRecord) -> OrderRecord:
        async with self._lock:
            self._orders[order.id] = order.copy()
        return order.copy()

    async def get(self, order_id: str) -> Optional[OrderRecord]:
        order = self._orders.get(order_id)
        return order.copy() if order else None

    async def update_status(
        self,
        order_id: str,
        status: OrderStatus,
        updated_at: datetime,
    ) -> bool:
        async with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                return False
            self._orders[order_id] = order.copy(status=status, updated_at=updated_at)
        return True

    async def latest_for_contact(self, contact_number: str) -> Optional[OrderRecord]:
        matches = [o for o in self._orders.values() if o.contact_number == contact_number]
        if not matches:
            return None
        return max(matches, key=lambda o: o.created_at).copy()

    async def last_daily_order_id(self, order_date: str) -> int:
        return max(
            (o.daily_order_id for o in self._orders.values() if o.order_date == order_date),
            default=0,
        )

    async def list_orders(
        self,
        status: Optional[OrderStatus] = None,
        exclude_status: Optional[OrderStatus] = None,
        order_date: Optional[str] = None,
    ) -> list[OrderRecord]:
        orders = list(self._orders.values())
        if status is not None:
            orders = [o for o in orders if o.status == status]
        if exclude_status is not None:
            orders = [o for o in orders if o.status != exclude_status]
        if order_date is not None:
            orders = [o for o in orders if o.order_date == order_date]
        orders.sort(key=lambda o: o.created_at, reverse=True)
        return [o.copy() for o in orders]

    async def health_check(self) -> bool:
        return True
