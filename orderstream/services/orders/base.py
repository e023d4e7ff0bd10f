"""
Order Repository Abstract Base Class

Defines the persistence contract the order service depends on. Both the
in-memory store (development) and the SQLAlchemy store (staging and
production) implement it, so the service behaves identically on either.

Design Pattern: Strategy Pattern
    - The store is picked from ENV_MODE at startup
    - Tests run the whole service against the in-memory store
"""

import enum
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Optional


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "pending"
    BEING_PREPARED = "being_prepared"
    PREPARED = "prepared"
    READY_FOR_PICKUP = "ready_for_pickup"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"

    @property
    def rank(self) -> int:
        """Position in the workflow; pickup and delivery branches share a rank."""
        return _STATUS_RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self is OrderStatus.DELIVERED


_STATUS_RANK = {
    OrderStatus.PENDING: 0,
    OrderStatus.BEING_PREPARED: 1,
    OrderStatus.PREPARED: 2,
    OrderStatus.READY_FOR_PICKUP: 3,
    OrderStatus.OUT_FOR_DELIVERY: 3,
    OrderStatus.DELIVERED: 4,
}


class OrderType(str, enum.Enum):
    """How the customer receives the order."""
    DELIVERY = "delivery"
    TAKEAWAY = "takeaway"
    DINE_IN = "dine-in"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


ORDER_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def new_order_id() -> str:
    return uuid.uuid4().hex


def is_valid_order_id(order_id: str) -> bool:
    return bool(ORDER_ID_PATTERN.match(order_id or ""))


@dataclass
class OrderRecord:
    """
    An order as the rest of the application sees it.

    Attributes:
        id: Durable identifier (32 lowercase hex chars)
        daily_order_id: Number shown to customers, restarts every day
        order_date: Day the daily number belongs to (YYYY-MM-DD, UTC)
        items: List of {name, quantity, price} dicts
    """
    id: str
    daily_order_id: int
    order_date: str
    customer_name: str
    contact_number: str
    order_type: OrderType
    items: list[dict[str, Any]]
    subtotal: float
    total: float
    created_at: datetime
    updated_at: datetime
    delivery_address: Optional[str] = None
    delivery_charge: float = 0.0
    packing_charge: float = 0.0
    discount_type: Optional[str] = None
    discount_value: Optional[float] = None
    discount_amount: float = 0.0
    status: OrderStatus = OrderStatus.PENDING
    payment_status: str = "success"
    payment_method: str = "cash"
    is_admin_order: bool = False

    def copy(self, **changes: Any) -> "OrderRecord":
        return replace(self, **changes)


class BaseOrderRepository(ABC):
    """Abstract base class for order stores."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the store name."""
        pass

    @abstractmethod
    async def insert(self, order: OrderRecord) -> OrderRecord:
        """Store a new order."""
        pass

    @abstractmethod
    async def get(self, order_id: str) -> Optional[OrderRecord]:
        """Fetch one order by id."""
        pass

    @abstractmethod
    async def update_status(
        self,
        order_id: str,
        status: OrderStatus,
        updated_at: datetime,
    ) -> bool:
        """
        Set the status of an order.

        Returns:
            False if no order matched the id
        """
        pass

    @abstractmethod
    async def latest_for_contact(self, contact_number: str) -> Optional[OrderRecord]:
        """Most recently created order placed with a contact number."""
        pass

    @abstractmethod
    async def last_daily_order_id(self, order_date: str) -> int:
        """Highest daily order id used on a day (0 if none)."""
        pass

    @abstractmethod
    async def list_orders(
        self,
        status: Optional[OrderStatus] = None,
        exclude_status: Optional[OrderStatus] = None,
        order_date: Optional[str] = None,
    ) -> list[OrderRecord]:
        """Orders matching the filters, newest first."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check store connectivity."""
        pass
