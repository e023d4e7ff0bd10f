"""
Order Service

Business operations on orders. Every mutation is written to the store
first; the notification is published afterwards from the re-read record
and can never fail the mutation.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from orderstream.core.config import Settings, get_settings
from orderstream.core.exceptions import (
    InvalidOrderIdError,
    InvalidStatusTransitionError,
    OrderNotFoundError,
    OrderValidationError,
)
from orderstream.realtime.publisher import OrderEventPublisher
from orderstream.services.orders.base import (
    BaseOrderRepository,
    DiscountType,
    OrderRecord,
    OrderStatus,
    OrderType,
    is_valid_order_id,
    new_order_id,
)

if TYPE_CHECKING:
    from orderstream.schemas import OrderCreate, OrderItemCreate

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def order_date_for(moment: datetime) -> str:
    """Day a daily order number belongs to (UTC, YYYY-MM-DD)."""
    return moment.astimezone(timezone.utc).date().isoformat()


def parse_status(value: Optional[str]) -> OrderStatus:
    """
    Raises:
        OrderValidationError: Missing or unknown status
    """
    if not value:
        raise OrderValidationError("Order ID and status are required")
    try:
        return OrderStatus(value)
    except ValueError:
        raise OrderValidationError("Invalid status")


def calculate_order_totals(
    items: list["OrderItemCreate"],
    order_type: OrderType,
    delivery_charge: float,
    packing_charge: float,
    discount_type: Optional[DiscountType] = None,
    discount_value: Optional[float] = None,
) -> dict[str, float]:
    """
    Price an order.

    Delivery orders pay delivery and packing charges, takeaway orders pay
    packing only, dine-in pays neither. The discount applies to the total
    including charges and never takes it below zero.
    """
    subtotal = sum(item.quantity * item.price for item in items)

    applied_delivery = delivery_charge if order_type == OrderType.DELIVERY else 0.0
    applied_packing = packing_charge if order_type in (OrderType.DELIVERY, OrderType.TAKEAWAY) else 0.0
    total = subtotal + applied_delivery + applied_packing

    discount_amount = 0.0
    if discount_type and discount_value and discount_value > 0:
        if discount_type == DiscountType.PERCENTAGE:
            discount_amount = total * discount_value / 100
        elif discount_type == DiscountType.FIXED:
            discount_amount = discount_value
        total = max(0.0, total - discount_amount)

    return {
        "subtotal": round(subtotal, 2),
        "delivery_charge": applied_delivery,
        "packing_charge": applied_packing,
        "discount_amount": round(discount_amount, 2),
        "total": round(total, 2),
    }


class OrderService:
    """Order operations bound to a store and a publisher."""

    def __init__(
        self,
        repository: BaseOrderRepository,
        publisher: OrderEventPublisher,
        settings: Optional[Settings] = None,
    ):
        self.repository = repository
        self.publisher = publisher
        self.settings = settings or get_settings()
        # Serializes daily number allocation within this process
        self._create_lock = asyncio.Lock()

    # =========================================================================
    # CREATION
    # =========================================================================

    async def next_daily_order_id(self, now: Optional[datetime] = None) -> tuple[int, str]:
        """Next daily order number and the day it belongs to."""
        order_date = order_date_for(now or utcnow())
        last = await self.repository.last_daily_order_id(order_date)
        return last + 1, order_date

    async def create_order(self, data: "OrderCreate") -> OrderRecord:
        """
        Store a new order with status `pending` and announce it on the
        admin feed.
        """
        totals = calculate_order_totals(
            data.items,
            data.order_type,
            delivery_charge=self.settings.delivery_charge,
            packing_charge=self.settings.packing_charge,
            discount_type=data.discount_type,
            discount_value=data.discount_value,
        )

        async with self._create_lock:
            now = utcnow()
            daily_order_id, order_date = await self.next_daily_order_id(now)
            order = OrderRecord(
                id=new_order_id(),
                daily_order_id=daily_order_id,
                order_date=order_date,
                customer_name=data.customer_name,
                contact_number=data.contact_number,
                order_type=data.order_type,
                delivery_address=data.delivery_address if data.order_type == OrderType.DELIVERY else None,
                items=[item.model_dump() for item in data.items],
                discount_type=data.discount_type.value if data.discount_type else None,
                discount_value=data.discount_value,
                status=OrderStatus.PENDING,
                payment_status="success",
                payment_method=data.payment_method,
                is_admin_order=data.is_admin_order,
                created_at=now,
                updated_at=now,
                **totals,
            )
            order = await self.repository.insert(order)

        logger.info(f"Order #{order.daily_order_id} ({order.id}) created for {order.customer_name}")
        self.publisher.publish_new_order(order)
        return order

    # =========================================================================
    # STATUS UPDATES
    # =========================================================================

    async def update_status(self, order_id: str, status: OrderStatus) -> tuple[OrderRecord, int]:
        """
        Persist a new status and notify the order's subscribers.

        Any status in the workflow is accepted unless forward-only
        transitions are enforced.

        Returns:
            The updated order and the number of frames delivered

        Raises:
            InvalidOrderIdError: Malformed id
            OrderNotFoundError: No such order
            InvalidStatusTransitionError: Backward move while enforcing
        """
        if not is_valid_order_id(order_id):
            raise InvalidOrderIdError(order_id)

        current = await self.repository.get(order_id)
        if current is None:
            raise OrderNotFoundError(order_id)
        self._check_transition(current, status)

        if not await self.repository.update_status(order_id, status, utcnow()):
            raise OrderNotFoundError(order_id)

        # Re-read so the event reflects whatever is stored now
        order = await self.repository.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)

        logger.info(f"Order #{order.daily_order_id} status: {current.status.value} -> {order.status.value}")
        delivered = self.publisher.publish_status_update(order)
        return order, delivered

    def _check_transition(self, order: OrderRecord, requested: OrderStatus) -> None:
        current = order.status
        if requested == current:
            return
        backward = requested.rank < current.rank or current.is_terminal
        if not backward:
            return
        if self.settings.enforce_forward_transitions:
            raise InvalidStatusTransitionError(current.value, requested.value)
        logger.warning(
            f"Order #{order.daily_order_id} moved backwards: {current.value} -> {requested.value}"
        )

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def get_order(self, order_id: str) -> OrderRecord:
        if not is_valid_order_id(order_id):
            raise InvalidOrderIdError(order_id)
        order = await self.repository.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def check_status(
        self,
        order_id: Optional[str] = None,
        contact_number: Optional[str] = None,
    ) -> Optional[OrderRecord]:
        """
        Pull-based status lookup used by clients whose stream dropped.

        By id when given, otherwise the newest order for the contact number.
        """
        if order_id:
            if not is_valid_order_id(order_id):
                raise InvalidOrderIdError(order_id)
            return await self.repository.get(order_id)
        if contact_number:
            return await self.repository.latest_for_contact(contact_number)
        raise OrderValidationError("Order ID or contact number is required")

    async def list_orders(
        self,
        kind: Optional[str] = None,
        status: Optional[str] = None,
        order_date: Optional[str] = None,
    ) -> list[OrderRecord]:
        """
        Args:
            kind: "active" (not delivered) or "past" (delivered)
            status: Exact status filter, used when kind is not given
            order_date: Day filter for past orders
        """
        if kind == "active":
            return await self.repository.list_orders(exclude_status=OrderStatus.DELIVERED)
        if kind == "past":
            return await self.repository.list_orders(
                status=OrderStatus.DELIVERED,
                order_date=order_date,
            )
        if kind:
            raise OrderValidationError("Invalid type. Options: ['active', 'past']")
        if status:
            return await self.repository.list_orders(status=parse_status(status))
        return await self.repository.list_orders()
