"""
Order Service Factory

Returns the order store and service configured for ENV_MODE.

Environment Switching:
    - ENV_MODE=development → InMemoryOrderRepository
    - ENV_MODE=staging / production → SqlOrderRepository (PostgreSQL)
"""

import logging
from functools import lru_cache

from orderstream.core.config import get_settings
from orderstream.realtime.publisher import get_order_event_publisher
from orderstream.services.orders.base import (
    BaseOrderRepository,
    OrderRecord,
    OrderStatus,
    OrderType,
    DiscountType,
)
from orderstream.services.orders.memory import InMemoryOrderRepository
from orderstream.services.orders.service import OrderService, calculate_order_totals

logger = logging.getLogger(__name__)


@lru_cache()
def get_order_repository() -> BaseOrderRepository:
    """Get the configured order store (cached)."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Order Store: Using InMemoryOrderRepository (development mode)")
        return InMemoryOrderRepository()

    # Imported here so development mode never loads the database stack
    from orderstream.database import get_session_maker
    from orderstream.services.orders.sql import SqlOrderRepository

    logger.info(f"Order Store: Using SqlOrderRepository ({settings.env_mode.value} mode)")
    return SqlOrderRepository(get_session_maker())


@lru_cache()
def get_order_service() -> OrderService:
    """Get the order service bound to the configured store and publisher."""
    return OrderService(get_order_repository(), get_order_event_publisher(), get_settings())


def reset_order_service() -> None:
    """Clear the cached store and service instances."""
    get_order_service.cache_clear()
    get_order_repository.cache_clear()


__all__ = [
    "get_order_repository",
    "get_order_service",
    "reset_order_service",
    "BaseOrderRepository",
    "InMemoryOrderRepository",
    "OrderService",
    "OrderRecord",
    "OrderStatus",
    "OrderType",
    "DiscountType",
    "calculate_order_totals",
]
