"""
Publish-side integration.

Turns order mutations into events on the topic registry. Publishing is
best-effort: every failure is logged here and never reaches the request
that changed the order.
"""

import logging
from functools import lru_cache
from typing import Any, Callable, Optional

from orderstream.core.config import Settings, get_settings
from orderstream.realtime.events import NewOrderEvent, OrderEvent, StatusUpdateEvent
from orderstream.realtime.registry import TopicRegistry, get_topic_registry
from orderstream.realtime.stream import contact_topic_key

logger = logging.getLogger(__name__)

EventListener = Callable[[OrderEvent], None]


class OrderEventPublisher:
    """
    Publishes order events to connected clients and to listeners.

    A status update goes out under two aliases of the same order: its id
    (clients that know it) and its contact key (clients that only know the
    phone number they ordered with). New orders go to the admin feed.

    Listeners are independent best-effort side effects (SMS, printing) run
    after the fan-out; one failing listener does not affect the others.
    """

    def __init__(self, registry: TopicRegistry, settings: Optional[Settings] = None):
        self.registry = registry
        self.settings = settings or get_settings()
        self._listeners: list[EventListener] = []

    def add_listener(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def order_topic_keys(self, order: Any) -> list[str]:
        """Topic keys a status update for this order is published under."""
        keys = [order.id]
        if order.contact_number:
            keys.append(contact_topic_key(order.contact_number, self.settings.contact_key_prefix))
        return keys

    def publish_status_update(self, order: Any) -> int:
        """
        Notify subscribers of an order that its status changed.

        Returns:
            Total frames delivered across both topic keys (0 on failure)
        """
        try:
            event = StatusUpdateEvent.from_order(order)
            delivered = 0
            for key in self.order_topic_keys(order):
                delivered += self.registry.publish(key, event)
        except Exception as e:
            logger.exception(f"Error notifying status update for order {getattr(order, 'id', '?')}: {e}")
            return 0

        logger.info(
            f"Order #{order.daily_order_id} ({order.id}) -> {event.status}: "
            f"{delivered} client(s) notified"
        )
        self._notify_listeners(event)
        return delivered

    def publish_new_order(self, order: Any) -> int:
        """Notify the admin feed about a new order."""
        try:
            event = NewOrderEvent.from_order(order)
            delivered = self.registry.publish(self.settings.admin_topic_key, event)
        except Exception as e:
            logger.exception(f"Error notifying admin about new order {getattr(order, 'id', '?')}: {e}")
            return 0

        logger.info(f"Admin notified about new order #{order.daily_order_id}")
        self._notify_listeners(event)
        return delivered

    def _notify_listeners(self, event: OrderEvent) -> None:
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.exception(f"Event listener {listener!r} failed: {e}")


@lru_cache()
def get_order_event_publisher() -> OrderEventPublisher:
    """Process-wide publisher bound to the process-wide registry."""
    return OrderEventPublisher(get_topic_registry(), get_settings())


def reset_order_event_publisher() -> None:
    get_order_event_publisher.cache_clear()
