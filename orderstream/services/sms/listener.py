"""
Status SMS listener.

Subscribes to the order event publisher and queues a text message when an
order is prepared or delivered. Sending happens in a Celery worker so a
slow SMS provider never holds up the status update.
"""

import logging
from typing import Callable, Optional

from orderstream.realtime.events import OrderEvent, StatusUpdateEvent
from orderstream.services.sms.base import STATUS_MESSAGES
from orderstream.tasks import send_order_status_sms

logger = logging.getLogger(__name__)

Dispatch = Callable[[str, int, str], object]


def enqueue_status_sms(contact_number: str, daily_order_id: int, status: str) -> None:
    send_order_status_sms.delay(contact_number, daily_order_id, status)


class StatusSmsListener:
    """Publisher listener texting customers about status changes."""

    def __init__(self, dispatch: Optional[Dispatch] = None):
        self._dispatch = dispatch or enqueue_status_sms

    def __call__(self, event: OrderEvent) -> None:
        if not isinstance(event, StatusUpdateEvent):
            return
        if event.status not in STATUS_MESSAGES or not event.contact_number:
            return
        self._dispatch(event.contact_number, event.daily_order_id, event.status)
        logger.info(f"Queued '{event.status}' SMS for order #{event.daily_order_id}")

    def __repr__(self) -> str:
        return "<StatusSmsListener>"
