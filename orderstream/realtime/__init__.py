"""
Real-time order notifications.

In-process publish/subscribe fan-out feeding Server-Sent Events streams.

Components:
    - registry: topic key -> connection sinks
    - stream: one SSE request bound to one sink
    - publisher: order mutations -> events
"""

from orderstream.realtime.events import (
    ConnectedEvent,
    EventType,
    NewOrderEvent,
    OrderEvent,
    StatusUpdateEvent,
)
from orderstream.realtime.frames import KEEP_ALIVE_FRAME, format_data_frame, parse_data_frame
from orderstream.realtime.publisher import (
    OrderEventPublisher,
    get_order_event_publisher,
    reset_order_event_publisher,
)
from orderstream.realtime.registry import TopicRegistry, get_topic_registry, reset_topic_registry
from orderstream.realtime.sink import QueueSink, Sink
from orderstream.realtime.stream import (
    NotificationStream,
    contact_topic_key,
    resolve_order_topic_key,
)

__all__ = [
    "ConnectedEvent",
    "EventType",
    "NewOrderEvent",
    "OrderEvent",
    "StatusUpdateEvent",
    "KEEP_ALIVE_FRAME",
    "format_data_frame",
    "parse_data_frame",
    "OrderEventPublisher",
    "get_order_event_publisher",
    "reset_order_event_publisher",
    "TopicRegistry",
    "get_topic_registry",
    "reset_topic_registry",
    "QueueSink",
    "Sink",
    "NotificationStream",
    "contact_topic_key",
    "resolve_order_topic_key",
]
