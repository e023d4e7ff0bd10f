"""
Topic Registry

Process-wide mapping from topic key to the sinks of the connections
subscribed to it. This is the whole fan-out mechanism: there is no broker,
so an event reaches only the clients connected to this process.

Delivery is best-effort and at-most-once. Nothing is buffered for topics
without subscribers and nothing is replayed after a reconnect; clients
re-synchronize through the status check endpoint.

Usage:
    registry = get_topic_registry()

    unsubscribe = registry.subscribe("contact:5551234567", sink)
    registry.publish("contact:5551234567", event)
    unsubscribe()
"""

import logging
import threading
from functools import lru_cache
from typing import Callable, Optional

from orderstream.realtime.frames import EventLike, format_data_frame
from orderstream.realtime.sink import Sink

logger = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]


class TopicRegistry:
    """
    Thread-safe topic key -> sinks registry.

    A single coarse lock guards the mapping. Sink writes are non-blocking,
    so holding it for the duration of a fan-out stays cheap.
    """

    def __init__(self):
        self._topics: dict[str, set[Sink]] = {}
        self._lock = threading.Lock()

    def subscribe(self, topic_key: str, sink: Sink) -> Unsubscribe:
        """
        Register a sink under a topic key.

        Args:
            topic_key: Opaque channel name
            sink: Write side of one open connection

        Returns:
            Callable removing exactly this sink from exactly this key.
            Calling it again is a no-op.
        """
        with self._lock:
            self._topics.setdefault(topic_key, set()).add(sink)
            count = len(self._topics[topic_key])

        logger.info(f"Subscribed to '{topic_key}' ({count} subscriber(s))")

        active = True

        def unsubscribe() -> None:
            nonlocal active
            with self._lock:
                if not active:
                    return
                active = False
                self._discard_locked(topic_key, sink)
            logger.info(f"Unsubscribed from '{topic_key}'")

        return unsubscribe

    def publish(self, topic_key: str, event: EventLike) -> int:
        """
        Fan an event out to every sink registered under a topic key.

        The event is serialized once. Sinks whose write fails are removed
        from the topic before returning and then closed. A failing sink never
        affects delivery to the others, and publishing to a topic with no
        subscribers does nothing.

        Returns:
            Number of sinks the frame was written to
        """
        with self._lock:
            sinks = self._topics.get(topic_key)
            if not sinks:
                logger.debug(f"No subscribers for '{topic_key}'")
                return 0

            frame = format_data_frame(event)
            failed: list[Sink] = []

            for sink in sinks:
                try:
                    sink.send(frame)
                except Exception as e:
                    logger.warning(f"Dropping subscriber of '{topic_key}': {e}")
                    failed.append(sink)

            for sink in failed:
                self._discard_locked(topic_key, sink)

            delivered = len(self._topics.get(topic_key, ()))

        for sink in failed:
            try:
                sink.close()
            except Exception as e:
                logger.debug(f"Error closing dropped sink: {e}")

        logger.info(f"Published to '{topic_key}': {delivered} delivered, {len(failed)} dropped")
        return delivered

    def subscriber_count(self, topic_key: Optional[str] = None) -> int:
        """Sinks under one key, or across all keys when no key is given."""
        with self._lock:
            if topic_key is not None:
                return len(self._topics.get(topic_key, ()))
            return sum(len(sinks) for sinks in self._topics.values())

    def topic_keys(self) -> list[str]:
        with self._lock:
            return list(self._topics)

    def snapshot(self) -> dict[str, int]:
        """Subscriber count per topic key."""
        with self._lock:
            return {key: len(sinks) for key, sinks in self._topics.items()}

    def _discard_locked(self, topic_key: str, sink: Sink) -> None:
        sinks = self._topics.get(topic_key)
        if sinks is None:
            return
        sinks.discard(sink)
        if not sinks:
            del self._topics[topic_key]


@lru_cache()
def get_topic_registry() -> TopicRegistry:
    """Process-wide registry shared by every request handler."""
    return TopicRegistry()


def reset_topic_registry() -> None:
    """Drop the process-wide registry. The next call starts empty."""
    get_topic_registry.cache_clear()
