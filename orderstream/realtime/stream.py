"""
Streaming Endpoint Adapter

Bridges one long-lived SSE request to one registry sink:

    1. queue the `connected` handshake frame
    2. subscribe the sink under the connection's topic key
    3. write a keep-alive comment on a fixed interval
    4. on disconnect, cancel the keep-alive, unsubscribe and close the sink

The keep-alive task and the unsubscribe handle are acquired together in
`open()` and released together by `close()`, which is idempotent and runs
on every exit path (client disconnect, sink dropped by the registry,
server shutdown).
"""

import asyncio
import logging
from typing import AsyncIterator, Optional

from fastapi.responses import StreamingResponse

from orderstream.core.exceptions import SinkWriteError
from orderstream.realtime.events import ConnectedEvent
from orderstream.realtime.frames import KEEP_ALIVE_FRAME, format_data_frame
from orderstream.realtime.registry import TopicRegistry, Unsubscribe
from orderstream.realtime.sink import QueueSink

logger = logging.getLogger(__name__)

SSE_MEDIA_TYPE = "text/event-stream"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # nginx
}


def contact_topic_key(contact_number: str, prefix: str = "contact:") -> str:
    """Topic key for clients that only know the customer's contact number."""
    return f"{prefix}{contact_number}"


def resolve_order_topic_key(
    order_id: Optional[str],
    contact_number: Optional[str],
    prefix: str = "contact:",
) -> Optional[str]:
    """
    Topic key for an order-status stream.

    The order id wins when both are given. Returns None when neither is.
    """
    if order_id:
        return order_id
    if contact_number:
        return contact_topic_key(contact_number, prefix)
    return None


class NotificationStream:
    """One SSE connection subscribed to one topic key."""

    def __init__(
        self,
        registry: TopicRegistry,
        topic_key: str,
        handshake: ConnectedEvent,
        keepalive_interval: float = 30.0,
        queue_size: int = 100,
    ):
        self.registry = registry
        self.topic_key = topic_key
        self.handshake = handshake
        self.keepalive_interval = keepalive_interval
        self.sink = QueueSink(maxsize=queue_size)

        self._unsubscribe: Optional[Unsubscribe] = None
        self._keepalive_task: Optional[asyncio.Task] = None
        self._opened = False
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self._opened and not self._closed

    def open(self) -> None:
        """Handshake, subscribe and start the keep-alive. Needs a running loop."""
        if self._opened:
            return
        self._opened = True

        try:
            self.sink.send(format_data_frame(self.handshake))
        except SinkWriteError as e:
            logger.error(f"Error sending handshake on '{self.topic_key}': {e}")

        self._unsubscribe = self.registry.subscribe(self.topic_key, self.sink)
        self._keepalive_task = asyncio.create_task(self._keepalive())
        logger.info(f"SSE connection established for: {self.topic_key}")

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        if self._keepalive_task is not None:
            self._keepalive_task.cancel()
        if self._unsubscribe is not None:
            self._unsubscribe()
        self.sink.close()
        logger.info(f"SSE connection closed for: {self.topic_key}")

    async def _keepalive(self) -> None:
        while True:
            await asyncio.sleep(self.keepalive_interval)
            try:
                self.sink.send(KEEP_ALIVE_FRAME)
            except SinkWriteError as e:
                logger.warning(f"Keep-alive failed on '{self.topic_key}', stopping: {e}")
                return

    async def frames(self) -> AsyncIterator[str]:
        """
        Frames for the response body.

        Starlette cancels the body iterator when the client disconnects,
        which lands in the `finally` block below.
        """
        self.open()
        try:
            async for frame in self.sink:
                yield frame
        finally:
            self.close()

    def response(self) -> StreamingResponse:
        return StreamingResponse(
            self.frames(),
            media_type=SSE_MEDIA_TYPE,
            headers=SSE_HEADERS,
        )
