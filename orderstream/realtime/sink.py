"""
Connection sinks.

A sink is the write side of one open streaming connection. Writes never
suspend: a frame is either queued immediately or the write raises, so a
stalled client can never hold up the publisher.
"""

import asyncio
import uuid
from typing import AsyncIterator, Optional, Protocol, runtime_checkable

from orderstream.core.exceptions import SinkClosedError, SinkFullError


@runtime_checkable
class Sink(Protocol):
    """Anything the topic registry can fan frames out to."""

    def send(self, frame: str) -> None:
        """Queue a frame. Raises SinkWriteError if the connection is gone."""
        ...

    def close(self) -> None:
        """Close the sink. Must be idempotent."""
        ...


class QueueSink:
    """
    Bounded in-memory sink drained by a streaming response.

    `close()` enqueues an end-of-stream marker so the reader finishes after
    the frames already queued. When the queue is full the pending frames are
    dropped to make room for the marker.
    """

    _END = None

    def __init__(self, maxsize: int = 100, sink_id: Optional[str] = None):
        self.id = sink_id or uuid.uuid4().hex[:12]
        self._queue: asyncio.Queue[Optional[str]] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def send(self, frame: str) -> None:
        if self._closed:
            raise SinkClosedError("Connection closed", sink_id=self.id)
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull:
            raise SinkFullError(
                f"Sink buffer full ({self._queue.maxsize} frames)", sink_id=self.id
            )

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        while True:
            try:
                self._queue.put_nowait(self._END)
                return
            except asyncio.QueueFull:
                self._queue.get_nowait()

    async def receive(self) -> Optional[str]:
        """Wait for the next frame. Returns None once the sink is closed."""
        return await self._queue.get()

    async def __aiter__(self) -> AsyncIterator[str]:
        while True:
            frame = await self.receive()
            if frame is self._END:
                return
            yield frame

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<QueueSink {self.id} {state} pending={self.pending}>"
