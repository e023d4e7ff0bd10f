"""
Server-Sent Events wire framing.

A data frame is `data: <JSON>\\n\\n`. Keep-alive frames are SSE comments,
which clients ignore because they do not start with `data:`.
"""

import json
from typing import Any, Mapping, Union

from orderstream.realtime.events import OrderEvent

KEEP_ALIVE_FRAME = ": keep-alive\n\n"

EventLike = Union[OrderEvent, Mapping[str, Any]]


def encode_event(event: EventLike) -> str:
    """Serialize an event to compact JSON."""
    if isinstance(event, OrderEvent):
        return event.model_dump_json(by_alias=True, exclude_none=True)
    return json.dumps(dict(event), separators=(",", ":"), default=str)


def format_data_frame(event: EventLike) -> str:
    return f"data: {encode_event(event)}\n\n"


def parse_data_frame(frame: str) -> dict[str, Any]:
    """
    Decode a frame produced by `format_data_frame`.

    Raises:
        ValueError: If the frame is not a data frame
    """
    lines = [line for line in frame.splitlines() if line.startswith("data:")]
    if not lines:
        raise ValueError("Not a data frame")
    return json.loads("".join(line[len("data:"):].strip() for line in lines))
