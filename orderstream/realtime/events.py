"""
Event payloads pushed to notification streams.

Events are immutable Pydantic models serialized with camelCase keys, the
shape browser clients read from the `data:` line of each frame.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class EventType(str, Enum):
    """Kinds of frames a client can receive."""
    CONNECTED = "connected"
    STATUS_UPDATE = "status_update"
    NEW_ORDER = "new_order"


class OrderEvent(BaseModel):
    """Base class for all pushed events."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_payload(self) -> dict[str, Any]:
        """Wire representation (camelCase keys, ISO-8601 timestamps)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ConnectedEvent(OrderEvent):
    """Handshake written locally when a stream opens. Never published."""
    type: Literal["connected"] = "connected"
    message: str
    subscription_key: Optional[str] = None


class StatusUpdateEvent(OrderEvent):
    """An order moved to a new status."""
    type: Literal["status_update"] = "status_update"
    order_id: str
    daily_order_id: int
    status: str
    order_type: str
    customer_name: str
    updated_at: datetime
    contact_number: Optional[str] = None

    @classmethod
    def from_order(cls, order: Any) -> "StatusUpdateEvent":
        return cls(
            order_id=order.id,
            daily_order_id=order.daily_order_id,
            status=_value(order.status),
            order_type=_value(order.order_type),
            customer_name=order.customer_name,
            updated_at=order.updated_at or datetime.now(timezone.utc),
            contact_number=order.contact_number or None,
        )


class NewOrderEvent(OrderEvent):
    """A new order was placed. Published on the admin feed only."""
    type: Literal["new_order"] = "new_order"
    order_id: str
    daily_order_id: int
    customer_name: str
    contact_number: str
    order_type: str
    total: float
    created_at: datetime

    @classmethod
    def from_order(cls, order: Any) -> "NewOrderEvent":
        return cls(
            order_id=order.id,
            daily_order_id=order.daily_order_id,
            customer_name=order.customer_name,
            contact_number=order.contact_number or "",
            order_type=_value(order.order_type),
            total=order.total,
            created_at=order.created_at or datetime.now(timezone.utc),
        )


def _value(field: Any) -> str:
    return field.value if isinstance(field, Enum) else str(field)
