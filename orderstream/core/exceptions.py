"""
Domain exceptions.

Raised by the order service and the real-time core; routes translate the
order errors into HTTP responses.
"""

from typing import Optional


class OrderServiceError(Exception):
    """Base class for order service errors."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class OrderValidationError(OrderServiceError):
    """Request data failed a business rule."""
    status_code = 400


class InvalidOrderIdError(OrderServiceError):
    """Order identifier is not a well-formed id."""
    status_code = 400

    def __init__(self, order_id: str):
        super().__init__("Invalid order ID format")
        self.order_id = order_id


class OrderNotFoundError(OrderServiceError):
    """No order exists for the identifier."""
    status_code = 404

    def __init__(self, order_id: str):
        super().__init__("Order not found")
        self.order_id = order_id


class InvalidStatusTransitionError(OrderServiceError):
    """Status change rejected by the forward-only policy."""
    status_code = 409

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change status from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested


class SinkWriteError(Exception):
    """A frame could not be written to a connection sink."""

    def __init__(self, message: str, sink_id: Optional[str] = None):
        super().__init__(message)
        self.sink_id = sink_id


class SinkClosedError(SinkWriteError):
    """The connection behind the sink is gone."""


class SinkFullError(SinkWriteError):
    """The client is not draining its stream fast enough."""
