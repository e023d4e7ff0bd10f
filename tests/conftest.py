"""
Shared fixtures.

Every test gets its own registry, store and service so nothing leaks
between tests through the process-wide factories.
"""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from orderstream.core.config import Settings, get_settings
from orderstream.core.exceptions import SinkClosedError
from orderstream.main import app
from orderstream.realtime import OrderEventPublisher, TopicRegistry, get_topic_registry, parse_data_frame
from orderstream.schemas import OrderCreate
from orderstream.services.orders import InMemoryOrderRepository, OrderService, get_order_service
from orderstream.services.orders.base import OrderRecord, OrderStatus, OrderType, new_order_id


class RecordingSink:
    """Sink that keeps every frame written to it."""

    def __init__(self, fail: bool = False):
        self.frames: list[str] = []
        self.fail = fail
        self.closed = False
        self.close_calls = 0

    def send(self, frame: str) -> None:
        if self.fail or self.closed:
            raise SinkClosedError("Connection reset by peer")
        self.frames.append(frame)

    def close(self) -> None:
        self.close_calls += 1
        self.closed = True

    @property
    def events(self) -> list[dict]:
        return [parse_data_frame(frame) for frame in self.frames]


@pytest.fixture
def make_sink():
    """Factory for recording sinks."""
    return RecordingSink


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        env_mode="development",
        keepalive_interval_seconds=0.05,
        sink_queue_size=10,
        sms_notifications_enabled=False,
    )


@pytest.fixture
def registry():
    return TopicRegistry()


@pytest.fixture
def publisher(registry, settings):
    return OrderEventPublisher(registry, settings)


@pytest.fixture
def repository():
    return InMemoryOrderRepository()


@pytest.fixture
def order_service(repository, publisher, settings):
    return OrderService(repository, publisher, settings)


@pytest.fixture
def order_payload():
    """Request body of a takeaway order."""
    return {
        "customerName": "Asha Rao",
        "contactNumber": "9876543210",
        "orderType": "takeaway",
        "items": [
            {"name": "Margherita", "quantity": 2, "price": 249.0},
            {"name": "Garlic Bread", "quantity": 1, "price": 99.0},
        ],
    }


@pytest.fixture
def order_create(order_payload):
    return OrderCreate(**order_payload)


@pytest.fixture
def client(registry, order_service, settings):
    """Test client wired to the per-test registry and service."""
    app.dependency_overrides[get_topic_registry] = lambda: registry
    app.dependency_overrides[get_order_service] = lambda: order_service
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_order():
    """Factory for stored-order records."""

    def factory(**overrides) -> OrderRecord:
        now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
        fields = dict(
            id=new_order_id(),
            daily_order_id=1,
            order_date="2026-10-19",
            customer_name="Asha Rao",
            contact_number="5551234567",
            order_type=OrderType.TAKEAWAY,
            items=[{"name": "Margherita", "quantity": 1, "price": 249.0}],
            subtotal=249.0,
            packing_charge=2.0,
            total=251.0,
            created_at=now,
            updated_at=now,
            status=OrderStatus.PENDING,
        )
        fields.update(overrides)
        return OrderRecord(**fields)

    return factory
