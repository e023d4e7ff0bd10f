"""
HTTP API tests.

Streams are long-lived, so stream routes are only exercised over HTTP for
their error responses; the open-stream behaviour is covered by calling
the route and driving its body iterator.
"""

from unittest.mock import MagicMock, patch

import pytest

from orderstream.main import admin_notifications, order_notifications
from orderstream.realtime import parse_data_frame
from orderstream.services.orders.base import new_order_id


def create_order(client, payload) -> dict:
    response = client.post("/api/orders", json=payload)
    assert response.status_code == 200
    return response.json()


class TestNotificationEndpoints:

    def test_missing_keys_rejected(self, client, registry):
        response = client.get("/api/orders/notifications")

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing orderId or contact parameter"
        assert registry.subscriber_count() == 0

    def test_empty_keys_rejected(self, client, registry):
        response = client.get("/api/orders/notifications", params={"orderId": "", "contact": ""})

        assert response.status_code == 400
        assert registry.subscriber_count() == 0

    @pytest.mark.asyncio
    async def test_order_stream_by_contact(self, registry, settings):
        response = await order_notifications(
            order_id=None, contact="5551234567", registry=registry, settings=settings
        )

        assert response.media_type == "text/event-stream"
        assert response.headers["cache-control"] == "no-cache"
        assert response.headers["x-accel-buffering"] == "no"

        body = response.body_iterator
        handshake = parse_data_frame(await body.__anext__())
        assert handshake == {
            "type": "connected",
            "message": "Connected to order notifications",
            "subscriptionKey": "contact:5551234567",
        }
        assert registry.snapshot() == {"contact:5551234567": 1}

        await body.aclose()
        assert registry.snapshot() == {}

    @pytest.mark.asyncio
    async def test_admin_stream(self, registry, settings):
        response = await admin_notifications(registry=registry, settings=settings)

        body = response.body_iterator
        handshake = parse_data_frame(await body.__anext__())

        assert handshake == {"type": "connected", "message": "Connected to admin notifications"}
        assert registry.snapshot() == {"admin:new-orders": 1}
        await body.aclose()

    def test_stats(self, client, registry, make_sink):
        registry.subscribe("contact:5551234567", make_sink())
        registry.subscribe("admin:new-orders", make_sink())

        response = client.get("/api/notifications/stats")

        assert response.status_code == 200
        assert response.json() == {
            "totalSubscribers": 2,
            "topics": {"contact:5551234567": 1, "admin:new-orders": 1},
        }


class TestStatusUpdateEndpoint:

    def test_update_notifies_subscribers(self, client, registry, make_sink, order_payload):
        created = create_order(client, order_payload)
        order_id = created["orderId"]
        by_id, by_contact = make_sink(), make_sink()
        registry.subscribe(order_id, by_id)
        registry.subscribe("contact:9876543210", by_contact)

        response = client.put(f"/api/orders/{order_id}", json={"status": "being_prepared"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["status"] == "being_prepared"
        assert data["subscribersNotified"] == 2
        assert by_id.events == by_contact.events
        assert by_id.events[0]["status"] == "being_prepared"
        assert by_id.events[0]["dailyOrderId"] == created["dailyOrderId"]

    def test_update_without_subscribers_succeeds(self, client, order_payload):
        order_id = create_order(client, order_payload)["orderId"]

        response = client.put(f"/api/orders/{order_id}", json={"status": "prepared"})

        assert response.status_code == 200
        assert response.json()["subscribersNotified"] == 0

    def test_invalid_status(self, client, registry, make_sink, order_payload):
        order_id = create_order(client, order_payload)["orderId"]
        sink = make_sink()
        registry.subscribe(order_id, sink)

        response = client.put(f"/api/orders/{order_id}", json={"status": "cooking"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid status"
        assert sink.frames == []

    def test_missing_status(self, client, order_payload):
        order_id = create_order(client, order_payload)["orderId"]

        response = client.put(f"/api/orders/{order_id}", json={})

        assert response.status_code == 400
        assert response.json()["detail"] == "Order ID and status are required"

    def test_malformed_order_id(self, client):
        response = client.put("/api/orders/not-a-real-id", json={"status": "prepared"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid order ID format"

    def test_unknown_order(self, client):
        response = client.put(f"/api/orders/{new_order_id()}", json={"status": "prepared"})

        assert response.status_code == 404
        assert response.json()["detail"] == "Order not found"


class TestOrderEndpoints:

    def test_create_order(self, client, registry, make_sink, order_payload):
        admin = make_sink()
        registry.subscribe("admin:new-orders", admin)

        data = create_order(client, order_payload)

        assert data["success"] is True
        assert data["dailyOrderId"] == 1
        assert data["total"] == 599.0
        assert len(data["orderId"]) == 32
        assert admin.events[0]["type"] == "new_order"
        assert admin.events[0]["orderId"] == data["orderId"]

    def test_create_delivery_without_address(self, client, order_payload):
        response = client.post("/api/orders", json={**order_payload, "orderType": "delivery"})

        assert response.status_code == 422

    def test_create_without_items(self, client, order_payload):
        response = client.post("/api/orders", json={**order_payload, "items": []})

        assert response.status_code == 422

    def test_get_order(self, client, order_payload):
        order_id = create_order(client, order_payload)["orderId"]

        response = client.get(f"/api/orders/{order_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == order_id
        assert data["status"] == "pending"
        assert data["packingCharge"] == 2.0

    def test_check_status_by_contact(self, client, order_payload):
        order_id = create_order(client, order_payload)["orderId"]
        client.put(f"/api/orders/{order_id}", json={"status": "prepared"})

        response = client.get("/api/orders/check-status", params={"contact": "9876543210"})

        assert response.status_code == 200
        order = response.json()["order"]
        assert order["_id"] == order_id
        assert order["status"] == "prepared"

    def test_check_status_unknown(self, client):
        response = client.get("/api/orders/check-status", params={"orderId": new_order_id()})

        assert response.status_code == 200
        assert response.json()["order"] is None

    def test_check_status_requires_key(self, client):
        assert client.get("/api/orders/check-status").status_code == 400

    def test_next_order_id(self, client, order_payload):
        assert client.get("/api/orders/next-order-id").json()["orderId"] == 1

        create_order(client, order_payload)

        assert client.get("/api/orders/next-order-id").json()["orderId"] == 2

    def test_list_orders(self, client, order_payload):
        first = create_order(client, order_payload)["orderId"]
        second = create_order(client, order_payload)["orderId"]
        client.put(f"/api/orders/{second}", json={"status": "delivered"})

        active = client.get("/api/orders", params={"type": "active"}).json()
        past = client.get("/api/orders", params={"type": "past"}).json()

        assert [o["id"] for o in active["orders"]] == [first]
        assert [o["id"] for o in past["orders"]] == [second]
        assert client.get("/api/orders", params={"type": "later"}).status_code == 400


class TestHealth:

    def test_root(self, client):
        assert client.get("/").json()["health"] == "/health"

    def test_health_reports_streams(self, client, registry, make_sink):
        registry.subscribe("admin:new-orders", make_sink())
        redis_client = MagicMock()

        with patch("orderstream.main.redis.Redis.from_url", return_value=redis_client):
            response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "operational"
        assert data["order_store"] == "memory: healthy"
        assert data["active_streams"] == 1
        redis_client.ping.assert_called_once()

    def test_health_degraded_without_redis(self, client):
        with patch("orderstream.main.redis.Redis.from_url", side_effect=ConnectionError("refused")):
            response = client.get("/health")

        assert response.json()["status"] == "degraded"
