"""
Tests for customer status text messages.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from orderstream.realtime import ConnectedEvent, NewOrderEvent, StatusUpdateEvent
from orderstream.services.sms import (
    BaseSmsService,
    MockSmsService,
    SmsResult,
    TwilioSmsService,
    get_sms_service,
    normalize_phone_number,
    reset_sms_service,
)
from orderstream.services.sms.listener import StatusSmsListener
from orderstream.services.orders.base import OrderStatus
from orderstream.tasks import send_order_status_sms


@pytest.fixture
def sms_service():
    return MockSmsService(restaurant_name="Mr. Pizzeria", country_code="91", failure_rate=0.0, max_latency=0)


class TestPhoneNumbers:

    @pytest.mark.parametrize("raw,expected", [
        ("9876543210", "+919876543210"),
        ("98765-43210", "+919876543210"),
        ("+91 98765 43210", "+919876543210"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_phone_number(raw, "91") == expected


class TestMockSmsService:

    @pytest.mark.asyncio
    async def test_prepared_message(self, sms_service):
        result = await sms_service.send_order_status("9876543210", 12, "prepared")

        assert result.success
        assert result.provider == "mock"
        to_phone, message = sms_service.sent[0]
        assert to_phone == "+919876543210"
        assert "#12" in message
        assert "Mr. Pizzeria" in message

    @pytest.mark.asyncio
    async def test_delivered_message(self, sms_service):
        await sms_service.send_order_status("9876543210", 3, "delivered")

        assert "delivered" in sms_service.sent[0][1]

    @pytest.mark.asyncio
    async def test_other_status_not_sent(self, sms_service):
        result = await sms_service.send_order_status("9876543210", 3, "being_prepared")

        assert not result.success
        assert sms_service.sent == []

    @pytest.mark.asyncio
    async def test_simulated_failure(self):
        service = MockSmsService("Mr. Pizzeria", "91", failure_rate=1.0, max_latency=0)

        result = await service.send_order_status("9876543210", 3, "prepared")

        assert not result.success
        assert result.error_message == "Simulated SMS failure"


class TestTwilioSmsService:

    @pytest.mark.asyncio
    async def test_unconfigured(self):
        service = TwilioSmsService("Mr. Pizzeria", "91", None, None, None)

        result = await service.send_sms("+919876543210", "hello")

        assert not result.success
        assert not await service.health_check()

    @pytest.mark.asyncio
    async def test_send_uses_client(self):
        with patch("orderstream.services.sms.twilio.TwilioClient") as client_cls:
            client_cls.return_value.messages.create.return_value = MagicMock(sid="SM123")
            service = TwilioSmsService("Mr. Pizzeria", "91", "AC123", "token", "+15005550006")

            result = await service.send_order_status("9876543210", 4, "prepared")

        assert result.success
        assert result.message_id == "SM123"
        kwargs = client_cls.return_value.messages.create.call_args.kwargs
        assert kwargs["to"] == "+919876543210"
        assert kwargs["from_"] == "+15005550006"


class TestStatusSmsListener:

    def status_event(self, make_order, status, contact="5551234567"):
        return StatusUpdateEvent.from_order(make_order(status=status, contact_number=contact))

    @pytest.mark.parametrize("status", [OrderStatus.PREPARED, OrderStatus.DELIVERED])
    def test_dispatches_for_messaged_statuses(self, make_order, status):
        dispatch = MagicMock()
        listener = StatusSmsListener(dispatch)

        listener(self.status_event(make_order, status))

        dispatch.assert_called_once_with("5551234567", 1, status.value)

    @pytest.mark.parametrize("status", [OrderStatus.PENDING, OrderStatus.BEING_PREPARED, OrderStatus.OUT_FOR_DELIVERY])
    def test_ignores_other_statuses(self, make_order, status):
        dispatch = MagicMock()

        StatusSmsListener(dispatch)(self.status_event(make_order, status))

        dispatch.assert_not_called()

    def test_ignores_missing_contact(self, make_order):
        dispatch = MagicMock()

        StatusSmsListener(dispatch)(self.status_event(make_order, OrderStatus.PREPARED, contact=""))

        dispatch.assert_not_called()

    def test_ignores_other_events(self, make_order):
        dispatch = MagicMock()
        listener = StatusSmsListener(dispatch)

        listener(NewOrderEvent.from_order(make_order()))
        listener(ConnectedEvent(message="hi"))

        dispatch.assert_not_called()

    def test_wired_to_publisher(self, publisher, make_order):
        dispatch = MagicMock()
        publisher.add_listener(StatusSmsListener(dispatch))

        publisher.publish_status_update(make_order(status=OrderStatus.DELIVERED))

        dispatch.assert_called_once()

    def test_default_dispatch_queues_task(self, make_order):
        with patch("orderstream.services.sms.listener.send_order_status_sms") as task:
            StatusSmsListener()(self.status_event(make_order, OrderStatus.PREPARED))

        task.delay.assert_called_once_with("5551234567", 1, "prepared")


class TestSendOrderStatusSmsTask:

    def test_task_sends_through_service(self):
        service = MagicMock()
        service.send_order_status = AsyncMock(
            return_value=SmsResult(success=True, message_id="sms_1", provider="mock")
        )

        with patch("orderstream.tasks.get_sms_service", return_value=service):
            result = send_order_status_sms.apply(args=("5551234567", 9, "prepared")).get()

        service.send_order_status.assert_awaited_once_with("5551234567", 9, "prepared")
        assert result["success"] is True
        assert result["message_id"] == "sms_1"


def test_sms_service_is_cached():
    reset_sms_service()
    try:
        service = get_sms_service()
        assert isinstance(service, BaseSmsService)
        assert get_sms_service() is service
    finally:
        reset_sms_service()
