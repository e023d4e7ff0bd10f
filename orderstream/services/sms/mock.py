"""
Mock SMS Service

Simulates SMS sending for development.
No actual messages are sent - just logged.
"""

import asyncio
import logging
import random
import uuid

from orderstream.services.sms.base import BaseSmsService, SmsResult

logger = logging.getLogger(__name__)


class MockSmsService(BaseSmsService):
    """Mock SMS service for development."""

    def __init__(
        self,
        restaurant_name: str,
        country_code: str,
        failure_rate: float = 0.05,
        max_latency: float = 0.3,
    ):
        super().__init__(restaurant_name, country_code)
        self.failure_rate = failure_rate
        self.max_latency = max_latency
        self.sent: list[tuple[str, str]] = []
        logger.info(f"MockSmsService initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _simulate_latency(self) -> None:
        """Simulate network latency."""
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(0, self.max_latency))

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    async def send_sms(self, to_phone: str, message: str) -> SmsResult:
        """Simulate sending SMS."""
        await self._simulate_latency()

        if self._should_fail():
            logger.warning(f"Mock SMS failed (simulated) to {to_phone}")
            return SmsResult(
                success=False,
                error_message="Simulated SMS failure",
                provider="mock"
            )

        message_id = f"sms_mock_{uuid.uuid4().hex[:12]}"
        self.sent.append((to_phone, message))
        logger.info(f"Mock SMS sent to {to_phone}: {message[:50]}... (ID: {message_id})")

        return SmsResult(
            success=True,
            message_id=message_id,
            provider="mock"
        )

    async def health_check(self) -> bool:
        """Mock always returns healthy."""
        return True
