"""
SMS Service Abstract Base Class

Defines the interface for texting customers about their order.
Supports both Mock (development) and Twilio (production) implementations.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class SmsResult:
    """Result from sending a text message."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


def normalize_phone_number(contact_number: str, country_code: str) -> str:
    """
    Strip formatting and prefix the country code when it is missing.

    >>> normalize_phone_number("98765-43210", "91")
    '+919876543210'
    """
    digits = re.sub(r"\D", "", contact_number)
    if not digits.startswith(country_code):
        digits = f"{country_code}{digits}"
    return f"+{digits}"


def order_prepared_message(daily_order_id: int, restaurant_name: str) -> str:
    return (
        f"✅ Your order #{daily_order_id} is ready!\n\n"
        f"Thank you for choosing {restaurant_name}. Your order has been prepared "
        f"and will be delivered/picked up soon."
    )


def order_delivered_message(daily_order_id: int, restaurant_name: str) -> str:
    return (
        f"🎉 Your order #{daily_order_id} has been delivered!\n\n"
        f"Thank you for choosing {restaurant_name}. We hope you enjoyed your meal! "
        f"Please visit us again."
    )


STATUS_MESSAGES = {
    "prepared": order_prepared_message,
    "delivered": order_delivered_message,
}


class BaseSmsService(ABC):
    """Abstract base class for SMS services."""

    def __init__(self, restaurant_name: str, country_code: str):
        self.restaurant_name = restaurant_name
        self.country_code = country_code

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def send_sms(self, to_phone: str, message: str) -> SmsResult:
        """Send an SMS message."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check service connectivity."""
        pass

    async def send_order_status(
        self,
        contact_number: str,
        daily_order_id: int,
        status: str,
    ) -> SmsResult:
        """
        Text the customer about a status change.

        Only statuses with a message template are sent; any other status
        returns an unsuccessful result without contacting the provider.
        """
        template = STATUS_MESSAGES.get(status)
        if template is None:
            return SmsResult(
                success=False,
                error_message=f"No SMS for status '{status}'",
                provider=self.provider_name,
            )
        to_phone = normalize_phone_number(contact_number, self.country_code)
        return await self.send_sms(to_phone, template(daily_order_id, self.restaurant_name))
