"""
SMS Service Factory

Returns Mock or Twilio SMS service based on ENV_MODE.
"""

import logging
from functools import lru_cache

from orderstream.core.config import get_settings
from orderstream.services.sms.base import BaseSmsService, SmsResult, normalize_phone_number
from orderstream.services.sms.mock import MockSmsService
from orderstream.services.sms.twilio import TwilioSmsService

logger = logging.getLogger(__name__)


@lru_cache()
def get_sms_service() -> BaseSmsService:
    """Get the configured SMS service."""
    settings = get_settings()

    if settings.is_development:
        logger.info("SMS Service: Using MockSmsService (development mode)")
        return MockSmsService(
            restaurant_name=settings.restaurant_name,
            country_code=settings.sms_country_code,
            failure_rate=0.05,
        )
    else:
        logger.info(f"SMS Service: Using TwilioSmsService ({settings.env_mode.value} mode)")
        return TwilioSmsService(
            restaurant_name=settings.restaurant_name,
            country_code=settings.sms_country_code,
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_phone_number,
        )


def reset_sms_service() -> None:
    """Clear the cached service instance."""
    get_sms_service.cache_clear()


__all__ = [
    "get_sms_service",
    "reset_sms_service",
    "BaseSmsService",
    "SmsResult",
    "MockSmsService",
    "TwilioSmsService",
    "normalize_phone_number",
]
