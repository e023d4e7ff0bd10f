"""
Twilio SMS Service

Production implementation of customer text messages.
"""

import logging
from typing import Optional

from twilio.base.exceptions import TwilioException
from twilio.rest import Client as TwilioClient

from orderstream.services.sms.base import BaseSmsService, SmsResult

logger = logging.getLogger(__name__)


class TwilioSmsService(BaseSmsService):
    """Production SMS service using Twilio."""

    def __init__(
        self,
        restaurant_name: str,
        country_code: str,
        account_sid: Optional[str],
        auth_token: Optional[str],
        from_number: Optional[str],
    ):
        super().__init__(restaurant_name, country_code)
        if account_sid and auth_token:
            self.twilio_client = TwilioClient(account_sid, auth_token)
            self.twilio_from_number = from_number
        else:
            self.twilio_client = None
            logger.warning("Twilio credentials not configured")

        logger.info("TwilioSmsService initialized")

    @property
    def provider_name(self) -> str:
        return "twilio"

    async def send_sms(self, to_phone: str, message: str) -> SmsResult:
        """Send SMS via Twilio."""
        if not self.twilio_client:
            return SmsResult(
                success=False,
                error_message="Twilio not configured",
                provider="twilio"
            )

        try:
            result = self.twilio_client.messages.create(
                body=message,
                from_=self.twilio_from_number,
                to=to_phone
            )

            logger.info(f"SMS sent to {to_phone}: {result.sid}")

            return SmsResult(
                success=True,
                message_id=result.sid,
                provider="twilio"
            )

        except TwilioException as e:
            logger.error(f"Twilio error: {e}")
            return SmsResult(
                success=False,
                error_message=str(e),
                provider="twilio"
            )

    async def health_check(self) -> bool:
        """Twilio is usable when credentials are configured."""
        return self.twilio_client is not None
