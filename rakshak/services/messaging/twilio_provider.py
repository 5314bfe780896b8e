"""
Twilio SMS and WhatsApp channels.
"""

import logging
from typing import Optional

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from rakshak.services.messaging.base import MessagingChannel, SendResult, failure_result, success_result

logger = logging.getLogger(__name__)


class TwilioChannel(MessagingChannel):
    """
    Sends through the Twilio Messages API.

    WhatsApp uses the same API with "whatsapp:" prefixed addresses, so one
    class serves both channels.
    """

    def __init__(self, client: Client, from_number: Optional[str], channel_name: str = "sms"):
        self.client = client
        self.from_number = from_number
        self.channel_name = channel_name

    def _address(self, phone: str) -> str:
        if self.channel_name == "whatsapp":
            return f"whatsapp:{phone}"
        return phone

    def is_enabled(self) -> bool:
        return bool(self.from_number)

    def send(self, phone: str, message: str) -> SendResult:
        if not self.from_number:
            return failure_result(f"Twilio {self.channel_name} sender number is not configured")

        try:
            sent = self.client.messages.create(
                body=message,
                from_=self._address(self.from_number),
                to=self._address(phone),
            )
            logger.info(f"[{self.channel_name.upper()}] Twilio accepted message {sent.sid} to {phone}")
            return success_result(sent.sid)
        except TwilioException as e:
            logger.warning(f"[{self.channel_name.upper()}] Twilio send to {phone} failed: {e}")
            return failure_result(str(e))
