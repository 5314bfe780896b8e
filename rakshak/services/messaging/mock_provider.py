"""
Mock messaging channel - used when no real provider is configured.

Logs the message instead of sending it and always succeeds.
"""

from rakshak.services.messaging.base import MessagingChannel, SendResult, success_result
import logging
import uuid

logger = logging.getLogger(__name__)


class MockChannel(MessagingChannel):

    def __init__(self, channel_name: str):
        self.channel_name = channel_name

    def send(self, phone: str, message: str) -> SendResult:
        label = self.channel_name.upper()
        logger.info(f"[{label}] To: {phone}")
        logger.info(f"[{label}] Message: {message}")
        logger.info(f"[{label}] Status: Sent (Mock)")
        return success_result(str(uuid.uuid4()))
