"""
Messaging channel registry.

Selects the SMS and WhatsApp channels from MESSAGING_PROVIDER and falls back
to the mock channel for anything that is not configured.
"""

from rakshak.services.messaging.base import MessagingChannel
from rakshak.services.messaging.mock_provider import MockChannel
from rakshak.core.settings import settings
from typing import NamedTuple, Optional
import logging

logger = logging.getLogger(__name__)


class MessagingChannels(NamedTuple):
    sms: MessagingChannel
    whatsapp: MessagingChannel


def _build_twilio_channels() -> Optional[MessagingChannels]:
    if not (settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN):
        logger.warning("MESSAGING_PROVIDER=twilio but Twilio credentials are not configured")
        return None

    from twilio.rest import Client
    from rakshak.services.messaging.twilio_provider import TwilioChannel

    client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
    sms = TwilioChannel(client, settings.TWILIO_PHONE_NUMBER, channel_name="sms")
    whatsapp = TwilioChannel(client, settings.TWILIO_WHATSAPP_NUMBER, channel_name="whatsapp")
    return MessagingChannels(
        sms=sms if sms.is_enabled() else MockChannel("sms"),
        whatsapp=whatsapp if whatsapp.is_enabled() else MockChannel("whatsapp"),
    )


def _build_meta_channels() -> Optional[MessagingChannels]:
    from rakshak.services.messaging.meta_provider import WhatsAppCloudChannel

    whatsapp = WhatsAppCloudChannel(
        phone_number_id=settings.WHATSAPP_PHONE_NUMBER_ID,
        access_token=settings.WHATSAPP_ACCESS_TOKEN,
        api_version=settings.WHATSAPP_API_VERSION,
        timeout=settings.MESSAGING_TIMEOUT_SECONDS,
    )
    if not whatsapp.is_enabled():
        logger.warning("MESSAGING_PROVIDER=meta but WhatsApp Cloud API credentials are not configured")
        return None

    # The Cloud API has no SMS product
    return MessagingChannels(sms=MockChannel("sms"), whatsapp=whatsapp)


def build_messaging_channels() -> MessagingChannels:
    provider_name = (settings.MESSAGING_PROVIDER or "mock").lower()

    channels = None
    if provider_name == "twilio":
        channels = _build_twilio_channels()
    elif provider_name == "meta":
        channels = _build_meta_channels()
    elif provider_name != "mock":
        logger.warning(f"Unknown MESSAGING_PROVIDER '{provider_name}', using mock channels")

    if channels is None:
        channels = MessagingChannels(sms=MockChannel("sms"), whatsapp=MockChannel("whatsapp"))

    logger.info(
        f"Messaging channels: sms={type(channels.sms).__name__}, whatsapp={type(channels.whatsapp).__name__}"
    )
    return channels


# Global channels instance (singleton)
_channels: Optional[MessagingChannels] = None


def get_messaging_channels() -> MessagingChannels:
    global _channels
    if _channels is None:
        _channels = build_messaging_channels()
    return _channels
