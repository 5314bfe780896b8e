"""
Outbound messaging channels for SOS alerts.

Every channel exposes send(phone, message) and reports failures in its
return value. Providers are pluggable via MESSAGING_PROVIDER.
"""

from rakshak.services.messaging.base import MessagingChannel, SendResult
from rakshak.services.messaging.mock_provider import MockChannel
from rakshak.services.messaging.registry import MessagingChannels, get_messaging_channels

__all__ = [
    "MessagingChannel",
    "SendResult",
    "MockChannel",
    "MessagingChannels",
    "get_messaging_channels",
]
