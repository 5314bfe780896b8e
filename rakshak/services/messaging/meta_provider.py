"""
WhatsApp Cloud API (Meta Graph API) channel.
"""

import logging
from typing import Any, Dict

import requests

from rakshak.services.messaging.base import MessagingChannel, SendResult, failure_result, success_result

logger = logging.getLogger(__name__)


class WhatsAppCloudChannel(MessagingChannel):
    """
    Sends free-form text messages through graph.facebook.com.

    - Recipient numbers are sent without the leading "+".
    - Uses a strict request timeout.
    """

    BASE_URL = "https://graph.facebook.com"
    channel_name = "whatsapp"

    def __init__(self, phone_number_id: str, access_token: str, api_version: str = "v18.0", timeout: float = 10.0):
        self.phone_number_id = phone_number_id
        self.access_token = access_token
        self.api_version = api_version
        self.timeout = timeout

    def is_enabled(self) -> bool:
        return bool(self.phone_number_id and self.access_token)

    def send(self, phone: str, message: str) -> SendResult:
        url = f"{self.BASE_URL}/{self.api_version}/{self.phone_number_id}/messages"
        payload = {
            "messaging_product": "whatsapp",
            "to": phone.lstrip("+"),
            "type": "text",
            "text": {"body": message},
        }
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

        try:
            resp = requests.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"[WHATSAPP] Cloud API request to {phone} failed: {e}")
            return failure_result(str(e))

        if resp.status_code >= 400:
            logger.warning(f"[WHATSAPP] Cloud API rejected message to {phone}: {resp.status_code} {resp.text[:200]}")
            return failure_result(f"WhatsApp Cloud API returned {resp.status_code}")

        data: Dict[str, Any] = resp.json()
        messages = data.get("messages") or [{}]
        message_id = messages[0].get("id")
        logger.info(f"[WHATSAPP] Cloud API accepted message {message_id} to {phone}")
        return success_result(message_id)
