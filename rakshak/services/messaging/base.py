"""
Messaging channel contract.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Any

# {"success": True, "message_id": "..."} or {"success": False, "error": "..."}
SendResult = Dict[str, Any]


def success_result(message_id: Optional[str]) -> SendResult:
    return {"success": True, "message_id": message_id}


def failure_result(error: str) -> SendResult:
    return {"success": False, "error": error}


class MessagingChannel(ABC):
    """
    One outbound channel (SMS, WhatsApp).

    Implementations should catch provider errors and return
    failure_result(); callers still guard against unexpected exceptions.
    Calls may block on network I/O, so async callers run them in an executor.
    """

    channel_name: str = "unknown"

    @abstractmethod
    def send(self, phone: str, message: str) -> SendResult:
        """
        Send a text message.

        Args:
            phone: Canonical destination number (+91XXXXXXXXXX)
            message: Message body

        Returns:
            SendResult
        """
        raise NotImplementedError

    def is_enabled(self) -> bool:
        return True
