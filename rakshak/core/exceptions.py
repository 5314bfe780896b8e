"""
Domain errors raised by the service layer.

Routes do not catch these individually; main.py maps each class to an HTTP
status code so the JSON error shape stays the same across endpoints.
"""


class RakshakError(Exception):
    """Base class for errors that carry a client-facing message."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RakshakError):
    """Bad enum value, malformed phone, missing required field, rejected upload."""

    status_code = 400


class NotFoundError(RakshakError):
    status_code = 404


class ServiceUnavailableError(RakshakError):
    """The document store cannot be reached; callers may retry later."""

    status_code = 503


class NotificationError(RakshakError):
    """
    A single channel/contact send failed.
    Contained inside the SOS service; never surfaced as an HTTP error.
    """

    status_code = 502

    def __init__(self, channel: str, phone: str, message: str):
        super().__init__(f"{channel} to {phone} failed: {message}")
        self.channel = channel
        self.phone = phone


class AuthenticationError(RakshakError):
    status_code = 401
