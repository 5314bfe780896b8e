"""
Indian mobile number helpers.

Contacts are stored in a single canonical form, +91 followed by 10 digits
starting with 6, 7, 8 or 9. Validation never raises: callers get None back
and decide how to report it.
"""

import re
from typing import Optional
from urllib.parse import quote

COUNTRY_CODE = "91"
VALID_MOBILE_PREFIXES = ("6", "7", "8", "9")
CANONICAL_PHONE_PATTERN = re.compile(r"^\+91[6-9]\d{9}$")

_NON_DIGITS = re.compile(r"\D")


def normalize_indian_phone(value: Optional[str]) -> Optional[str]:
    """
    Canonicalize a user-entered phone number.

    Examples:
        "09876543210"      -> "+919876543210"
        "+91 98765 43210"  -> "+919876543210"
        "12345"            -> None
        "5876543210"       -> None
    """
    if not value:
        return None

    digits = _NON_DIGITS.sub("", value)

    # Trunk prefix
    if digits.startswith("0"):
        digits = digits[1:]

    if digits.startswith(COUNTRY_CODE) and len(digits) > 10:
        digits = digits[len(COUNTRY_CODE):]

    if len(digits) > 10:
        digits = digits[-10:]

    if len(digits) != 10 or not digits.startswith(VALID_MOBILE_PREFIXES):
        return None

    return f"+{COUNTRY_CODE}{digits}"


def is_canonical_phone(phone: Optional[str]) -> bool:
    return bool(phone) and CANONICAL_PHONE_PATTERN.match(phone) is not None


def format_phone_for_display(phone: Optional[str]) -> str:
    """Render "+919876543210" as "+91 98765 43210". No validation is done."""
    if not phone:
        return ""
    digits = _NON_DIGITS.sub("", phone)[-10:]
    if len(digits) != 10:
        return phone
    return f"+{COUNTRY_CODE} {digits[:5]} {digits[5:]}"


def build_whatsapp_link(phone: Optional[str], message: str = "", mobile: bool = True) -> Optional[str]:
    """
    Build a click-to-chat URL with a pre-filled message.

    wa.me works on phones; WhatsApp Web is used for desktop browsers.
    Returns None if the phone number is not a valid Indian mobile number.
    """
    canonical = normalize_indian_phone(phone)
    if not canonical:
        return None

    number_digits = canonical.lstrip("+")
    encoded_message = quote(message, safe="")
    if mobile:
        return f"https://wa.me/{number_digits}?text={encoded_message}"
    return f"https://web.whatsapp.com/send?phone={number_digits}&text={encoded_message}"
