# backend/phone.py
import re
from typing import Optional

_NON_DIGITS = re.compile(r"[^\d]")


def normalize_phone(raw: Optional[str], default_country_code: str) -> str:
    """
    Convert a free-form phone number into "+<digits>" dialable form.

    Args:
        raw: Phone number as typed by the client ("0599 123 456", "+1 555 0100", ...)
        default_country_code: Digits-only country code used for local numbers

    Returns:
        The normalized number, or an empty string when the input holds no digits
    """
    if not raw:
        return ""

    raw = raw.strip()
    digits = _NON_DIGITS.sub("", raw)
    if not digits:
        return ""

    # Already fully qualified
    if raw.startswith("+"):
        return "+" + digits

    if digits.startswith(default_country_code) or digits.startswith("1"):
        return "+" + digits

    # Local trunk prefix
    if digits.startswith("0"):
        return "+" + default_country_code + digits[1:]

    return "+" + default_country_code + digits


def is_dialable(phone: Optional[str], min_length: int) -> bool:
    """True for a normalized "+<digits>" number at least min_length characters long."""
    if not phone or not phone.startswith("+"):
        return False
    return phone[1:].isdigit() and len(phone) >= min_length
