"""Shared validation utilities"""

import re

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
BOOKING_ID_RE = re.compile(r"^[a-zA-Z0-9_-]+$")
US_PHONE_RE = re.compile(r"^\+?1?[-.\s]?\(?([0-9]{3})\)?[-.\s]?([0-9]{3})[-.\s]?([0-9]{4})$")
TIME_RE = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")


def is_valid_email(email: str) -> bool:
    return bool(email) and EMAIL_RE.match(email) is not None


def is_valid_booking_id(booking_id: str) -> bool:
    """At least 8 characters of letters, digits, ``_`` or ``-``."""
    return bool(booking_id) and len(booking_id) >= 8 and BOOKING_ID_RE.match(booking_id) is not None


def is_valid_us_phone(phone: str) -> bool:
    return bool(phone) and US_PHONE_RE.match(phone.strip()) is not None


def is_valid_time(value: str) -> bool:
    """24h ``HH:MM``"""
    return bool(value) and TIME_RE.match(value) is not None


def format_phone_number(phone: str) -> str:
    """
    Normalize a US phone number to E.164 (+1XXXXXXXXXX).

    Numbers that are not 10 digits (or 11 starting with 1) are returned unchanged.
    """
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 10:
        return f"+1{digits}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"
    return phone
