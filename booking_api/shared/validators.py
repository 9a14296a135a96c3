"""Shared validation utilities"""

import re
from datetime import time
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
SLOT_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")
    return email


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize a phone number to E.164-ish form for SMS/WhatsApp delivery.

    Bare 10-digit numbers are treated as US numbers; anything else keeps its
    own country code.

    Raises:
        ValueError: If the number has too few or too many digits
    """
    if not phone or not phone.strip():
        return None

    digits = re.sub(r"\D", "", phone)
    if len(digits) == 10:
        return f"+1{digits}"
    if not 10 < len(digits) <= 15:
        raise ValueError("Phone number must have between 10 and 15 digits")
    return f"+{digits}"


def parse_slot_string(value: str) -> time:
    """Parse an "HH:MM" slot label"""
    match = SLOT_TIME_PATTERN.match(value or "")
    if not match:
        raise ValueError("Time must be in HH:MM format")
    return time(int(match.group(1)), int(match.group(2)))


def sanitize_string(value: Optional[str], max_length: int = 1000) -> Optional[str]:
    """Trim whitespace and cap length; empty strings become None"""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    return value[:max_length]
