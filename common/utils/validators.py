"""
Identifier classification.

Decides whether a raw login identifier is an email address, a username or
a phone number. Everything here is pure and cheap enough to run on every
keystroke.

Example:
    from common.utils import classify_identifier, LoginType

    if classify_identifier(text) is LoginType.EMAIL:
        ...
"""

import re
from enum import Enum
from typing import Optional


class LoginType(str, Enum):
    """Kind of credential an identifier represents."""

    EMAIL = "email"
    USERNAME = "username"
    PHONE = "phone"
    UNKNOWN = "unknown"


EMAIL_PATTERN = re.compile(
    r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,64}",
    re.IGNORECASE | re.ASCII,
)
USERNAME_PATTERN = re.compile(r"[A-Za-z0-9.-]{3,30}", re.ASCII)
PHONE_PATTERN = re.compile(r"\+?[1-9][0-9]{1,14}", re.ASCII)

PHONE_MIN_LENGTH = 8


def is_valid_email(value: str) -> bool:
    return EMAIL_PATTERN.fullmatch(value) is not None


def is_valid_username(value: str) -> bool:
    return USERNAME_PATTERN.fullmatch(value) is not None


def normalize_phone_number(value: str) -> str:
    """
    Strip everything except digits and a leading ``+``.

    Args:
        value: Phone number as typed, e.g. ``"+1 (555) 123-4567"``

    Returns:
        The stripped form, e.g. ``"+15551234567"``
    """
    trimmed = value.strip()
    digits = "".join(ch for ch in trimmed if "0" <= ch <= "9")
    if trimmed.startswith("+"):
        return "+" + digits
    return digits


def is_valid_phone(value: str) -> bool:
    stripped = normalize_phone_number(value)
    return (
        PHONE_PATTERN.fullmatch(stripped) is not None
        and len(stripped) >= PHONE_MIN_LENGTH
    )


def classify_identifier(value: str) -> LoginType:
    """
    Classify a login identifier.

    Patterns are tried in priority order (email, username, phone) and the
    first match wins. A digits-only string that also fits the username
    pattern is therefore a username; a leading ``+`` rules the username
    pattern out.

    Args:
        value: Raw identifier

    Returns:
        The matching LoginType, or LoginType.UNKNOWN
    """
    if is_valid_email(value):
        return LoginType.EMAIL
    if is_valid_username(value):
        return LoginType.USERNAME
    if is_valid_phone(value):
        return LoginType.PHONE
    return LoginType.UNKNOWN


def email_local_part(email: Optional[str]) -> str:
    """Text before the ``@`` (empty when there is none)."""
    if not email or "@" not in email:
        return ""
    return email.split("@", 1)[0]


def mask_phone_number(value: Optional[str]) -> str:
    """Mask a phone number for logs, keeping the last four digits."""
    if not value:
        return "<none>"
    stripped = normalize_phone_number(value)
    return f"***{stripped[-4:]}"
