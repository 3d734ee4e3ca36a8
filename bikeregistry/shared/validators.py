"""Shared validation utilities"""

import re
import uuid
from typing import Optional

EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
# CURP: 4 letters, birth date YYMMDD, sex, state (2), internal consonants (3), homoclave, check digit
CURP_PATTERN = r"^[A-Z]{4}\d{6}[HM][A-Z]{5}[0-9A-Z]\d$"
MX_PHONE_PATTERN = r"^(\+?52)?\s*(\d{2,3})[\s-]?(\d{3,4})[\s-]?(\d{4})$"


def validate_uuid(value: str) -> bool:
    """Validate UUID format"""
    try:
        uuid.UUID(value)
        return True
    except (ValueError, AttributeError):
        return False


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()
    if not re.match(EMAIL_PATTERN, email):
        raise ValueError("Invalid email format")

    return email


def validate_curp(curp: Optional[str]) -> Optional[str]:
    """
    Validate a CURP and return it uppercased.

    Raises:
        ValueError: If the CURP does not have the official 18-character layout
    """
    if not curp:
        return curp

    curp = curp.strip().upper()
    if not re.match(CURP_PATTERN, curp):
        raise ValueError("Invalid CURP format")

    return curp


def validate_mx_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a Mexican phone number (10 digits, optional +52 prefix).

    Returns:
        The phone number stripped of surrounding whitespace

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    phone = phone.strip()
    if not re.match(MX_PHONE_PATTERN, phone):
        raise ValueError("Invalid phone number. Use a 10 digit Mexican number")

    digits = re.sub(r"\D", "", phone)
    if digits.startswith("52") and len(digits) == 12:
        digits = digits[2:]
    if len(digits) != 10:
        raise ValueError("Phone number must have 10 digits")

    return phone
