"""
Utility functions for the application.
"""
import re
from typing import Any, Dict, Optional
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

CNIC_PATTERN = re.compile(r"^\d{13}$")


def is_valid_cnic(value: Optional[str]) -> bool:
    """National identity numbers are exactly 13 digits, no dashes."""
    return bool(value) and CNIC_PATTERN.match(value) is not None


def to_cents(amount: Any) -> int:
    """Convert a money amount to integer cents."""
    if amount is None:
        return 0
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return int(value * 100)


def from_cents(cents: int) -> Decimal:
    """Convert integer cents back to a two-decimal amount."""
    return (Decimal(cents) / 100).quantize(Decimal("0.01"))


def normalize_pk_phone(number: Optional[str]) -> Optional[str]:
    """
    Normalize a Pakistani phone number to the 92XXXXXXXXXX form (no plus sign).
    Returns None when nothing usable is left.
    """
    if not number:
        return None
    digits = re.sub(r"\D", "", str(number))
    if not digits:
        return None
    if digits.startswith("0092"):
        digits = "92" + digits[4:]
    elif digits.startswith("0"):
        digits = "92" + digits[1:]
    elif not digits.startswith("92") and len(digits) == 10:
        digits = "92" + digits
    return digits


def format_timestamp(value: datetime) -> str:
    """Human-readable timestamp used in notification text."""
    return value.strftime("%d %b %Y, %I:%M %p")


def format_error(message: str, code: str, details: Any = None) -> Dict[str, Any]:
    """Format error response."""
    response = {"detail": message, "code": code}
    if details:
        response["details"] = details
    return response
