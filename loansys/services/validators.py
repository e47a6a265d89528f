"""
Validation functions for loan requests and user data
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Union

from ..exceptions import ValidationError
from ..models.loan import MAX_DURATION_MONTHS

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def parse_amount(amount: Union[int, float, str, Decimal], field: str = "amount") -> Decimal:
    """
    Parse and validate a positive monetary amount

    Args:
        amount: Amount to validate
        field: Field name reported in the error

    Returns:
        The amount as Decimal

    Raises:
        ValidationError: If amount is missing, malformed or not positive
    """
    if amount is None or isinstance(amount, bool):
        raise ValidationError("Amount cannot be empty", field, amount)

    try:
        if isinstance(amount, str):
            cleaned = amount.replace(",", "").strip()
            if not cleaned:
                raise ValidationError("Invalid amount format", field, amount)
            value = Decimal(cleaned)
        else:
            value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise ValidationError("Invalid amount format", field, amount)

    if not value.is_finite() or value <= 0:
        raise ValidationError("Amount and duration must be positive.", field, amount)
    return value


def parse_duration(duration: Union[int, str], field: str = "duration") -> int:
    """Parse a tenure in whole months, between one and ``MAX_DURATION_MONTHS``."""
    if duration is None or isinstance(duration, bool):
        raise ValidationError("Duration cannot be empty", field, duration)
    try:
        value = Decimal(str(duration).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Invalid duration format", field, duration)

    if not value.is_finite() or value != value.to_integral_value():
        raise ValidationError("Duration must be a whole number of months", field, duration)
    if value <= 0:
        raise ValidationError("Amount and duration must be positive.", field, duration)
    if value > MAX_DURATION_MONTHS:
        raise ValidationError(f"Duration cannot exceed {MAX_DURATION_MONTHS} months", field, duration)
    return int(value)


def require_text(value: Any, field: str, message: str = None) -> str:
    """Return the stripped value or raise if it is blank."""
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError(message or f"Please enter your {field}.", field, value)
    return text


def validate_email(email: Any) -> str:
    """Normalize and validate an email address."""
    normalized = email.strip().lower() if isinstance(email, str) else ""
    if not EMAIL_PATTERN.match(normalized):
        raise ValidationError("Please enter a valid email address.", "email", email)
    return normalized
