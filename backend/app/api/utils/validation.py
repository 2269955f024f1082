"""Validation utilities."""
import re
from typing import Optional

from email_validator import EmailNotValidError, validate_email


MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    """
    Normalize email address for consistent storage and comparison.

    - Converts to lowercase for case-insensitive comparison
    - Strips leading/trailing whitespace

    Examples:
        >>> normalize_email("  John.Doe@EXAMPLE.COM  ")
        "john.doe@example.com"
    """
    if not email:
        return email
    return email.strip().lower()


def validate_email_address(email: str) -> str:
    """
    Validate an email address the same way ``EmailStr`` does and return it normalized.

    Deliverability (DNS) is not checked.

    Raises:
        ValueError: If the address is not syntactically valid
    """
    try:
        validated = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(str(exc)) from exc
    return normalize_email(validated.normalized)


def normalize_mobile(mobile_no: Optional[str]) -> Optional[str]:
    """Strip spaces and dashes from a phone number; empty values become None."""
    if mobile_no is None:
        return None
    cleaned = re.sub(r"[\s\-()]", "", str(mobile_no))
    return cleaned or None
