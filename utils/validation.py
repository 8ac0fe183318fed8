"""
Input validation utilities for API inputs.
"""

import re
from typing import Any, Optional

from utils.exceptions import InvalidInputError


def parse_id(value: Any, field: str) -> int:
    """
    Parse a positive integer identifier from a query or body value.

    Args:
        value: Raw value (int or numeric string)
        field: Field name used in the error message

    Returns:
        Parsed identifier

    Raises:
        InvalidInputError: If the value is missing or not a positive integer
    """
    if isinstance(value, bool) or value is None:
        raise InvalidInputError(f"{field} is required.")

    if isinstance(value, str):
        value = value.strip()
        if not re.fullmatch(r"\d+", value):
            raise InvalidInputError(f"{field} must be a positive integer.")
        value = int(value)

    if not isinstance(value, int) or value <= 0:
        raise InvalidInputError(f"{field} must be a positive integer.")
    return value


def parse_optional_id(value: Any, field: str) -> Optional[int]:
    """Parse an identifier that may be omitted (None or empty string)."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_id(value, field)


def sanitize_text(text: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Sanitize user input text.

    Args:
        text: Input text
        max_length: Optional maximum length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    # Remove control characters except newlines and tabs
    sanitized = re.sub(r'[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]', '', str(text))

    # Trim whitespace
    sanitized = sanitized.strip()

    # Apply length limit if specified
    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized
