"""
Validation utilities
"""

import re
from datetime import date, datetime, time
from typing import Any, Iterable, List, Optional
from clearflow.utils.exceptions import ValidationError


def validate_email(email: str) -> bool:
    """
    Validate email format

    Args:
        email: Email to validate

    Returns:
        True if valid email
    """
    if not email or not isinstance(email, str):
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email.strip()))


def validate_required(value: Any, field_name: str) -> None:
    """
    Validate required field

    Args:
        value: Value to validate
        field_name: Name of the field for error message

    Raises:
        ValidationError: If value is empty or None
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field_name} is required")


def validate_string_length(value: str, min_length: int = 1, max_length: Optional[int] = None,
                          field_name: str = "Field") -> None:
    """
    Validate string length

    Args:
        value: String to validate
        min_length: Minimum length
        max_length: Maximum length
        field_name: Name of the field for error message

    Raises:
        ValidationError: If length is invalid
    """
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")

    if len(value) < min_length:
        raise ValidationError(f"{field_name} must be at least {min_length} characters")

    if max_length and len(value) > max_length:
        raise ValidationError(f"{field_name} must be no more than {max_length} characters")


def validate_phone_number(phone: str) -> bool:
    """
    Validate phone number format

    Args:
        phone: Phone number to validate

    Returns:
        True if valid phone number
    """
    if not phone or not isinstance(phone, str):
        return False

    # Remove all non-digit characters
    digits_only = re.sub(r'\D', '', phone)

    # Check if it's a valid length (7-15 digits)
    return 7 <= len(digits_only) <= 15


def validate_choice(value: Any, choices: Iterable[str], field_name: str) -> None:
    """
    Validate that value is one of the allowed choices

    Raises:
        ValidationError: If value is not allowed
    """
    allowed = tuple(choices)
    if value not in allowed:
        raise ValidationError(f"{field_name} must be one of: {', '.join(allowed)}")


def validate_id_list(values: Any, field_name: str) -> List[int]:
    """
    Validate a non-empty list of distinct integer ids

    Args:
        values: Raw list from the caller
        field_name: Name of the field for error message

    Returns:
        The ids as integers, in the given order

    Raises:
        ValidationError: If the list is empty, malformed or has duplicates
    """
    if not isinstance(values, (list, tuple)) or not values:
        raise ValidationError(f"{field_name} must be a non-empty list")

    ids = []
    for value in values:
        if isinstance(value, bool):
            raise ValidationError(f"{field_name} must contain integer ids")
        try:
            ids.append(int(value))
        except (TypeError, ValueError):
            raise ValidationError(f"{field_name} must contain integer ids")

    if len(set(ids)) != len(ids):
        raise ValidationError(f"{field_name} must not contain duplicates")

    return ids


def parse_date_bound(value: Any, field_name: str, end_of_day: bool = False) -> datetime:
    """
    Parse a report range bound

    Date-only values cover the whole day: the start bound snaps to midnight
    and the end bound to the last microsecond of the day.

    Raises:
        ValidationError: If value is missing or not ISO formatted
    """
    validate_required(value, field_name)

    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.max if end_of_day else time.min)

    text = str(value).strip()
    try:
        if len(text) == 10:
            parsed_date = date.fromisoformat(text)
            return datetime.combine(parsed_date, time.max if end_of_day else time.min)
        return datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO date or datetime")
