"""
Datetime utilities for consistent timezone handling across the application.
All scheduling arithmetic is done on timezone-aware UTC datetimes.
"""

from datetime import date, datetime, time, timezone
from typing import Union


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normalize a datetime to timezone-aware UTC.

    Naive datetimes are interpreted as UTC; aware datetimes are converted.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def start_of_day(day: Union[date, datetime]) -> datetime:
    """Return midnight UTC of the given calendar date, ignoring time of day."""
    if isinstance(day, datetime):
        day = ensure_utc(day).date()
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def parse_iso_datetime(iso_string: str) -> datetime:
    """
    Parse ISO format datetime string to timezone-aware datetime.
    Handles both 'Z' suffix and '+00:00' timezone formats.

    Args:
        iso_string: ISO format datetime string

    Returns:
        Timezone-aware UTC datetime object

    Raises:
        ValueError: If datetime string cannot be parsed
    """
    if not isinstance(iso_string, str):
        raise ValueError(f"Invalid datetime string: {iso_string!r}")

    # Normalize 'Z' suffix to '+00:00'
    normalized = iso_string.strip().replace("Z", "+00:00")

    try:
        return ensure_utc(datetime.fromisoformat(normalized))
    except ValueError as e:
        raise ValueError(f"Invalid datetime string: {iso_string}") from e


def parse_iso_date(iso_string: str) -> date:
    """
    Parse a calendar date, accepting either 'YYYY-MM-DD' or a full datetime.

    Raises:
        ValueError: If the string cannot be parsed
    """
    if not isinstance(iso_string, str) or not iso_string.strip():
        raise ValueError(f"Invalid date string: {iso_string!r}")

    try:
        return date.fromisoformat(iso_string.strip())
    except ValueError:
        return parse_iso_datetime(iso_string).date()


def to_iso_string(dt: datetime) -> str:
    """
    Convert datetime to ISO format string in UTC.

    Args:
        dt: Datetime object (timezone-aware or naive)

    Returns:
        ISO format string
    """
    return ensure_utc(dt).isoformat()
