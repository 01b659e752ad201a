"""Time and date utilities.

All timestamps are persisted as naive UTC datetimes. These helpers normalize
incoming values so comparisons never mix aware and naive datetimes.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """
    Convert a datetime to naive UTC.

    Aware datetimes are shifted to UTC and stripped of their tzinfo; naive
    datetimes are assumed to already be UTC and returned unchanged.

    Examples:
        >>> from datetime import timedelta
        >>> bangkok = timezone(timedelta(hours=7))
        >>> to_utc_naive(datetime(2024, 1, 15, 17, 30, tzinfo=bangkok))
        datetime.datetime(2024, 1, 15, 10, 30)
        >>> to_utc_naive(None) is None
        True
    """
    if value is None:
        return None
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def is_in_future(value: datetime, now: Optional[datetime] = None) -> bool:
    """Return True when ``value`` lies strictly after ``now`` (default: current UTC time)."""
    reference = now if now is not None else utcnow()
    return to_utc_naive(value) > reference
