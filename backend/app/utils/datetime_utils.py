"""
Datetime utilities
All persisted timestamps are UTC.
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Current UTC time with timezone awareness

    Example:
        >>> from app.utils.datetime_utils import utc_now
        >>> utc_now().tzinfo
        datetime.timezone.utc
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to aware UTC.

    Naive values are assumed to already be UTC (this is how SQLite hands
    back timezone-aware columns).
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
