"""Date manipulation utilities"""

from datetime import date, datetime, timedelta
from typing import Any, Optional

from dateutil.relativedelta import relativedelta


def parse_date(value: Any) -> Optional[date]:
    """Parse a date, datetime or ISO string (timestamps are truncated to the date); None if unparseable"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def shift(anchor: date, months: int = 0, days: int = 0) -> date:
    """Move a date by whole months (day clamped to month end) and/or days"""
    return anchor + relativedelta(months=months, days=days)


def day_before(value: date) -> date:
    return value - timedelta(days=1)


def clamp(value: date, lower: date, upper: date) -> date:
    """Clamp a date into [lower, upper]"""
    return max(lower, min(value, upper))
