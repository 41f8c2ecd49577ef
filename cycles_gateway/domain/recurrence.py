"""Recurrence vocabulary and calendar stepping for cycle windows"""

from datetime import date
from typing import Dict, Tuple

from cycles_gateway.domain.exceptions import InvalidRecurrenceError
from cycles_gateway.domain.models import Frequency, Recurrence
from cycles_gateway.utils.date_utils import shift

# Stored data uses several vocabularies (UI tokens, DB tokens, legacy spellings)
FREQUENCY_ALIASES: Dict[str, Frequency] = {
    "daily": Frequency.DAILY,
    "day": Frequency.DAILY,
    "weekly": Frequency.WEEKLY,
    "week": Frequency.WEEKLY,
    "biweekly": Frequency.BIWEEKLY,
    "bi-weekly": Frequency.BIWEEKLY,
    "fortnightly": Frequency.BIWEEKLY,
    "monthly": Frequency.MONTHLY,
    "month": Frequency.MONTHLY,
    "bimonthly": Frequency.BIMONTHLY,
    "bi-monthly": Frequency.BIMONTHLY,
    "quarterly": Frequency.QUARTERLY,
    "quarter": Frequency.QUARTERLY,
    "semiannual": Frequency.SEMIANNUAL,
    "semi-annual": Frequency.SEMIANNUAL,
    "halfyearly": Frequency.SEMIANNUAL,
    "half-yearly": Frequency.SEMIANNUAL,
    "annual": Frequency.ANNUAL,
    "annually": Frequency.ANNUAL,
    "yearly": Frequency.ANNUAL,
    "year": Frequency.ANNUAL,
}

CUSTOM_UNITS: Dict[str, Frequency] = {
    "day": Frequency.DAILY,
    "days": Frequency.DAILY,
    "daily": Frequency.DAILY,
    "week": Frequency.WEEKLY,
    "weeks": Frequency.WEEKLY,
    "weekly": Frequency.WEEKLY,
    "month": Frequency.MONTHLY,
    "months": Frequency.MONTHLY,
    "monthly": Frequency.MONTHLY,
    "quarter": Frequency.QUARTERLY,
    "quarters": Frequency.QUARTERLY,
    "quarterly": Frequency.QUARTERLY,
    "year": Frequency.ANNUAL,
    "years": Frequency.ANNUAL,
    "yearly": Frequency.ANNUAL,
}

# (months, days) advanced per single step
STEPS: Dict[Frequency, Tuple[int, int]] = {
    Frequency.DAILY: (0, 1),
    Frequency.WEEKLY: (0, 7),
    Frequency.BIWEEKLY: (0, 14),
    Frequency.MONTHLY: (1, 0),
    Frequency.BIMONTHLY: (2, 0),
    Frequency.QUARTERLY: (3, 0),
    Frequency.SEMIANNUAL: (6, 0),
    Frequency.ANNUAL: (12, 0),
}

PERIODS_PER_YEAR: Dict[Frequency, int] = {
    Frequency.DAILY: 365,
    Frequency.WEEKLY: 52,
    Frequency.BIWEEKLY: 26,
    Frequency.MONTHLY: 12,
    Frequency.BIMONTHLY: 6,
    Frequency.QUARTERLY: 4,
    Frequency.SEMIANNUAL: 2,
    Frequency.ANNUAL: 1,
}


def resolve_recurrence(recurrence: Recurrence) -> Tuple[Frequency, int]:
    """
    Normalize a recurrence to (canonical frequency, interval).

    Raises:
        InvalidRecurrenceError: Unknown frequency/custom unit or non-positive interval
    """
    interval = recurrence.interval
    if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
        raise InvalidRecurrenceError(f"Interval must be a positive integer, got {interval!r}")

    token = str(recurrence.frequency or "").strip().lower()
    if token == "custom":
        unit = str(recurrence.custom_unit or "").strip().lower()
        if unit not in CUSTOM_UNITS:
            raise InvalidRecurrenceError(f"Unrecognized custom unit: {recurrence.custom_unit!r}")
        return CUSTOM_UNITS[unit], interval

    if token not in FREQUENCY_ALIASES:
        raise InvalidRecurrenceError(f"Unrecognized frequency: {recurrence.frequency!r}")
    return FREQUENCY_ALIASES[token], interval


def is_month_based(frequency: Frequency) -> bool:
    return STEPS[frequency][0] > 0


def window_start(anchor: date, frequency: Frequency, interval: int, index: int) -> date:
    """
    Start of the window `index` steps after the anchor (index 0 is the anchor).

    Always computed from the anchor so month-end clamping never drifts:
    Jan 31 -> Feb 29 -> Mar 31.
    """
    months, days = STEPS[frequency]
    return shift(anchor, months=months * interval * index, days=days * interval * index)


def periods_per_year(frequency: Frequency, interval: int) -> float:
    return PERIODS_PER_YEAR[frequency] / interval


def count_cycles_until(anchor: date, frequency: Frequency, interval: int, end: date, limit: int = 1000) -> int:
    """Number of windows starting on or before `end` (at least 1)"""
    count = 0
    while count < limit and window_start(anchor, frequency, interval, count) <= end:
        count += 1
    return max(count, 1)
