"""Cycle status classifier - total, pure mapping from cycle state to status"""

from dataclasses import dataclass, replace
from datetime import date
from typing import Optional

from cycles_gateway.domain.models import Cycle, CycleStatus, PaymentTiming
from cycles_gateway.domain.timing import classify_timing, is_within_window

AMOUNT_EPSILON = 0.01

_PAID_BY_TIMING = {
    PaymentTiming.EARLY: CycleStatus.PAID_EARLY,
    PaymentTiming.ON_TIME: CycleStatus.PAID_ON_TIME,
    PaymentTiming.WITHIN_WINDOW: CycleStatus.PAID_WITHIN_WINDOW,
    PaymentTiming.LATE: CycleStatus.PAID_LATE,
}


@dataclass
class CycleClassification:
    """Status plus the derived amount/timing figures"""

    status: CycleStatus
    timing_status: Optional[PaymentTiming] = None
    is_within_window: Optional[bool] = None
    days_from_due: Optional[int] = None
    days_late: Optional[int] = None
    days_early: Optional[int] = None
    amount_short: Optional[float] = None
    amount_over: Optional[float] = None


def classify_cycle(cycle: Cycle, epsilon: float = AMOUNT_EPSILON) -> CycleClassification:
    """
    Classify a cycle. Never raises.

    Decision order (first match wins):
    1. Nothing paid, as_of before due date       -> upcoming
    2. Nothing paid, as_of on/after due date     -> not_paid
    3. Paid at least the expected amount         -> overpaid (on time, above target)
                                                    or paid_early / paid_on_time /
                                                    paid_within_window / paid_late
    4. Minimum set and met                       -> partial
    5. Anything else                             -> underpaid
    """
    expected = _as_amount(cycle.expected_amount)
    actual = _as_amount(cycle.actual_amount)
    tolerance = max(0, int(cycle.tolerance_days or 0))
    today = cycle.as_of

    if actual <= epsilon:
        if today < cycle.expected_date:
            return CycleClassification(status=CycleStatus.UPCOMING)
        overdue = (today - cycle.expected_date).days
        return CycleClassification(
            status=CycleStatus.NOT_PAID,
            is_within_window=False,
            days_from_due=overdue,
            days_late=overdue,
            amount_short=_money(max(0.0, expected)),
            amount_over=0.0,
        )

    # Missing payment date degrades to the snapshot date
    paid_on = cycle.actual_date or today
    diff = (paid_on - cycle.expected_date).days
    timing = _tagged_timing(cycle, paid_on) or classify_timing(paid_on, cycle.expected_date, tolerance)
    within = is_within_window(paid_on, cycle.expected_date, tolerance)

    amount_short = _money(max(0.0, expected - actual))
    amount_over = _money(max(0.0, actual - expected))

    if actual >= expected - epsilon:
        if actual > expected + epsilon and timing == PaymentTiming.ON_TIME:
            status = CycleStatus.OVERPAID
        else:
            status = _PAID_BY_TIMING[timing]
        # Within epsilon counts as exact
        if amount_short <= epsilon:
            amount_short = 0.0
        if amount_over <= epsilon:
            amount_over = 0.0
    elif cycle.minimum_amount is not None and actual >= _as_amount(cycle.minimum_amount) - epsilon:
        status = CycleStatus.PARTIAL
    else:
        status = CycleStatus.UNDERPAID

    return CycleClassification(
        status=status,
        timing_status=timing,
        is_within_window=within,
        days_from_due=diff,
        days_late=diff if diff > 0 else None,
        days_early=-diff if diff < 0 else None,
        amount_short=amount_short,
        amount_over=amount_over,
    )


def apply_classification(cycle: Cycle, epsilon: float = AMOUNT_EPSILON) -> Cycle:
    """Return a copy of the cycle carrying its classification"""
    result = classify_cycle(cycle, epsilon)
    return replace(
        cycle,
        status=result.status,
        timing_status=result.timing_status,
        is_within_window=result.is_within_window,
        days_from_due=result.days_from_due,
        days_late=result.days_late,
        days_early=result.days_early,
        amount_short=result.amount_short,
        amount_over=result.amount_over,
    )


def _tagged_timing(cycle: Cycle, paid_on: date) -> Optional[PaymentTiming]:
    """Timing tag attribution put on the latest payment (carry-backs are within_window)"""
    for tx in reversed(cycle.transactions):
        if tx.date != paid_on:
            continue
        try:
            return PaymentTiming((tx.metadata or {}).get("payment_timing"))
        except (TypeError, ValueError):
            return None
    return None


def _as_amount(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _money(value: float) -> float:
    return round(value, 2)
