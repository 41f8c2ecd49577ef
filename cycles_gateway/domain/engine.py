"""Cycle engine - composes generation, overrides, attribution and classification"""

from datetime import date, timedelta
from typing import Iterable, List, Optional

from cycles_gateway.domain.attribution import attribute
from cycles_gateway.domain.boundaries import DEFAULT_MAX_CYCLES, apply_overrides, generate_cycles
from cycles_gateway.domain.classifier import apply_classification
from cycles_gateway.domain.models import (
    PAID_STATUSES,
    Bill,
    Cycle,
    CycleStatistics,
    CycleStatus,
    Obligation,
    Transaction,
)
from cycles_gateway.domain.obligations import DEFAULT_LIABILITY_TOLERANCE_DAYS

_GOOD_STREAK_STATUSES = frozenset(
    {
        CycleStatus.PAID_ON_TIME,
        CycleStatus.PAID_EARLY,
        CycleStatus.PAID_WITHIN_WINDOW,
        CycleStatus.OVERPAID,
    }
)


def compute_cycles(
    obligation: Obligation,
    transactions: Iterable[Transaction],
    bills: Iterable[Bill],
    as_of: date,
    max_cycles: int = DEFAULT_MAX_CYCLES,
) -> List[Cycle]:
    """
    Main entry point: obligation + history snapshot -> classified cycles.

    Flow:
    1. Generate contiguous cycle windows up to the horizon
    2. Patch user overrides onto their cycles
    3. Attribute transactions and bills to cycles
    4. Classify each cycle

    Deterministic: the only notion of "today" is as_of.
    """
    cycles = generate_cycles(obligation, as_of, max_cycles)
    cycles = apply_overrides(cycles, obligation.overrides, obligation.cycle_notes)
    cycles = attribute(cycles, transactions, bills)
    return [apply_classification(cycle) for cycle in cycles]


def get_cycle_by_number(cycles: List[Cycle], cycle_number: int) -> Optional[Cycle]:
    return next((c for c in cycles if c.cycle_number == cycle_number), None)


def get_current_cycle(cycles: List[Cycle], as_of: date) -> Optional[Cycle]:
    """Cycle whose window contains as_of"""
    return next((c for c in cycles if c.start_date <= as_of <= c.end_date), None)


def get_upcoming_cycles(cycles: List[Cycle], as_of: date) -> List[Cycle]:
    return [c for c in cycles if c.start_date > as_of]


def get_past_cycles(cycles: List[Cycle], as_of: date) -> List[Cycle]:
    return [c for c in cycles if c.end_date < as_of]


def find_cycle_for_payment(
    cycles: List[Cycle],
    payment_date: date,
    tolerance: int = DEFAULT_LIABILITY_TOLERANCE_DAYS,
) -> Optional[int]:
    """Cycle number whose window, widened by tolerance on both sides, contains the date"""
    grace = timedelta(days=tolerance)
    for cycle in cycles:
        if cycle.start_date - grace <= payment_date <= cycle.end_date + grace:
            return cycle.cycle_number
    return None


def get_cycles_needing_bills(cycles: List[Cycle], today: date, days_before: int = 3) -> List[Cycle]:
    """Cycles whose bill should be generated today (days_before their due date)"""
    return [c for c in cycles if c.expected_date - timedelta(days=days_before) == today]


def get_cycle_statistics(cycles: List[Cycle]) -> CycleStatistics:
    """
    Summarize a list of classified cycles.

    Rates are percentages rounded to one decimal:
    - completion: paid cycles / all cycles
    - on-time: (early + on time + within window) / paid cycles
    - window compliance: within-window payments / all cycles with a payment
    """
    total = len(cycles)

    def count(status: CycleStatus) -> int:
        return sum(1 for c in cycles if c.status == status)

    paid = sum(1 for c in cycles if c.status in PAID_STATUSES)
    paid_early = count(CycleStatus.PAID_EARLY)
    paid_on_time = count(CycleStatus.PAID_ON_TIME)
    paid_within_window = count(CycleStatus.PAID_WITHIN_WINDOW)

    within_window = sum(1 for c in cycles if c.payment_count > 0 and c.is_within_window)
    outside_window = sum(1 for c in cycles if c.payment_count > 0 and c.is_within_window is False)

    total_expected = round(sum(c.expected_amount for c in cycles), 2)
    total_actual = round(sum(c.actual_amount for c in cycles), 2)

    completion_rate = paid / total * 100 if total else 0.0
    on_time_rate = (paid_early + paid_on_time + paid_within_window) / paid * 100 if paid else 0.0
    compliance_base = within_window + outside_window
    window_compliance_rate = within_window / compliance_base * 100 if compliance_base else 100.0

    # Consecutive good cycles counting back from the latest, skipping upcoming ones
    streak = 0
    for cycle in sorted(cycles, key=lambda c: c.cycle_number, reverse=True):
        if cycle.status in _GOOD_STREAK_STATUSES:
            streak += 1
        elif cycle.status != CycleStatus.UPCOMING:
            break

    return CycleStatistics(
        total=total,
        paid=paid,
        not_paid=count(CycleStatus.NOT_PAID),
        upcoming=count(CycleStatus.UPCOMING),
        paid_early=paid_early,
        paid_on_time=paid_on_time,
        paid_within_window=paid_within_window,
        paid_late=count(CycleStatus.PAID_LATE),
        underpaid=count(CycleStatus.UNDERPAID),
        overpaid=count(CycleStatus.OVERPAID),
        partial=count(CycleStatus.PARTIAL),
        within_window=within_window,
        outside_window=outside_window,
        total_expected=total_expected,
        total_actual=total_actual,
        completion_rate=round(completion_rate, 1),
        on_time_rate=round(on_time_rate, 1),
        window_compliance_rate=round(window_compliance_rate, 1),
        current_streak=streak,
        average_payment=round(total_actual / paid, 2) if paid else 0.0,
    )
