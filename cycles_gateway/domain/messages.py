"""Status messages and rule strings for cycles (pure presentation mapping)"""

from typing import List, Optional

from cycles_gateway.domain.classifier import AMOUNT_EPSILON
from cycles_gateway.domain.models import (
    Cycle,
    CycleDescription,
    CycleRule,
    CycleStatus,
    ObligationKind,
    StatusMessage,
)

GREEN = "#10B981"
EMERALD = "#059669"
INDIGO = "#6366F1"
AMBER = "#F59E0B"
PURPLE = "#8B5CF6"
RED = "#EF4444"
GRAY = "#6B7280"

# Wording for the target rule per obligation kind
_TARGET_LABELS = {
    ObligationKind.LIABILITY: "Target payment",
    ObligationKind.BUDGET: "Spending limit",
    ObligationKind.GOAL: "Contribution target",
    ObligationKind.RECURRING_TRANSACTION: "Expected amount",
}


def format_amount(amount: Optional[float], symbol: str = "$") -> str:
    """Plain amount formatting for rule text"""
    return f"{symbol}{(amount or 0):,.2f}"


def _days(n: int) -> str:
    return f"{n} day{'s' if n != 1 else ''}"


def get_cycle_status_message(cycle: Cycle) -> StatusMessage:
    """Short title/subtitle/color/icon for a cycle's status"""
    status = cycle.status
    tolerance = cycle.tolerance_days

    if status == CycleStatus.PAID_ON_TIME:
        subtitle = f"{cycle.payment_count} payments" if cycle.payment_count > 1 else "On time"
        return StatusMessage("Paid ✓", subtitle, GREEN, "checkmark-circle")

    if status == CycleStatus.PAID_EARLY:
        early = cycle.days_early or abs(cycle.days_from_due or 0)
        return StatusMessage("Paid ✓", f"{_days(early)} early" if early > 0 else "Early", EMERALD, "checkmark-done-circle")

    if status == CycleStatus.PAID_WITHIN_WINDOW:
        after = cycle.days_late or cycle.days_from_due or 0
        subtitle = f"{_days(after)} after due" if after > 0 else "Completed"
        return StatusMessage("Paid ✓", subtitle, INDIGO, "checkmark-circle-outline")

    if status == CycleStatus.PAID_LATE:
        subtitle = f"{_days(cycle.days_late)} late" if cycle.days_late else "After due date"
        return StatusMessage("Paid late", subtitle, AMBER, "time")

    if status == CycleStatus.OVERPAID:
        subtitle = f"Extra {format_amount(cycle.amount_over)} paid" if cycle.amount_over else "More than expected"
        return StatusMessage("Paid more", subtitle, PURPLE, "arrow-up-circle")

    if status == CycleStatus.UNDERPAID:
        if cycle.is_within_window is False:
            subtitle = "Late & incomplete"
        elif cycle.amount_short:
            subtitle = f"Short {format_amount(cycle.amount_short)}"
        else:
            subtitle = "Below target"
        return StatusMessage("Paid less", subtitle, RED, "alert-circle")

    if status == CycleStatus.PARTIAL:
        if cycle.is_within_window:
            subtitle = "Can add more"
        elif cycle.amount_short:
            subtitle = f"{format_amount(cycle.amount_short)} remaining"
        else:
            subtitle = "Partial"
        return StatusMessage("Minimum paid", subtitle, AMBER, "pie-chart")

    if status == CycleStatus.NOT_PAID:
        overdue = cycle.days_late or 0
        if overdue == 0:
            return StatusMessage("Due", "Today", AMBER, "alert")
        if overdue <= tolerance:
            return StatusMessage("Missed", f"{_days(overdue)} past due (within window)", AMBER, "alert")
        return StatusMessage("Missed", f"{_days(overdue)} overdue", RED, "close-circle")

    if status == CycleStatus.UPCOMING:
        until = (cycle.expected_date - cycle.as_of).days
        if until == 0:
            return StatusMessage("Due", "Today", AMBER, "alert")
        if until == 1:
            return StatusMessage("Due", "Tomorrow", INDIGO, "calendar")
        if 0 < until <= 7:
            return StatusMessage("Due", f"In {until} days", INDIGO, "calendar")
        subtitle = f"Due on {cycle.expected_date.strftime('%b')} {cycle.expected_date.day}"
        return StatusMessage("Due", subtitle, GRAY, "calendar-outline")

    return StatusMessage("Unknown", "", GRAY, "ellipse")


def get_cycle_rules(
    cycle: Cycle,
    tolerance: Optional[int] = None,
    minimum_payment_percent: Optional[float] = None,
) -> List[CycleRule]:
    """
    Rules explaining how a cycle is judged.

    Args:
        cycle: The cycle
        tolerance: Days tolerance (default: the cycle's own tolerance)
        minimum_payment_percent: Shown next to the minimum rule when given
    """
    tolerance = cycle.tolerance_days if tolerance is None else tolerance

    rules = [
        CycleRule(f"Payment window: ±{tolerance} days from due date", "calendar", "info"),
        CycleRule("Early: Before due date (bonus)", "checkmark-done", "success"),
    ]
    if tolerance > 1:
        rules.append(CycleRule(f"On time: Due date up to {_days(tolerance - 1)} after", "checkmark", "success"))
    else:
        rules.append(CycleRule("On time: Exactly on due date", "checkmark", "success"))
    if tolerance > 0:
        rules.append(CycleRule(f"Within window: {_days(tolerance)} after due", "checkmark-circle-outline", "info"))
    rules.append(CycleRule(f"Late: More than {_days(tolerance)} after due", "alert", "warning"))

    label = _TARGET_LABELS.get(cycle.obligation_kind, "Target")
    rules.append(CycleRule(f"{label}: Full expected amount", "cash", "info"))

    if cycle.minimum_amount and cycle.minimum_amount > 0:
        text = "Minimum required: At least this amount"
        if minimum_payment_percent:
            text = f"Minimum required: At least {minimum_payment_percent:g}% of target"
        rules.append(CycleRule(text, "remove-circle", "warning"))

    rules.append(CycleRule("Multiple payments: Allowed within window", "layers", "info"))
    rules.append(CycleRule(f"Amount tolerance: ±{AMOUNT_EPSILON:.2f} for exact match", "swap-horizontal", "info"))

    if cycle.is_overridden:
        rules.append(CycleRule("Custom target for this cycle", "create", "info"))

    return rules


def get_cycle_rules_simple(cycle: Cycle, tolerance: Optional[int] = None) -> List[str]:
    """Rule strings without icons"""
    tolerance = cycle.tolerance_days if tolerance is None else tolerance
    rules = [
        f"Payment window: ±{tolerance} days",
        "Multiple payments: Allowed",
        "Early payment: Encouraged",
        f"Amount tolerance: ±{AMOUNT_EPSILON:.2f}",
    ]
    if cycle.minimum_amount and cycle.minimum_amount > 0:
        rules.insert(1, f"Minimum: {format_amount(cycle.minimum_amount)}")
    return rules


def describe(cycle: Cycle) -> CycleDescription:
    """Title/subtitle/icon/color plus the facts behind this cycle's classification"""
    message = get_cycle_status_message(cycle)
    tolerance = cycle.tolerance_days
    label = _TARGET_LABELS.get(cycle.obligation_kind, "Target")

    facts = [
        f"Payment window: ±{tolerance} days",
        f"{label} {format_amount(cycle.expected_amount)}",
    ]
    if cycle.minimum_amount and cycle.minimum_amount > 0:
        facts.append(f"Minimum {format_amount(cycle.minimum_amount)} required")
    if cycle.payment_count > 1:
        facts.append(f"Multiple payments allowed ({cycle.payment_count} made)")
    else:
        facts.append("Multiple payments allowed")

    if cycle.payment_count > 0:
        if cycle.is_within_window:
            facts.append(f"Payment within ±{tolerance} day window ✓")
        else:
            facts.append(f"Payment outside ±{tolerance} day window ✗")
    if cycle.amount_short and cycle.amount_short > AMOUNT_EPSILON and cycle.status != CycleStatus.UPCOMING:
        facts.append(f"Short by {format_amount(cycle.amount_short)}")
    if cycle.amount_over and cycle.amount_over > AMOUNT_EPSILON:
        facts.append(f"Over by {format_amount(cycle.amount_over)}")
    if cycle.is_overridden:
        facts.append("Override applied")

    return CycleDescription(
        title=message.title,
        subtitle=message.subtitle,
        icon=message.icon,
        color=message.color,
        rules=facts,
    )
