"""
Per-kind cycle conventions.

Each obligation kind supplies only what differs between kinds: where the due
date sits inside a window, what amount each cycle expects, and the default
tolerance window. Everything else is shared by the engine.

| Kind                  | Due date                  | Expected amount                    | Tolerance |
|-----------------------|---------------------------|------------------------------------|-----------|
| liability             | window start or due_day   | periodical payment (amortized)     | 7 days    |
| recurring_transaction | window start or due_day   | fixed amount                       | 2 days    |
| budget                | window end                | budget amount                      | 0 days    |
| goal                  | window end                | contribution needed to hit target  | 2 days    |
"""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterator, Optional

from cycles_gateway.domain.models import Frequency, Obligation, ObligationKind
from cycles_gateway.domain.recurrence import count_cycles_until, is_month_based, periods_per_year
from cycles_gateway.utils.date_utils import clamp, shift

DEFAULT_LIABILITY_TOLERANCE_DAYS = 7
DEFAULT_RECURRING_TOLERANCE_DAYS = 2
DEFAULT_GOAL_TOLERANCE_DAYS = 2
DEFAULT_BUDGET_TOLERANCE_DAYS = 0

PAYOFF_THRESHOLD = 0.01


@dataclass
class CycleTarget:
    """Expected amount for one cycle, with the interest split for amortizing liabilities"""

    expected_amount: float
    expected_principal: Optional[float] = None
    expected_interest: Optional[float] = None
    remaining_balance: Optional[float] = None


class CyclePolicy:
    """Default conventions: due at window start, constant amount"""

    kind: ObligationKind
    default_tolerance_days: int = DEFAULT_RECURRING_TOLERANCE_DAYS
    due_at_window_end: bool = False

    def tolerance_days(self, obligation: Obligation) -> int:
        if obligation.tolerance_days is None:
            return self.default_tolerance_days
        return max(0, int(obligation.tolerance_days))

    def expected_date(self, obligation: Obligation, start: date, end: date, frequency: Frequency) -> date:
        if self.due_at_window_end:
            return end
        if not obligation.due_day:
            return start
        return due_day_in_window(start, end, obligation.due_day, frequency)

    def targets(self, obligation: Obligation, frequency: Frequency, interval: int) -> Iterator[CycleTarget]:
        """Yield one target per cycle; the generator ending means the obligation is finished"""
        amount = round(float(obligation.amount or 0), 2)
        while True:
            yield CycleTarget(expected_amount=amount)


class LiabilityPolicy(CyclePolicy):
    kind = ObligationKind.LIABILITY
    default_tolerance_days = DEFAULT_LIABILITY_TOLERANCE_DAYS

    def targets(self, obligation: Obligation, frequency: Frequency, interval: int) -> Iterator[CycleTarget]:
        """
        Amortize the balance when an interest rate and starting balance are known.

        Interest per period = balance * annual_rate / periods_per_year.
        With interest included, principal = payment - interest; otherwise the
        payment is all principal and interest is due on top of it.
        Stops once the balance is paid off.
        """
        rate = float(obligation.interest_rate or 0)
        balance = float(obligation.starting_balance or 0)
        if rate <= 0 or balance <= 0:
            yield from super().targets(obligation, frequency, interval)
            return

        payment = round(float(obligation.amount or 0), 2)
        period_rate = rate / 100 / periods_per_year(frequency, interval)

        while balance > PAYOFF_THRESHOLD:
            interest = round(balance * period_rate, 2)
            if obligation.interest_included:
                principal = min(max(0.0, payment - interest), balance)
                expected = min(payment, round(balance + interest, 2))
            else:
                principal = min(payment, balance)
                expected = round(principal + interest, 2)

            remaining = round(max(0.0, balance - principal), 2)
            yield CycleTarget(
                expected_amount=expected,
                expected_principal=round(principal, 2),
                expected_interest=interest,
                remaining_balance=remaining,
            )
            balance = remaining


class BudgetPolicy(CyclePolicy):
    kind = ObligationKind.BUDGET
    default_tolerance_days = DEFAULT_BUDGET_TOLERANCE_DAYS
    due_at_window_end = True


class GoalPolicy(CyclePolicy):
    kind = ObligationKind.GOAL
    default_tolerance_days = DEFAULT_GOAL_TOLERANCE_DAYS
    due_at_window_end = True

    def targets(self, obligation: Obligation, frequency: Frequency, interval: int) -> Iterator[CycleTarget]:
        """
        Contribution per cycle.

        An explicit amount wins. Otherwise the remaining gap to the target is
        spread over the cycles up to the target date, or over one year when
        the goal has no target date.
        """
        if obligation.amount and obligation.amount > 0:
            yield from super().targets(obligation, frequency, interval)
            return

        remaining = max(0.0, float(obligation.target_amount or 0) - float(obligation.current_amount or 0))
        if obligation.end_date:
            periods = count_cycles_until(obligation.start_date, frequency, interval, obligation.end_date)
        else:
            periods = max(1.0, periods_per_year(frequency, interval))

        contribution = round(remaining / periods, 2)
        while True:
            yield CycleTarget(expected_amount=contribution)


class RecurringTransactionPolicy(CyclePolicy):
    kind = ObligationKind.RECURRING_TRANSACTION
    default_tolerance_days = DEFAULT_RECURRING_TOLERANCE_DAYS


POLICIES: Dict[ObligationKind, CyclePolicy] = {
    ObligationKind.LIABILITY: LiabilityPolicy(),
    ObligationKind.BUDGET: BudgetPolicy(),
    ObligationKind.GOAL: GoalPolicy(),
    ObligationKind.RECURRING_TRANSACTION: RecurringTransactionPolicy(),
}


def policy_for(kind: ObligationKind) -> CyclePolicy:
    return POLICIES[ObligationKind(kind)]


def default_tolerance_days(kind: ObligationKind) -> int:
    return policy_for(kind).default_tolerance_days


def due_day_in_window(start: date, end: date, due_day: int, frequency: Frequency) -> date:
    """
    Place a configured due day inside [start, end].

    Month-based frequencies treat due_day as a day of month (clamped to the
    month's length, rolled to the next month when it falls before the window
    start). Day-based frequencies treat it as a weekday, 0 = Monday.
    """
    if is_month_based(frequency):
        day = max(1, due_day)
        candidate = start.replace(day=min(day, calendar.monthrange(start.year, start.month)[1]))
        if candidate < start:
            first_of_next = shift(start.replace(day=1), months=1)
            last_day = calendar.monthrange(first_of_next.year, first_of_next.month)[1]
            candidate = first_of_next.replace(day=min(day, last_day))
    else:
        candidate = start + timedelta(days=(due_day % 7 - start.weekday()) % 7)

    return clamp(candidate, start, end)
