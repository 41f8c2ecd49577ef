"""Cycle boundary generation and per-cycle override patching"""

import math
from dataclasses import replace
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from cycles_gateway.domain.exceptions import InvalidOverrideError, InvalidStartDateError
from cycles_gateway.domain.models import Cycle, CycleOverride, Obligation
from cycles_gateway.domain.obligations import policy_for
from cycles_gateway.domain.recurrence import resolve_recurrence, window_start
from cycles_gateway.utils.date_utils import day_before, parse_date

DEFAULT_MAX_CYCLES = 12


def generate_cycles(
    obligation: Obligation,
    as_of: date,
    max_cycles: int = DEFAULT_MAX_CYCLES,
) -> List[Cycle]:
    """
    Partition time into contiguous cycle windows for an obligation.

    Rules:
    - Cycle 1 starts at the obligation start date
    - Cycle k ends the day before cycle k+1 starts
    - Windows advance by (frequency x interval) with calendar arithmetic
    - Generation stops at max_cycles, after the first cycle starting beyond
      as_of (one look-ahead cycle), past the obligation end date, or once an
      amortizing liability is paid off

    Raises:
        InvalidStartDateError: Start date missing or unparseable
        InvalidRecurrenceError: Unknown frequency or non-positive interval
    """
    start = _require_start_date(obligation.start_date)
    frequency, interval = resolve_recurrence(obligation.recurrence)
    policy = policy_for(obligation.kind)
    tolerance = policy.tolerance_days(obligation)
    end_limit = parse_date(obligation.end_date)
    targets = policy.targets(obligation, frequency, interval)

    cycles: List[Cycle] = []
    for index in range(max(0, max_cycles)):
        cycle_start = window_start(start, frequency, interval, index)
        if end_limit is not None and cycle_start > end_limit:
            break

        target = next(targets, None)
        if target is None:
            break  # Paid off

        cycle_end = day_before(window_start(start, frequency, interval, index + 1))
        cycles.append(
            Cycle(
                cycle_number=index + 1,
                start_date=cycle_start,
                end_date=cycle_end,
                expected_date=policy.expected_date(obligation, cycle_start, cycle_end, frequency),
                expected_amount=target.expected_amount,
                minimum_amount=obligation.minimum_amount,
                obligation_kind=obligation.kind,
                tolerance_days=tolerance,
                as_of=as_of,
                expected_principal=target.expected_principal,
                expected_interest=target.expected_interest,
                remaining_balance=target.remaining_balance,
            )
        )

        # Keep exactly one cycle that starts after as_of
        if cycle_start > as_of:
            break

    return cycles


def validate_override(override: CycleOverride, target_amount: Optional[float] = None) -> CycleOverride:
    """
    Validate a user-authored override and return it with its date normalized.

    Args:
        override: Override to check
        target_amount: Computed target the minimum is checked against when the override sets no amount

    Raises:
        InvalidOverrideError: Bad cycle number, negative/non-numeric amount,
            minimum above target, or unparseable date
    """
    number = override.cycle_number
    if isinstance(number, bool) or not isinstance(number, int) or number < 1:
        raise InvalidOverrideError(f"Cycle number must be a positive integer, got {number!r}")

    expected_amount = _check_amount("expected_amount", override.expected_amount)
    minimum_amount = _check_amount("minimum_amount", override.minimum_amount)

    target = expected_amount if expected_amount is not None else target_amount
    if minimum_amount is not None and target is not None and minimum_amount > target:
        raise InvalidOverrideError(
            f"Minimum amount {minimum_amount} cannot be greater than target amount {target}"
        )

    expected_date = override.expected_date
    if expected_date is not None:
        expected_date = parse_date(expected_date)
        if expected_date is None:
            raise InvalidOverrideError(f"Invalid expected date: {override.expected_date!r}")

    return replace(
        override,
        expected_amount=expected_amount,
        minimum_amount=minimum_amount,
        expected_date=expected_date,
    )


def apply_overrides(
    cycles: List[Cycle],
    overrides: Mapping[Any, CycleOverride],
    cycle_notes: Optional[Mapping[int, str]] = None,
) -> List[Cycle]:
    """
    Patch generated cycles with user overrides (pure; returns new cycles).

    Only expected amount, expected date, minimum and notes change. Window
    bounds are left alone, so attribution keeps using the original windows
    even when an override moves the due date outside them.

    Raises:
        InvalidOverrideError: Malformed override, including a minimum-only
            override above the cycle's computed target
    """
    by_number: Dict[int, CycleOverride] = {o.cycle_number: o for o in overrides.values()}
    notes_by_number = {int(k): v for k, v in (cycle_notes or {}).items()}

    patched = []
    for cycle in cycles:
        notes = notes_by_number.get(cycle.cycle_number, cycle.notes)
        override = by_number.get(cycle.cycle_number)
        if override is None:
            patched.append(replace(cycle, notes=notes))
            continue

        override = validate_override(override, target_amount=cycle.expected_amount)
        patched.append(
            replace(
                cycle,
                expected_amount=(
                    override.expected_amount if override.expected_amount is not None else cycle.expected_amount
                ),
                expected_date=override.expected_date or cycle.expected_date,
                minimum_amount=(
                    override.minimum_amount if override.minimum_amount is not None else cycle.minimum_amount
                ),
                notes=override.notes if override.notes is not None else notes,
                is_overridden=True,
                original_expected_date=cycle.expected_date,
                original_expected_amount=cycle.expected_amount,
            )
        )

    return patched


def _require_start_date(value: Any) -> date:
    start = parse_date(value)
    if start is None:
        raise InvalidStartDateError(f"Invalid start date: {value!r}")
    return start


def _check_amount(name: str, value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        raise InvalidOverrideError(f"{name} must be a number, got {value!r}")
    if value < 0:
        raise InvalidOverrideError(f"{name} cannot be negative, got {value}")
    return float(value)
