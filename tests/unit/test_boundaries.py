"""Unit tests for cycle boundary generation and override patching"""

import pytest
from dataclasses import replace
from datetime import date, timedelta
from cycles_gateway.domain.boundaries import apply_overrides, generate_cycles, validate_override
from cycles_gateway.domain.exceptions import InvalidOverrideError, InvalidRecurrenceError, InvalidStartDateError
from cycles_gateway.domain.models import CycleOverride, Obligation, ObligationKind, Recurrence


def _obligation(kind=ObligationKind.RECURRING_TRANSACTION, **overrides) -> Obligation:
    fields = dict(
        obligation_id="ob-1",
        kind=kind,
        start_date=date(2024, 1, 1),
        recurrence=Recurrence(frequency="monthly"),
        amount=100.0,
    )
    fields.update(overrides)
    return Obligation(**fields)


@pytest.mark.parametrize(
    "frequency,interval,custom_unit",
    [
        ("daily", 1, None),
        ("weekly", 1, None),
        ("biweekly", 1, None),
        ("monthly", 1, None),
        ("monthly", 2, None),
        ("quarterly", 1, None),
        ("custom", 10, "days"),
    ],
)
def test_cycles_are_contiguous(frequency, interval, custom_unit):
    """Cycle k ends the day before cycle k+1 starts"""
    obligation = _obligation(
        start_date=date(2024, 1, 31),
        recurrence=Recurrence(frequency=frequency, interval=interval, custom_unit=custom_unit),
    )
    cycles = generate_cycles(obligation, as_of=date(2030, 1, 1), max_cycles=12)

    assert len(cycles) == 12
    assert [c.cycle_number for c in cycles] == list(range(1, 13))
    for current, following in zip(cycles, cycles[1:]):
        assert current.end_date + timedelta(days=1) == following.start_date
        assert current.start_date <= current.end_date


def test_month_end_windows():
    """Monthly windows anchored on the 31st clamp without drifting"""
    cycles = generate_cycles(_obligation(start_date=date(2024, 1, 31)), as_of=date(2024, 4, 1), max_cycles=3)

    assert [(c.start_date, c.end_date) for c in cycles] == [
        (date(2024, 1, 31), date(2024, 2, 28)),
        (date(2024, 2, 29), date(2024, 3, 30)),
        (date(2024, 3, 31), date(2024, 4, 29)),
    ]


def test_horizon_keeps_one_lookahead_cycle():
    """Generation stops after the first cycle that starts beyond as_of"""
    cycles = generate_cycles(_obligation(), as_of=date(2024, 3, 15), max_cycles=12)

    assert [c.start_date for c in cycles] == [date(2024, 1, 1), date(2024, 2, 1), date(2024, 3, 1), date(2024, 4, 1)]
    assert cycles[-1].start_date > date(2024, 3, 15)


def test_horizon_respects_max_cycles():
    assert len(generate_cycles(_obligation(), as_of=date(2030, 1, 1), max_cycles=2)) == 2
    assert generate_cycles(_obligation(), as_of=date(2030, 1, 1), max_cycles=0) == []


def test_as_of_before_start_yields_single_upcoming_cycle():
    cycles = generate_cycles(_obligation(), as_of=date(2023, 12, 1))

    assert len(cycles) == 1
    assert cycles[0].start_date == date(2024, 1, 1)


def test_generation_stops_after_end_date():
    obligation = _obligation(end_date=date(2024, 2, 15))
    cycles = generate_cycles(obligation, as_of=date(2030, 1, 1))

    assert [c.start_date for c in cycles] == [date(2024, 1, 1), date(2024, 2, 1)]


def test_expected_date_conventions_per_kind():
    """Liability/recurring are due at window start or due_day; budget/goal at window end"""
    as_of = date(2024, 1, 10)

    recurring = generate_cycles(_obligation(), as_of)[0]
    liability = generate_cycles(_obligation(kind=ObligationKind.LIABILITY, due_day=15), as_of)[0]
    budget = generate_cycles(_obligation(kind=ObligationKind.BUDGET), as_of)[0]
    goal = generate_cycles(_obligation(kind=ObligationKind.GOAL), as_of)[0]

    assert recurring.expected_date == date(2024, 1, 1)
    assert liability.expected_date == date(2024, 1, 15)
    assert budget.expected_date == date(2024, 1, 31)
    assert goal.expected_date == date(2024, 1, 31)


def test_default_tolerance_per_kind():
    as_of = date(2024, 1, 10)

    assert generate_cycles(_obligation(kind=ObligationKind.LIABILITY), as_of)[0].tolerance_days == 7
    assert generate_cycles(_obligation(), as_of)[0].tolerance_days == 2
    assert generate_cycles(_obligation(kind=ObligationKind.GOAL), as_of)[0].tolerance_days == 2
    assert generate_cycles(_obligation(kind=ObligationKind.BUDGET), as_of)[0].tolerance_days == 0
    assert generate_cycles(_obligation(tolerance_days=5), as_of)[0].tolerance_days == 5


def test_liability_amortization_and_payoff_stop():
    """Interest-bearing balance: interest first, principal after, generation ends at payoff"""
    loan = _obligation(
        kind=ObligationKind.LIABILITY,
        amount=500.0,
        interest_rate=12.0,  # 1% a month
        starting_balance=1000.0,
    )
    cycles = generate_cycles(loan, as_of=date(2030, 1, 1), max_cycles=12)

    assert len(cycles) == 3
    assert cycles[0].expected_amount == 500.0
    assert cycles[0].expected_interest == 10.0
    assert cycles[0].expected_principal == 490.0
    assert cycles[0].remaining_balance == 510.0
    assert cycles[-1].remaining_balance == 0.0
    assert cycles[-1].expected_amount < 500.0


def test_liability_interest_on_top_of_payment():
    loan = _obligation(
        kind=ObligationKind.LIABILITY,
        amount=500.0,
        interest_rate=12.0,
        starting_balance=1000.0,
        interest_included=False,
    )
    first = generate_cycles(loan, as_of=date(2024, 1, 10))[0]

    assert first.expected_principal == 500.0
    assert first.expected_interest == 10.0
    assert first.expected_amount == 510.0


def test_goal_contribution_spread_to_target_date():
    goal = _obligation(
        kind=ObligationKind.GOAL,
        amount=0.0,
        target_amount=1200.0,
        current_amount=600.0,
        end_date=date(2024, 12, 1),
    )
    cycles = generate_cycles(goal, as_of=date(2024, 1, 10))

    assert cycles[0].expected_amount == 50.0


def test_goal_contribution_without_target_date():
    goal = _obligation(kind=ObligationKind.GOAL, amount=0.0, target_amount=1200.0)

    assert generate_cycles(goal, as_of=date(2024, 1, 10))[0].expected_amount == 100.0


def test_invalid_start_date():
    with pytest.raises(InvalidStartDateError):
        generate_cycles(_obligation(start_date="not-a-date"), as_of=date(2024, 1, 1))
    with pytest.raises(InvalidStartDateError):
        generate_cycles(_obligation(start_date=None), as_of=date(2024, 1, 1))


def test_invalid_recurrence():
    with pytest.raises(InvalidRecurrenceError):
        generate_cycles(_obligation(recurrence=Recurrence(frequency="monthly", interval=0)), as_of=date(2024, 1, 1))


def test_validate_override_normalizes_date():
    override = validate_override(CycleOverride(cycle_number=2, expected_amount=1200, expected_date="2024-03-05"))

    assert override.expected_date == date(2024, 3, 5)
    assert override.expected_amount == 1200.0


@pytest.mark.parametrize(
    "override",
    [
        CycleOverride(cycle_number=0, expected_amount=10.0),
        CycleOverride(cycle_number=1, expected_amount=-5.0),
        CycleOverride(cycle_number=1, expected_amount="lots"),
        CycleOverride(cycle_number=1, minimum_amount=-1.0),
        CycleOverride(cycle_number=1, expected_amount=100.0, minimum_amount=150.0),
        CycleOverride(cycle_number=1, expected_date="next tuesday"),
    ],
)
def test_validate_override_rejects_malformed(override):
    with pytest.raises(InvalidOverrideError):
        validate_override(override)


def test_validate_override_checks_minimum_against_computed_target():
    with pytest.raises(InvalidOverrideError):
        validate_override(CycleOverride(cycle_number=1, minimum_amount=150.0), target_amount=100.0)


def test_apply_overrides_patches_target_not_window():
    """Only the overridden cycle changes; its window and neighbours stay put"""
    cycles = generate_cycles(_obligation(), as_of=date(2024, 3, 15))
    patched = apply_overrides(
        cycles,
        {2: CycleOverride(cycle_number=2, expected_amount=250.0, expected_date=date(2024, 3, 10), notes="Moved")},
    )

    assert patched[0] == cycles[0]
    assert patched[2] == cycles[2]

    second = patched[1]
    assert second.is_overridden is True
    assert second.expected_amount == 250.0
    assert second.expected_date == date(2024, 3, 10)
    assert second.notes == "Moved"
    assert (second.start_date, second.end_date) == (cycles[1].start_date, cycles[1].end_date)
    assert second.original_expected_date == date(2024, 2, 1)
    assert second.original_expected_amount == 100.0


def test_apply_overrides_ignores_cycles_beyond_horizon_and_fills_notes():
    cycles = generate_cycles(_obligation(), as_of=date(2024, 1, 15))
    patched = apply_overrides(
        cycles,
        {99: CycleOverride(cycle_number=99, expected_amount=1.0)},
        cycle_notes={1: "First month"},
    )

    assert patched[0].notes == "First month"
    assert not any(c.is_overridden for c in patched)
    assert patched == [replace(cycles[0], notes="First month"), cycles[1]]


def test_apply_overrides_validates():
    cycles = generate_cycles(_obligation(), as_of=date(2024, 1, 15))

    with pytest.raises(InvalidOverrideError):
        apply_overrides(cycles, {1: CycleOverride(cycle_number=1, expected_amount=-20.0)})


def test_apply_overrides_checks_minimum_only_override_against_computed_target():
    cycles = generate_cycles(_obligation(), as_of=date(2024, 1, 15))

    with pytest.raises(InvalidOverrideError):
        apply_overrides(cycles, {1: CycleOverride(cycle_number=1, minimum_amount=500.0)})

    patched = apply_overrides(cycles, {1: CycleOverride(cycle_number=1, minimum_amount=60.0)})
    assert patched[0].minimum_amount == 60.0
    assert patched[0].expected_amount == 100.0
