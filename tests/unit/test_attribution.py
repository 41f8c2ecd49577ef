"""Unit tests for transaction and bill attribution"""

from datetime import date, timedelta
from cycles_gateway.domain.attribution import attribute
from cycles_gateway.domain.boundaries import apply_overrides, generate_cycles
from cycles_gateway.domain.models import Bill, CycleOverride, Obligation, ObligationKind, Recurrence, Transaction


def _goal() -> Obligation:
    """Monthly goal due at window end with a 2-day window"""
    return Obligation(
        obligation_id="goal-1",
        kind=ObligationKind.GOAL,
        start_date=date(2024, 1, 1),
        recurrence=Recurrence(frequency="monthly"),
        amount=100.0,
    )


def test_window_attribution_and_aggregation(car_loan, payment):
    """Partial payments in one window sum; actual_date is the latest"""
    cycles = generate_cycles(car_loan, as_of=date(2024, 2, 10))
    result = attribute(
        cycles,
        [payment("p2", 300.0, date(2024, 2, 3)), payment("p1", 500.0, date(2024, 1, 20))],
    )

    first = result[0]
    assert first.payment_count == 2
    assert first.actual_amount == 800.0
    assert first.actual_date == date(2024, 2, 3)
    assert first.first_payment_date == date(2024, 1, 20)
    assert [tx.transaction_id for tx in first.transactions] == ["p1", "p2"]
    assert result[1].payment_count == 0


def test_attribution_tags_copies_without_mutating_sources(car_loan, payment):
    source = payment("p1", 1000.0, date(2024, 2, 2))
    result = attribute(generate_cycles(car_loan, as_of=date(2024, 2, 10)), [source])

    tagged = result[0].transactions[0]
    assert tagged.metadata == {
        "cycle_number": 1,
        "payment_timing": "on_time",
        "days_from_due": 1,
        "is_within_window": True,
    }
    assert source.metadata == {}


def test_payment_timing_tags(car_loan, payment):
    cycles = generate_cycles(car_loan, as_of=date(2024, 2, 10))
    result = attribute(
        cycles,
        [
            payment("early", 1.0, date(2024, 1, 30)),
            payment("edge", 1.0, date(2024, 2, 4)),
            payment("late", 1.0, date(2024, 2, 5)),
        ],
    )

    timings = {tx.transaction_id: tx.metadata["payment_timing"] for tx in result[0].transactions}
    assert timings == {"early": "early", "edge": "within_window", "late": "late"}


def test_tolerance_carry_back_to_previous_cycle(payment):
    """A payment just after a window closes stays with that cycle while inside its tolerance"""
    cycles = generate_cycles(_goal(), as_of=date(2024, 2, 10))
    result = attribute(
        cycles,
        [payment("carried", 100.0, date(2024, 2, 1)), payment("next", 100.0, date(2024, 2, 3))],
    )

    assert [tx.transaction_id for tx in result[0].transactions] == ["carried"]
    assert result[0].transactions[0].metadata["payment_timing"] == "within_window"
    assert result[0].transactions[0].metadata["is_within_window"] is True
    assert [tx.transaction_id for tx in result[1].transactions] == ["next"]


def test_no_carry_back_when_due_date_is_far_from_window_end(car_loan, payment):
    """Liability due early in its window: a payment in the next window belongs to the next cycle"""
    cycles = generate_cycles(car_loan, as_of=date(2024, 3, 10))
    result = attribute(cycles, [payment("p", 1000.0, date(2024, 2, 15))])

    assert result[0].payment_count == 0
    assert result[1].payment_count == 1


def test_pre_start_tolerance_and_out_of_range(car_loan, payment):
    """Within tolerance before the first window counts for cycle 1; further out is unattributed"""
    cycles = generate_cycles(car_loan, as_of=date(2024, 2, 10))
    result = attribute(
        cycles,
        [payment("near", 10.0, date(2024, 1, 13)), payment("far", 10.0, date(2024, 1, 1))],
    )

    assert [tx.transaction_id for tx in result[0].transactions] == ["near"]
    assert sum(c.payment_count for c in result) == 1


def test_explicit_cycle_number_wins(car_loan, payment):
    cycles = generate_cycles(car_loan, as_of=date(2024, 2, 10))
    result = attribute(cycles, [payment("p", 50.0, date(2024, 1, 20), cycle_number="2")])

    assert result[0].payment_count == 0
    assert result[1].transactions[0].transaction_id == "p"


def test_undated_records_are_dropped(car_loan):
    cycles = generate_cycles(car_loan, as_of=date(2024, 2, 10))
    result = attribute(
        cycles,
        [Transaction(transaction_id="bad", amount=100.0, date=None)],
        [Bill(bill_id="b", amount=1000.0, due_date=None)],
    )

    assert all(c.payment_count == 0 and not c.bills for c in result)


def test_attribution_completeness(car_loan):
    """Every transaction dated between start and as_of lands in exactly one cycle"""
    as_of = date(2024, 7, 20)
    transactions = [
        Transaction(transaction_id=f"tx-{i}", amount=10.0, date=car_loan.start_date + timedelta(days=i))
        for i in range(0, (as_of - car_loan.start_date).days + 1, 3)
    ]
    result = attribute(generate_cycles(car_loan, as_of=as_of), transactions)

    attributed = [tx.transaction_id for c in result for tx in c.transactions]
    assert sorted(attributed) == sorted(tx.transaction_id for tx in transactions)
    assert len(attributed) == len(set(attributed))


def test_override_does_not_rebucket(car_loan, payment):
    """Moving a due date outside its window keeps matching on the computed windows"""
    cycles = apply_overrides(
        generate_cycles(car_loan, as_of=date(2024, 2, 10)),
        {1: CycleOverride(cycle_number=1, expected_date=date(2024, 3, 1))},
    )
    result = attribute(cycles, [payment("p", 1000.0, date(2024, 2, 2)), payment("q", 5.0, date(2024, 2, 20))])

    assert [tx.transaction_id for tx in result[0].transactions] == ["p"]
    assert [tx.transaction_id for tx in result[1].transactions] == ["q"]
    assert result[0].transactions[0].metadata["days_from_due"] == -28


def test_bills_attach_and_schedule(car_loan):
    cycles = generate_cycles(car_loan, as_of=date(2024, 2, 10))
    bills = [
        Bill(bill_id="paid", amount=1000.0, due_date=date(2024, 2, 1), status="paid"),
        Bill(bill_id="open", amount=1000.0, due_date=date(2024, 2, 1), status="upcoming"),
        Bill(bill_id="next", amount=1000.0, due_date=date(2024, 3, 1)),
    ]
    result = attribute(cycles, [], bills)

    assert [b.bill_id for b in result[0].bills] == ["open", "paid"]
    assert result[0].scheduled_bill.bill_id == "open"
    assert result[1].scheduled_bill.bill_id == "next"
    assert result[0].actual_amount == 0.0


def test_bill_minimum_fills_missing_cycle_minimum():
    obligation = Obligation(
        obligation_id="card",
        kind=ObligationKind.LIABILITY,
        start_date=date(2024, 1, 1),
        recurrence=Recurrence(frequency="monthly"),
        amount=500.0,
    )
    cycles = generate_cycles(obligation, as_of=date(2024, 1, 10))
    result = attribute(
        cycles,
        [],
        [Bill(bill_id="b", amount=500.0, due_date=date(2024, 1, 1), metadata={"minimum_amount": 25})],
    )

    assert result[0].minimum_amount == 25.0


def test_interest_split_from_payment_metadata(payment):
    loan = Obligation(
        obligation_id="loan",
        kind=ObligationKind.LIABILITY,
        start_date=date(2024, 1, 1),
        recurrence=Recurrence(frequency="monthly"),
        amount=500.0,
        interest_rate=12.0,
        starting_balance=1000.0,
    )
    cycles = generate_cycles(loan, as_of=date(2024, 1, 10))

    explicit = attribute(cycles, [payment("p", 500.0, date(2024, 1, 1), interest_component=12.5, principal_component=487.5)])
    proportional = attribute(cycles, [payment("p", 250.0, date(2024, 1, 1))])

    assert (explicit[0].actual_principal, explicit[0].actual_interest) == (487.5, 12.5)
    assert (proportional[0].actual_principal, proportional[0].actual_interest) == (245.0, 5.0)


def test_empty_cycles():
    assert attribute([], [Transaction(transaction_id="t", amount=1.0, date=date(2024, 1, 1))]) == []
