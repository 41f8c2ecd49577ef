"""Transaction and bill attribution - assigns each record to exactly one cycle"""

import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from cycles_gateway.domain.models import Bill, Cycle, PaymentTiming, Transaction
from cycles_gateway.domain.timing import classify_timing, is_within_window

logger = logging.getLogger(__name__)

CLOSED_BILL_STATUSES = frozenset({"paid", "cancelled", "skipped"})

_INTEREST_KEYS = ("interest", "interest_component", "interest_amount")
_PRINCIPAL_KEYS = ("principal", "principal_component", "principal_amount")


def attribute(
    cycles: List[Cycle],
    transactions: Iterable[Transaction],
    bills: Iterable[Bill] = (),
    tolerance_days: Optional[int] = None,
) -> List[Cycle]:
    """
    Attribute transactions and bills to cycles and aggregate actuals.

    Matching order for each record:
    1. Explicit metadata.cycle_number naming a generated cycle
    2. The cycle whose [start_date, end_date] contains the date, unless the
       date is still inside the previous cycle's tolerance window (carry-back)
    3. Within tolerance before the first cycle, or after the last one
    Records without a usable date are left out.

    Returns new cycles; transaction and bill copies carry cycle_number,
    payment_timing, days_from_due and is_within_window tags. Source records
    are never mutated.
    """
    if not cycles:
        return []

    tolerance = tolerance_days if tolerance_days is not None else cycles[0].tolerance_days
    positions = {cycle.cycle_number: pos for pos, cycle in enumerate(cycles)}
    tx_buckets: Dict[int, List[Tuple[Transaction, bool]]] = {c.cycle_number: [] for c in cycles}
    bill_buckets: Dict[int, List[Tuple[Bill, bool]]] = {c.cycle_number: [] for c in cycles}

    dropped = 0
    for tx in transactions:
        match = _locate(cycles, positions, tx.date, tx.metadata, tolerance)
        if match is None:
            dropped += 1
            continue
        tx_buckets[match[0]].append((tx, match[1]))

    for bill in bills:
        match = _locate(cycles, positions, bill.due_date, bill.metadata, tolerance)
        if match is None:
            dropped += 1
            continue
        bill_buckets[match[0]].append((bill, match[1]))

    if dropped:
        logger.debug("Records left unattributed", extra={"count": dropped})

    return [
        _aggregate(cycle, tx_buckets[cycle.cycle_number], bill_buckets[cycle.cycle_number], tolerance)
        for cycle in cycles
    ]


def _locate(
    cycles: List[Cycle],
    positions: Mapping[int, int],
    when: Optional[date],
    metadata: Mapping[str, Any],
    tolerance: int,
) -> Optional[Tuple[int, bool]]:
    """Return (cycle_number, carried_back) or None"""
    if when is None:
        return None

    explicit = _explicit_cycle_number(metadata)
    if explicit is not None and explicit in positions:
        return explicit, False

    grace = timedelta(days=tolerance)
    for pos, cycle in enumerate(cycles):
        if cycle.start_date <= when <= cycle.end_date:
            if pos > 0 and _carries_back(cycles[pos - 1], cycle, when, grace):
                return cycles[pos - 1].cycle_number, True
            return cycle.cycle_number, False

    first, last = cycles[0], cycles[-1]
    if first.start_date - grace <= when < first.start_date:
        return first.cycle_number, False
    if last.end_date < when <= last.end_date + grace and when <= _window_due(last) + grace:
        return last.cycle_number, True
    return None


def _carries_back(previous: Cycle, current: Cycle, when: date, grace: timedelta) -> bool:
    """A date just past the previous window still belongs to it while inside its due tolerance"""
    return (
        when <= previous.end_date + grace
        and when <= _window_due(previous) + grace
        and when < _window_due(current) - grace
    )


def _window_due(cycle: Cycle) -> date:
    # Overrides never re-bucket records, so matching uses the computed due date
    return cycle.original_expected_date or cycle.expected_date


def _explicit_cycle_number(metadata: Mapping[str, Any]) -> Optional[int]:
    value = (metadata or {}).get("cycle_number")
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _tags(cycle: Cycle, when: date, carried: bool, tolerance: int) -> Dict[str, Any]:
    diff = (when - cycle.expected_date).days
    if carried:
        timing, within = PaymentTiming.WITHIN_WINDOW, True
    else:
        timing = classify_timing(when, cycle.expected_date, tolerance)
        within = is_within_window(when, cycle.expected_date, tolerance)
    return {
        "cycle_number": cycle.cycle_number,
        "payment_timing": timing.value,
        "days_from_due": diff,
        "is_within_window": within,
    }


def _aggregate(
    cycle: Cycle,
    matched_transactions: List[Tuple[Transaction, bool]],
    matched_bills: List[Tuple[Bill, bool]],
    tolerance: int,
) -> Cycle:
    ordered = sorted(matched_transactions, key=lambda item: (item[0].date, item[0].transaction_id))
    tagged = [
        replace(tx, metadata={**(tx.metadata or {}), **_tags(cycle, tx.date, carried, tolerance)})
        for tx, carried in ordered
    ]

    total = round(sum(abs(float(tx.amount)) for tx in tagged), 2)
    actual_principal, actual_interest = _split_components(cycle, tagged, total)

    ordered_bills = sorted(matched_bills, key=lambda item: (item[0].due_date, item[0].bill_id))
    tagged_bills = [
        replace(bill, metadata={**(bill.metadata or {}), **_tags(cycle, bill.due_date, carried, tolerance)})
        for bill, carried in ordered_bills
    ]
    scheduled = next((b for b in tagged_bills if str(b.status).lower() not in CLOSED_BILL_STATUSES), None)

    minimum = cycle.minimum_amount
    if minimum is None:
        bill_minimums = [
            float(b.metadata["minimum_amount"])
            for b in tagged_bills
            if isinstance(b.metadata.get("minimum_amount"), (int, float))
            and not isinstance(b.metadata.get("minimum_amount"), bool)
        ]
        minimum = min(bill_minimums) if bill_minimums else None

    return replace(
        cycle,
        transactions=tagged,
        bills=tagged_bills,
        scheduled_bill=scheduled,
        minimum_amount=minimum,
        actual_amount=total,
        actual_date=tagged[-1].date if tagged else None,
        first_payment_date=tagged[0].date if tagged else None,
        payment_count=len(tagged),
        actual_principal=actual_principal,
        actual_interest=actual_interest,
    )


def _split_components(
    cycle: Cycle, transactions: List[Transaction], total: float
) -> Tuple[Optional[float], Optional[float]]:
    """Sum interest/principal from payment metadata, else split by the expected breakdown"""
    interest = principal = 0.0
    found = False
    for tx in transactions:
        tx_interest = _first_number(tx.metadata, _INTEREST_KEYS)
        tx_principal = _first_number(tx.metadata, _PRINCIPAL_KEYS)
        if tx_interest is not None or tx_principal is not None:
            found = True
            interest += tx_interest or 0.0
            principal += tx_principal or 0.0

    if found and (interest > 0 or principal > 0):
        return round(principal, 2), round(interest, 2)

    if total > 0 and cycle.expected_interest is not None and cycle.expected_principal is not None:
        expected_total = cycle.expected_principal + cycle.expected_interest
        if expected_total > 0:
            ratio = total / (cycle.expected_amount or expected_total)
            return round(cycle.expected_principal * ratio, 2), round(cycle.expected_interest * ratio, 2)

    return None, None


def _first_number(metadata: Mapping[str, Any], keys: Tuple[str, ...]) -> Optional[float]:
    for key in keys:
        value = (metadata or {}).get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    return None
