"""Adapters from persisted backend rows to domain objects"""

from typing import Any, Dict, Mapping, Optional

from cycles_gateway.domain.boundaries import validate_override
from cycles_gateway.domain.exceptions import InvalidOverrideError, InvalidStartDateError
from cycles_gateway.domain.models import Bill, CycleOverride, Obligation, ObligationKind, Recurrence, Transaction
from cycles_gateway.utils.date_utils import parse_date


def obligation_from_record(
    kind: ObligationKind,
    row: Mapping[str, Any],
    tolerance_days: Optional[int] = None,
) -> Obligation:
    """
    Build an Obligation from its stored row.

    Raises:
        InvalidStartDateError: Start date missing or unparseable
        InvalidOverrideError: Malformed entry in metadata.cycle_overrides
    """
    kind = ObligationKind(kind)
    metadata = row.get("metadata") or {}

    if kind == ObligationKind.LIABILITY:
        start_raw = row.get("start_date")
        recurrence = Recurrence(
            frequency=row.get("periodical_frequency") or "monthly",
            interval=_interval(metadata.get("custom_frequency_interval")),
            custom_unit=metadata.get("custom_frequency_unit") or row.get("custom_frequency_unit"),
        )
        due_day = _int_or_none(row.get("due_day_of_month"))
        if due_day is None and parse_date(row.get("next_due_date")):
            due_day = parse_date(row.get("next_due_date")).day
        fields: Dict[str, Any] = dict(
            amount=_to_float(row.get("periodical_payment")),
            minimum_amount=_float_or_none(row.get("minimum_payment", metadata.get("minimum_amount"))),
            end_date=parse_date(row.get("targeted_payoff_date")),
            due_day=due_day,
            interest_rate=_float_or_none(row.get("interest_rate_apy")),
            starting_balance=_float_or_none(row.get("current_balance")),
            interest_included=bool(metadata.get("interest_included", True)),
        )
    elif kind == ObligationKind.BUDGET:
        start_raw = row.get("start_date")
        recurrence = Recurrence(frequency=row.get("recurrence") or "monthly", interval=_interval(row.get("interval")))
        fields = dict(
            amount=_to_float(row.get("target_amount", row.get("amount"))),
            end_date=parse_date(row.get("end_date")),
        )
    elif kind == ObligationKind.GOAL:
        start_raw = row.get("start_date") or row.get("created_at")
        recurrence = Recurrence(
            frequency=row.get("contribution_frequency") or "monthly",
            interval=_interval(row.get("interval")),
        )
        fields = dict(
            amount=_to_float(row.get("contribution_amount")),
            target_amount=_float_or_none(row.get("target_amount")),
            current_amount=_to_float(row.get("current_amount")),
            end_date=parse_date(row.get("target_date")),
        )
    else:
        start_raw = row.get("start_date")
        recurrence = Recurrence(
            frequency=row.get("frequency") or "monthly",
            interval=_interval(row.get("custom_interval") if row.get("frequency") == "custom" else row.get("interval")),
            custom_unit=row.get("custom_unit"),
        )
        fields = dict(
            amount=_to_float(row.get("amount") or row.get("estimated_amount")),
            end_date=parse_date(row.get("end_date")),
            due_day=_int_or_none(row.get("date_of_occurrence")),
        )

    start_date = parse_date(start_raw)
    if start_date is None:
        raise InvalidStartDateError(f"Invalid start date: {start_raw!r}")

    row_tolerance = _int_or_none(metadata.get("tolerance_days"))
    return Obligation(
        obligation_id=str(row.get("id", "")),
        kind=kind,
        title=row.get("title") or row.get("name") or "",
        start_date=start_date,
        recurrence=recurrence,
        tolerance_days=row_tolerance if row_tolerance is not None else tolerance_days,
        overrides=overrides_from_metadata(metadata.get("cycle_overrides") or {}),
        cycle_notes=notes_from_record(row.get("cycle_notes") or {}),
        **fields,
    )


def overrides_from_metadata(raw: Mapping[str, Any]) -> Dict[int, CycleOverride]:
    """Parse {"3": {"expectedAmount": ..., "expectedDate": ...}} (camelCase or snake_case)"""
    overrides: Dict[int, CycleOverride] = {}
    for key, data in raw.items():
        data = data or {}
        number = _int_or_none(data.get("cycleNumber", data.get("cycle_number", key)))
        if number is None:
            raise InvalidOverrideError(f"Invalid cycle number: {key!r}")
        override = validate_override(
            CycleOverride(
                cycle_number=number,
                expected_amount=data.get("expectedAmount", data.get("expected_amount")),
                expected_date=data.get("expectedDate", data.get("expected_date")),
                minimum_amount=data.get("minimumAmount", data.get("minimum_amount")),
                notes=data.get("notes"),
            )
        )
        overrides[number] = override
    return overrides


def notes_from_record(raw: Mapping[str, Any]) -> Dict[int, str]:
    """Cycle notes keyed by stringified cycle number"""
    return {int(k): str(v) for k, v in raw.items() if str(k).strip().isdigit() and v}


def transaction_from_record(row: Mapping[str, Any]) -> Transaction:
    """Payment/transaction row; principal/interest columns are folded into metadata"""
    metadata = dict(row.get("metadata") or {})
    for column in ("principal_component", "interest_component", "principal_amount", "interest_amount"):
        if row.get(column) is not None:
            metadata.setdefault(column, _to_float(row.get(column)))

    return Transaction(
        transaction_id=str(row.get("id", row.get("transaction_id", ""))),
        amount=_to_float(row.get("amount")),
        date=parse_date(row.get("payment_date") or row.get("date")),
        description=row.get("description") or "",
        metadata=metadata,
    )


def bill_from_record(row: Mapping[str, Any]) -> Bill:
    return Bill(
        bill_id=str(row.get("id", "")),
        title=row.get("title") or "",
        amount=_to_float(row.get("amount")),
        total_amount=_float_or_none(row.get("total_amount")),
        due_date=parse_date(row.get("due_date")),
        status=str(row.get("status") or "upcoming"),
        metadata=dict(row.get("metadata") or {}),
    )


def _to_float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _float_or_none(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _int_or_none(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _interval(value: Any) -> Any:
    """Default 1; anything non-integral is passed through for the generator to reject"""
    if value is None or value == "":
        return 1
    parsed = _int_or_none(value)
    return parsed if parsed is not None else value
