"""Cycle computation endpoints"""

import time
import logging
from collections import Counter
from dataclasses import asdict
from datetime import date
from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from cycles_gateway.api.v1.schemas import CyclesRequest, CyclesResponse, CycleSchema, ObligationSchema, StatisticsSchema
from cycles_gateway.api.dependencies import get_backend_client, get_request_id
from cycles_gateway.infrastructure.database.session import get_db
from cycles_gateway.infrastructure.database.repositories import OverrideRepository
from cycles_gateway.infrastructure.clients.backend import BackendClient
from cycles_gateway.domain.boundaries import validate_override
from cycles_gateway.domain.engine import compute_cycles, get_current_cycle, get_cycle_statistics
from cycles_gateway.domain.exceptions import (
    BackendAPIError,
    InvalidOverrideError,
    InvalidRecurrenceError,
    InvalidStartDateError,
    ObligationNotFoundError,
)
from cycles_gateway.domain.messages import describe, get_cycle_rules, get_cycle_status_message
from cycles_gateway.domain.models import Bill, Cycle, CycleOverride, Obligation, ObligationKind, Recurrence, Transaction
from cycles_gateway.infrastructure.observability.metrics import backend_fetch_failures_counter, record_computation
from cycles_gateway.infrastructure.observability.logging import log_cycle_computation
from cycles_gateway.config import settings

router = APIRouter()

CONFIGURATION_ERRORS = (InvalidRecurrenceError, InvalidStartDateError, InvalidOverrideError)


@router.post("/cycles", response_model=CyclesResponse)
def create_cycles(
    request_body: CyclesRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Compute classified cycles for a posted obligation and history snapshot.

    Stored overrides for the obligation apply first; overrides in the body win.
    """
    request_id = get_request_id(request)

    try:
        overrides: Dict[int, CycleOverride] = OverrideRepository(db).list_overrides(request_body.obligation.obligation_id)
        for item in request_body.obligation.overrides:
            override = validate_override(CycleOverride(**item.model_dump()))
            overrides[override.cycle_number] = override

        obligation = _obligation_from_schema(request_body.obligation, overrides)
        transactions = [Transaction(**tx.model_dump()) for tx in request_body.transactions]
        bills = [Bill(**bill.model_dump()) for bill in request_body.bills]

        return _compute(obligation, transactions, bills, request_body.as_of, request_body.max_cycles, request_id)

    except CONFIGURATION_ERRORS as e:
        db.rollback()
        logging.warning(f"Invalid obligation configuration: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/obligations/{kind}/{obligation_id}/cycles", response_model=CyclesResponse)
async def get_obligation_cycles(
    kind: ObligationKind,
    obligation_id: str,
    request: Request,
    as_of: Optional[date] = Query(None, description="Snapshot date (defaults to today)"),
    max_cycles: Optional[int] = Query(None, le=1000),
    db: Session = Depends(get_db),
    backend_client: BackendClient = Depends(get_backend_client),
):
    """
    Compute cycles for a stored obligation.

    Flow:
    1. Fetch the record, its payments and bills from the backend
    2. Merge overrides stored in this service over the record's own
    3. Generate, attribute and classify
    """
    request_id = get_request_id(request)

    try:
        bundle = await backend_client.fetch_obligation_bundle(kind, obligation_id)

        obligation = bundle.obligation
        obligation.overrides = {**obligation.overrides, **OverrideRepository(db).list_overrides(obligation_id)}

        return _compute(obligation, bundle.transactions, bundle.bills, as_of or date.today(), max_cycles, request_id)

    except ObligationNotFoundError as e:
        db.rollback()
        logging.warning(f"Obligation not found: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail="Obligation not found")

    except BackendAPIError as e:
        backend_fetch_failures_counter.inc()
        db.rollback()
        logging.error(f"Backend API error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Backend service unavailable")

    except CONFIGURATION_ERRORS as e:
        db.rollback()
        logging.warning(f"Invalid obligation configuration: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


def _obligation_from_schema(schema: ObligationSchema, overrides: Dict[int, CycleOverride]) -> Obligation:
    fields = schema.model_dump(exclude={"recurrence", "overrides"})
    if fields["tolerance_days"] is None:
        fields["tolerance_days"] = settings.tolerance_for(schema.kind)
    return Obligation(
        recurrence=Recurrence(**schema.recurrence.model_dump()),
        overrides=overrides,
        **fields,
    )


def _compute(
    obligation: Obligation,
    transactions: List[Transaction],
    bills: List[Bill],
    as_of: date,
    max_cycles: Optional[int],
    request_id: str,
) -> CyclesResponse:
    """Run the engine, record metrics and logs, and build the response"""
    start_time = time.time()
    horizon = settings.default_max_cycles if max_cycles is None else max_cycles

    cycles = compute_cycles(obligation, transactions, bills, as_of, horizon)

    attributed = sum(len(c.transactions) + len(c.bills) for c in cycles)
    dropped = max(0, len(transactions) + len(bills) - attributed)
    statuses = [c.status.value for c in cycles]
    duration = time.time() - start_time
    record_computation(obligation.kind.value, statuses, duration, dropped)
    log_cycle_computation(
        request_id,
        obligation.obligation_id,
        obligation.kind.value,
        len(cycles),
        duration * 1000,
        dict(Counter(statuses)),
    )

    current = get_current_cycle(cycles, as_of)
    return CyclesResponse(
        obligation_id=obligation.obligation_id,
        kind=obligation.kind,
        as_of=as_of,
        current_cycle_number=current.cycle_number if current else None,
        cycles=[_cycle_schema(cycle) for cycle in cycles],
        statistics=StatisticsSchema(**asdict(get_cycle_statistics(cycles))),
    )


def _cycle_schema(cycle: Cycle) -> CycleSchema:
    payload = asdict(cycle)
    payload.pop("obligation_kind")
    payload.pop("as_of")
    return CycleSchema(
        **payload,
        message=asdict(get_cycle_status_message(cycle)),
        rules=[asdict(rule) for rule in get_cycle_rules(cycle)],
        summary=describe(cycle).rules,
    )
