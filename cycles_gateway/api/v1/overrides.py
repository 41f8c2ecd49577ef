"""Per-cycle override store endpoints"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from cycles_gateway.api.v1.schemas import OverrideListResponse, OverrideRequest, OverrideResponse
from cycles_gateway.api.dependencies import get_request_id
from cycles_gateway.infrastructure.database.session import get_db
from cycles_gateway.infrastructure.database.repositories import OverrideRepository
from cycles_gateway.domain.boundaries import validate_override
from cycles_gateway.domain.exceptions import InvalidOverrideError
from cycles_gateway.domain.models import CycleOverride
from cycles_gateway.infrastructure.observability.metrics import record_override_change
from cycles_gateway.infrastructure.observability.logging import log_override_change

router = APIRouter()


@router.get("/obligations/{obligation_id}/overrides", response_model=OverrideListResponse)
def list_overrides(obligation_id: str, db: Session = Depends(get_db)):
    """Overrides stored for an obligation, ordered by cycle number"""
    overrides = OverrideRepository(db).list_overrides(obligation_id)
    return OverrideListResponse(
        obligation_id=obligation_id,
        overrides=[_override_response(obligation_id, o) for o in overrides.values()],
    )


@router.put("/obligations/{obligation_id}/overrides/{cycle_number}", response_model=OverrideResponse)
def put_override(
    obligation_id: str,
    cycle_number: int,
    request_body: OverrideRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Validate and store the override for one cycle, replacing any existing one.

    Only the expected amount, expected date, minimum and notes can change;
    cycle windows are never moved by an override.
    """
    request_id = get_request_id(request)

    try:
        override = validate_override(CycleOverride(cycle_number=cycle_number, **request_body.model_dump()))
        OverrideRepository(db).upsert_override(obligation_id, override)
        db.commit()

        record_override_change("upsert")
        log_override_change(request_id, obligation_id, cycle_number, "upsert")

        return _override_response(obligation_id, override)

    except InvalidOverrideError as e:
        db.rollback()
        logging.warning(f"Invalid override: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/obligations/{obligation_id}/overrides/{cycle_number}", status_code=204)
def delete_override(
    obligation_id: str,
    cycle_number: int,
    request: Request,
    db: Session = Depends(get_db),
):
    """Remove the stored override for one cycle"""
    request_id = get_request_id(request)

    deleted = OverrideRepository(db).delete_override(obligation_id, cycle_number)
    if not deleted:
        raise HTTPException(status_code=404, detail="Override not found")

    db.commit()
    record_override_change("delete")
    log_override_change(request_id, obligation_id, cycle_number, "delete")

    return Response(status_code=204)


def _override_response(obligation_id: str, override: CycleOverride) -> OverrideResponse:
    return OverrideResponse(
        obligation_id=obligation_id,
        cycle_number=override.cycle_number,
        expected_amount=override.expected_amount,
        expected_date=override.expected_date,
        minimum_amount=override.minimum_amount,
        notes=override.notes,
    )
