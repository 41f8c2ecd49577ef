"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
import datetime
from datetime import date
from typing import Any, Dict, List, Optional

from cycles_gateway.domain.models import CycleStatus, ObligationKind, PaymentTiming


class RecurrenceSchema(BaseModel):
    """How often an obligation repeats"""

    frequency: str = Field(..., min_length=1, description="daily, weekly, biweekly, monthly, quarterly, yearly or custom")
    interval: int = Field(1, description="Multiplier on the frequency step")
    custom_unit: Optional[str] = Field(None, description="days | weeks | months | years when frequency is custom")


class OverrideRequest(BaseModel):
    """Request body for PUT /v1/obligations/{obligation_id}/overrides/{cycle_number}"""

    expected_amount: Optional[float] = None
    expected_date: Optional[date] = None
    minimum_amount: Optional[float] = None
    notes: Optional[str] = None


class CycleOverrideSchema(OverrideRequest):
    """Override keyed by cycle number, inline in a computation request"""

    cycle_number: int


class ObligationSchema(BaseModel):
    """Obligation definition for POST /v1/cycles"""

    obligation_id: str = Field(..., min_length=1, description="Obligation identifier")
    kind: ObligationKind
    title: str = ""
    start_date: date
    recurrence: RecurrenceSchema
    amount: float = 0.0
    minimum_amount: Optional[float] = None
    end_date: Optional[date] = None
    due_day: Optional[int] = None
    tolerance_days: Optional[int] = Field(None, ge=0)
    overrides: List[CycleOverrideSchema] = []
    cycle_notes: Dict[int, str] = {}
    interest_rate: Optional[float] = None
    starting_balance: Optional[float] = None
    interest_included: bool = True
    target_amount: Optional[float] = None
    current_amount: float = 0.0


class TransactionSchema(BaseModel):
    """Payment, spend or contribution record"""

    transaction_id: str
    amount: float
    date: Optional[datetime.date] = None
    description: str = ""
    metadata: Dict[str, Any] = {}


class BillSchema(BaseModel):
    """Bill linked to the obligation"""

    bill_id: str
    amount: float
    due_date: Optional[date] = None
    status: str = "upcoming"
    title: str = ""
    total_amount: Optional[float] = None
    metadata: Dict[str, Any] = {}


class CyclesRequest(BaseModel):
    """Request body for POST /v1/cycles"""

    obligation: ObligationSchema
    transactions: List[TransactionSchema] = []
    bills: List[BillSchema] = []
    as_of: date
    max_cycles: Optional[int] = Field(None, le=1000, description="Defaults to the configured horizon")


class StatusMessageSchema(BaseModel):
    title: str
    subtitle: str
    color: str
    icon: str


class CycleRuleSchema(BaseModel):
    text: str
    icon: str
    type: str


class CycleSchema(BaseModel):
    """Single classified cycle with its presentation"""

    cycle_number: int
    start_date: date
    end_date: date
    expected_date: date
    expected_amount: float
    minimum_amount: Optional[float] = None
    tolerance_days: int
    actual_amount: float
    actual_date: Optional[date] = None
    first_payment_date: Optional[date] = None
    payment_count: int
    status: CycleStatus
    timing_status: Optional[PaymentTiming] = None
    is_within_window: Optional[bool] = None
    days_from_due: Optional[int] = None
    days_late: Optional[int] = None
    days_early: Optional[int] = None
    amount_short: Optional[float] = None
    amount_over: Optional[float] = None
    notes: Optional[str] = None
    is_overridden: bool = False
    original_expected_date: Optional[date] = None
    original_expected_amount: Optional[float] = None
    expected_principal: Optional[float] = None
    expected_interest: Optional[float] = None
    remaining_balance: Optional[float] = None
    actual_principal: Optional[float] = None
    actual_interest: Optional[float] = None
    transactions: List[TransactionSchema] = []
    bills: List[BillSchema] = []
    scheduled_bill: Optional[BillSchema] = None
    message: StatusMessageSchema
    rules: List[CycleRuleSchema]
    summary: List[str] = Field([], description="Facts behind the classification")


class StatisticsSchema(BaseModel):
    """Aggregate counts and rates over the returned cycles"""

    total: int
    paid: int
    not_paid: int
    upcoming: int
    paid_early: int
    paid_on_time: int
    paid_within_window: int
    paid_late: int
    underpaid: int
    overpaid: int
    partial: int
    within_window: int
    outside_window: int
    total_expected: float
    total_actual: float
    completion_rate: float
    on_time_rate: float
    window_compliance_rate: float
    current_streak: int
    average_payment: float


class CyclesResponse(BaseModel):
    """Response for cycle computations"""

    obligation_id: str
    kind: ObligationKind
    as_of: date
    current_cycle_number: Optional[int] = None
    cycles: List[CycleSchema]
    statistics: StatisticsSchema


class OverrideResponse(BaseModel):
    """Stored override for one cycle"""

    obligation_id: str
    cycle_number: int
    expected_amount: Optional[float] = None
    expected_date: Optional[date] = None
    minimum_amount: Optional[float] = None
    notes: Optional[str] = None


class OverrideListResponse(BaseModel):
    """Response for GET /v1/obligations/{obligation_id}/overrides"""

    obligation_id: str
    overrides: List[OverrideResponse]
