"""Domain models - pure Python dataclasses representing obligations and their cycles"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional


class ObligationKind(str, Enum):
    """Recurring commitment tracked cycle by cycle"""

    LIABILITY = "liability"
    BUDGET = "budget"
    GOAL = "goal"
    RECURRING_TRANSACTION = "recurring_transaction"


class Frequency(str, Enum):
    """Canonical recurrence frequencies"""

    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    BIMONTHLY = "bimonthly"
    QUARTERLY = "quarterly"
    SEMIANNUAL = "semiannual"
    ANNUAL = "annual"


class CycleStatus(str, Enum):
    """Classifier output for a single cycle"""

    UPCOMING = "upcoming"
    NOT_PAID = "not_paid"
    PAID_ON_TIME = "paid_on_time"
    PAID_EARLY = "paid_early"
    PAID_LATE = "paid_late"
    PAID_WITHIN_WINDOW = "paid_within_window"
    PARTIAL = "partial"
    UNDERPAID = "underpaid"
    OVERPAID = "overpaid"


class PaymentTiming(str, Enum):
    """Timing of a payment relative to the cycle's due date"""

    EARLY = "early"
    ON_TIME = "on_time"
    WITHIN_WINDOW = "within_window"
    LATE = "late"


PAID_STATUSES = frozenset(
    {
        CycleStatus.PAID_ON_TIME,
        CycleStatus.PAID_EARLY,
        CycleStatus.PAID_WITHIN_WINDOW,
        CycleStatus.PAID_LATE,
        CycleStatus.OVERPAID,
    }
)


@dataclass
class Recurrence:
    """How often an obligation repeats"""

    frequency: str
    interval: int = 1
    custom_unit: Optional[str] = None  # only read when frequency == "custom"


@dataclass
class CycleOverride:
    """User-authored correction for one cycle"""

    cycle_number: int
    expected_amount: Optional[float] = None
    expected_date: Optional[date] = None
    minimum_amount: Optional[float] = None
    notes: Optional[str] = None


@dataclass
class Obligation:
    """Liability, budget, goal or recurring transaction, frozen for one computation"""

    obligation_id: str
    kind: ObligationKind
    start_date: date
    recurrence: Recurrence
    amount: float
    title: str = ""
    minimum_amount: Optional[float] = None
    end_date: Optional[date] = None
    due_day: Optional[int] = None
    tolerance_days: Optional[int] = None
    overrides: Dict[int, CycleOverride] = field(default_factory=dict)
    cycle_notes: Dict[int, str] = field(default_factory=dict)

    # Liability amortization
    interest_rate: Optional[float] = None  # annual percentage, e.g. 8.5
    starting_balance: Optional[float] = None
    interest_included: bool = True

    # Goal progress
    target_amount: Optional[float] = None
    current_amount: float = 0.0


@dataclass
class Transaction:
    """Payment, spend or contribution record owned by the surrounding app"""

    transaction_id: str
    amount: float
    date: Optional[date]  # None when the stored value could not be parsed
    description: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Bill:
    """Bill record linked to an obligation"""

    bill_id: str
    amount: float
    due_date: Optional[date]
    status: str = "upcoming"
    title: str = ""
    total_amount: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Cycle:
    """One period's window plus its expected vs actual payment state"""

    cycle_number: int
    start_date: date
    end_date: date
    expected_date: date
    expected_amount: float
    obligation_kind: ObligationKind
    tolerance_days: int
    as_of: date
    minimum_amount: Optional[float] = None
    actual_amount: float = 0.0
    actual_date: Optional[date] = None
    first_payment_date: Optional[date] = None
    payment_count: int = 0
    status: CycleStatus = CycleStatus.UPCOMING
    timing_status: Optional[PaymentTiming] = None
    is_within_window: Optional[bool] = None
    days_from_due: Optional[int] = None
    days_late: Optional[int] = None
    days_early: Optional[int] = None
    amount_short: Optional[float] = None
    amount_over: Optional[float] = None
    transactions: List[Transaction] = field(default_factory=list)
    bills: List[Bill] = field(default_factory=list)
    scheduled_bill: Optional[Bill] = None
    notes: Optional[str] = None
    is_overridden: bool = False
    original_expected_date: Optional[date] = None  # computed due date, kept when an override moves it
    original_expected_amount: Optional[float] = None

    # Interest breakdown (liabilities)
    expected_principal: Optional[float] = None
    expected_interest: Optional[float] = None
    remaining_balance: Optional[float] = None
    actual_principal: Optional[float] = None
    actual_interest: Optional[float] = None


@dataclass
class StatusMessage:
    """Short human-readable status for a cycle"""

    title: str
    subtitle: str
    color: str
    icon: str


@dataclass
class CycleRule:
    """Plain-language rule with an icon and severity"""

    text: str
    icon: str
    type: str  # "info" | "success" | "warning"


@dataclass
class CycleDescription:
    """Full presentation metadata for a cycle"""

    title: str
    subtitle: str
    icon: str
    color: str
    rules: List[str]


@dataclass
class CycleStatistics:
    """Aggregate counts and rates over a list of cycles"""

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
