"""Payment timing relative to a due date and tolerance window"""

from datetime import date

from cycles_gateway.domain.models import PaymentTiming


def classify_timing(payment_date: date, expected_date: date, tolerance_days: int) -> PaymentTiming:
    """
    Bucket a payment date against the due date.

    | days from due (d)      | timing        |
    |------------------------|---------------|
    | d < 0                  | early         |
    | d == 0 or 0 < d < tol  | on_time       |
    | d == tol (tol > 0)     | within_window |
    | d > tol                | late          |
    """
    diff = (payment_date - expected_date).days
    if diff < 0:
        return PaymentTiming.EARLY
    if diff == 0 or diff < tolerance_days:
        return PaymentTiming.ON_TIME
    if diff == tolerance_days:
        return PaymentTiming.WITHIN_WINDOW
    return PaymentTiming.LATE


def is_within_window(payment_date: date, expected_date: date, tolerance_days: int) -> bool:
    return (payment_date - expected_date).days <= tolerance_days
