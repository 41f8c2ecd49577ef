"""Prometheus metrics for cycle computations, statuses, and backend health"""

from typing import Iterable

from prometheus_client import Counter, Histogram

# Computation metrics
cycle_computation_counter = Counter(
    "cycles_computation_total",
    "Cycle computations performed",
    ["kind"],  # liability | budget | goal | recurring_transaction
)

cycle_status_counter = Counter(
    "cycles_status_total",
    "Classified cycles by status",
    ["status"],
)

cycle_computation_histogram = Histogram(
    "cycles_computation_seconds",
    "Time spent computing cycles for one obligation",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)

records_dropped_counter = Counter(
    "cycles_records_dropped_total",
    "Transactions and bills left unattributed",
)

# Override store metrics
override_change_counter = Counter(
    "cycles_override_changes_total",
    "Cycle override writes",
    ["action"],  # upsert | delete
)

# Backend API metrics
backend_fetch_failures_counter = Counter(
    "backend_fetch_failures_total",
    "Failed backend API calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_computation(kind: str, statuses: Iterable[str], duration_seconds: float, dropped: int = 0) -> None:
    """Record one computation and the status distribution it produced"""
    cycle_computation_counter.labels(kind=kind).inc()
    cycle_computation_histogram.observe(duration_seconds)
    for status in statuses:
        cycle_status_counter.labels(status=status).inc()
    if dropped:
        records_dropped_counter.inc(dropped)


def record_override_change(action: str) -> None:
    override_change_counter.labels(action=action).inc()
