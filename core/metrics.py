"""
Prometheus metrics for the access key service.

Custom metrics for business logic and performance monitoring.
"""
from contextlib import contextmanager

from prometheus_client import Counter, Histogram

from core.domain.exceptions import DomainException

# HTTP metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

# Admission metrics
admissions_total = Counter(
    "access_key_admissions_total",
    "Admission operations by outcome (success or error code)",
    ["operation", "outcome"],
)

# Billing metrics
billing_events_total = Counter(
    "billing_events_total",
    "Billing events by type and outcome",
    ["event_type", "outcome"],
)

access_keys_activated_total = Counter(
    "access_keys_activated_total",
    "Access keys created or renewed by billing events",
    ["kind"],
)

access_keys_cancelled_total = Counter(
    "access_keys_cancelled_total",
    "Access keys cancelled by subscription deletion",
)

notifications_total = Counter(
    "access_key_notifications_total",
    "Access key notifications by outcome",
    ["outcome"],
)

# Error metrics
errors_total = Counter(
    "errors_total",
    "Total errors",
    ["error_type", "endpoint"],
)


@contextmanager
def track_admission(operation: str):
    """Count an admission operation under its outcome label."""
    try:
        yield
    except DomainException as e:
        admissions_total.labels(operation=operation, outcome=e.code).inc()
        raise
    admissions_total.labels(operation=operation, outcome="success").inc()
