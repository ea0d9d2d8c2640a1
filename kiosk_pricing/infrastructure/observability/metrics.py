"""Prometheus metrics for monitoring quotes, tier data quality and notification delivery"""

from typing import Optional

from prometheus_client import Counter, Histogram

from kiosk_pricing.domain.models import FeeBreakdown

# Quote metrics
quote_counter = Counter(
    "kiosk_quote_total",
    "Fee quotes requested",
    ["operation", "outcome"],  # outcome: quoted | no_quote
)

quote_service_fees_histogram = Histogram(
    "kiosk_quote_service_fees",
    "Final service fees per quote (currency units)",
    buckets=[0, 5, 10, 25, 50, 100, 250, 500],
)

tier_warning_counter = Counter(
    "kiosk_tier_integrity_warnings_total",
    "Discount tier table inconsistencies hit during resolution",
    ["kind"],  # overlap | gap
)

# Transaction metrics
transaction_counter = Counter(
    "kiosk_transactions_total",
    "Transactions recorded",
    ["operation", "account_type"],
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "notification_webhook_latency_seconds",
    "Notification webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "notification_webhook_failures_total",
    "Failed notification webhook deliveries",
)

# Backend metrics
backend_failures_counter = Counter(
    "backend_failures_total",
    "Failed database calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_quote(operation_type: str, breakdown: Optional[FeeBreakdown]) -> None:
    """Record quote outcome and fee distribution"""
    if operation_type not in ("transfer", "withdrawal"):
        operation_type = "other"

    if breakdown is None:
        quote_counter.labels(operation=operation_type, outcome="no_quote").inc()
        return

    quote_counter.labels(operation=operation_type, outcome="quoted").inc()
    quote_service_fees_histogram.observe(float(breakdown.final_service_fees))
