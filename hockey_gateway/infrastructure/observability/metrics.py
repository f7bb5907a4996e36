"""Prometheus metrics for discount outcomes, payment plans and webhook performance"""

from prometheus_client import Counter, Histogram

from hockey_gateway.domain.models import ChargeResult

# Charge metrics
charge_counter = Counter(
    "hockey_charge_total",
    "Charges calculated",
    ["outcome"],  # no_discount | full | partial | season_cap_reached | code_limit_reached
)

discount_cents_counter = Counter(
    "hockey_discount_cents_total",
    "Discount cents quoted",
)

discount_usage_counter = Counter(
    "hockey_discount_usage_recorded_total",
    "Discount usage rows written",
)

payment_plan_counter = Counter(
    "hockey_payment_plan_created_total",
    "Payment plans created",
    ["installments"],
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Scheduler webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def charge_outcome(result: ChargeResult) -> str:
    """Bucket a charge result for the outcome label"""
    if result.discount_code is None:
        return "no_discount"
    if result.is_partial_discount:
        return "partial"
    if result.discount_amount > 0:
        return "full"
    # Zero discount with a code: either the cap is spent or the ledger was never read
    if result.seasonal_usage is not None:
        return "season_cap_reached"
    return "code_limit_reached"


def record_charge(result: ChargeResult) -> None:
    """Record charge metrics for monitoring discount uptake and cap pressure"""
    charge_counter.labels(outcome=charge_outcome(result)).inc()
    discount_cents_counter.inc(result.discount_amount)
