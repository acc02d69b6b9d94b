"""Prometheus metrics for remote API health, session churn, onboarding and checkout"""

from prometheus_client import Counter, Histogram

# Remote API metrics
remote_api_latency_histogram = Histogram(
    "portal_remote_api_latency_seconds",
    "Remote society API response time",
    ["method"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

remote_api_failure_counter = Counter(
    "portal_remote_api_failures_total",
    "Failed remote API calls",
    ["status"],  # HTTP status code | network
)

# Session metrics
session_invalidation_counter = Counter(
    "portal_session_invalidations_total",
    "Sessions cleared because the token was rejected or could not be validated",
    ["reason"],  # unauthorized | restore_failed
)

# Onboarding metrics
onboarding_transition_counter = Counter(
    "portal_onboarding_transitions_total",
    "Onboarding wizard step transitions",
    ["to_step"],  # PG_DETAILS | EKYC | AGREEMENT | COMPLETED
)

document_generation_failure_counter = Counter(
    "portal_document_generation_failures_total",
    "Best-effort document generation calls that failed after onboarding",
)

# Checkout metrics
checkout_outcome_counter = Counter(
    "portal_checkout_outcomes_total",
    "Checkout flows by final outcome",
    ["outcome"],  # succeeded | failed | dismissed | verification_failed | configuration_error | error
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_checkout_outcome(outcome: str) -> None:
    """Record the final state of a checkout flow"""
    checkout_outcome_counter.labels(outcome=outcome).inc()


def record_remote_failure(status_code: int | None) -> None:
    remote_api_failure_counter.labels(status=str(status_code) if status_code else "network").inc()
