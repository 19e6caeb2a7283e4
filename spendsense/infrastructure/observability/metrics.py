"""Prometheus metrics for persona mix, AML alert severity, copy fallbacks and data access"""

from prometheus_client import Counter, Histogram

# Profiling metrics
persona_counter = Counter(
    "spendsense_persona_assigned_total",
    "Personas assigned by profile recomputation",
    ["persona", "window"],
)

aml_severity_counter = Counter(
    "spendsense_aml_alert_severity_total",
    "AML heuristic alert severities per recomputation",
    ["severity"],  # none | informational | elevated
)

review_enqueued_counter = Counter(
    "spendsense_review_enqueued_total",
    "Review queue items created",
    ["reason"],  # persona_change | aml_alerts
)

# Recommendation metrics
copy_fallback_counter = Counter(
    "spendsense_copy_fallback_total",
    "AI copy requests answered by the deterministic template",
    ["reason"],  # unavailable | malformed
)

copy_latency_histogram = Histogram(
    "spendsense_copy_latency_seconds",
    "Text generation collaborator response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

tone_violation_counter = Counter(
    "spendsense_tone_violations_total",
    "Recommendation copy rejected by tone policy",
)

# Data access
db_retry_counter = Counter(
    "spendsense_db_retries_total",
    "Database reads retried after connection errors",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_profile(persona_key: str, window_days: int) -> None:
    """Record persona mix for monitoring classification drift"""
    persona_counter.labels(persona=persona_key, window=f"{window_days}d").inc()


def record_alert_severity(severity: str) -> None:
    aml_severity_counter.labels(severity=severity).inc()
