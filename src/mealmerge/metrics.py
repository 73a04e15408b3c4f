"""Prometheus metrics definitions for Mealmerge."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "mealmerge_http_requests_total",
    "Total number of HTTP requests processed by the Mealmerge API",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "mealmerge_http_request_duration_seconds",
    "Latency of HTTP requests processed by the Mealmerge API",
    ["method", "path"],
)

MERGE_ATTEMPTS = Counter(
    "mealmerge_merge_attempts_total",
    "Number of merge/recovery attempts by action and outcome",
    ["action", "outcome"],
)

RATE_LIMITED = Counter(
    "mealmerge_rate_limited_total",
    "Number of requests rejected by a rate limiter",
    ["limiter"],
)

MIGRATION_STEP_FAILURES = Counter(
    "mealmerge_migration_step_failures_total",
    "Number of failed migration steps by store and criticality",
    ["store", "required"],
)

__all__ = [
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "MERGE_ATTEMPTS",
    "RATE_LIMITED",
    "MIGRATION_STEP_FAILURES",
]
