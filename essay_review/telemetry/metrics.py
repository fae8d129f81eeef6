"""Prometheus metrics definitions and helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests processed",
    ("method", "route", "status"),
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ("method", "route"),
    buckets=(
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
        5.0,
        10.0,
    ),
)

ERROR_COUNTER = Counter(
    "app_internal_errors_total",
    "Number of requests ending in internal server error responses",
    ("method", "route"),
)

PIPELINE_RUNS = Counter(
    "review_pipeline_runs_total",
    "Review pipeline runs grouped by pipeline and outcome",
    ("pipeline", "outcome"),
)

PIPELINE_LATENCY = Histogram(
    "review_pipeline_duration_seconds",
    "Duration of a full review pipeline run in seconds",
    ("pipeline",),
    buckets=(1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0),
)

EVALUATION_ATTEMPTS = Counter(
    "review_evaluation_attempts_total",
    "AI evaluation attempts grouped by outcome",
    ("outcome",),
)


def observe_request(
    method: str,
    route: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """Record metrics for a completed HTTP request."""

    safe_route = route or "unknown"
    safe_method = method or "UNKNOWN"
    status_label = str(status_code)
    observed_duration = duration_seconds if duration_seconds >= 0 else 0

    REQUEST_COUNT.labels(
        method=safe_method,
        route=safe_route,
        status=status_label,
    ).inc()
    REQUEST_LATENCY.labels(
        method=safe_method,
        route=safe_route,
    ).observe(observed_duration)

    if status_code >= 500:
        ERROR_COUNTER.labels(
            method=safe_method,
            route=safe_route,
        ).inc()


def observe_pipeline_run(
    pipeline: str,
    outcome: str,
    duration_seconds: float,
) -> None:
    """Record the outcome and duration of one submission or revision run."""

    PIPELINE_RUNS.labels(pipeline=pipeline, outcome=outcome).inc()
    PIPELINE_LATENCY.labels(pipeline=pipeline).observe(max(duration_seconds, 0))


def increment_evaluation_attempt(success: bool) -> None:
    EVALUATION_ATTEMPTS.labels(outcome="success" if success else "failure").inc()
