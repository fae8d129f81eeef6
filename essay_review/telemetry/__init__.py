"""Telemetry helpers and metrics."""

from .metrics import (
    ERROR_COUNTER,
    EVALUATION_ATTEMPTS,
    PIPELINE_LATENCY,
    PIPELINE_RUNS,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    increment_evaluation_attempt,
    observe_pipeline_run,
    observe_request,
)

__all__ = [
    "ERROR_COUNTER",
    "EVALUATION_ATTEMPTS",
    "PIPELINE_LATENCY",
    "PIPELINE_RUNS",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "increment_evaluation_attempt",
    "observe_pipeline_run",
    "observe_request",
]
