"""Application middleware package."""

from .logging import StructuredLoggingMiddleware, resolve_trace_id
from .telemetry import TelemetryMiddleware

__all__ = ["StructuredLoggingMiddleware", "TelemetryMiddleware", "resolve_trace_id"]
