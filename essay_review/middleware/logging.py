"""Structured logging middleware for FastAPI requests."""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("essay_review.middleware.structured")

TRACE_HEADER = "X-Request-ID"
_MAX_TRACE_LENGTH = 64


def resolve_trace_id(request: Request) -> str:
    """Return the trace id assigned to this request by the middleware."""

    trace_id = getattr(request.state, "trace_id", None)
    return trace_id or uuid4().hex


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Assign a trace id and emit one JSON log line for each HTTP request."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start_time = time.perf_counter()
        trace_id = self._incoming_trace_id(request) or uuid4().hex
        request.state.trace_id = trace_id

        log_payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "trace_id": trace_id,
            "method": request.method,
            "url": str(request.url),
            "client_ip": request.client.host if request.client else None,
        }

        try:
            response = await call_next(request)
        except Exception as exc:  # pragma: no cover
            log_payload["status_code"] = 500
            log_payload["duration_ms"] = self._elapsed_ms(start_time)
            log_payload["error"] = repr(exc)
            logger.exception(self._to_json(log_payload))
            raise

        log_payload["status_code"] = response.status_code
        log_payload["duration_ms"] = self._elapsed_ms(start_time)
        logger.info(self._to_json(log_payload))
        response.headers[TRACE_HEADER] = trace_id
        return response

    @staticmethod
    def _incoming_trace_id(request: Request) -> str | None:
        value = request.headers.get(TRACE_HEADER)
        if not value:
            return None
        value = value.strip()
        if not value or len(value) > _MAX_TRACE_LENGTH:
            return None
        return value

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        """Return elapsed milliseconds rounded to two decimals."""

        return round((time.perf_counter() - start_time) * 1000, 2)

    @staticmethod
    def _to_json(payload: dict[str, Any]) -> str:
        """Serialize payload as compact JSON."""

        return json.dumps(payload, default=str, separators=(",", ":"))
