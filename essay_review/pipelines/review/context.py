"""Per-run audit context threaded through the review pipeline stages.

The context is immutable: :func:`accumulate` returns a new instance whose
``log_info`` is the previous mapping merged with the new keys (last write
wins). Each pipeline run owns its own chain of contexts, so concurrent runs
never share state.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping
from uuid import uuid4


def _frozen(values: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(values))


@dataclass(frozen=True)
class AuditContext:
    """Trace id, start time and accumulated stage outputs for one run."""

    trace_id: str
    request_uri: str = ""
    started_at: float = field(default_factory=time.monotonic)
    log_info: Mapping[str, Any] = field(default_factory=lambda: _frozen({}))

    @classmethod
    def start(
        cls,
        trace_id: str | None = None,
        request_uri: str = "",
        **log_info: Any,
    ) -> "AuditContext":
        """Create a fresh context, generating a trace id when none is supplied."""

        return cls(
            trace_id=trace_id or uuid4().hex,
            request_uri=request_uri,
            log_info=_frozen(log_info),
        )

    @property
    def submission_id(self) -> str | None:
        value = self.log_info.get("submission_id")
        return str(value) if value is not None else None

    def accumulate(self, **partial: Any) -> "AuditContext":
        return accumulate(self, partial)

    def elapsed_ms(self) -> int:
        """Milliseconds elapsed since the run started."""

        return int((time.monotonic() - self.started_at) * 1000)

    def snapshot(self) -> dict[str, Any]:
        """Return a plain dict copy of ``log_info`` suitable for JSON columns."""

        return {
            key: list(value) if isinstance(value, tuple) else value
            for key, value in self.log_info.items()
        }


def accumulate(context: AuditContext, partial: Mapping[str, Any]) -> AuditContext:
    """Merge ``partial`` into the context's log info and return the new context."""

    return replace(context, log_info=_frozen({**context.log_info, **partial}))


__all__ = ["AuditContext", "accumulate"]
