"""Persist one row per call to an external dependency (S3, Bedrock)."""

from __future__ import annotations

import logging
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from essay_review.application.interfaces import ExternalCallLoggerInterface
from essay_review.models import ExternalCallLog
from essay_review.pipelines.review.context import AuditContext

logger = logging.getLogger(__name__)


def _as_uuid(value: Optional[str]) -> Optional[UUID]:
    if not value:
        return None
    try:
        return UUID(value)
    except ValueError:
        return None


class ExternalCallLogger(ExternalCallLoggerInterface):
    """Writes call logs in their own session, independent of the pipeline transaction."""

    def __init__(self, session_factory: Optional[Callable[[], AsyncSession]] = None):
        if session_factory is None:
            from essay_review.database import SessionFactory

            session_factory = SessionFactory
        self._session_factory = session_factory

    async def log_external_call(
        self,
        context: AuditContext,
        *,
        latency_ms: int,
        success: bool,
        service: str,
        task_name: str,
        description: str,
        error_message: Optional[str] = None,
    ) -> None:
        entry = ExternalCallLog(
            trace_id=context.trace_id,
            submission_id=_as_uuid(context.submission_id),
            context=service,
            task_name=task_name,
            success=success,
            latency_ms=max(latency_ms, 0),
            description=description,
            error_message=error_message,
        )
        try:
            async with self._session_factory() as session:
                session.add(entry)
                await session.commit()
        except SQLAlchemyError:
            logger.exception(
                "Failed to persist external call log trace_id=%s service=%s task=%s",
                context.trace_id,
                service,
                task_name,
            )


__all__ = ["ExternalCallLogger"]
