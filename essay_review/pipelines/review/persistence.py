"""Persist the final state of a pipeline run."""

from __future__ import annotations

import logging
from uuid import UUID

from essay_review.application.interfaces import ReviewRepositories

from .context import AuditContext
from .result import Failure
from .types import EssayEvaluation

logger = logging.getLogger("essay_review.pipeline")


async def complete_run(
    repositories: ReviewRepositories,
    submission_id: UUID,
    evaluation: EssayEvaluation,
    context: AuditContext,
) -> None:
    """Store the evaluation and close the run log as completed."""

    await repositories.submissions.complete(submission_id, evaluation)
    await repositories.submission_logs.complete(context)
    logger.info(
        "Review completed trace_id=%s submission_id=%s score=%s latency_ms=%s",
        context.trace_id,
        submission_id,
        evaluation.score,
        context.elapsed_ms(),
    )


async def fail_run(
    repositories: ReviewRepositories,
    submission_id: UUID,
    context: AuditContext,
    failure: Failure,
) -> None:
    """Mark the submission as failed and close the run log with the error."""

    await repositories.submissions.fail(submission_id)
    await repositories.submission_logs.fail(context, failure.error)
    logger.warning(
        "Review failed trace_id=%s submission_id=%s kind=%s error=%s",
        context.trace_id,
        submission_id,
        failure.kind.value,
        failure.error,
    )


__all__ = ["complete_run", "fail_run"]
