"""Submission pipeline: dedup, create, media, evaluation, persistence.

One run owns one transaction. Failures after the submission row exists
mark the submission FAILED and close the run log with the error; the
transaction still commits so that state is kept. A duplicate submission is
rejected before anything is written.
"""

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import SQLAlchemyError

from essay_review.application.interfaces import (
    DuplicateSubmissionError,
    ReviewRepositories,
    UnitOfWorkFactory,
)
from essay_review.telemetry import observe_pipeline_run

from .context import AuditContext
from .media import MediaStage
from .persistence import fail_run
from .result import Failure, Result, is_success, rejected
from .review import ReviewStep
from .types import ReviewResult, SubmissionRequest

logger = logging.getLogger("essay_review.pipeline")

ALREADY_SUBMITTED = "Already submitted"
PERSISTENCE_FAILED = "Failed to persist submission"


def outcome_label(result: Result[object]) -> str:
    return "completed" if is_success(result) else result.kind.value


class SubmissionPipeline:
    def __init__(
        self,
        unit_of_work: UnitOfWorkFactory,
        media_stage: MediaStage,
        review_step: ReviewStep,
    ) -> None:
        self._unit_of_work = unit_of_work
        self._media = media_stage
        self._review = review_step

    async def submit(
        self,
        video_path: str,
        request: SubmissionRequest,
        context: AuditContext,
    ) -> Result[ReviewResult]:
        """Process one student submission end to end."""

        started = time.perf_counter()
        context = context.accumulate(
            student_id=request.student_id,
            student_name=request.student_name,
            component_type=request.component_type,
            submit_text=request.submit_text,
        )
        logger.info(
            "Submission received trace_id=%s student_id=%s component_type=%s",
            context.trace_id,
            request.student_id,
            request.component_type,
        )

        try:
            async with self._unit_of_work() as repositories:
                result = await self._run(video_path, request, repositories, context)
        except SQLAlchemyError:
            logger.exception(
                "Persistence error during submission trace_id=%s", context.trace_id
            )
            result = Failure(PERSISTENCE_FAILED)

        observe_pipeline_run(
            "submission", outcome_label(result), time.perf_counter() - started
        )
        return result

    async def _run(
        self,
        video_path: str,
        request: SubmissionRequest,
        repositories: ReviewRepositories,
        context: AuditContext,
    ) -> Result[ReviewResult]:
        existing = await repositories.submissions.find_by_student_and_component(
            request.student_id, request.component_type
        )
        if existing is not None:
            return self._duplicate(request, context)

        try:
            submission = await repositories.submissions.create(request)
        except DuplicateSubmissionError:
            return self._duplicate(request, context)

        context = context.accumulate(submission_id=str(submission.id))
        await repositories.submission_logs.open(context, submission.id)

        media, context = await self._media.process(
            video_path, submission.id, repositories.submissions, context
        )
        if not is_success(media):
            await fail_run(repositories, submission.id, context, media)
            return media

        result, _ = await self._review.review(
            submission, media.data, repositories, context
        )
        return result

    @staticmethod
    def _duplicate(request: SubmissionRequest, context: AuditContext) -> Failure:
        logger.info(
            "Duplicate submission rejected trace_id=%s student_id=%s component_type=%s",
            context.trace_id,
            request.student_id,
            request.component_type,
        )
        return rejected(ALREADY_SUBMITTED)


__all__ = [
    "ALREADY_SUBMITTED",
    "PERSISTENCE_FAILED",
    "SubmissionPipeline",
    "outcome_label",
]
