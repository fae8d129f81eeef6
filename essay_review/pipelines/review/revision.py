"""Revision pipeline: re-run the evaluation on stored media.

The submission and both media rows are checked before anything is written,
so a revision that cannot start leaves the submission untouched.
"""

from __future__ import annotations

import logging
import time
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from essay_review.application.interfaces import (
    ReviewRepositories,
    SubmissionRepositoryInterface,
    UnitOfWorkFactory,
)
from essay_review.models.revision import RevisionStatus
from essay_review.models.submission import MediaType
from essay_review.telemetry import observe_pipeline_run

from .context import AuditContext
from .result import Failure, Result, Success, is_success, rejected
from .review import ReviewStep
from .submission import outcome_label
from .types import MediaUrls, ReviewResult

logger = logging.getLogger("essay_review.pipeline")

SUBMISSION_NOT_FOUND = "Submission not found"
VIDEO_NOT_FOUND = "Video media not found"
AUDIO_NOT_FOUND = "Audio media not found"
PERSISTENCE_FAILED = "Failed to persist revision"


async def load_media_urls(
    submissions: SubmissionRepositoryInterface, submission_id: UUID
) -> Result[MediaUrls]:
    video = await submissions.get_media(submission_id, MediaType.VIDEO)
    if video is None:
        return rejected(VIDEO_NOT_FOUND)
    audio = await submissions.get_media(submission_id, MediaType.AUDIO)
    if audio is None:
        return rejected(AUDIO_NOT_FOUND)
    return Success(
        MediaUrls(
            video_signed_url=video.signed_url,
            audio_signed_url=audio.signed_url,
        )
    )


class RevisionPipeline:
    def __init__(self, unit_of_work: UnitOfWorkFactory, review_step: ReviewStep) -> None:
        self._unit_of_work = unit_of_work
        self._review = review_step

    async def revise(
        self, submission_id: UUID, context: AuditContext
    ) -> Result[ReviewResult]:
        """Re-evaluate an existing submission and record the revision."""

        started = time.perf_counter()
        context = context.accumulate(submission_id=str(submission_id))
        logger.info(
            "Revision requested trace_id=%s submission_id=%s",
            context.trace_id,
            submission_id,
        )

        try:
            async with self._unit_of_work() as repositories:
                result = await self._run(submission_id, repositories, context)
        except SQLAlchemyError:
            logger.exception(
                "Persistence error during revision trace_id=%s", context.trace_id
            )
            result = Failure(PERSISTENCE_FAILED)

        observe_pipeline_run(
            "revision", outcome_label(result), time.perf_counter() - started
        )
        return result

    async def _run(
        self,
        submission_id: UUID,
        repositories: ReviewRepositories,
        context: AuditContext,
    ) -> Result[ReviewResult]:
        submission = await repositories.submissions.get(submission_id)
        if submission is None:
            return rejected(SUBMISSION_NOT_FOUND)

        media = await load_media_urls(repositories.submissions, submission.id)
        if not is_success(media):
            logger.info(
                "Revision rejected trace_id=%s submission_id=%s error=%s",
                context.trace_id,
                submission_id,
                media.error,
            )
            return media

        revision = await repositories.revisions.create(submission.id)
        await repositories.submissions.mark_retried(submission.id)
        context = context.accumulate(
            revision_id=str(revision.id),
            student_id=submission.student_id,
            student_name=submission.student_name,
            component_type=submission.component_type,
            submit_text=submission.submit_text,
            video_signed_url=media.data.video_signed_url,
            audio_signed_url=media.data.audio_signed_url,
        )
        await repositories.submission_logs.open(context, submission.id)

        result, _ = await self._review.review(
            submission, media.data, repositories, context
        )
        status = RevisionStatus.COMPLETED if is_success(result) else RevisionStatus.FAILED
        await repositories.revisions.update_status(revision.id, status)
        return result


__all__ = [
    "AUDIO_NOT_FOUND",
    "PERSISTENCE_FAILED",
    "RevisionPipeline",
    "SUBMISSION_NOT_FOUND",
    "VIDEO_NOT_FOUND",
    "load_media_urls",
]
