"""SQLAlchemy implementations of the review repositories.

Repositories only flush; committing is left to the unit of work that owns
the session so one pipeline run is a single transaction.
"""

from __future__ import annotations

from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from essay_review.application.interfaces import (
    DuplicateSubmissionError,
    RevisionRepositoryInterface,
    SubmissionLogRepositoryInterface,
    SubmissionRepositoryInterface,
)
from essay_review.models import (
    MediaType,
    Revision,
    RevisionStatus,
    Submission,
    SubmissionLog,
    SubmissionLogStatus,
    SubmissionMedia,
    SubmissionStatus,
)
from essay_review.pipelines.review.context import AuditContext
from essay_review.pipelines.review.types import (
    EssayEvaluation,
    SubmissionRequest,
    UploadedMedia,
)


def _has_media(media_type: MediaType):
    return exists().where(
        SubmissionMedia.submission_id == Submission.id,
        SubmissionMedia.media_type == media_type,
    )


class SQLAlchemySubmissionRepository(SubmissionRepositoryInterface):
    """SQLAlchemy implementation of the submission repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_student_and_component(
        self, student_id: str, component_type: str
    ) -> Optional[Submission]:
        result = await self.session.execute(
            select(Submission).where(
                Submission.student_id == student_id,
                Submission.component_type == component_type,
            )
        )
        return result.scalar_one_or_none()

    async def create(self, request: SubmissionRequest) -> Submission:
        submission = Submission(
            student_id=request.student_id,
            student_name=request.student_name,
            component_type=request.component_type,
            submit_text=request.submit_text,
            status=SubmissionStatus.PENDING,
            retried=False,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(submission)
                await self.session.flush()
        except IntegrityError as exc:
            raise DuplicateSubmissionError(
                f"{request.student_id}/{request.component_type}"
            ) from exc
        return submission

    async def get(self, submission_id: UUID) -> Optional[Submission]:
        return await self.session.get(Submission, submission_id)

    async def _require(self, submission_id: UUID) -> Submission:
        submission = await self.get(submission_id)
        if submission is None:
            raise LookupError(f"Submission {submission_id} does not exist")
        return submission

    async def complete(self, submission_id: UUID, evaluation: EssayEvaluation) -> None:
        submission = await self._require(submission_id)
        submission.score = evaluation.score
        submission.feedback = evaluation.feedback
        submission.highlights = list(evaluation.highlights)
        submission.status = SubmissionStatus.COMPLETED
        await self.session.flush()

    async def fail(self, submission_id: UUID) -> None:
        submission = await self._require(submission_id)
        submission.status = SubmissionStatus.FAILED
        await self.session.flush()

    async def mark_retried(self, submission_id: UUID) -> None:
        submission = await self._require(submission_id)
        submission.retried = True
        await self.session.flush()

    async def list_failed_not_retried(self, limit: int = 100) -> List[Submission]:
        """FAILED, never retried submissions that still have both media rows.

        A submission that failed before its media was stored cannot be
        revised, so it is never a candidate.
        """

        result = await self.session.execute(
            select(Submission)
            .where(
                Submission.status == SubmissionStatus.FAILED,
                Submission.retried.is_(False),
                _has_media(MediaType.VIDEO),
                _has_media(MediaType.AUDIO),
            )
            .order_by(Submission.created_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_submissions(
        self,
        offset: int = 0,
        limit: int = 20,
        status: Optional[SubmissionStatus] = None,
    ) -> Tuple[int, List[Submission]]:
        count_query = select(func.count()).select_from(Submission)
        page_query = select(Submission)
        if status is not None:
            count_query = count_query.where(Submission.status == status)
            page_query = page_query.where(Submission.status == status)

        total = (await self.session.execute(count_query)).scalar_one()
        result = await self.session.execute(
            page_query
            .order_by(Submission.created_at.desc(), Submission.id)
            .offset(offset)
            .limit(limit)
        )
        return total, list(result.scalars().all())

    async def create_media(
        self, submission_id: UUID, media: UploadedMedia
    ) -> SubmissionMedia:
        row = SubmissionMedia(
            submission_id=submission_id,
            media_type=media.media_type,
            file_url=media.remote_url,
            signed_url=media.signed_url,
            file_size=media.byte_size,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_media(
        self, submission_id: UUID, media_type: MediaType
    ) -> Optional[SubmissionMedia]:
        result = await self.session.execute(
            select(SubmissionMedia).where(
                SubmissionMedia.submission_id == submission_id,
                SubmissionMedia.media_type == media_type,
            )
        )
        return result.scalar_one_or_none()


class SQLAlchemyRevisionRepository(RevisionRepositoryInterface):
    """SQLAlchemy implementation of the revision repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, submission_id: UUID) -> Revision:
        revision = Revision(submission_id=submission_id, status=RevisionStatus.PENDING)
        self.session.add(revision)
        await self.session.flush()
        return revision

    async def update_status(self, revision_id: UUID, status: RevisionStatus) -> None:
        revision = await self.get(revision_id)
        if revision is None:
            raise LookupError(f"Revision {revision_id} does not exist")
        if revision.status != RevisionStatus.PENDING:
            raise ValueError(f"Revision {revision_id} is already {revision.status.value}")
        revision.status = status
        await self.session.flush()

    async def get(self, revision_id: UUID) -> Optional[Revision]:
        return await self.session.get(Revision, revision_id)

    async def list_revisions(
        self, offset: int = 0, limit: int = 20
    ) -> Tuple[int, List[Revision]]:
        total = (
            await self.session.execute(select(func.count()).select_from(Revision))
        ).scalar_one()
        result = await self.session.execute(
            select(Revision)
            .order_by(Revision.created_at.desc(), Revision.id)
            .offset(offset)
            .limit(limit)
        )
        return total, list(result.scalars().all())


class SQLAlchemySubmissionLogRepository(SubmissionLogRepositoryInterface):
    """One submission log row per pipeline run.

    Trace ids come from the client and may repeat, so a run's row is the
    newest PENDING row for its trace id (and submission, when known).
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def open(self, context: AuditContext, submission_id: UUID) -> None:
        self.session.add(
            SubmissionLog(
                trace_id=context.trace_id,
                submission_id=submission_id,
                request_uri=context.request_uri,
                status=SubmissionLogStatus.PENDING,
                log_info=context.snapshot(),
            )
        )
        await self.session.flush()

    async def _pending_run(self, context: AuditContext) -> SubmissionLog:
        query = select(SubmissionLog).where(
            SubmissionLog.trace_id == context.trace_id,
            SubmissionLog.status == SubmissionLogStatus.PENDING,
        )
        if context.submission_id is not None:
            query = query.where(
                SubmissionLog.submission_id == UUID(context.submission_id)
            )
        result = await self.session.execute(
            query.order_by(SubmissionLog.id.desc()).limit(1)
        )
        log = result.scalar_one_or_none()
        if log is None:
            raise LookupError(f"No open submission log for trace_id={context.trace_id}")
        return log

    async def complete(self, context: AuditContext) -> None:
        log = await self._pending_run(context)
        log.status = SubmissionLogStatus.COMPLETED
        log.log_info = context.snapshot()
        log.latency_ms = context.elapsed_ms()
        await self.session.flush()

    async def fail(self, context: AuditContext, error_message: str) -> None:
        log = await self._pending_run(context)
        log.status = SubmissionLogStatus.FAILED
        log.error_message = error_message
        log.log_info = context.snapshot()
        log.latency_ms = context.elapsed_ms()
        await self.session.flush()


__all__ = [
    "SQLAlchemyRevisionRepository",
    "SQLAlchemySubmissionLogRepository",
    "SQLAlchemySubmissionRepository",
]
