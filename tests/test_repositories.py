"""SQLAlchemy repositories against an in-memory SQLite database."""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from essay_review.infrastructure.persistence.unit_of_work import review_unit_of_work
from essay_review.models import (
    Base,
    ExternalCallLog,
    MediaType,
    RevisionStatus,
    SubmissionLog,
    SubmissionLogStatus,
    SubmissionStatus,
)
from essay_review.pipelines.review.context import AuditContext
from essay_review.pipelines.review.types import (
    EssayEvaluation,
    SubmissionRequest,
    UploadedMedia,
)
from essay_review.services.external_logger import ExternalCallLogger


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


async def test_submission_lifecycle(session_factory, submission_request):
    context = AuditContext.start(trace_id="trace-db", request_uri="/submissions")

    async with review_unit_of_work(session_factory) as repositories:
        assert (
            await repositories.submissions.find_by_student_and_component(
                submission_request.student_id, submission_request.component_type
            )
            is None
        )
        submission = await repositories.submissions.create(submission_request)
        submission_id = submission.id
        await repositories.submission_logs.open(
            context.accumulate(submission_id=str(submission_id)), submission_id
        )
        await repositories.submissions.create_media(
            submission_id,
            UploadedMedia(MediaType.VIDEO, "https://bucket/v.mp4", "https://signed/v", 100),
        )
        await repositories.submissions.complete(
            submission_id, EssayEvaluation(score=9, feedback="Great", highlights=["x"])
        )
        await repositories.submission_logs.complete(context.accumulate(score=9))

    async with review_unit_of_work(session_factory) as repositories:
        stored = await repositories.submissions.get(submission_id)
        assert stored.status == SubmissionStatus.COMPLETED
        assert stored.score == 9
        assert stored.highlights == ["x"]
        assert stored.retried is False

        found = await repositories.submissions.find_by_student_and_component(
            submission_request.student_id, submission_request.component_type
        )
        assert found.id == submission_id

        video = await repositories.submissions.get_media(submission_id, MediaType.VIDEO)
        assert video.signed_url == "https://signed/v"
        assert await repositories.submissions.get_media(submission_id, MediaType.AUDIO) is None

    async with session_factory() as session:
        log = (
            await session.execute(select(SubmissionLog).where(SubmissionLog.trace_id == "trace-db"))
        ).scalar_one()
        assert log.status == SubmissionLogStatus.COMPLETED
        assert log.log_info == {"score": 9}
        assert log.latency_ms >= 0


def request_for(student_id: str) -> SubmissionRequest:
    return SubmissionRequest(
        student_id=student_id,
        student_name="Other",
        component_type="essay-1",
        submit_text="text",
    )


async def store_media(repositories, submission_id, *media_types):
    for media_type in media_types:
        await repositories.submissions.create_media(
            submission_id,
            UploadedMedia(media_type, f"https://bucket/{media_type.value}", "https://signed", 10),
        )


async def test_failed_submissions_listed_until_retried(session_factory, submission_request):
    async with review_unit_of_work(session_factory) as repositories:
        failed = await repositories.submissions.create(submission_request)
        await store_media(repositories, failed.id, MediaType.VIDEO, MediaType.AUDIO)
        await repositories.submissions.fail(failed.id)
        other = await repositories.submissions.create(request_for("s-200"))
        failed_id, other_id = failed.id, other.id

    async with review_unit_of_work(session_factory) as repositories:
        candidates = await repositories.submissions.list_failed_not_retried()
        assert [submission.id for submission in candidates] == [failed_id]

        revision = await repositories.revisions.create(failed_id)
        await repositories.submissions.mark_retried(failed_id)
        await repositories.revisions.update_status(revision.id, RevisionStatus.FAILED)
        revision_id = revision.id

    async with review_unit_of_work(session_factory) as repositories:
        assert await repositories.submissions.list_failed_not_retried() == []
        stored = await repositories.revisions.get(revision_id)
        assert stored.status == RevisionStatus.FAILED
        assert (await repositories.submissions.get(other_id)).status == SubmissionStatus.PENDING

        with pytest.raises(ValueError):
            await repositories.revisions.update_status(revision_id, RevisionStatus.COMPLETED)


async def test_failed_submissions_without_both_media_are_not_candidates(
    session_factory, submission_request
):
    async with review_unit_of_work(session_factory) as repositories:
        no_media = await repositories.submissions.create(submission_request)
        await repositories.submissions.fail(no_media.id)
        video_only = await repositories.submissions.create(request_for("s-200"))
        await store_media(repositories, video_only.id, MediaType.VIDEO)
        await repositories.submissions.fail(video_only.id)
        revisable = await repositories.submissions.create(request_for("s-300"))
        await store_media(repositories, revisable.id, MediaType.VIDEO, MediaType.AUDIO)
        await repositories.submissions.fail(revisable.id)
        revisable_id = revisable.id

    async with review_unit_of_work(session_factory) as repositories:
        candidates = await repositories.submissions.list_failed_not_retried(limit=1)
        assert [submission.id for submission in candidates] == [revisable_id]


async def test_list_submissions_pages_and_filters_by_status(
    session_factory, submission_request
):
    async with review_unit_of_work(session_factory) as repositories:
        first = await repositories.submissions.create(submission_request)
        await repositories.submissions.fail(first.id)
        for student_id in ("s-200", "s-300"):
            await repositories.submissions.create(request_for(student_id))
        failed_id = first.id

    async with review_unit_of_work(session_factory) as repositories:
        total, page = await repositories.submissions.list_submissions(offset=0, limit=2)
        assert total == 3
        assert len(page) == 2
        _, rest = await repositories.submissions.list_submissions(offset=2, limit=2)
        assert len(rest) == 1
        assert {row.id for row in page + rest} == {
            row.id for row in (await repositories.submissions.list_submissions(limit=10))[1]
        }

        total, failed = await repositories.submissions.list_submissions(
            status=SubmissionStatus.FAILED
        )
        assert total == 1
        assert [row.id for row in failed] == [failed_id]


async def test_list_revisions_pages(session_factory, submission_request):
    async with review_unit_of_work(session_factory) as repositories:
        submission = await repositories.submissions.create(submission_request)
        for _ in range(3):
            await repositories.revisions.create(submission.id)

    async with review_unit_of_work(session_factory) as repositories:
        total, page = await repositories.revisions.list_revisions(offset=1, limit=5)
        assert total == 3
        assert len(page) == 2
        assert {revision.submission_id for revision in page} == {submission.id}


async def test_repeated_trace_id_opens_a_new_run_log(session_factory, submission_request):
    async with review_unit_of_work(session_factory) as repositories:
        submission = await repositories.submissions.create(submission_request)
        submission_id = submission.id

    context = AuditContext.start(trace_id="client-id", request_uri="/revisions").accumulate(
        submission_id=str(submission_id)
    )
    async with review_unit_of_work(session_factory) as repositories:
        await repositories.submission_logs.open(context, submission_id)
        await repositories.submission_logs.fail(context, "Invalid response format")

    async with review_unit_of_work(session_factory) as repositories:
        await repositories.submission_logs.open(context, submission_id)
        await repositories.submission_logs.complete(context.accumulate(score=7))

    async with session_factory() as session:
        logs = (
            await session.execute(
                select(SubmissionLog)
                .where(SubmissionLog.trace_id == "client-id")
                .order_by(SubmissionLog.id)
            )
        ).scalars().all()
        assert [log.status for log in logs] == [
            SubmissionLogStatus.FAILED,
            SubmissionLogStatus.COMPLETED,
        ]
        assert logs[0].error_message == "Invalid response format"
        assert logs[1].log_info["score"] == 7


async def test_submission_log_failure_records_error(session_factory, submission_request):
    context = AuditContext.start(trace_id="trace-fail", request_uri="/submissions")

    async with review_unit_of_work(session_factory) as repositories:
        submission = await repositories.submissions.create(submission_request)
        await repositories.submission_logs.open(context, submission.id)
        await repositories.submission_logs.fail(context, "Video processing failed (video)")

    async with session_factory() as session:
        log = (
            await session.execute(select(SubmissionLog).where(SubmissionLog.trace_id == "trace-fail"))
        ).scalar_one()
        assert log.status == SubmissionLogStatus.FAILED
        assert log.error_message == "Video processing failed (video)"


async def test_external_call_logger_persists_entry(session_factory):
    context = AuditContext.start(trace_id="trace-call").accumulate(
        submission_id="0f8fad5b-d9cb-469f-a165-70867728950e"
    )

    await ExternalCallLogger(session_factory).log_external_call(
        context,
        latency_ms=120,
        success=False,
        service="bedrock",
        task_name="essay-review",
        description="Review attempt 1/3 failed",
        error_message="Invalid response format",
    )

    async with session_factory() as session:
        entry = (await session.execute(select(ExternalCallLog))).scalar_one()
        assert entry.trace_id == "trace-call"
        assert str(entry.submission_id) == "0f8fad5b-d9cb-469f-a165-70867728950e"
        assert entry.context == "bedrock"
        assert entry.success is False
        assert entry.error_message == "Invalid response format"


async def test_external_call_logger_does_not_raise_on_database_error(caplog):
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    factory = async_sessionmaker(engine)
    context = AuditContext.start(trace_id="trace-no-table")

    await ExternalCallLogger(factory).log_external_call(
        context,
        latency_ms=5,
        success=True,
        service="s3",
        task_name="s3-media-upload",
        description="Upload VIDEO",
    )

    assert "Failed to persist external call log" in caplog.text
    await engine.dispose()
