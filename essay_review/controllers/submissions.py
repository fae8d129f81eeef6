"""Essay submission endpoints.

`POST /submissions` stores the uploaded video in the temp directory, runs
the submission pipeline (see `essay_review.pipelines.review`) and always
answers 200 with a `ReviewResponse`; failures are reported in the body.
`GET /submissions` pages through stored submissions.
"""

import logging
import os
import shutil
import time
from pathlib import Path
from typing import Optional
from uuid import UUID, uuid4

from fastapi import APIRouter, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select

from essay_review.config.settings import settings
from essay_review.controllers.dependencies import (
    SessionDep,
    SubmissionPipelineDep,
    SubmissionRepositoryDep,
)
from essay_review.middleware import resolve_trace_id
from essay_review.models import Submission, SubmissionMedia, SubmissionStatus
from essay_review.pipelines.review.context import AuditContext
from essay_review.pipelines.review.types import SubmissionRequest
from essay_review.views import (
    ErrorResponse,
    ReviewResponse,
    SubmissionMediaRead,
    SubmissionPage,
    SubmissionRead,
)

router = APIRouter(prefix="/submissions", tags=["submissions"])

logger = logging.getLogger(__name__)

_VIDEO_UPLOAD = File(..., description="MP4 response video")
_STUDENT_ID_FORM = Form(..., min_length=1, max_length=64)
_STUDENT_NAME_FORM = Form(..., min_length=1, max_length=128)
_COMPONENT_TYPE_FORM = Form(..., min_length=1, max_length=128)
_SUBMIT_TEXT_FORM = Form(..., min_length=1)
_LIMIT_QUERY = Query(20, ge=1, le=100)
_OFFSET_QUERY = Query(0, ge=0)
_STATUS_QUERY = Query(None, alias="status")


def _store_upload(upload: UploadFile) -> str:
    directory = Path(settings.media.temp_directory)
    directory.mkdir(parents=True, exist_ok=True)
    suffix = Path(upload.filename or "").suffix.lower()
    target = directory / f"upload_{uuid4().hex}{suffix}"
    with target.open("wb") as buffer:
        shutil.copyfileobj(upload.file, buffer)
    return str(target)


def _remove_upload(path: str) -> None:
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError as exc:
        logger.warning("Could not remove upload %s: %s", path, exc)


@router.post("")
async def create_submission(
    request: Request,
    pipeline: SubmissionPipelineDep,
    video: UploadFile = _VIDEO_UPLOAD,
    student_id: str = _STUDENT_ID_FORM,
    student_name: str = _STUDENT_NAME_FORM,
    component_type: str = _COMPONENT_TYPE_FORM,
    submit_text: str = _SUBMIT_TEXT_FORM,
) -> ReviewResponse:
    """Run the full review for a new essay submission."""

    started = time.perf_counter()
    context = AuditContext.start(
        trace_id=resolve_trace_id(request),
        request_uri=request.url.path,
    )
    submission = SubmissionRequest(
        student_id=student_id.strip(),
        student_name=student_name.strip(),
        component_type=component_type.strip(),
        submit_text=submit_text,
    )

    try:
        upload_path = await run_in_threadpool(_store_upload, video)
    except OSError as exc:
        logger.error("Could not store upload trace_id=%s: %s", context.trace_id, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not store uploaded video",
        ) from exc

    try:
        outcome = await pipeline.submit(upload_path, submission, context)
    finally:
        await run_in_threadpool(_remove_upload, upload_path)

    return ReviewResponse.build(
        outcome,
        trace_id=context.trace_id,
        api_latency_ms=int((time.perf_counter() - started) * 1000),
        request=submission,
    )


@router.get("/{submission_id}", responses={404: {"model": ErrorResponse}})
async def get_submission(submission_id: UUID, db_session: SessionDep) -> SubmissionRead:
    """Return a stored submission with its uploaded media."""

    submission = await db_session.get(Submission, submission_id)
    if submission is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Submission not found",
        )

    result = await db_session.execute(
        select(SubmissionMedia)
        .where(SubmissionMedia.submission_id == submission_id)
        .order_by(SubmissionMedia.media_type)
    )
    view = SubmissionRead.model_validate(submission)
    view.media = [
        SubmissionMediaRead.model_validate(row) for row in result.scalars().all()
    ]
    return view


@router.get("")
async def list_submissions(
    submissions: SubmissionRepositoryDep,
    limit: int = _LIMIT_QUERY,
    offset: int = _OFFSET_QUERY,
    submission_status: Optional[SubmissionStatus] = _STATUS_QUERY,
) -> SubmissionPage:
    """Page through stored submissions, newest first."""

    total, rows = await submissions.list_submissions(
        offset=offset, limit=limit, status=submission_status
    )
    return SubmissionPage(
        total=total,
        offset=offset,
        limit=limit,
        items=[SubmissionRead.model_validate(row) for row in rows],
    )
