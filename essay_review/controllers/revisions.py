"""Revision endpoints: re-run the evaluation for a stored submission."""

import time
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, Request, status

from essay_review.controllers.dependencies import (
    RevisionPipelineDep,
    RevisionRepositoryDep,
    SessionDep,
)
from essay_review.middleware import resolve_trace_id
from essay_review.models import Revision
from essay_review.pipelines.review.context import AuditContext
from essay_review.views import (
    ErrorResponse,
    ReviewResponse,
    RevisionCreateRequest,
    RevisionPage,
    RevisionRead,
)

router = APIRouter(prefix="/revisions", tags=["revisions"])

_LIMIT_QUERY = Query(20, ge=1, le=100)
_OFFSET_QUERY = Query(0, ge=0)


@router.post("")
async def create_revision(
    payload: RevisionCreateRequest,
    request: Request,
    pipeline: RevisionPipelineDep,
) -> ReviewResponse:
    """Re-evaluate a submission using its already uploaded media."""

    started = time.perf_counter()
    context = AuditContext.start(
        trace_id=resolve_trace_id(request),
        request_uri=request.url.path,
    )
    outcome = await pipeline.revise(payload.submission_id, context)
    return ReviewResponse.build(
        outcome,
        trace_id=context.trace_id,
        api_latency_ms=int((time.perf_counter() - started) * 1000),
    )


@router.get("/{revision_id}", responses={404: {"model": ErrorResponse}})
async def get_revision(revision_id: UUID, db_session: SessionDep) -> RevisionRead:
    revision = await db_session.get(Revision, revision_id)
    if revision is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Revision not found",
        )
    return RevisionRead.model_validate(revision)


@router.get("")
async def list_revisions(
    revisions: RevisionRepositoryDep,
    limit: int = _LIMIT_QUERY,
    offset: int = _OFFSET_QUERY,
) -> RevisionPage:
    total, rows = await revisions.list_revisions(offset=offset, limit=limit)
    return RevisionPage(
        total=total,
        offset=offset,
        limit=limit,
        items=[RevisionRead.model_validate(row) for row in rows],
    )
