"""Pydantic schemas for submission and revision endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from essay_review.models.revision import RevisionStatus
from essay_review.models.submission import MediaType, SubmissionStatus
from essay_review.pipelines.review.result import Result, is_success
from essay_review.pipelines.review.types import ReviewResult, SubmissionRequest


class ReviewResponse(BaseModel):
    """Outcome of a submission or revision run; failures are reported in the body."""

    result: Literal["ok", "failed"]
    message: str
    trace_id: str
    student_id: Optional[str] = None
    student_name: Optional[str] = None
    component_type: Optional[str] = None
    submit_text: Optional[str] = None
    score: Optional[int] = None
    feedback: Optional[str] = None
    highlights: list[str] = Field(default_factory=list)
    highlighted_text: Optional[str] = None
    video_url: Optional[str] = None
    audio_url: Optional[str] = None
    api_latency_ms: int = Field(..., ge=0)

    @classmethod
    def build(
        cls,
        outcome: Result[ReviewResult],
        *,
        trace_id: str,
        api_latency_ms: int,
        request: Optional[SubmissionRequest] = None,
    ) -> "ReviewResponse":
        base = {
            "trace_id": trace_id,
            "api_latency_ms": max(api_latency_ms, 0),
        }
        if request is not None:
            base.update(
                student_id=request.student_id,
                student_name=request.student_name,
                component_type=request.component_type,
                submit_text=request.submit_text,
            )

        if not is_success(outcome):
            return cls(result="failed", message=outcome.error, **base)

        review = outcome.data
        base.update(
            student_id=review.student_id,
            student_name=review.student_name,
            submit_text=review.submit_text,
        )
        return cls(
            result="ok",
            message=review.message,
            score=review.score,
            feedback=review.feedback,
            highlights=list(review.highlights),
            highlighted_text=review.highlighted_text,
            video_url=review.video_url,
            audio_url=review.audio_url,
            **base,
        )


class SubmissionMediaRead(BaseModel):
    media_type: MediaType
    file_url: str
    signed_url: str
    file_size: int

    model_config = ConfigDict(from_attributes=True)


class SubmissionRead(BaseModel):
    """Stored submission with its media."""

    id: UUID
    student_id: str
    student_name: str
    component_type: str
    submit_text: str
    status: SubmissionStatus
    score: Optional[int] = None
    feedback: Optional[str] = None
    highlights: Optional[list[str]] = None
    retried: bool
    created_at: datetime
    updated_at: datetime
    media: list[SubmissionMediaRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class SubmissionPage(BaseModel):
    """One page of stored submissions; media is not loaded for list reads."""

    total: int
    offset: int
    limit: int
    items: list[SubmissionRead]


class RevisionCreateRequest(BaseModel):
    submission_id: UUID


class RevisionRead(BaseModel):
    id: UUID
    submission_id: UUID
    status: RevisionStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RevisionPage(BaseModel):
    total: int
    offset: int
    limit: int
    items: list[RevisionRead]


__all__ = [
    "ReviewResponse",
    "RevisionCreateRequest",
    "RevisionPage",
    "RevisionRead",
    "SubmissionMediaRead",
    "SubmissionPage",
    "SubmissionRead",
]
