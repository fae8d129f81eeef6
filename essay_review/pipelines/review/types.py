"""Typed payloads exchanged between the review pipeline stages.

Kept in their own module so the stage modules (`media`, `evaluation`,
`review`, `submission`, `revision`) can import them without circular
dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from essay_review.models.submission import MediaType


@dataclass(frozen=True)
class SubmissionRequest:
    """Fields supplied by the student alongside the uploaded video."""

    student_id: str
    student_name: str
    component_type: str
    submit_text: str


@dataclass(frozen=True)
class TranscodeOutput:
    """Local files produced by the video transcoder."""

    local_video_path: str
    local_audio_path: str
    original_duration_seconds: float
    processed_duration_seconds: float


@dataclass(frozen=True)
class UploadedMedia:
    """Object storage location of one uploaded media file."""

    media_type: MediaType
    remote_url: str
    signed_url: str
    byte_size: int


@dataclass(frozen=True)
class MediaUrls:
    """Signed URLs of the two media files attached to a submission."""

    video_signed_url: str
    audio_signed_url: str


@dataclass(frozen=True)
class EssayEvaluation:
    """Validated AI evaluation of an essay."""

    score: int
    feedback: str
    highlights: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ReviewResult:
    """Payload returned to callers after a completed review."""

    message: str
    video_url: str
    audio_url: str
    score: int
    feedback: str
    highlights: list[str]
    highlighted_text: str
    student_id: str
    student_name: str
    submit_text: str


__all__ = [
    "EssayEvaluation",
    "MediaUrls",
    "ReviewResult",
    "SubmissionRequest",
    "TranscodeOutput",
    "UploadedMedia",
]
