"""Contracts for the collaborators consumed by the review pipelines.

The pipelines depend only on these interfaces; the SQLAlchemy repositories
and the ffmpeg/S3/Bedrock services implement them, and the tests supply
in-memory fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    AsyncContextManager,
    Callable,
    List,
    Optional,
    Sequence,
    Tuple,
)
from uuid import UUID

from essay_review.models.revision import Revision, RevisionStatus
from essay_review.models.submission import (
    MediaType,
    Submission,
    SubmissionMedia,
    SubmissionStatus,
)

if TYPE_CHECKING:
    from essay_review.pipelines.review.context import AuditContext
    from essay_review.pipelines.review.result import Result
    from essay_review.pipelines.review.types import (
        EssayEvaluation,
        SubmissionRequest,
        TranscodeOutput,
        UploadedMedia,
    )


class SubmissionRepositoryInterface(ABC):
    """Persistence contract for submissions and their media rows"""

    @abstractmethod
    async def find_by_student_and_component(
        self, student_id: str, component_type: str
    ) -> Optional[Submission]:
        ...

    @abstractmethod
    async def create(self, request: "SubmissionRequest") -> Submission:
        ...

    @abstractmethod
    async def get(self, submission_id: UUID) -> Optional[Submission]:
        ...

    @abstractmethod
    async def complete(
        self, submission_id: UUID, evaluation: "EssayEvaluation"
    ) -> None:
        ...

    @abstractmethod
    async def fail(self, submission_id: UUID) -> None:
        ...

    @abstractmethod
    async def mark_retried(self, submission_id: UUID) -> None:
        ...

    @abstractmethod
    async def list_failed_not_retried(self, limit: int = 100) -> List[Submission]:
        ...

    @abstractmethod
    async def list_submissions(
        self,
        offset: int = 0,
        limit: int = 20,
        status: Optional[SubmissionStatus] = None,
    ) -> Tuple[int, List[Submission]]:
        ...

    @abstractmethod
    async def create_media(
        self, submission_id: UUID, media: "UploadedMedia"
    ) -> SubmissionMedia:
        ...

    @abstractmethod
    async def get_media(
        self, submission_id: UUID, media_type: MediaType
    ) -> Optional[SubmissionMedia]:
        ...


class RevisionRepositoryInterface(ABC):
    """Persistence contract for revisions"""

    @abstractmethod
    async def create(self, submission_id: UUID) -> Revision:
        ...

    @abstractmethod
    async def update_status(self, revision_id: UUID, status: RevisionStatus) -> None:
        ...

    @abstractmethod
    async def get(self, revision_id: UUID) -> Optional[Revision]:
        ...

    @abstractmethod
    async def list_revisions(
        self, offset: int = 0, limit: int = 20
    ) -> Tuple[int, List[Revision]]:
        ...


class SubmissionLogRepositoryInterface(ABC):
    """Persistence contract for the per-run submission log"""

    @abstractmethod
    async def open(self, context: "AuditContext", submission_id: UUID) -> None:
        ...

    @abstractmethod
    async def complete(self, context: "AuditContext") -> None:
        ...

    @abstractmethod
    async def fail(self, context: "AuditContext", error_message: str) -> None:
        ...


class ExternalCallLoggerInterface(ABC):
    """Records one call to an external dependency"""

    @abstractmethod
    async def log_external_call(
        self,
        context: "AuditContext",
        *,
        latency_ms: int,
        success: bool,
        service: str,
        task_name: str,
        description: str,
        error_message: Optional[str] = None,
    ) -> None:
        ...


class VideoTranscoderInterface(ABC):
    """Splits an uploaded response video into processed video and audio files"""

    @abstractmethod
    async def transcode(
        self, input_path: str, submission_id: str
    ) -> "Result[TranscodeOutput]":
        ...

    @abstractmethod
    async def cleanup(self, paths: Sequence[str]) -> None:
        ...


class MediaStorageInterface(ABC):
    """Uploads local media files to object storage"""

    @abstractmethod
    async def upload(
        self,
        local_path: str,
        media_type: MediaType,
        context: "AuditContext",
    ) -> "Result[UploadedMedia]":
        ...


class CompletionClientInterface(ABC):
    """Runs a single AI text completion"""

    @abstractmethod
    async def complete(self, prompt: str, context: "AuditContext") -> "Result[str]":
        ...


class DuplicateSubmissionError(RuntimeError):
    """Raised when the uniqueness constraint rejects a second submission."""


@dataclass(frozen=True)
class ReviewRepositories:
    """Repositories bound to the single transaction of one pipeline run."""

    submissions: SubmissionRepositoryInterface
    revisions: RevisionRepositoryInterface
    submission_logs: SubmissionLogRepositoryInterface


UnitOfWorkFactory = Callable[[], AsyncContextManager[ReviewRepositories]]
