"""SQLAlchemy models for the essay review service."""

from .base import Base
from .log import ExternalCallLog, SubmissionLog, SubmissionLogStatus  # noqa: F401
from .revision import Revision, RevisionStatus  # noqa: F401
from .submission import (  # noqa: F401
    MediaType,
    Submission,
    SubmissionMedia,
    SubmissionStatus,
)

__all__ = [
    "Base",
    "Submission",
    "SubmissionMedia",
    "SubmissionStatus",
    "MediaType",
    "Revision",
    "RevisionStatus",
    "SubmissionLog",
    "SubmissionLogStatus",
    "ExternalCallLog",
]
