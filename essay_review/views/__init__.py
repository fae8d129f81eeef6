"""Pydantic schemas used as views in the MVC architecture."""

from .common import ErrorResponse
from .submissions import (
    ReviewResponse,
    RevisionCreateRequest,
    RevisionPage,
    RevisionRead,
    SubmissionMediaRead,
    SubmissionPage,
    SubmissionRead,
)

__all__ = [
    "ErrorResponse",
    "ReviewResponse",
    "RevisionCreateRequest",
    "RevisionPage",
    "RevisionRead",
    "SubmissionMediaRead",
    "SubmissionPage",
    "SubmissionRead",
]
