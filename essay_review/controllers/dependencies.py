"""Common FastAPI dependencies reused across controllers."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from essay_review.config.settings import settings
from essay_review.database import get_session
from essay_review.infrastructure.persistence.repositories_sqlalchemy import (
    SQLAlchemyRevisionRepository,
    SQLAlchemySubmissionRepository,
)
from essay_review.infrastructure.persistence.unit_of_work import review_unit_of_work
from essay_review.pipelines.review.evaluation import EvaluationStage
from essay_review.pipelines.review.media import MediaStage
from essay_review.pipelines.review.retry import RetryPolicy
from essay_review.pipelines.review.review import ReviewStep
from essay_review.pipelines.review.revision import RevisionPipeline
from essay_review.pipelines.review.submission import SubmissionPipeline
from essay_review.services import (
    BedrockLlmClient,
    ExternalCallLogger,
    FfmpegTranscoder,
    S3MediaStorage,
)

SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_submission_repository(db_session: SessionDep) -> SQLAlchemySubmissionRepository:
    return SQLAlchemySubmissionRepository(db_session)


def get_revision_repository(db_session: SessionDep) -> SQLAlchemyRevisionRepository:
    return SQLAlchemyRevisionRepository(db_session)


SubmissionRepositoryDep = Annotated[
    SQLAlchemySubmissionRepository, Depends(get_submission_repository)
]
RevisionRepositoryDep = Annotated[
    SQLAlchemyRevisionRepository, Depends(get_revision_repository)
]


@lru_cache
def get_call_logger() -> ExternalCallLogger:
    return ExternalCallLogger()


@lru_cache
def get_review_step() -> ReviewStep:
    evaluation = EvaluationStage(
        BedrockLlmClient(),
        get_call_logger(),
        RetryPolicy.from_settings(settings.evaluation),
    )
    return ReviewStep(evaluation)


@lru_cache
def get_submission_pipeline() -> SubmissionPipeline:
    """Return the process-wide submission pipeline wired to AWS and ffmpeg."""

    media = MediaStage(FfmpegTranscoder(), S3MediaStorage(get_call_logger()))
    return SubmissionPipeline(review_unit_of_work, media, get_review_step())


@lru_cache
def get_revision_pipeline() -> RevisionPipeline:
    return RevisionPipeline(review_unit_of_work, get_review_step())


SubmissionPipelineDep = Annotated[SubmissionPipeline, Depends(get_submission_pipeline)]
RevisionPipelineDep = Annotated[RevisionPipeline, Depends(get_revision_pipeline)]


__all__ = [
    "RevisionPipelineDep",
    "RevisionRepositoryDep",
    "SessionDep",
    "SubmissionPipelineDep",
    "SubmissionRepositoryDep",
    "get_call_logger",
    "get_review_step",
    "get_revision_repository",
    "get_revision_pipeline",
    "get_submission_pipeline",
    "get_submission_repository",
]
