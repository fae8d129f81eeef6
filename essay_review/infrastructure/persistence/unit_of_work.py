"""Transactional unit of work used by the review pipelines."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from essay_review.application.interfaces import ReviewRepositories
from essay_review.database import transaction_scope

from .repositories_sqlalchemy import (
    SQLAlchemyRevisionRepository,
    SQLAlchemySubmissionLogRepository,
    SQLAlchemySubmissionRepository,
)


def bind_repositories(session: AsyncSession) -> ReviewRepositories:
    return ReviewRepositories(
        submissions=SQLAlchemySubmissionRepository(session),
        revisions=SQLAlchemyRevisionRepository(session),
        submission_logs=SQLAlchemySubmissionLogRepository(session),
    )


@asynccontextmanager
async def review_unit_of_work(
    factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> AsyncIterator[ReviewRepositories]:
    """Yield repositories sharing one transaction, committed when the block exits."""

    async with transaction_scope(factory) as session:
        yield bind_repositories(session)


__all__ = ["bind_repositories", "review_unit_of_work"]
