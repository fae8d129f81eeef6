"""SQLAlchemy model for submission revisions (evaluation retries)."""

from __future__ import annotations

import uuid
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Uuid, func
from sqlalchemy import Enum as SqlEnum

from essay_review.models.base import Base


class RevisionStatus(str, Enum):
    """Lifecycle states of a revision."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class Revision(Base):
    __tablename__ = "revisions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    submission_id = Column(
        Uuid,
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status = Column(
        SqlEnum(RevisionStatus, name="revision_status"),
        nullable=False,
        default=RevisionStatus.PENDING,
    )
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


__all__ = ["Revision", "RevisionStatus"]
