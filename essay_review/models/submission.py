"""SQLAlchemy models for essay submissions and their uploaded media."""

from __future__ import annotations

import uuid
from enum import Enum

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy import Enum as SqlEnum
from sqlalchemy.dialects.postgresql import JSONB

from essay_review.models.base import Base


class SubmissionStatus(str, Enum):
    """Lifecycle states of a submission."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class MediaType(str, Enum):
    """Kinds of media extracted from an uploaded response video."""

    VIDEO = "VIDEO"
    AUDIO = "AUDIO"


class Submission(Base):
    __tablename__ = "submissions"
    __table_args__ = (
        # Authoritative duplicate guard; the pipeline check is only a fast path.
        UniqueConstraint(
            "student_id",
            "component_type",
            name="uq_submissions_student_component",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    student_id = Column(String(64), nullable=False, index=True)
    student_name = Column(String(128), nullable=False)
    component_type = Column(String(128), nullable=False)
    submit_text = Column(Text, nullable=False)
    status = Column(
        SqlEnum(SubmissionStatus, name="submission_status"),
        nullable=False,
        default=SubmissionStatus.PENDING,
        index=True,
    )
    score = Column(Integer, nullable=True)
    feedback = Column(Text, nullable=True)
    highlights = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    retried = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class SubmissionMedia(Base):
    __tablename__ = "submission_media"
    __table_args__ = (
        UniqueConstraint(
            "submission_id",
            "media_type",
            name="uq_submission_media_type",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    submission_id = Column(
        Uuid,
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    media_type = Column(SqlEnum(MediaType, name="media_type"), nullable=False)
    file_url = Column(String(2048), nullable=False)
    signed_url = Column(Text, nullable=False)
    file_size = Column(BigInteger, nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())


__all__ = ["Submission", "SubmissionMedia", "SubmissionStatus", "MediaType"]
