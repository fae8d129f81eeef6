"""Audit log models written by the review pipelines."""

from __future__ import annotations

from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy import Enum as SqlEnum
from sqlalchemy.dialects.postgresql import JSONB

from .base import Base


class SubmissionLogStatus(str, Enum):
    """Outcome recorded for one pipeline run."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class SubmissionLog(Base):
    """One row per pipeline run; a repeated client trace id opens a new row."""

    __tablename__ = "submission_logs"

    id = Column(Integer, primary_key=True, index=True)
    trace_id = Column(String(64), nullable=False, index=True)
    submission_id = Column(Uuid, nullable=False, index=True)
    request_uri = Column(String(2048), nullable=False)
    status = Column(
        SqlEnum(SubmissionLogStatus, name="submission_log_status"),
        nullable=False,
        default=SubmissionLogStatus.PENDING,
    )
    error_message = Column(Text, nullable=True)
    latency_ms = Column(Integer, nullable=True)
    log_info = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class ExternalCallLog(Base):
    """Persisted record of a single call to an external dependency."""

    __tablename__ = "external_call_logs"

    id = Column(Integer, primary_key=True, index=True)
    trace_id = Column(String(64), nullable=False, index=True)
    submission_id = Column(Uuid, nullable=True, index=True)
    context = Column(String(64), nullable=False)
    task_name = Column(String(64), nullable=False)
    success = Column(Boolean, nullable=False)
    latency_ms = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)


__all__ = [
    "ExternalCallLog",
    "SubmissionLog",
    "SubmissionLogStatus",
]
