"""Shared fixtures for the review pipeline tests."""

from __future__ import annotations

import pytest

from essay_review.pipelines.review.context import AuditContext
from essay_review.pipelines.review.types import SubmissionRequest

from tests.fakes import FakeCallLogger, FakeUnitOfWork


@pytest.fixture
def submission_request() -> SubmissionRequest:
    return SubmissionRequest(
        student_id="s-100",
        student_name="Jamie Doe",
        component_type="essay-1",
        submit_text="My essay has a strong thesis and supporting detail.",
    )


@pytest.fixture
def context() -> AuditContext:
    return AuditContext.start(trace_id="trace-1", request_uri="/submissions")


@pytest.fixture
def unit_of_work() -> FakeUnitOfWork:
    return FakeUnitOfWork()


@pytest.fixture
def call_logger() -> FakeCallLogger:
    return FakeCallLogger()
