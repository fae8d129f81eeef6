"""Result values and audit context accumulation."""

from __future__ import annotations

import pytest

from essay_review.pipelines.review.context import AuditContext, accumulate
from essay_review.pipelines.review.result import (
    Failure,
    FailureKind,
    Success,
    is_success,
    rejected,
)


def test_success_and_failure_flags():
    assert Success(3).success is True
    assert is_success(Success(3))
    failure = Failure("boom")
    assert failure.success is False
    assert failure.kind is FailureKind.ERROR
    assert not is_success(failure)


def test_rejected_marks_soft_failures():
    failure = rejected("Already submitted")
    assert failure.error == "Already submitted"
    assert failure.kind is FailureKind.REJECTED


def test_accumulate_returns_new_context_with_merged_info():
    base = AuditContext.start(trace_id="t-1", request_uri="/submissions", student_id="s1")
    updated = accumulate(base, {"score": 7, "student_id": "s2"})

    assert base.log_info == {"student_id": "s1"}
    assert updated.log_info == {"student_id": "s2", "score": 7}
    assert updated.trace_id == "t-1"
    assert updated.started_at == base.started_at


def test_log_info_is_read_only():
    context = AuditContext.start(trace_id="t-1")
    with pytest.raises(TypeError):
        context.log_info["score"] = 1  # type: ignore[index]


def test_start_generates_trace_id_when_missing():
    first = AuditContext.start()
    second = AuditContext.start()
    assert first.trace_id and second.trace_id
    assert first.trace_id != second.trace_id


def test_submission_id_and_snapshot():
    context = AuditContext.start(trace_id="t-1").accumulate(
        submission_id="abc", highlights=("a", "b")
    )
    assert context.submission_id == "abc"
    assert context.snapshot() == {"submission_id": "abc", "highlights": ["a", "b"]}
    assert context.elapsed_ms() >= 0
