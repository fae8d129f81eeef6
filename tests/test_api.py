"""HTTP surface: submission and revision endpoints with stubbed pipelines."""

from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from essay_review.config.settings import settings
from essay_review.controllers.dependencies import (
    get_revision_pipeline,
    get_revision_repository,
    get_submission_pipeline,
    get_submission_repository,
)
from essay_review.database import get_session
from essay_review.main import app
from essay_review.models import SubmissionStatus
from essay_review.pipelines.review.result import Failure, Success, rejected
from essay_review.pipelines.review.types import ReviewResult, SubmissionRequest

from tests.fakes import FakeRevisionRepository, FakeSubmissionRepository

FORM = {
    "student_id": "s-100",
    "student_name": "Jamie Doe",
    "component_type": "essay-1",
    "submit_text": "My essay has a strong thesis.",
}

REVIEW = ReviewResult(
    message="Review completed",
    video_url="https://signed/VIDEO",
    audio_url="https://signed/AUDIO",
    score=8,
    feedback="Clear argument.",
    highlights=["strong thesis"],
    highlighted_text="My essay has a <b>strong thesis</b>.",
    student_id="s-100",
    student_name="Jamie Doe",
    submit_text="My essay has a strong thesis.",
)


class StubSubmissionPipeline:
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = []

    async def submit(self, video_path, request, context):
        with open(video_path, "rb") as handle:
            self.calls.append((handle.read(), request, context))
        return self.outcome


class StubRevisionPipeline:
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = []

    async def revise(self, submission_id, context):
        self.calls.append((submission_id, context))
        return self.outcome


class EmptySession:
    async def get(self, model, key):
        return None


async def empty_session():
    yield EmptySession()


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(settings.media, "temp_directory", str(tmp_path))
    app.dependency_overrides[get_session] = empty_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def post_submission(client, **headers):
    return client.post(
        "/submissions",
        data=FORM,
        files={"video": ("answer.mp4", b"fake-video", "video/mp4")},
        headers=headers,
    )


def test_submission_success(client, tmp_path):
    pipeline = StubSubmissionPipeline(Success(REVIEW, message="Review completed"))
    app.dependency_overrides[get_submission_pipeline] = lambda: pipeline

    response = post_submission(client, **{"X-Request-ID": "trace-abc"})

    assert response.status_code == 200
    body = response.json()
    assert body["result"] == "ok"
    assert body["score"] == 8
    assert body["highlights"] == ["strong thesis"]
    assert body["component_type"] == "essay-1"
    assert body["trace_id"] == "trace-abc"
    assert response.headers["X-Request-ID"] == "trace-abc"

    content, request, context = pipeline.calls[0]
    assert content == b"fake-video"
    assert request.student_id == "s-100"
    assert context.trace_id == "trace-abc"
    # the uploaded copy is removed once the pipeline returns
    assert list(tmp_path.iterdir()) == []


def test_submission_failure_is_reported_in_body(client):
    app.dependency_overrides[get_submission_pipeline] = lambda: StubSubmissionPipeline(
        rejected("Already submitted")
    )

    response = post_submission(client)

    assert response.status_code == 200
    body = response.json()
    assert body["result"] == "failed"
    assert body["message"] == "Already submitted"
    assert body["student_id"] == "s-100"
    assert body["score"] is None


def test_submission_requires_form_fields(client):
    app.dependency_overrides[get_submission_pipeline] = lambda: StubSubmissionPipeline(
        Failure("unused")
    )

    response = client.post(
        "/submissions",
        data={"student_id": "s-100"},
        files={"video": ("answer.mp4", b"x", "video/mp4")},
    )

    assert response.status_code == 422


def test_revision_endpoint(client):
    pipeline = StubRevisionPipeline(Success(REVIEW, message="Review completed"))
    app.dependency_overrides[get_revision_pipeline] = lambda: pipeline
    submission_id = uuid4()

    response = client.post("/revisions", json={"submission_id": str(submission_id)})

    assert response.status_code == 200
    assert response.json()["result"] == "ok"
    assert pipeline.calls[0][0] == submission_id
    assert pipeline.calls[0][1].request_uri == "/revisions"


def test_unknown_submission_returns_404(client):
    response = client.get(f"/submissions/{uuid4()}")

    assert response.status_code == 404
    assert response.json() == {"detail": "Submission not found"}


def test_unknown_revision_returns_404(client):
    response = client.get(f"/revisions/{uuid4()}")

    assert response.status_code == 404
    assert response.json() == {"detail": "Revision not found"}


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Request-ID" in response.headers


def test_list_submissions_with_status_filter(client):
    repository = FakeSubmissionRepository()
    for index in range(3):
        repository.add(
            SubmissionRequest(f"s-{index}", "Jamie Doe", "essay-1", "text"),
            status=SubmissionStatus.FAILED if index == 0 else SubmissionStatus.COMPLETED,
        )
    app.dependency_overrides[get_submission_repository] = lambda: repository

    response = client.get("/submissions", params={"limit": 2, "offset": 0})
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert body["limit"] == 2
    assert len(body["items"]) == 2

    response = client.get("/submissions", params={"status": "FAILED"})
    body = response.json()
    assert body["total"] == 1
    assert body["items"][0]["student_id"] == "s-0"
    assert body["items"][0]["media"] == []


def test_list_submissions_rejects_bad_paging(client):
    app.dependency_overrides[get_submission_repository] = FakeSubmissionRepository

    assert client.get("/submissions", params={"limit": 0}).status_code == 422
    assert client.get("/submissions", params={"offset": -1}).status_code == 422
    assert client.get("/submissions", params={"status": "UNKNOWN"}).status_code == 422


def test_list_revisions(client):
    repository = FakeRevisionRepository()
    submission_id = uuid4()
    for _ in range(3):
        asyncio.run(repository.create(submission_id))
    app.dependency_overrides[get_revision_repository] = lambda: repository

    response = client.get("/revisions", params={"limit": 2, "offset": 1})

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert body["offset"] == 1
    assert len(body["items"]) == 2
    assert body["items"][0]["submission_id"] == str(submission_id)
