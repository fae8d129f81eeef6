"""Pydantic contract for validating the AI essay evaluation response.

The model is asked for a bare JSON object but sometimes wraps it in a
Markdown code fence; the fence is stripped before parsing. Any failure is
reported as one of two fixed, user-safe messages so parser internals never
leak to callers.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from essay_review.pipelines.review.result import Failure, Result, Success
from essay_review.pipelines.review.types import EssayEvaluation

PARSE_FAILED = "Response parsing failed"
INVALID_FORMAT = "Invalid response format"

MIN_SCORE = 0
MAX_SCORE = 10

_FENCE_PATTERN = re.compile(r"^```[A-Za-z0-9_-]*\s*(.*?)\s*```$", re.DOTALL)


class ReviewPayload(BaseModel):
    score: float
    feedback: str
    highlights: list[str]

    model_config = ConfigDict(extra="ignore")

    @field_validator("score", mode="before")
    @classmethod
    def check_score(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("score must be a number")
        if not MIN_SCORE <= value <= MAX_SCORE:
            raise ValueError("score out of range")
        return value

    @field_validator("feedback", mode="before")
    @classmethod
    def check_feedback(cls, value: Any) -> Any:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("feedback must be a non-empty string")
        return value.strip()

    @field_validator("highlights", mode="before")
    @classmethod
    def drop_blank_highlights(cls, value: Any) -> Any:
        if not isinstance(value, list):
            raise ValueError("highlights must be an array")
        return [item for item in value if isinstance(item, str) and item.strip()]


def strip_code_fence(payload: str) -> str:
    """Remove a wrapping ```lang ... ``` fence if present, trimming whitespace."""

    cleaned = payload.strip()
    match = _FENCE_PATTERN.match(cleaned)
    if match:
        return match.group(1).strip()
    return cleaned


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def parse_review_response(raw: str | None) -> Result[EssayEvaluation]:
    """Turn raw AI text into a validated evaluation or a failure."""

    if raw is None:
        return Failure(PARSE_FAILED)

    try:
        data = json.loads(strip_code_fence(raw))
    except (json.JSONDecodeError, TypeError):
        return Failure(PARSE_FAILED)

    try:
        payload = ReviewPayload.model_validate(data)
    except ValidationError:
        return Failure(INVALID_FORMAT)

    return Success(
        EssayEvaluation(
            score=round_half_up(payload.score),
            feedback=payload.feedback,
            highlights=list(payload.highlights),
        )
    )


__all__ = [
    "INVALID_FORMAT",
    "PARSE_FAILED",
    "ReviewPayload",
    "parse_review_response",
    "round_half_up",
    "strip_code_fence",
]
