"""AI evaluation stage of the review pipeline (Stage 03).

Each attempt builds the prompt, calls the completion client, validates the
raw answer and writes exactly one external call log entry. Attempts repeat
under the configured :class:`RetryPolicy` until one validates or the
attempts run out, in which case the last attempt's failure is returned.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from essay_review.application.interfaces import (
    CompletionClientInterface,
    ExternalCallLoggerInterface,
)
from essay_review.services.response_contract import parse_review_response
from essay_review.telemetry import increment_evaluation_attempt

from .context import AuditContext
from .prompts import build_review_prompt
from .result import Result, is_success
from .retry import RetryPolicy
from .types import EssayEvaluation

logger = logging.getLogger("essay_review.pipeline")

EVALUATION_SERVICE = "bedrock"
EVALUATION_TASK = "essay-review"


def _truncate(value: str, max_length: int = 500) -> str:
    if len(value) <= max_length:
        return value
    return value[: max_length - 3] + "..."


class EvaluationStage:
    def __init__(
        self,
        completion_client: CompletionClientInterface,
        call_logger: ExternalCallLoggerInterface,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        self._client = completion_client
        self._call_logger = call_logger
        self._retry_policy = retry_policy or RetryPolicy()

    async def evaluate(
        self, submit_text: str, context: AuditContext
    ) -> tuple[Result[EssayEvaluation], AuditContext]:
        attempts = 0
        raw_responses: list[str] = []

        async def run_attempt() -> Result[EssayEvaluation]:
            nonlocal attempts
            attempts += 1
            return await self._attempt(submit_text, attempts, raw_responses, context)

        outcome: Result[EssayEvaluation] = await self._retry_policy.retrying()(
            run_attempt
        )

        partial: dict[str, object] = {"evaluation_attempts": attempts}
        if raw_responses:
            partial["review_response"] = raw_responses[-1]
        if is_success(outcome):
            partial.update(
                score=outcome.data.score,
                feedback=outcome.data.feedback,
                highlights=list(outcome.data.highlights),
            )
        return outcome, context.accumulate(**partial)

    async def _attempt(
        self,
        submit_text: str,
        attempt: int,
        raw_responses: list[str],
        context: AuditContext,
    ) -> Result[EssayEvaluation]:
        prompt = build_review_prompt(submit_text)
        started = time.perf_counter()

        completion = await self._client.complete(prompt, context)
        if is_success(completion):
            raw_responses.append(completion.data)
            logger.info(
                "Raw review response trace_id=%s attempt=%s: %s",
                context.trace_id,
                attempt,
                _truncate(completion.data),
            )
            outcome = parse_review_response(completion.data)
        else:
            outcome = completion

        latency_ms = int((time.perf_counter() - started) * 1000)
        await self._record(context, attempt, latency_ms, outcome)
        return outcome

    async def _record(
        self,
        context: AuditContext,
        attempt: int,
        latency_ms: int,
        outcome: Result[EssayEvaluation],
    ) -> None:
        succeeded = is_success(outcome)
        increment_evaluation_attempt(succeeded)
        total = self._retry_policy.max_attempts
        if succeeded:
            description = f"Review attempt {attempt}/{total} succeeded"
            error_message = None
        else:
            description = f"Review attempt {attempt}/{total} failed"
            error_message = outcome.error
            logger.warning(
                "Review attempt failed trace_id=%s attempt=%s/%s error=%s",
                context.trace_id,
                attempt,
                total,
                error_message,
            )

        await self._call_logger.log_external_call(
            context,
            latency_ms=latency_ms,
            success=succeeded,
            service=EVALUATION_SERVICE,
            task_name=EVALUATION_TASK,
            description=description,
            error_message=error_message,
        )


__all__ = ["EVALUATION_SERVICE", "EVALUATION_TASK", "EvaluationStage"]
