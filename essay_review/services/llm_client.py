"""Thin Bedrock client wrapper for the essay evaluation call."""

from __future__ import annotations

import logging
from typing import Any, Optional

from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, ReadTimeoutError
from fastapi.concurrency import run_in_threadpool

from essay_review.application.interfaces import CompletionClientInterface
from essay_review.config.settings import BedrockConfig, settings
from essay_review.pipelines.review.context import AuditContext
from essay_review.pipelines.review.result import Failure, FailureKind, Result, Success
from essay_review.services.aws import create_boto3_client

logger = logging.getLogger(__name__)

EMPTY_RESPONSE = "Empty response from model"


class BedrockLlmClient(CompletionClientInterface):
    """Invoke Amazon Bedrock models with standard configuration."""

    def __init__(self, config: Optional[BedrockConfig] = None, client: Any = None) -> None:
        self._config = config or settings.bedrock
        self._client = client or create_boto3_client(
            "bedrock-runtime",
            region_name=self._config.region,
            config=Config(
                read_timeout=self._config.read_timeout_seconds,
                retries={"max_attempts": 1, "mode": "standard"},
            ),
        )

    async def complete(self, prompt: str, context: AuditContext) -> Result[str]:
        """Run a Bedrock `converse` call and return the aggregate text output."""

        inference_cfg = {
            "maxTokens": self._config.max_tokens,
            "temperature": self._config.temperature,
            "topP": self._config.top_p,
        }

        def _call() -> str:
            response = self._client.converse(
                modelId=self._config.model_id,
                messages=[{"role": "user", "content": [{"text": prompt}]}],
                inferenceConfig=inference_cfg,
            )
            content_blocks = (
                response.get("output", {})
                .get("message", {})
                .get("content", [])
            )
            texts = [block.get("text", "") for block in content_blocks if block.get("text")]
            return "\n".join(texts).strip()

        try:
            text = await run_in_threadpool(_call)
        except ReadTimeoutError as exc:
            logger.warning("Bedrock call timed out trace_id=%s: %s", context.trace_id, exc)
            return Failure("Model request timed out", kind=FailureKind.TIMEOUT)
        except (BotoCoreError, ClientError) as exc:
            logger.warning("Bedrock call failed trace_id=%s: %s", context.trace_id, exc)
            return Failure(f"Model request failed: {exc}")

        if not text:
            return Failure(EMPTY_RESPONSE)
        return Success(text)


__all__ = ["BedrockLlmClient", "EMPTY_RESPONSE"]
