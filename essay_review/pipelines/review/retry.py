"""Retry policy for the AI evaluation stage, expressed with tenacity."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
    wait_exponential_jitter,
    wait_none,
)
from tenacity.wait import wait_base

from essay_review.config.settings import EvaluationConfig

from .result import is_success

logger = logging.getLogger("essay_review.pipeline")


@dataclass(frozen=True)
class RetryPolicy:
    """How many evaluation attempts to make and how long to wait between them."""

    max_attempts: int = 3
    wait: wait_base = field(default_factory=wait_none)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @classmethod
    def from_settings(cls, config: EvaluationConfig) -> "RetryPolicy":
        if config.backoff_initial_seconds > 0:
            wait: wait_base = wait_exponential_jitter(
                initial=config.backoff_initial_seconds,
                max=config.backoff_max_seconds,
            )
        else:
            wait = wait_none()
        return cls(max_attempts=config.max_retries, wait=wait)

    def retrying(self) -> AsyncRetrying:
        """Build a retrier that repeats while the attempt returns a failure.

        After the last attempt the retrier returns that attempt's failure
        instead of raising ``RetryError``.
        """

        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.wait,
            retry=retry_if_result(lambda outcome: not is_success(outcome)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            retry_error_callback=lambda state: state.outcome.result(),
        )


__all__ = ["RetryPolicy"]
