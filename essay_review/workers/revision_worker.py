"""Background revisions for submissions whose review failed.

`RevisionSweeper` periodically looks for FAILED submissions that were
never retried and still have both media rows, and hands their ids to
`RevisionWorkerPool`, which runs the revision pipeline with a small fixed
number of concurrent workers. Each job gets its own audit context. A
submission is revised automatically at most once because a revision marks
it retried.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Set
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from essay_review.application.interfaces import UnitOfWorkFactory
from essay_review.pipelines.review.context import AuditContext
from essay_review.pipelines.review.result import Result, is_success
from essay_review.pipelines.review.revision import RevisionPipeline
from essay_review.pipelines.review.types import ReviewResult

logger = logging.getLogger(__name__)

REVISION_SWEEP_URI = "revision-sweep"


class RevisionWorkerPool:
    """Consume queued submission ids with ``concurrency`` workers."""

    def __init__(self, pipeline: RevisionPipeline, concurrency: int = 3) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._pipeline = pipeline
        self._concurrency = concurrency
        self._queue: asyncio.Queue[UUID] = asyncio.Queue()
        self._queued: Set[UUID] = set()
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._work(index), name=f"revision-worker-{index}")
            for index in range(self._concurrency)
        ]
        logger.info("Started %s revision workers", self._concurrency)

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    def enqueue(self, submission_id: UUID) -> bool:
        """Queue a submission unless it is already waiting or running."""

        if submission_id in self._queued:
            return False
        self._queued.add(submission_id)
        self._queue.put_nowait(submission_id)
        return True

    async def join(self) -> None:
        await self._queue.join()

    async def run_job(self, submission_id: UUID) -> Result[ReviewResult]:
        context = AuditContext.start(request_uri=REVISION_SWEEP_URI)
        result = await self._pipeline.revise(submission_id, context)
        if is_success(result):
            logger.info(
                "Automatic revision completed submission_id=%s trace_id=%s",
                submission_id,
                context.trace_id,
            )
        else:
            logger.warning(
                "Automatic revision failed submission_id=%s trace_id=%s error=%s",
                submission_id,
                context.trace_id,
                result.error,
            )
        return result

    async def _work(self, index: int) -> None:
        while True:
            submission_id = await self._queue.get()
            try:
                await self.run_job(submission_id)
            except Exception:
                logger.exception(
                    "Revision worker %s crashed on submission_id=%s", index, submission_id
                )
            finally:
                self._queued.discard(submission_id)
                self._queue.task_done()


class RevisionSweeper:
    """Periodically enqueue failed, not yet retried submissions."""

    def __init__(
        self,
        unit_of_work: UnitOfWorkFactory,
        pool: RevisionWorkerPool,
        *,
        interval_seconds: float = 3600,
        batch_size: int = 100,
    ) -> None:
        self._unit_of_work = unit_of_work
        self._pool = pool
        self._interval_seconds = interval_seconds
        self._batch_size = batch_size
        self._task: Optional[asyncio.Task] = None

    async def sweep_once(self) -> int:
        """Enqueue the current candidates and return how many were queued."""

        async with self._unit_of_work() as repositories:
            candidates = await repositories.submissions.list_failed_not_retried(
                limit=self._batch_size
            )
            submission_ids = [submission.id for submission in candidates]

        queued = sum(1 for submission_id in submission_ids if self._pool.enqueue(submission_id))
        if queued:
            logger.info("Queued %s failed submissions for revision", queued)
        return queued

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._loop(), name="revision-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None

    async def _loop(self) -> None:
        while True:
            try:
                await self.sweep_once()
            except SQLAlchemyError:
                logger.exception("Revision sweep failed; retrying next interval")
            await asyncio.sleep(self._interval_seconds)


__all__ = ["REVISION_SWEEP_URI", "RevisionSweeper", "RevisionWorkerPool"]
