"""Evaluation, highlighting and final persistence shared by both pipelines."""

from __future__ import annotations

from essay_review.application.interfaces import ReviewRepositories
from essay_review.models.submission import Submission

from .context import AuditContext
from .evaluation import EvaluationStage
from .highlight import highlight_text
from .persistence import complete_run, fail_run
from .result import Result, Success, is_success
from .types import MediaUrls, ReviewResult

REVIEW_COMPLETED = "Review completed"


class ReviewStep:
    """Run the AI evaluation for a submission whose media is already stored."""

    def __init__(self, evaluation: EvaluationStage) -> None:
        self._evaluation = evaluation

    async def review(
        self,
        submission: Submission,
        media: MediaUrls,
        repositories: ReviewRepositories,
        context: AuditContext,
    ) -> tuple[Result[ReviewResult], AuditContext]:
        evaluated, context = await self._evaluation.evaluate(
            submission.submit_text, context
        )
        if not is_success(evaluated):
            await fail_run(repositories, submission.id, context, evaluated)
            return evaluated, context

        evaluation = evaluated.data
        highlighted = highlight_text(submission.submit_text, evaluation.highlights)
        context = context.accumulate(highlighted_text=highlighted)
        await complete_run(repositories, submission.id, evaluation, context)

        result = ReviewResult(
            message=REVIEW_COMPLETED,
            video_url=media.video_signed_url,
            audio_url=media.audio_signed_url,
            score=evaluation.score,
            feedback=evaluation.feedback,
            highlights=list(evaluation.highlights),
            highlighted_text=highlighted,
            student_id=submission.student_id,
            student_name=submission.student_name,
            submit_text=submission.submit_text,
        )
        return Success(result, message=REVIEW_COMPLETED), context


__all__ = ["REVIEW_COMPLETED", "ReviewStep"]
