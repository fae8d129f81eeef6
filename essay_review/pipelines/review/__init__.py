"""Essay review pipeline package.

Modules follow the order in which a submission run executes:

1. `submission` – dedup check and submission row (entry point).
2. `media` – transcode the video, upload video and audio, store media rows.
3. `evaluation` – build the prompt, call the model, validate, retry.
4. `review` – highlight the essay and persist the final state.

`revision` re-enters at step 3 for an existing submission. Stage modules
are imported by their full path; this package only re-exports the shared
result, context and payload types.
"""

from .context import AuditContext, accumulate
from .result import Failure, FailureKind, Result, Success, is_success, rejected
from .types import (
    EssayEvaluation,
    MediaUrls,
    ReviewResult,
    SubmissionRequest,
    TranscodeOutput,
    UploadedMedia,
)

__all__ = [
    "AuditContext",
    "EssayEvaluation",
    "Failure",
    "FailureKind",
    "MediaUrls",
    "Result",
    "ReviewResult",
    "Success",
    "SubmissionRequest",
    "TranscodeOutput",
    "UploadedMedia",
    "accumulate",
    "is_success",
    "rejected",
]
