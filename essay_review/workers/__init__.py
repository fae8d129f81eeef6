"""Background workers."""

from .revision_worker import REVISION_SWEEP_URI, RevisionSweeper, RevisionWorkerPool

__all__ = ["REVISION_SWEEP_URI", "RevisionSweeper", "RevisionWorkerPool"]
