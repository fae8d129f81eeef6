"""Tagged result values returned by every review pipeline stage.

Stages never raise across their boundary: a collaborator error is turned
into a :class:`Failure` carrying a flat message, and callers stop at the
first failure by returning it unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeGuard, TypeVar, Union

T = TypeVar("T")


class FailureKind(str, Enum):
    """Broad category of a failure, used for persistence and reporting."""

    ERROR = "error"
    TIMEOUT = "timeout"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful stage outcome holding the stage payload."""

    data: T
    message: str | None = None

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Failed stage outcome holding a flat, caller-safe error message."""

    error: str
    message: str | None = None
    kind: FailureKind = FailureKind.ERROR

    @property
    def success(self) -> bool:
        return False


Result = Union[Success[T], Failure]


def is_success(result: Result[T]) -> TypeGuard[Success[T]]:
    """Return True when ``result`` is the success variant."""

    return isinstance(result, Success)


def rejected(error: str) -> Failure:
    """Build a soft business rejection that is not persisted as a failed run."""

    return Failure(error=error, kind=FailureKind.REJECTED)


__all__ = [
    "Failure",
    "FailureKind",
    "Result",
    "Success",
    "is_success",
    "rejected",
]
