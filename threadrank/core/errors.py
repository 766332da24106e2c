"""Error taxonomy for the ranking and threading engine."""

from typing import Any, Optional, Sequence


class ThreadRankError(Exception):
    """Base class for every error raised by threadrank."""


class NotFoundError(ThreadRankError):
    """A requested item or comment does not exist. Never retried."""

    def __init__(self, kind: str, identifier: Any):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier!r} not found")


class ConflictError(ThreadRankError):
    """A concurrent vote/score write collided. Retryable a bounded number of times."""


class InvalidInputError(ThreadRankError):
    """
    Malformed input rejected before any write. Never retried.

    Attributes:
        fields: Names of the offending fields, in the order they were checked.
    """

    def __init__(self, message: str, fields: Optional[Sequence[str]] = None):
        self.fields = list(fields or [])
        self.message = message
        if self.fields:
            super().__init__(f"{message} (invalid {', '.join(self.fields)})")
        else:
            super().__init__(message)
