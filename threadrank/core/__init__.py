"""
Core package for threadrank.

Ranking, comment threading, vote bookkeeping, pagination and the edit policy.
"""

from .errors import ConflictError, InvalidInputError, NotFoundError, ThreadRankError

__all__ = [
    "ConflictError",
    "InvalidInputError",
    "NotFoundError",
    "ThreadRankError",
]
