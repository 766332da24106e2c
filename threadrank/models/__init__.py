"""
Models package for threadrank.

This package contains the Pydantic records exchanged with the Store.
"""

from .dtos import (
    Comment,
    Item,
    TargetKind,
    Viewer,
    Vote,
    VoteTarget,
)

# Define what is exported with 'from threadrank.models import *'
__all__ = [
    "Comment",
    "Item",
    "TargetKind",
    "Viewer",
    "Vote",
    "VoteTarget",
]
