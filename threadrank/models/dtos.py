"""
Pydantic records for threadrank.

These are the rows exchanged with the external Store and the inputs of the
ranking, threading, voting and edit-policy components.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from threadrank.utils.clock import Clock


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Viewer(BaseModel):
    """The authenticated caller, as supplied by the identity collaborator."""
    id: int
    name: str

    model_config = {"frozen": True}


class TargetKind(str, Enum):
    ITEM = "item"
    COMMENT = "comment"


class VoteTarget(BaseModel):
    """Tagged identity of whatever a vote applies to."""
    kind: TargetKind
    id: int

    model_config = {"frozen": True}


class Item(BaseModel):
    """
    A submitted story.

    ``score`` starts at 1: the submission itself counts as its author's upvote.
    ``id`` is ``None`` until the Store assigns one on insert.
    """
    id: Optional[int] = None
    title: str
    url: Optional[str] = None
    body: Optional[str] = None
    score: int = 1
    author_id: int
    author: str = ""
    created_at: datetime
    comments_count: int = 0

    model_config = {"from_attributes": True}

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @classmethod
    def new(
        cls,
        title: str,
        author: Viewer,
        clock: Clock,
        url: Optional[str] = None,
        body: Optional[str] = None,
    ) -> "Item":
        return cls(
            title=title,
            url=url or None,
            body=body or None,
            score=1,
            author_id=author.id,
            author=author.name,
            created_at=clock.now(),
        )


class Comment(BaseModel):
    """
    A comment on an item, optionally replying to another comment.

    ``parent_id`` is ``None`` for top-level comments. ``viewer_vote`` is only
    filled by per-viewer listings: ``True`` for an upvote, ``False`` for a
    downvote, ``None`` when the viewer has not voted.
    """
    id: Optional[int] = None
    parent_id: Optional[int] = None
    item_id: int
    body: str
    upvotes: int = Field(default=1, ge=0)
    downvotes: int = Field(default=0, ge=0)
    author_id: int
    author: str = ""
    created_at: datetime
    viewer_vote: Optional[bool] = None

    model_config = {"from_attributes": True}

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes

    @classmethod
    def new(
        cls,
        item_id: int,
        body: str,
        author: Viewer,
        clock: Clock,
        parent_id: Optional[int] = None,
    ) -> "Comment":
        return cls(
            item_id=item_id,
            parent_id=parent_id,
            body=body,
            upvotes=1,
            downvotes=0,
            author_id=author.id,
            author=author.name,
            created_at=clock.now(),
        )


class Vote(BaseModel):
    """
    One voter's vote on exactly one target.

    Exactly one of ``item_id`` / ``comment_id`` is set.
    """
    id: Optional[int] = None
    item_id: Optional[int] = None
    comment_id: Optional[int] = None
    voter_id: int
    up: bool
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @model_validator(mode="after")
    def check_single_target(self) -> "Vote":
        if (self.item_id is None) == (self.comment_id is None):
            raise ValueError("a vote targets exactly one of item_id or comment_id")
        return self

    @property
    def target(self) -> VoteTarget:
        if self.item_id is not None:
            return VoteTarget(kind=TargetKind.ITEM, id=self.item_id)
        return VoteTarget(kind=TargetKind.COMMENT, id=self.comment_id)

    @property
    def value(self) -> int:
        return 1 if self.up else -1
