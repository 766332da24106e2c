"""View records for front pages and discussions."""

import logging
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from threadrank.core.comment_tree import CommentForest, CommentNode
from threadrank.models import Comment, Item

logger = logging.getLogger(__name__)

# Nesting levels below a root comment kept in the presented tree.
DEFAULT_MAX_DEPTH = 64


def days_ago(created_at: datetime, now: datetime) -> str:
    """Human age label: ``"today"`` under one whole day, else ``"N days ago"``."""
    days = int((now - created_at).total_seconds() // 86400)
    if days < 1:
        return "today"
    return f"{days} days ago"


class StoryPresenter(BaseModel):
    """A story as listed on a front page or at the top of its discussion."""
    position: int
    id: int
    title: str
    url: Optional[str] = None
    body: Optional[str] = None
    score: int
    author: str
    author_id: int
    comments_count: int
    created_at: datetime
    days_ago: str
    upvoted: bool = False

    @classmethod
    def from_item(cls, item: Item, position: int, now: datetime, upvoted: bool = False) -> "StoryPresenter":
        return cls(
            position=position,
            id=item.id,
            title=item.title,
            url=item.url,
            body=item.body,
            score=item.score,
            author=item.author,
            author_id=item.author_id,
            comments_count=item.comments_count,
            created_at=item.created_at,
            days_ago=days_ago(item.created_at, now),
            upvoted=upvoted,
        )


class CommentPresenter(BaseModel):
    id: int
    parent_id: Optional[int] = None
    body: str
    score: int
    author: str
    author_id: int
    created_at: datetime
    days_ago: str
    editable: bool = False
    upvoted: bool = False
    downvoted: bool = False
    children: List["CommentPresenter"] = Field(default_factory=list)

    @classmethod
    def single(cls, node: CommentNode, now: datetime) -> "CommentPresenter":
        """Presenter for ``node`` alone, with no children attached."""
        comment: Comment = node.comment
        return cls(
            id=comment.id,
            parent_id=comment.parent_id,
            body=comment.body,
            score=comment.score,
            author=comment.author,
            author_id=comment.author_id,
            created_at=comment.created_at,
            days_ago=days_ago(comment.created_at, now),
            editable=node.editable,
            upvoted=comment.viewer_vote is True,
            downvoted=comment.viewer_vote is False,
        )

    @classmethod
    def from_node(cls, node: CommentNode, now: datetime, max_depth: int = DEFAULT_MAX_DEPTH) -> "CommentPresenter":
        """
        Presenter for ``node`` and all of its replies.

        Replies nested more than ``max_depth`` levels below ``node`` are listed
        flat, in thread order, next to the reply at depth ``max_depth`` they
        descend from. ``parent_id`` still names their real parent.
        """
        top = cls.single(node, now)
        flattened = 0
        stack = [(child, top, 1) for child in reversed(node.children)]
        while stack:
            current, parent, level = stack.pop()
            presenter = cls.single(current, now)
            parent.children.append(presenter)
            if level > max_depth:
                flattened += 1
            attach_to = presenter if level < max_depth else parent
            stack.extend((child, attach_to, level + 1) for child in reversed(current.children))

        if flattened:
            logger.warning(
                f"Thread under comment {top.id} is deeper than {max_depth} levels; "
                f"{flattened} replies listed flat"
            )
        return top


def present_forest(
    forest: CommentForest, now: datetime, max_depth: int = DEFAULT_MAX_DEPTH
) -> List[CommentPresenter]:
    """
    Presenters for the visible comment trees.

    Placeholder subtrees are not rendered.
    """
    return [CommentPresenter.from_node(root, now, max_depth) for root in forest.roots]
