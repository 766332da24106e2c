"""
Comment forest reconstruction.

Rebuilds the reply structure of one item's discussion from the flat comment
rows returned by the Store, where each row only knows its parent's id.

The forest is an arena of nodes keyed by comment id, plus one reserved
virtual-root slot whose children are the top-level comments. A row whose
parent is missing from the input still gets attached: its parent slot becomes
a *placeholder* node that never receives a payload. Placeholder subtrees are
kept out of ``roots`` but stay inspectable through ``placeholders()`` and
``orphans()``, and ``comments()`` still yields every comment they hold.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Hashable, Iterable, Iterator, List, Optional

from threadrank.core.edit_policy import can_edit
from threadrank.core.errors import InvalidInputError
from threadrank.models import Comment, Viewer

logger = logging.getLogger(__name__)


class _VirtualRoot:
    def __repr__(self) -> str:
        return "VIRTUAL_ROOT"


# Arena key of the node holding top-level comments.
VIRTUAL_ROOT = _VirtualRoot()


@dataclass(eq=False)
class CommentNode:
    """A comment and its replies, in first-seen order. ``comment`` is ``None`` on placeholders."""

    key: Hashable
    comment: Optional[Comment] = None
    children: List["CommentNode"] = field(default_factory=list)
    editable: bool = False

    @property
    def is_placeholder(self) -> bool:
        return self.comment is None and self.key is not VIRTUAL_ROOT

    @property
    def id(self) -> Optional[int]:
        return self.comment.id if self.comment is not None else None

    @property
    def score(self) -> Optional[int]:
        return self.comment.score if self.comment is not None else None

    def walk(self) -> Iterator["CommentNode"]:
        """Depth-first, pre-order traversal of this node's subtree, this node included."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


class CommentForest:
    """The set of comment trees of one discussion."""

    def __init__(self) -> None:
        self._nodes: Dict[Hashable, CommentNode] = {VIRTUAL_ROOT: CommentNode(key=VIRTUAL_ROOT)}

    def _ensure(self, key: Hashable) -> CommentNode:
        node = self._nodes.get(key)
        if node is None:
            node = CommentNode(key=key)
            self._nodes[key] = node
        return node

    @property
    def roots(self) -> List[CommentNode]:
        """Top-level comments, in first-seen order."""
        return self._nodes[VIRTUAL_ROOT].children

    def node(self, comment_id: int) -> Optional[CommentNode]:
        return self._nodes.get(comment_id)

    def placeholders(self) -> List[CommentNode]:
        """Nodes synthesized for parent ids that were never supplied."""
        return [n for n in self._nodes.values() if n.is_placeholder]

    def orphans(self) -> List[CommentNode]:
        """Comments whose parent is a placeholder, i.e. the tops of the lost subtrees."""
        return [child for p in self.placeholders() for child in p.children]

    def walk(self) -> Iterator[CommentNode]:
        """
        Every populated node: the visible trees first, then the lost subtrees.
        """
        for top in self.roots + self.orphans():
            yield from top.walk()

    def comments(self) -> List[Comment]:
        """Flatten back to the comments, skipping placeholders."""
        return [node.comment for node in self.walk()]

    def __iter__(self) -> Iterator[CommentNode]:
        return iter(self.roots)

    def __len__(self) -> int:
        return sum(1 for n in self._nodes.values() if n.comment is not None)


def build_forest(comments: Iterable[Comment]) -> CommentForest:
    """
    Assemble the forest of ``comments`` in a single pass, in input order.

    Roots and children keep their first-seen order; nothing is sorted here.
    Callers wanting score order either pre-sort the input or call
    ``sort_forest`` afterwards.

    Raises:
        InvalidInputError: a comment has no id, an id occurs twice, or the
            parent references form a cycle.
    """
    forest = CommentForest()

    for comment in comments:
        if comment.id is None:
            raise InvalidInputError("comment has no id", ["id"])

        node = forest._ensure(comment.id)
        if node.comment is not None:
            raise InvalidInputError(f"comment {comment.id} occurs more than once", ["id"])
        node.comment = comment

        parent_key = VIRTUAL_ROOT if comment.parent_id is None else comment.parent_id
        if parent_key == comment.id:
            raise InvalidInputError(f"comment {comment.id} is its own parent", ["parent_id"])
        forest._ensure(parent_key).children.append(node)

    _check_acyclic(forest)

    placeholders = forest.placeholders()
    if placeholders:
        logger.warning(
            f"Attached {len(forest.orphans())} comments under {len(placeholders)} "
            f"placeholder(s) for missing parents {[p.key for p in placeholders]}"
        )
    return forest


def _check_acyclic(forest: CommentForest) -> None:
    # Every populated node must hang below the virtual root or a placeholder;
    # anything else sits on a parent cycle.
    reached = sum(1 for _ in forest.walk())
    if reached != len(forest):
        seen = {id(n) for n in forest.walk()}
        looped = sorted(
            n.key for n in forest._nodes.values()
            if n.comment is not None and id(n) not in seen
        )
        raise InvalidInputError(f"parent references form a cycle through comments {looped}", ["parent_id"])


def set_editable(
    forest: CommentForest,
    viewer: Optional[Viewer],
    edit_window: timedelta,
    now: datetime,
) -> CommentForest:
    """Mark each node editable iff ``viewer`` authored it and the edit window is still open."""
    for node in forest.walk():
        node.editable = viewer is not None and can_edit(node.comment, viewer.id, edit_window, now)
    return forest


def sort_forest(forest: CommentForest, key: Callable[[Comment], float]) -> CommentForest:
    """
    Re-order roots and every children list by descending ``key`` (stable).

    Opt-in: ``build_forest`` never does this on its own.
    """
    def by_key(node: CommentNode) -> float:
        return key(node.comment)

    forest.roots.sort(key=by_key, reverse=True)
    for node in forest.walk():
        node.children.sort(key=by_key, reverse=True)
    for placeholder in forest.placeholders():
        placeholder.children.sort(key=by_key, reverse=True)
    return forest
