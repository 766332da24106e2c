"""In-memory implementation of the Store protocol."""

import logging
import threading
from itertools import count
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml

from threadrank.core.errors import InvalidInputError, NotFoundError
from threadrank.models import Comment, Item, TargetKind, Vote
from threadrank.storage.store import Store
from threadrank.utils.clock import Clock, SystemClock

logger = logging.getLogger(__name__)

VoteKey = Tuple[TargetKind, int, int]


class InMemoryStore(Store):
    """
    Store kept in process memory behind a single lock.

    Votes are keyed uniquely by (target kind, target id, voter id), and every
    vote upsert adjusts the target's score by the difference between the old
    and the new vote while holding the lock, so the score always equals the
    seeded score plus the sum of the votes cast since.
    """

    def __init__(self, clock: Optional[Clock] = None):
        """
        Initialize an empty store.

        Args:
            clock: Source of ``created_at`` for vote rows; the system clock by default
        """
        self.clock = clock or SystemClock()
        self._lock = threading.Lock()
        self._items: Dict[int, Item] = {}
        self._comments: Dict[int, Comment] = {}
        self._votes: Dict[VoteKey, Vote] = {}
        self._item_ids = count(1)
        self._comment_ids = count(1)
        self.users: Dict[int, str] = {}

    # Reads

    def list_stories(self, page: int, page_size: int) -> List[Item]:
        with self._lock:
            return [item.model_copy() for item in self._story_page(page, page_size)]

    def list_stories_with_votes(
        self, viewer_id: int, page: int, page_size: int
    ) -> List[Tuple[Item, Optional[bool]]]:
        with self._lock:
            return [
                (item.model_copy(), self._vote_direction(TargetKind.ITEM, item.id, viewer_id))
                for item in self._story_page(page, page_size)
            ]

    def list_comments(self, item_id: int) -> List[Comment]:
        with self._lock:
            return [c.model_copy() for c in self._comments_of(item_id)]

    def list_comments_with_votes(self, item_id: int, viewer_id: int) -> List[Comment]:
        with self._lock:
            return [
                c.model_copy(update={"viewer_vote": self._vote_direction(TargetKind.COMMENT, c.id, viewer_id)})
                for c in self._comments_of(item_id)
            ]

    def find_item(self, item_id: int) -> Item:
        with self._lock:
            return self._get_item(item_id).model_copy()

    def find_item_with_vote(self, item_id: int, viewer_id: int) -> Tuple[Item, Optional[bool]]:
        with self._lock:
            item = self._get_item(item_id)
            return item.model_copy(), self._vote_direction(TargetKind.ITEM, item_id, viewer_id)

    def find_comment(self, comment_id: int) -> Comment:
        with self._lock:
            return self._get_comment(comment_id).model_copy()

    # Writes

    def upsert_vote_on_item(self, item_id: int, voter_id: int, up: bool) -> None:
        with self._lock:
            item = self._get_item(item_id)
            previous, current = self._record_vote(TargetKind.ITEM, item_id, voter_id, up)
            item.score += current.value - (previous.value if previous is not None else 0)

    def upsert_vote_on_comment(self, comment_id: int, voter_id: int, up: bool) -> None:
        with self._lock:
            comment = self._get_comment(comment_id)
            previous, _ = self._record_vote(TargetKind.COMMENT, comment_id, voter_id, up)
            if previous is not None:
                if previous.up == up:
                    return
                if previous.up:
                    comment.upvotes -= 1
                else:
                    comment.downvotes -= 1
            if up:
                comment.upvotes += 1
            else:
                comment.downvotes += 1

    def insert_item(self, item: Item) -> Item:
        with self._lock:
            stored = item.model_copy(update={"id": next(self._item_ids), "score": 1, "comments_count": 0})
            self._items[stored.id] = stored
            self._record_vote(TargetKind.ITEM, stored.id, stored.author_id, True)
            logger.info(f"Inserted item {stored.id} by user {stored.author_id}")
            return stored.model_copy()

    def insert_comment(self, comment: Comment) -> Comment:
        with self._lock:
            item = self._get_item(comment.item_id)
            if comment.parent_id is not None:
                self._get_comment(comment.parent_id)
            stored = comment.model_copy(
                update={"id": next(self._comment_ids), "upvotes": 1, "downvotes": 0, "viewer_vote": None}
            )
            self._comments[stored.id] = stored
            self._record_vote(TargetKind.COMMENT, stored.id, stored.author_id, True)
            item.comments_count += 1
            logger.info(f"Inserted comment {stored.id} on item {stored.item_id} by user {stored.author_id}")
            return stored.model_copy()

    def update_comment(self, comment: Comment) -> None:
        with self._lock:
            stored = self._get_comment(comment.id)
            stored.body = comment.body

    # Seeding

    def restore_item(self, item: Item) -> Item:
        """
        Put a story with a known id and score into the store, as if loaded from a backend.

        The author's implicit upvote is recorded without touching ``score``,
        unless the seeded score is below 1 and so cannot include it.
        """
        if item.id is None:
            raise InvalidInputError("restored item has no id", ["id"])
        with self._lock:
            stored = item.model_copy(update={"author": item.author or self.users.get(item.author_id, "")})
            self._items[stored.id] = stored
            if stored.score >= 1:
                self._votes[(TargetKind.ITEM, stored.id, stored.author_id)] = self._new_vote(
                    TargetKind.ITEM, stored.id, stored.author_id, True
                )
            self._item_ids = count(max(self._items) + 1)
            return stored.model_copy()

    def restore_comment(self, comment: Comment) -> Comment:
        """Counterpart of ``restore_item`` for comments, gated on ``upvotes``; bumps the item's comment count."""
        if comment.id is None:
            raise InvalidInputError("restored comment has no id", ["id"])
        with self._lock:
            item = self._get_item(comment.item_id)
            stored = comment.model_copy(
                update={"author": comment.author or self.users.get(comment.author_id, ""), "viewer_vote": None}
            )
            self._comments[stored.id] = stored
            if stored.upvotes >= 1:
                self._votes[(TargetKind.COMMENT, stored.id, stored.author_id)] = self._new_vote(
                    TargetKind.COMMENT, stored.id, stored.author_id, True
                )
            item.comments_count += 1
            self._comment_ids = count(max(self._comments) + 1)
            return stored.model_copy()

    @classmethod
    def from_fixture(cls, data: Mapping[str, Any], clock: Optional[Clock] = None) -> "InMemoryStore":
        """
        Build a store from a fixture document.

        The document holds four optional lists: ``users`` (``id``, ``name``),
        ``items`` and ``comments`` (fields of ``Item`` / ``Comment``, with ids),
        and ``votes`` (``voter_id``, ``up`` and one of ``item_id`` /
        ``comment_id``). Votes are replayed through the regular upserts.
        """
        store = cls(clock=clock)
        for user in data.get("users") or []:
            store.users[int(user["id"])] = str(user["name"])
        for raw in data.get("items") or []:
            store.restore_item(Item.model_validate({**raw, "comments_count": 0}))
        for raw in data.get("comments") or []:
            store.restore_comment(Comment.model_validate(raw))
        for raw in data.get("votes") or []:
            vote = Vote.model_validate({"created_at": store.clock.now(), **raw})
            target = vote.target
            if target.kind is TargetKind.ITEM:
                store.upsert_vote_on_item(target.id, vote.voter_id, vote.up)
            else:
                store.upsert_vote_on_comment(target.id, vote.voter_id, vote.up)

        logger.info(
            f"Loaded fixture: {len(store.users)} users, {len(store._items)} items, "
            f"{len(store._comments)} comments, {len(store._votes)} votes"
        )
        return store

    # Internals, called with the lock held

    def _get_item(self, item_id: int) -> Item:
        try:
            return self._items[item_id]
        except KeyError:
            raise NotFoundError("item", item_id) from None

    def _get_comment(self, comment_id: int) -> Comment:
        try:
            return self._comments[comment_id]
        except KeyError:
            raise NotFoundError("comment", comment_id) from None

    def _story_page(self, page: int, page_size: int) -> List[Item]:
        ordered = sorted(self._items.values(), key=lambda i: (i.created_at, i.id), reverse=True)
        start = page * page_size
        return ordered[start:start + page_size]

    def _comments_of(self, item_id: int) -> List[Comment]:
        return sorted(
            (c for c in self._comments.values() if c.item_id == item_id),
            key=lambda c: (c.created_at, c.id),
        )

    def _vote_direction(self, kind: TargetKind, target_id: int, voter_id: int) -> Optional[bool]:
        vote = self._votes.get((kind, target_id, voter_id))
        return vote.up if vote is not None else None

    def _new_vote(self, kind: TargetKind, target_id: int, voter_id: int, up: bool) -> Vote:
        target = {"item_id": target_id} if kind is TargetKind.ITEM else {"comment_id": target_id}
        return Vote(voter_id=voter_id, up=up, created_at=self.clock.now(), **target)

    def _record_vote(
        self, kind: TargetKind, target_id: int, voter_id: int, up: bool
    ) -> Tuple[Optional[Vote], Vote]:
        """Insert or replace a vote row; return the replaced row (``None`` on a first vote) and the new one."""
        key = (kind, target_id, voter_id)
        previous = self._votes.get(key)
        current = self._votes[key] = self._new_vote(kind, target_id, voter_id, up)
        return previous, current


def load_fixture(path: Union[str, Path], clock: Optional[Clock] = None) -> InMemoryStore:
    """Read a YAML (or JSON) fixture file into a new ``InMemoryStore``."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return InMemoryStore.from_fixture(data, clock=clock)
