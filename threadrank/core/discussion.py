"""
Discussion service.

Wires the Store, a Clock and the Settings to the ranking, pagination,
comment-tree and vote components, and turns their results into presenters.
This is the layer an HTTP handler or the CLI talks to.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Union
from urllib.parse import urlparse

from threadrank.config.settings import Settings
from threadrank.core.comment_tree import CommentForest, build_forest, set_editable, sort_forest
from threadrank.core.edit_policy import EditPolicy
from threadrank.core.error_handler import with_conflict_retry
from threadrank.core.errors import InvalidInputError, ThreadRankError
from threadrank.core.mentions import extract_mentions
from threadrank.core.pagination import Page, paginate
from threadrank.core.presenters import CommentPresenter, StoryPresenter, present_forest
from threadrank.core.ranking import rank, sort_by_rank
from threadrank.core.vote_ledger import VoteLedger
from threadrank.models import Comment, Item, TargetKind, Viewer, VoteTarget
from threadrank.storage.store import Store
from threadrank.utils.clock import Clock

logger = logging.getLogger(__name__)

StoryHook = Callable[[Item], None]
CommentHook = Callable[[Item, Comment], None]


class EditOutcome(str, Enum):
    UPDATED = "updated"
    NOT_AUTHOR = "not_author"
    WINDOW_CLOSED = "window_closed"


@dataclass
class FrontPage:
    stories: List[StoryPresenter]
    page: Page

    @property
    def next_page(self) -> int:
        return self.page.next_page

    @property
    def prev_page(self) -> int:
        return self.page.prev_page


@dataclass
class Discussion:
    story: StoryPresenter
    comments: List[CommentPresenter]
    forest: CommentForest


class DiscussionService:
    """Front pages, discussions, submissions, edits and votes."""

    def __init__(self, store: Store, clock: Clock, settings: Settings):
        self.store = store
        self.clock = clock
        self.settings = settings
        self.edit_policy = EditPolicy(clock, settings.edit_window)
        self.ledger = VoteLedger(store)
        self._upsert_vote = with_conflict_retry(
            max_retries=settings.VOTE_MAX_RETRIES,
            initial_backoff=settings.VOTE_RETRY_INITIAL_BACKOFF,
            backoff_factor=settings.VOTE_RETRY_BACKOFF_FACTOR,
            max_backoff=settings.VOTE_RETRY_MAX_BACKOFF,
        )(self.ledger.upsert)
        self._story_hooks: List[StoryHook] = []
        self._comment_hooks: List[CommentHook] = []

    def add_story_hook(self, hook: StoryHook) -> None:
        """Register a callable run with every newly submitted story."""
        self._story_hooks.append(hook)

    def add_comment_hook(self, hook: CommentHook) -> None:
        """Register a callable run with the story and every newly submitted comment."""
        self._comment_hooks.append(hook)

    def _rank(self, rankable) -> float:
        return rank(rankable, self.settings.RANK_GRAVITY, self.settings.RANK_TIMEBASE_HOURS, self.clock.now())

    # Reads

    def front_page(self, page_index: int = 0, viewer: Optional[Viewer] = None) -> FrontPage:
        """
        List one page of stories.

        Stories come from the Store newest first. With ``FRONT_PAGE_ORDER=rank``
        the stories of the page are re-ordered by descending rank; positions
        are assigned after that.
        """
        if viewer is None:
            page = paginate(
                lambda p, size: [(item, None) for item in self.store.list_stories(p, size)],
                page_index,
                self.settings.STORIES_PER_PAGE,
            )
        else:
            page = paginate(
                lambda p, size: self.store.list_stories_with_votes(viewer.id, p, size),
                page_index,
                self.settings.STORIES_PER_PAGE,
            )

        rows = page.items
        if self.settings.FRONT_PAGE_ORDER == "rank":
            votes = {item.id: up for item, up in rows}
            ranked = sort_by_rank(
                [item for item, _ in rows],
                self.settings.RANK_GRAVITY,
                self.settings.RANK_TIMEBASE_HOURS,
                self.clock.now(),
            )
            rows = [(item, votes[item.id]) for item in ranked]

        now = self.clock.now()
        stories = [
            StoryPresenter.from_item(item, page.position(offset), now, upvoted=up is True)
            for offset, (item, up) in enumerate(rows)
        ]
        return FrontPage(stories=stories, page=page)

    def discussion(self, item_id: int, viewer: Optional[Viewer] = None) -> Discussion:
        """
        Load a story and its comment forest.

        Raises:
            NotFoundError: The story does not exist.
        """
        if viewer is None:
            item, item_vote = self.store.find_item(item_id), None
            comments = self.store.list_comments(item_id)
        else:
            item, item_vote = self.store.find_item_with_vote(item_id, viewer.id)
            comments = self.store.list_comments_with_votes(item_id, viewer.id)

        now = self.clock.now()
        forest = build_forest(comments)
        set_editable(forest, viewer, self.settings.edit_window, now)
        if self.settings.COMMENT_ORDER == "rank":
            sort_forest(forest, self._rank)

        story = StoryPresenter.from_item(item, 1, now, upvoted=item_vote is True)
        return Discussion(
            story=story,
            comments=present_forest(forest, now, self.settings.MAX_THREAD_DEPTH),
            forest=forest,
        )

    # Writes

    def submit_story(
        self,
        viewer: Viewer,
        title: str,
        url: Optional[str] = None,
        body: Optional[str] = None,
    ) -> Item:
        """
        Validate and store a new story, then run the story hooks.

        Raises:
            InvalidInputError: Blank or over-long title, a URL that is not
                http(s), or neither URL nor body given. Nothing is stored.
        """
        title = (title or "").strip()
        url = (url or "").strip()
        body = (body or "").strip()

        errors = []
        if url:
            parsed = urlparse(url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                errors.append("url")
        if not title or len(title) > self.settings.MAX_TITLE_LENGTH:
            errors.append("title")
        if not url and not body:
            errors.extend(["url", "body"])
        if errors:
            logger.warning(f"Rejected story from user {viewer.id}: invalid {errors}")
            raise InvalidInputError("invalid story submission", errors)

        item = self.store.insert_item(Item.new(title, viewer, self.clock, url=url, body=body))
        logger.info(f"User {viewer.id} submitted story {item.id}")

        for hook in self._story_hooks:
            hook(item)
        return item

    def submit_comment(
        self,
        viewer: Viewer,
        item_id: int,
        body: str,
        parent_id: Optional[int] = None,
    ) -> Comment:
        """
        Validate and store a new comment, then run the comment hooks.

        Raises:
            NotFoundError: The story or the parent comment does not exist.
            InvalidInputError: Blank body, or a parent from another story.
        """
        item = self.store.find_item(item_id)
        body = (body or "").strip()
        if not body:
            raise InvalidInputError("comment body is blank", ["body"])
        if parent_id is not None:
            parent = self.store.find_comment(parent_id)
            if parent.item_id != item.id:
                raise InvalidInputError(
                    f"comment {parent_id} belongs to item {parent.item_id}, not {item.id}",
                    ["parent_id"],
                )

        comment = self.store.insert_comment(Comment.new(item.id, body, viewer, self.clock, parent_id=parent_id))
        pings = extract_mentions(comment.body)
        logger.info(f"User {viewer.id} commented {comment.id} on item {item.id}")
        if pings:
            logger.debug(f"Comment {comment.id} mentions {pings}")

        for hook in self._comment_hooks:
            hook(item, comment)
        return comment

    def edit_comment(self, viewer: Viewer, comment_id: int, body: str) -> EditOutcome:
        """
        Replace the body of ``viewer``'s own comment while its edit window is open.

        A foreign comment or a closed window is reported through the returned
        outcome; nothing is written and nothing is raised.
        """
        comment = self.store.find_comment(comment_id)
        if comment.author_id != viewer.id:
            logger.info(f"User {viewer.id} may not edit comment {comment_id}: not the author")
            return EditOutcome.NOT_AUTHOR
        if not self.edit_policy.can_edit(comment, viewer.id):
            logger.info(
                f"User {viewer.id} may not edit comment {comment_id}: "
                f"window closed at {self.edit_policy.deadline(comment).isoformat()}"
            )
            return EditOutcome.WINDOW_CLOSED

        body = (body or "").strip()
        if not body:
            raise InvalidInputError("comment body is blank", ["body"])
        self.store.update_comment(comment.model_copy(update={"body": body}))
        return EditOutcome.UPDATED

    def vote(self, viewer: Viewer, kind: Union[TargetKind, str], target_id: int, up: bool) -> VoteTarget:
        """
        Cast or replace ``viewer``'s vote, retrying write conflicts a bounded number of times.

        Raises:
            InvalidInputError: Unknown target kind or bad id.
            NotFoundError: The target does not exist.
            ConflictError: Conflicts persisted past the retry budget.
        """
        try:
            return self._upsert_vote(kind, target_id, viewer.id, up)
        except ThreadRankError as e:
            logger.warning(f"Vote by user {viewer.id} on {kind} {target_id} failed: {e}")
            raise
