"""Defines the Store protocol for persistence backends."""

from typing import List, Optional, Protocol, Tuple

from threadrank.models import Comment, Item


class Store(Protocol):
    """
    A protocol that defines the interface for all storage backends.

    The engine never talks to a database directly; anything implementing
    these methods (a SQL repository, a document store, the in-memory store
    used by tests and the CLI) can back it.

    Implementations must perform a vote upsert and the recomputation of the
    target's score as one atomic step, with at most one vote per
    (voter, target). A colliding concurrent write is reported by raising
    ``ConflictError``; missing targets by raising ``NotFoundError``.
    """

    def list_stories(self, page: int, page_size: int) -> List[Item]:
        """
        Return one page of stories, newest first.

        Args:
            page: 0-based page index.
            page_size: Number of stories per page.
        """
        ...

    def list_stories_with_votes(
        self, viewer_id: int, page: int, page_size: int
    ) -> List[Tuple[Item, Optional[bool]]]:
        """Same as ``list_stories``, each story paired with ``viewer_id``'s vote (``None`` if none)."""
        ...

    def list_comments(self, item_id: int) -> List[Comment]:
        """Return every comment of ``item_id``, in creation order."""
        ...

    def list_comments_with_votes(self, item_id: int, viewer_id: int) -> List[Comment]:
        """Same as ``list_comments``, with ``viewer_vote`` filled for ``viewer_id``."""
        ...

    def find_item(self, item_id: int) -> Item:
        ...

    def find_item_with_vote(self, item_id: int, viewer_id: int) -> Tuple[Item, Optional[bool]]:
        """Same as ``find_item``, paired with ``viewer_id``'s vote on it (``None`` if none)."""
        ...

    def find_comment(self, comment_id: int) -> Comment:
        ...

    def upsert_vote_on_item(self, item_id: int, voter_id: int, up: bool) -> None:
        ...

    def upsert_vote_on_comment(self, comment_id: int, voter_id: int, up: bool) -> None:
        ...

    def insert_item(self, item: Item) -> Item:
        """
        Persist a new story together with its author's upvote.

        Returns:
            The stored story, with its assigned ``id``.
        """
        ...

    def insert_comment(self, comment: Comment) -> Comment:
        """
        Persist a new comment together with its author's upvote, and bump the
        item's comment count.

        Returns:
            The stored comment, with its assigned ``id``.
        """
        ...

    def update_comment(self, comment: Comment) -> None:
        """Overwrite the body of an existing comment."""
        ...
