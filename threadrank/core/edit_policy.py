"""Time-boxed comment editing."""

from datetime import datetime, timedelta

from threadrank.models import Comment
from threadrank.utils.clock import Clock


def can_edit(comment: Comment, viewer_id: int, edit_window: timedelta, now: datetime) -> bool:
    """
    Whether ``viewer_id`` may still change ``comment``.

    Only the author may edit, and only while ``now`` is strictly before
    ``comment.created_at + edit_window``.
    """
    if comment.author_id != viewer_id:
        return False
    return now < comment.created_at + edit_window


class EditPolicy:
    """``can_edit`` bound to a clock and an edit window."""

    def __init__(self, clock: Clock, edit_window: timedelta):
        self.clock = clock
        self.edit_window = edit_window

    def deadline(self, comment: Comment) -> datetime:
        return comment.created_at + self.edit_window

    def can_edit(self, comment: Comment, viewer_id: int) -> bool:
        return can_edit(comment, viewer_id, self.edit_window, self.clock.now())
