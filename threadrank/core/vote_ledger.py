"""One-vote-per-voter ledger over items and comments."""

import logging
from typing import Union

from threadrank.core.errors import InvalidInputError
from threadrank.models import TargetKind, VoteTarget
from threadrank.storage.store import Store

logger = logging.getLogger(__name__)


def _valid_id(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class VoteLedger:
    """
    Records votes through the Store.

    The Store performs the vote upsert and the score recomputation of the
    target as one atomic step, keyed uniquely by (voter, target). Voting the
    same way twice is therefore a no-op on the score, and flipping a vote
    moves it by two.
    """

    def __init__(self, store: Store):
        self.store = store

    def upsert(
        self,
        target_kind: Union[TargetKind, str],
        target_id: int,
        voter_id: int,
        up: bool,
    ) -> VoteTarget:
        """
        Cast or replace ``voter_id``'s vote on the given target.

        Args:
            target_kind: ``TargetKind`` or its string value
            target_id: Id of the item or comment voted on
            voter_id: Id of the voter
            up: ``True`` for an upvote, ``False`` for a downvote

        Returns:
            The target the vote was recorded on.

        Raises:
            InvalidInputError: Unknown target kind or an empty id; nothing is written.
            NotFoundError: The target does not exist.
            ConflictError: A concurrent write collided; the caller may retry.
        """
        target = self.validate(target_kind, target_id, voter_id)

        if target.kind is TargetKind.ITEM:
            self.store.upsert_vote_on_item(target.id, voter_id, bool(up))
        else:
            self.store.upsert_vote_on_comment(target.id, voter_id, bool(up))

        logger.debug(f"Voter {voter_id} voted {'up' if up else 'down'} on {target.kind.value} {target.id}")
        return target

    @staticmethod
    def validate(target_kind: Union[TargetKind, str], target_id: int, voter_id: int) -> VoteTarget:
        errors = []
        try:
            kind = TargetKind(target_kind)
        except ValueError:
            kind = None
            errors.append("target_kind")
        if not _valid_id(target_id):
            errors.append("target_id")
        if not _valid_id(voter_id):
            errors.append("voter_id")
        if errors:
            raise InvalidInputError(
                f"cannot vote on {target_kind!r} {target_id!r} as voter {voter_id!r}",
                errors,
            )
        return VoteTarget(kind=kind, id=target_id)
