"""Recency-decayed ranking of scored items."""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Protocol, TypeVar

HOUR = timedelta(hours=1)


class Rankable(Protocol):
    """Anything with an integer score and a creation time."""

    @property
    def score(self) -> int: ...

    @property
    def created_at(self) -> datetime: ...


R = TypeVar("R", bound=Rankable)


def rank(item: Rankable, gravity: float, timebase_hours: float, reference_time: datetime) -> float:
    """
    Compute the decayed rank of ``item`` as seen at ``reference_time``.

    rank = (score - 1) / (timebase + age_hours) ** gravity

    The ``- 1`` discounts the author's implicit upvote. ``timebase_hours`` keeps
    the denominator away from zero for brand new items. Negative scores give
    negative ranks. Ties are left to the caller.

    Items created after ``reference_time`` (clock skew between writers) are
    treated as zero hours old.
    """
    age_hours = max((reference_time - item.created_at) / HOUR, 0.0)
    return (item.score - 1) / (timebase_hours + age_hours) ** gravity


def sort_by_rank(
    items: Iterable[R],
    gravity: float,
    timebase_hours: float,
    reference_time: datetime,
) -> List[R]:
    """
    Return ``items`` sorted by descending rank.

    Equal ranks are ordered by ascending ``id`` when items carry one, so the
    result is a stable total order.
    """
    def key(item: R):
        identifier: Optional[int] = getattr(item, "id", None)
        return (-rank(item, gravity, timebase_hours, reference_time), identifier is None, identifier or 0)

    return sorted(items, key=key)
