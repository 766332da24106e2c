"""Page windows over an externally ordered listing."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Sequence, TypeVar

from threadrank.core.errors import InvalidInputError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Returns the rows of page ``page`` (0-based) holding ``page_size`` rows each.
PageAccessor = Callable[[int, int], Sequence[T]]

NO_NEXT_PAGE = -1


@dataclass
class Page(Generic[T]):
    """One page of a listing plus its navigation links."""

    items: List[T]
    index: int
    size: int
    has_next: bool = False
    next_page: int = field(init=False)
    prev_page: int = field(init=False)

    def __post_init__(self) -> None:
        self.next_page = self.index + 1 if self.has_next else NO_NEXT_PAGE
        # May be negative on the first page; rendering it is the caller's call.
        self.prev_page = self.index - 1

    def position(self, offset: int) -> int:
        """1-based position in the whole listing of the row at ``offset`` in this page."""
        return 1 + offset + self.index * self.size


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_window(page_index: int, page_size: int) -> None:
    errors = []
    if not _is_int(page_index) or page_index < 0:
        errors.append("page")
    if not _is_int(page_size) or page_size <= 0:
        errors.append("page_size")
    if errors:
        raise InvalidInputError(
            f"invalid pagination window (page={page_index!r}, page_size={page_size!r})",
            errors,
        )


def paginate(accessor: PageAccessor[T], page_index: int, page_size: int) -> Page[T]:
    """
    Fetch page ``page_index`` through ``accessor`` and probe the next one.

    ``has_next`` comes from an explicit fetch of page ``page_index + 1`` rather
    than from a count over the whole listing. The two reads are independent;
    a write landing between them can only make the navigation links stale.

    Raises:
        InvalidInputError: ``page_index`` is negative or ``page_size`` is not positive.
    """
    validate_window(page_index, page_size)

    items = list(accessor(page_index, page_size))
    following = accessor(page_index + 1, page_size)
    has_next = len(following) > 0

    logger.debug(
        f"Page {page_index} (size {page_size}): {len(items)} rows, has_next={has_next}"
    )
    return Page(items=items, index=page_index, size=page_size, has_next=has_next)


def slice_accessor(rows: Sequence[T]) -> PageAccessor[T]:
    """Adapt an in-memory ordered sequence to a ``PageAccessor``."""
    def accessor(page_index: int, page_size: int) -> Sequence[T]:
        start = page_index * page_size
        return rows[start:start + page_size]
    return accessor
