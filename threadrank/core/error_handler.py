"""Bounded retry of vote writes that hit a concurrent-write conflict."""

import logging
import time
from functools import wraps
from typing import Any, Callable, TypeVar, cast

from threadrank.core.errors import ConflictError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def with_conflict_retry(
    max_retries: int = 3,
    initial_backoff: float = 0.05,
    backoff_factor: float = 2.0,
    max_backoff: float = 1.0,
) -> Callable[[F], F]:
    """
    Decorator for retrying a function with exponential backoff on ``ConflictError``.

    Every other exception (``NotFoundError``, ``InvalidInputError``, ...)
    propagates on the first occurrence.

    Args:
        max_retries: Maximum number of retry attempts after the first call
        initial_backoff: Initial backoff time in seconds
        backoff_factor: Multiplier for backoff time between retries
        max_backoff: Maximum backoff time in seconds

    Returns:
        Decorator function
    """
    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            retries = 0
            backoff = initial_backoff

            while True:
                try:
                    return func(*args, **kwargs)
                except ConflictError as e:
                    if retries >= max_retries:
                        logger.error(f"Max retries ({max_retries}) exceeded: {e}")
                        raise

                    logger.warning(
                        f"Write conflict: {e}. "
                        f"Retrying in {backoff:.2f}s ({retries+1}/{max_retries})"
                    )
                    time.sleep(backoff)
                    retries += 1
                    backoff = min(backoff * backoff_factor, max_backoff)

        return cast(F, wrapper)
    return decorator
