"""Ordered-candidate endpoint probing ("first that works")."""

import logging
from typing import Awaitable, Callable, Sequence, TypeVar

from .exceptions import RouteMismatchError, ZuraError, is_route_mismatch

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_probe_miss(error: BaseException) -> bool:
    """Default predicate: the candidate is not mounted, try the next one."""
    return is_route_mismatch(error) or isinstance(error, RouteMismatchError)


async def first_that_works(
    candidates: Sequence[str],
    attempt: Callable[[str], Awaitable[T]],
    should_try_next: Callable[[BaseException], bool] = is_probe_miss,
    operation: str = "request",
) -> tuple[str, T]:
    """
    Try ``attempt`` against each candidate path in order.

    The first outcome for which ``should_try_next`` is false ends the search:
    a result is returned, a business failure is raised as-is. When every
    candidate misses, a RouteMismatchError naming all candidates is raised
    instead of the last miss.

    Args:
        candidates: Ordered candidate paths
        attempt: Coroutine function performing the call for one path
        should_try_next: Predicate classifying a failure as a route miss
        operation: Label used in log and error messages

    Returns:
        Tuple of (candidate that answered, its result)

    Raises:
        RouteMismatchError: Every candidate missed
    """
    if not candidates:
        raise ValueError("At least one candidate path is required")

    last: ZuraError | None = None
    for path in candidates:
        try:
            result = await attempt(path)
        except ZuraError as e:
            if not should_try_next(e):
                raise
            logger.debug("%s: %s unavailable (%s), trying next candidate", operation, path, e.status_code)
            last = e
            continue
        return path, result

    raise RouteMismatchError(
        f"No matching backend route for {operation} (tried {', '.join(candidates)})",
        candidates=candidates,
        status_code=last.status_code if last else None,
        payload=last.payload if last else None,
    )
