"""
Request coalescing to prevent duplicate upstream calls.

When several tasks miss the cache for the same key at once, only the first
one fetches; the others await its result.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from criclive.types import CoalescerStatsDict

logger = logging.getLogger(__name__)


class RequestCoalescer:
    """
    Ensures concurrent requests for the same key share one upstream call.

    Pattern:
    - First request for a key starts the fetch as a task
    - Later requests for the same key await that task
    - When the task finishes, every waiter gets the same result or error

    Usage:
        coalescer = RequestCoalescer()
        matches = await coalescer.run("currentMatches", fetch_current)
    """

    def __init__(self) -> None:
        self._in_flight: dict[str, asyncio.Future] = {}

    async def run(self, key: str, fetch_fn: Callable[[], Awaitable[Any]]) -> Any:
        """
        Join an in-flight fetch for key or start a new one.

        Args:
            key: Unique key for this request
            fetch_fn: Coroutine function to call if nothing is in flight

        Returns:
            The fetched data (shared among all concurrent callers)

        Raises:
            Exception: Any error from fetch_fn is propagated to every caller
        """
        in_flight = self._in_flight.get(key)
        if in_flight is not None:
            logger.debug(f"Coalescing request for {key}")
            # shield: one waiter being cancelled must not cancel the shared fetch
            return await asyncio.shield(in_flight)

        logger.debug(f"Initiating fetch for {key}")
        task = asyncio.ensure_future(fetch_fn())
        self._in_flight[key] = task
        task.add_done_callback(lambda _: self._in_flight.pop(key, None))
        return await asyncio.shield(task)

    @property
    def active_requests(self) -> int:
        """Number of currently in-flight requests."""
        return len(self._in_flight)

    def get_stats(self) -> CoalescerStatsDict:
        """Get coalescer statistics."""
        return {
            "active_requests": len(self._in_flight),
            "active_keys": list(self._in_flight.keys()),
        }
