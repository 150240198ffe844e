"""
Background Scheduler for Cricbuzz Data Refresh.

Polls the live-scores page on a schedule to keep cached match lists fresh.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import schedule

from criclive import config
from criclive.clients.cricbuzz import CricbuzzClient
from criclive.exceptions import UpstreamError
from criclive.services.cache import CacheService
from criclive.services.refresh import RefreshStrategy

logger = logging.getLogger(__name__)

# Polling faster than this would hammer Cricbuzz for little gain
MIN_POLL_INTERVAL = 10


class ScheduledRefresh(RefreshStrategy):
    """
    Refresh both match lists on fixed periods until stopped.

    A failed poll keeps the previous cache entry until it expires on its own;
    the failure shows up in status() and the next period tries again.
    """

    mode = "scheduled"

    def __init__(
        self,
        cache: CacheService,
        client: CricbuzzClient,
        poll_interval: int = config.LIVE_POLL_INTERVAL,
        upcoming_interval: int = config.UPCOMING_POLL_INTERVAL,
        tick_seconds: float = 1.0,
        **kwargs,
    ) -> None:
        super().__init__(cache, client, **kwargs)
        self.poll_interval = max(poll_interval, MIN_POLL_INTERVAL)
        self.upcoming_interval = max(upcoming_interval, self.poll_interval)
        self.tick_seconds = tick_seconds

        # Lists must stay readable until the next poll has stored its result,
        # which can land a tick plus a full upstream timeout after the period
        grace = tick_seconds + config.UPSTREAM_TIMEOUT_SECONDS
        self.current_ttl = max(self.current_ttl, self.poll_interval + grace)
        self.upcoming_ttl = max(self.upcoming_ttl, self.upcoming_interval + grace)
        self.scheduler = schedule.Scheduler()
        self._runner: Optional[asyncio.Task] = None
        self._jobs: set[asyncio.Task] = set()

    async def start(self) -> None:
        """Run one refresh immediately, then schedule periodic polls."""
        await self._refresh_all_best_effort()

        self.scheduler.every(self.poll_interval).seconds.do(self._spawn, self.poll_current)
        self.scheduler.every(self.upcoming_interval).seconds.do(self._spawn, self.poll_upcoming)
        self._runner = asyncio.create_task(self._run_pending())

        logger.info(
            f"Scheduled polling every {self.poll_interval}s (current) "
            f"and {self.upcoming_interval}s (upcoming)"
        )

    async def stop(self) -> None:
        """Cancel the polling loop and any poll still in flight."""
        self.scheduler.clear()
        tasks = [t for t in (self._runner, *self._jobs) if t is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._runner = None
        self._jobs.clear()
        logger.info("Scheduled polling stopped")

    async def _run_pending(self) -> None:
        while True:
            self.scheduler.run_pending()
            await asyncio.sleep(self.tick_seconds)

    def _spawn(self, job: Callable[[], Awaitable[None]]) -> None:
        """Start a poll as a task so the scheduler loop never blocks on I/O."""
        task = asyncio.create_task(job())
        self._jobs.add(task)
        task.add_done_callback(self._jobs.discard)

    async def poll_current(self) -> None:
        """One scheduled refresh of currentMatches."""
        try:
            await self.fetch_current()
        except UpstreamError as e:
            logger.warning(f"Keeping previous currentMatches after failed poll: {e}")

    async def poll_upcoming(self) -> None:
        """One scheduled refresh of upcomingMatches."""
        try:
            await self.fetch_upcoming()
        except UpstreamError as e:
            logger.warning(f"Keeping previous upcomingMatches after failed poll: {e}")
