"""
Refresh strategies - decide when Cricbuzz is fetched and write results to the cache.

Two policies share one contract (start, stop, status, fetch_*):
- OnDemandRefresh: warms the cache once at startup, then fetches on cache miss
- ScheduledRefresh (criclive.scraper.scheduler): polls on fixed periods

The strategy is the only writer of the cache. Routes read the cache and ask
the strategy to refresh a key when they find it missing.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from criclive import config
from criclive.clients.cricbuzz import CricbuzzClient
from criclive.exceptions import UpstreamError
from criclive.models import Match, MatchInfo, Scorecard
from criclive.scraper import (
    parse_match_info,
    parse_match_list,
    parse_scorecard,
    select_current_matches,
)
from criclive.services.cache import CacheService
from criclive.services.coalescer import RequestCoalescer
from criclive.types import RefreshStatusDict

logger = logging.getLogger(__name__)

CURRENT_MATCHES_KEY = "currentMatches"
UPCOMING_MATCHES_KEY = "upcomingMatches"

REFRESH_MODES = ("on-demand", "scheduled")


def scorecard_key(match_id: str) -> str:
    return f"scorecard:{match_id}"


def match_info_key(match_id: str) -> str:
    return f"matchinfo:{match_id}"


class RefreshStrategy(ABC):
    """Common fetch-and-store logic plus status tracking.

    List refreshes (currentMatches, upcomingMatches) are counted in status();
    scorecard and match info fetches are per-request and only propagate errors.
    """

    mode: str = ""

    def __init__(
        self,
        cache: CacheService,
        client: CricbuzzClient,
        current_ttl: int = config.CACHE_CURRENT_TTL,
        upcoming_ttl: int = config.CACHE_UPCOMING_TTL,
        scorecard_ttl: int = config.CACHE_SCORECARD_TTL,
        match_info_ttl: int = config.CACHE_MATCH_INFO_TTL,
        coalescer: Optional[RequestCoalescer] = None,
    ) -> None:
        self.cache = cache
        self.client = client
        self.current_ttl = current_ttl
        self.upcoming_ttl = upcoming_ttl
        self.scorecard_ttl = scorecard_ttl
        self.match_info_ttl = match_info_ttl
        self.coalescer = coalescer or RequestCoalescer()

        self._attempt_count = 0
        self._last_success: Optional[datetime] = None
        self._last_error: Optional[str] = None

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @abstractmethod
    async def start(self) -> None:
        """Populate the cache for the first time and begin the policy."""

    async def stop(self) -> None:
        """Stop any background work. Nothing is persisted."""

    async def refresh_on_miss(self, key: str) -> bool:
        """Called by readers that found a list key missing.

        Returns:
            True if the policy fetched the key, False if it leaves misses alone
        """
        return False

    def status(self) -> RefreshStatusDict:
        """Snapshot of refresh activity."""
        return {
            "mode": self.mode,
            "attemptCount": self._attempt_count,
            "lastSuccessTime": self._last_success.isoformat() if self._last_success else None,
            "lastErrorMessage": self._last_error,
        }

    @property
    def has_succeeded(self) -> bool:
        """True once any list refresh has completed since startup."""
        return self._last_success is not None

    # =========================================================================
    # FETCH AND STORE
    # =========================================================================

    async def fetch_current(self) -> list[Match]:
        """Fetch live and recent matches and cache them under currentMatches.

        Raises:
            UpstreamUnavailable: On network or HTTP failure
            UpstreamShapeChanged: If the page no longer carries the match list
        """
        return await self.coalescer.run(CURRENT_MATCHES_KEY, self._refresh_current)

    async def fetch_upcoming(self) -> list[Match]:
        """Fetch all listed matches and cache them under upcomingMatches."""
        return await self.coalescer.run(UPCOMING_MATCHES_KEY, self._refresh_upcoming)

    async def _refresh_current(self) -> list[Match]:
        return await self._refresh_list(
            CURRENT_MATCHES_KEY,
            self.client.fetch_current_matches,
            select_current_matches,
            self.current_ttl,
        )

    async def _refresh_upcoming(self) -> list[Match]:
        return await self._refresh_list(
            UPCOMING_MATCHES_KEY,
            self.client.fetch_upcoming_matches,
            list,
            self.upcoming_ttl,
        )

    async def _refresh_list(
        self,
        key: str,
        fetch: Callable[[], Awaitable[str]],
        select: Callable[[list[Match]], list[Match]],
        ttl: int,
    ) -> list[Match]:
        """Fetch, parse and store one match list.

        On failure the previous cache entry is left untouched.
        """
        self._attempt_count += 1
        logger.info(f"Fetching {key}... (#{self._attempt_count})")
        try:
            html = await fetch()
            matches = select(parse_match_list(html))
        except UpstreamError as e:
            self._last_error = f"{key}: {e}"
            logger.error(f"{key} refresh failed: {e}")
            raise

        self.cache.set(key, matches, ttl)
        self._last_success = datetime.now(timezone.utc)
        logger.info(f"{key} cached - {len(matches)} matches")
        return matches

    async def fetch_scorecard(self, match_id: str) -> Scorecard:
        """Fetch, parse and cache the scorecard for a match."""
        key = scorecard_key(match_id)

        async def refresh() -> Scorecard:
            logger.info(f"Fetching {key}")
            scorecard = parse_scorecard(await self.client.fetch_scorecard(match_id))
            self.cache.set(key, scorecard, self.scorecard_ttl)
            return scorecard

        return await self.coalescer.run(key, refresh)

    async def fetch_match_info(self, match_id: str) -> MatchInfo:
        """Fetch, parse and cache venue, toss and officials for a match."""
        key = match_info_key(match_id)

        async def refresh() -> MatchInfo:
            logger.info(f"Fetching {key}")
            info = parse_match_info(await self.client.fetch_match_info(match_id), match_id)
            self.cache.set(key, info, self.match_info_ttl)
            return info

        return await self.coalescer.run(key, refresh)

    async def _refresh_all_best_effort(self) -> None:
        """Refresh both lists concurrently, logging instead of raising."""
        results = await asyncio.gather(
            self.fetch_current(),
            self.fetch_upcoming(),
            return_exceptions=True,
        )
        for key, result in zip((CURRENT_MATCHES_KEY, UPCOMING_MATCHES_KEY), results):
            if isinstance(result, UpstreamError):
                logger.warning(f"Initial {key} refresh failed, will retry later: {result}")
            elif isinstance(result, BaseException):
                raise result


class OnDemandRefresh(RefreshStrategy):
    """Warm the cache once; afterwards fetch only when a reader misses."""

    mode = "on-demand"

    async def start(self) -> None:
        await self._refresh_all_best_effort()
        logger.info("Cache warmed on startup - on-demand mode (no background polling)")

    async def refresh_on_miss(self, key: str) -> bool:
        if key == CURRENT_MATCHES_KEY:
            await self.fetch_current()
        elif key == UPCOMING_MATCHES_KEY:
            await self.fetch_upcoming()
        else:
            raise KeyError(f"No refresh for cache key {key!r}")
        return True


def build_strategy(
    mode: Optional[str],
    cache: CacheService,
    client: CricbuzzClient,
    **kwargs,
) -> RefreshStrategy:
    """
    Create the refresh strategy for a mode.

    - "on-demand" (default): OnDemandRefresh
    - "scheduled": ScheduledRefresh polling every LIVE_POLL_INTERVAL seconds

    Raises:
        ValueError: If the mode is unknown
    """
    mode = (mode or config.REFRESH_MODE).lower()
    logger.info(f"Refresh mode: {mode}")

    if mode == "on-demand":
        return OnDemandRefresh(cache, client, **kwargs)

    if mode == "scheduled":
        from criclive.scraper.scheduler import ScheduledRefresh
        return ScheduledRefresh(cache, client, **kwargs)

    raise ValueError(
        f"Unknown REFRESH_MODE: {mode}. "
        f"Valid options: {', '.join(REFRESH_MODES)}"
    )
