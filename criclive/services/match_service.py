"""
Match Service - read access to cached match data for the route layer.

Reads go to the cache first. Missing match lists are handed to the refresh
strategy (which fetches only in on-demand mode); missing scorecards and match
info are fetched on first access in every mode.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional

from criclive.exceptions import (
    CacheCold,
    CacheExpired,
    MatchNotFound,
    UpstreamError,
)
from criclive.models import Match, MatchInfo, Scorecard, split_match_id
from criclive.services.cache import CacheService
from criclive.services.refresh import (
    CURRENT_MATCHES_KEY,
    UPCOMING_MATCHES_KEY,
    RefreshStrategy,
    match_info_key,
    scorecard_key,
)

logger = logging.getLogger(__name__)


@dataclass
class CachedResult:
    """Data served to a caller with its cache provenance."""

    data: Any
    cached_at: Optional[datetime]
    age_seconds: Optional[int]
    cache_hit: bool


def merge_match_lists(*lists: Iterable[Match]) -> list[Match]:
    """Concatenate match lists, keeping the first match seen for each id."""
    seen: set[str] = set()
    merged = []
    for matches in lists:
        for match in matches:
            if match.id not in seen:
                seen.add(match.id)
                merged.append(match)
    return merged


class MatchService:
    """Serves match lists, scores, scorecards and match info from the cache."""

    def __init__(self, cache: CacheService, strategy: RefreshStrategy) -> None:
        self.cache = cache
        self.strategy = strategy

    def _not_ready(self) -> Exception:
        if self.strategy.has_succeeded:
            return CacheExpired(
                "Cached match data has expired and could not be refreshed - try again shortly."
            )
        return CacheCold(
            "Match data not yet available - server is warming up, try again in a few seconds."
        )

    async def _read_list(self, key: str) -> tuple[Optional[tuple[list[Match], datetime]], bool]:
        """Read a match list, letting the strategy refresh it on a miss.

        Returns:
            ((matches, cached_at) or None, whether it was served from cache)
        """
        cached = self.cache.get(key)
        if cached is not None:
            return cached, True
        try:
            refreshed = await self.strategy.refresh_on_miss(key)
        except UpstreamError as e:
            logger.warning(f"Refresh on miss failed for {key}: {e}")
            return None, False
        return (self.cache.get(key) if refreshed else None), False

    async def get_matches(self) -> CachedResult:
        """Merged current and upcoming matches, current entries first.

        Raises:
            CacheCold: Nothing has ever been cached
            CacheExpired: Data was cached before but is gone now
        """
        current, current_hit = await self._read_list(CURRENT_MATCHES_KEY)
        upcoming, _ = await self._read_list(UPCOMING_MATCHES_KEY)
        if current is None and upcoming is None:
            raise self._not_ready()

        merged = merge_match_lists(
            current[0] if current else [],
            upcoming[0] if upcoming else [],
        )
        return self._list_result(merged, current, current_hit)

    async def get_live_matches(self) -> CachedResult:
        """Matches currently in progress.

        Raises:
            CacheCold: Nothing has ever been cached
            CacheExpired: Data was cached before but is gone now
        """
        current, current_hit = await self._read_list(CURRENT_MATCHES_KEY)
        if current is None:
            raise self._not_ready()
        return self._list_result([m for m in current[0] if m.is_live], current, current_hit)

    def _list_result(self, data: Any, current: Optional[tuple], hit: bool) -> CachedResult:
        # Freshness is reported against currentMatches, the short-lived list
        return CachedResult(
            data=data,
            cached_at=current[1] if current else None,
            age_seconds=self.cache.age(CURRENT_MATCHES_KEY) if current else None,
            cache_hit=hit,
        )

    def find_match(self, match_id: str) -> Optional[Match]:
        """Look a match up in the cached lists without fetching."""
        for key in (CURRENT_MATCHES_KEY, UPCOMING_MATCHES_KEY):
            cached = self.cache.get(key)
            if cached is None:
                continue
            for match in cached[0]:
                if match.id == match_id:
                    return match
        return None

    async def _require_match(self, match_id: str) -> Match:
        """Find a match in the cached lists, refreshing them once on a miss.

        Raises:
            InvalidMatchId: If the id is not a composite match id
            MatchNotFound: If no cached list contains the id
        """
        split_match_id(match_id)
        match = self.find_match(match_id)
        if match is None:
            for key in (CURRENT_MATCHES_KEY, UPCOMING_MATCHES_KEY):
                if self.cache.get(key) is None:
                    await self._read_list(key)
            match = self.find_match(match_id)
        if match is None:
            raise MatchNotFound(f"Match {match_id} not found in cache")
        return match

    async def get_score(self, match_id: str) -> CachedResult:
        """Score and state of one match from the cached lists."""
        match = await self._require_match(match_id)
        current = self.cache.get_entry(CURRENT_MATCHES_KEY)
        return CachedResult(
            data={
                "score": [s.model_dump(mode="json", by_alias=True) for s in match.score],
                "status": match.status,
                "matchStarted": match.match_started,
                "matchEnded": match.match_ended,
            },
            cached_at=current.cached_at_datetime if current else None,
            age_seconds=self.cache.age(CURRENT_MATCHES_KEY),
            cache_hit=True,
        )

    async def get_scorecard(self, match_id: str) -> CachedResult:
        """Scorecard for a known match, from cache or freshly fetched.

        Raises:
            MatchNotFound: If the id is in no cached list
            UpstreamUnavailable / UpstreamShapeChanged: If the fetch fails
        """
        await self._require_match(match_id)
        return await self._read_through(
            scorecard_key(match_id),
            lambda: self.strategy.fetch_scorecard(match_id),
        )

    async def get_match_info(self, match_id: str) -> CachedResult:
        """Venue, toss and officials for a known match.

        Raises:
            MatchNotFound: If the id is in no cached list
            UpstreamUnavailable / UpstreamShapeChanged: If the fetch fails
        """
        await self._require_match(match_id)
        return await self._read_through(
            match_info_key(match_id),
            lambda: self.strategy.fetch_match_info(match_id),
        )

    async def _read_through(self, key: str, fetch) -> CachedResult:
        entry = self.cache.get_entry(key)
        if entry is not None:
            logger.debug(f"Returning cached {key}")
            return CachedResult(
                data=entry.value,
                cached_at=entry.cached_at_datetime,
                age_seconds=self.cache.age(key),
                cache_hit=True,
            )

        data: Scorecard | MatchInfo = await fetch()
        entry = self.cache.get_entry(key)
        return CachedResult(
            data=data,
            cached_at=entry.cached_at_datetime if entry else None,
            age_seconds=0,
            cache_hit=False,
        )
