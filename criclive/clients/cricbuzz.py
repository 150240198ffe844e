"""Cricbuzz page client.

Cricbuzz has no public API, so every call downloads a rendered page with
browser-like headers. The client returns raw page text; parsing lives in
criclive.scraper and caching in criclive.services.
"""

import logging
from typing import Optional

import httpx

from criclive import config
from criclive.exceptions import UpstreamShapeChanged, UpstreamUnavailable
from criclive.models.match import split_match_id
from criclive.scraper.match_list import MATCH_LIST_MARKER

logger = logging.getLogger(__name__)

LIVE_SCORES_PATH = "/cricket-match/live-scores"
SCORECARD_PATH = "/live-cricket-scorecard/{match_id}"


class CricbuzzClient:
    """Async client for Cricbuzz pages."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Site root, defaults to config.CRICBUZZ_BASE_URL
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.base_url = (base_url or config.CRICBUZZ_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.UPSTREAM_TIMEOUT_SECONDS
        self.transport = transport
        self.headers = {
            "User-Agent": (
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
            ),
            "Accept": "text/html,application/xhtml+xml,*/*",
            "Accept-Language": "en-US,en;q=0.9",
            "Referer": f"{self.base_url}/",
        }

    async def _fetch_page(self, path: str) -> str:
        """Download one page.

        Args:
            path: Path under the site root

        Returns:
            Page text

        Raises:
            UpstreamUnavailable: On transport errors, timeouts or non-2xx status
        """
        url = f"{self.base_url}{path}"
        logger.debug(f"GET {url}")
        try:
            async with httpx.AsyncClient(
                headers=self.headers,
                timeout=self.timeout,
                transport=self.transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.text
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise UpstreamUnavailable(f"Cricbuzz HTTP {status} for {path}", status_code=status) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"Cricbuzz request failed for {path}: {e!r}") from e

    async def _fetch_match_list_page(self) -> str:
        html = await self._fetch_page(LIVE_SCORES_PATH)
        if MATCH_LIST_MARKER not in html:
            logger.error(
                f"Marker {MATCH_LIST_MARKER!r} missing from {LIVE_SCORES_PATH}; "
                "the page layout may have changed"
            )
            raise UpstreamShapeChanged(MATCH_LIST_MARKER, LIVE_SCORES_PATH)
        return html

    async def _fetch_scorecard_page(self, match_id: str) -> str:
        numeric_id, slug = split_match_id(match_id)
        path = SCORECARD_PATH.format(match_id=numeric_id)
        if slug:
            path = f"{path}/{slug}"

        html = await self._fetch_page(path)
        if not html.strip():
            logger.error(f"Empty scorecard page for match {match_id} ({path})")
            raise UpstreamShapeChanged("<html>", f"match {match_id}")
        return html

    async def fetch_current_matches(self) -> str:
        """Fetch the live-scores page holding live and recent matches."""
        return await self._fetch_match_list_page()

    async def fetch_upcoming_matches(self) -> str:
        """Fetch the page holding upcoming matches.

        Cricbuzz renders live, recent and upcoming matches on the same page.
        """
        return await self._fetch_match_list_page()

    async def fetch_scorecard(self, match_id: str) -> str:
        """Fetch the scorecard page for a composite match id.

        Raises:
            InvalidMatchId: If the id has no numeric part
        """
        return await self._fetch_scorecard_page(match_id)

    async def fetch_match_info(self, match_id: str) -> str:
        """Fetch the page holding toss, venue and officials for a match.

        The scorecard page carries all of these.
        """
        return await self._fetch_scorecard_page(match_id)
