"""Tests for the Cricbuzz page client."""

import httpx
import pytest

from criclive.clients.cricbuzz import LIVE_SCORES_PATH, CricbuzzClient
from criclive.exceptions import InvalidMatchId, UpstreamShapeChanged, UpstreamUnavailable
from tests.conftest import make_client


class TestFetchMatchList:
    """Tests for the live-scores page."""

    @pytest.mark.asyncio
    async def test_returns_page(self, live_scores_html, upstream_calls):
        client = make_client({LIVE_SCORES_PATH: live_scores_html}, upstream_calls)

        html = await client.fetch_current_matches()

        assert html == live_scores_html
        assert upstream_calls == [LIVE_SCORES_PATH]

    @pytest.mark.asyncio
    async def test_upcoming_uses_same_page(self, live_scores_html, upstream_calls):
        client = make_client({LIVE_SCORES_PATH: live_scores_html}, upstream_calls)

        await client.fetch_upcoming_matches()

        assert upstream_calls == [LIVE_SCORES_PATH]

    @pytest.mark.asyncio
    async def test_http_error(self):
        """Non-2xx status becomes UpstreamUnavailable with the status code."""
        client = make_client({LIVE_SCORES_PATH: 503})

        with pytest.raises(UpstreamUnavailable) as exc_info:
            await client.fetch_current_matches()

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Timeouts become UpstreamUnavailable without a status code."""
        client = make_client({LIVE_SCORES_PATH: httpx.ReadTimeout("timed out")})

        with pytest.raises(UpstreamUnavailable) as exc_info:
            await client.fetch_current_matches()

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)

    @pytest.mark.asyncio
    async def test_connect_error(self):
        client = make_client({LIVE_SCORES_PATH: httpx.ConnectError("refused")})

        with pytest.raises(UpstreamUnavailable):
            await client.fetch_current_matches()

    @pytest.mark.asyncio
    async def test_missing_marker(self):
        """A 200 page without the match list marker is a shape change."""
        client = make_client({LIVE_SCORES_PATH: "<html><body>Under maintenance</body></html>"})

        with pytest.raises(UpstreamShapeChanged) as exc_info:
            await client.fetch_current_matches()

        assert exc_info.value.marker == "currentMatchesList"
        assert exc_info.value.context == LIVE_SCORES_PATH


class TestFetchDetailPages:
    """Tests for scorecard and match info pages."""

    @pytest.mark.asyncio
    async def test_url_with_slug(self, scorecard_html, upstream_calls):
        path = "/live-cricket-scorecard/101/ind-vs-aus-1st-t20i"
        client = make_client({path: scorecard_html}, upstream_calls)

        html = await client.fetch_scorecard("101~ind-vs-aus-1st-t20i")

        assert html == scorecard_html
        assert upstream_calls == [path]

    @pytest.mark.asyncio
    async def test_url_without_slug(self, scorecard_html, upstream_calls):
        path = "/live-cricket-scorecard/104"
        client = make_client({path: scorecard_html}, upstream_calls)

        await client.fetch_match_info("104")

        assert upstream_calls == [path]

    @pytest.mark.asyncio
    async def test_invalid_match_id(self, upstream_calls):
        """Ids without a numeric part are rejected before any request."""
        client = make_client({}, upstream_calls)

        with pytest.raises(InvalidMatchId):
            await client.fetch_scorecard("abc~ind-vs-aus")

        assert upstream_calls == []

    @pytest.mark.asyncio
    async def test_empty_page(self):
        client = make_client({"/live-cricket-scorecard/101": "   "})

        with pytest.raises(UpstreamShapeChanged):
            await client.fetch_scorecard("101")

    @pytest.mark.asyncio
    async def test_not_found_status(self):
        client = make_client({})

        with pytest.raises(UpstreamUnavailable) as exc_info:
            await client.fetch_scorecard("101")

        assert exc_info.value.status_code == 404


class TestClientConfig:
    """Tests for client construction."""

    def test_base_url_trailing_slash(self):
        client = CricbuzzClient(base_url="https://cricbuzz.test/")
        assert client.base_url == "https://cricbuzz.test"
        assert client.headers["Referer"] == "https://cricbuzz.test/"

    @pytest.mark.asyncio
    async def test_browser_headers_sent(self, live_scores_html):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200, text=live_scores_html)

        client = CricbuzzClient(
            base_url="https://cricbuzz.test", transport=httpx.MockTransport(handler)
        )
        await client.fetch_current_matches()

        assert "Mozilla" in seen["user-agent"]
        assert seen["accept-language"].startswith("en-US")
