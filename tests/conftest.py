"""
Shared test fixtures and configuration.

Provides captured-style Cricbuzz pages, a controllable clock, and helpers
for building clients and strategies on top of httpx.MockTransport.
"""

import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from criclive.clients.cricbuzz import CricbuzzClient
from criclive.services.cache import CacheService
from criclive.services.refresh import OnDemandRefresh


# =============================================================================
# CLOCK
# =============================================================================

class FakeClock:
    """Manually advanced clock in epoch seconds."""

    def __init__(self, start: float = 1_768_449_600.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock starting at 2026-01-15T04:00:00Z."""
    return FakeClock()


@pytest.fixture
def cache(clock) -> CacheService:
    """Provide an empty cache driven by the fake clock."""
    return CacheService(maxsize=64, clock=clock)


# =============================================================================
# LIVE-SCORES PAGE FIXTURES
# =============================================================================

def team(team_id: int, name: str, short: str, image_id: Optional[int] = None) -> Dict[str, Any]:
    data = {"teamId": team_id, "teamName": name, "teamSName": short}
    if image_id is not None:
        data["imageId"] = image_id
    return data


def match_entry(
    match_id: int,
    state: str,
    status: str,
    series: str = "India tour of Australia, 2026",
    desc: str = "1st T20I",
    match_format: str = "T20",
    team1: Optional[Dict[str, Any]] = None,
    team2: Optional[Dict[str, Any]] = None,
    match_score: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Build one seriesAdWrapper.matches entry."""
    entry: Dict[str, Any] = {
        "matchInfo": {
            "matchId": match_id,
            "seriesName": series,
            "matchDesc": desc,
            "matchFormat": match_format,
            "startDate": "1768449600000",
            "state": state,
            "status": status,
            "team1": team1 or team(2, "India", "IND", 172115),
            "team2": team2 or team(4, "Australia", "AUS", 172117),
        }
    }
    if match_score is not None:
        entry["matchScore"] = match_score
    return entry


def build_live_scores_html(
    series_entries: List[List[Dict[str, Any]]],
    slugs: Optional[Dict[int, str]] = None,
) -> str:
    """Render a live-scores page with one series block per list of entries."""
    series_blocks = [
        {"seriesAdWrapper": {"seriesId": 9000 + i, "matches": entries}}
        for i, entries in enumerate(series_entries)
    ]
    return embed_match_list(
        {"typeMatches": [{"matchType": "International", "seriesMatches": series_blocks}]},
        slugs,
    )


def embed_match_list(
    match_list: Dict[str, Any],
    slugs: Optional[Dict[int, str]] = None,
) -> str:
    """Render a live-scores page with the match list embedded the way Next.js streams it.

    The payload is JSON, quote-escaped inside a self.__next_f.push string.
    """
    payload = {"currentMatchesList": match_list}
    escaped = json.dumps(json.dumps(payload))[1:-1]
    links = "".join(
        f'<a href="/live-cricket-scores/{match_id}/{slug}">{slug}</a>'
        for match_id, slug in (slugs or {}).items()
    )
    return (
        "<!DOCTYPE html><html><head><title>Live Cricket Scores</title></head><body>"
        f"<nav>{links}</nav>"
        f'<script>self.__next_f.push([1,"5:[\\"$\\",\\"div\\",null,{escaped}]"])</script>'
        "</body></html>"
    )


LIVE_MATCH_SCORE = {
    "team1Score": {"inngs1": {"inningsId": 1, "runs": 187, "wickets": 4, "overs": 19.6}},
    "team2Score": {"inngs1": {"inningsId": 2, "runs": 143, "wickets": 6, "overs": 16.2}},
}

SAMPLE_SLUGS = {
    101: "ind-vs-aus-1st-t20i-india-tour-of-australia-2026",
    102: "pak-vs-sl-2nd-odi-sri-lanka-tour-of-pakistan-2026",
    103: "eng-vs-nz-1st-test-new-zealand-tour-of-england-2026",
}


@pytest.fixture
def sample_entries() -> List[List[Dict[str, Any]]]:
    """Two series: one live and one finished match, then two not yet started."""
    return [
        [
            match_entry(101, "In Progress", "Australia need 45 runs in 22 balls",
                        match_score=LIVE_MATCH_SCORE),
            match_entry(
                102, "Complete", "Pakistan won by 5 wkts",
                series="Sri Lanka tour of Pakistan, 2026", desc="2nd ODI", match_format="ODI",
                team1=team(3, "Pakistan", "PAK"), team2=team(5, "Sri Lanka", "SL"),
            ),
        ],
        [
            match_entry(
                103, "Preview", "Match starts at Jan 20, 10:00 GMT",
                series="New Zealand tour of England, 2026", desc="1st Test", match_format="TEST",
                team1=team(9, "England", "ENG"), team2=team(13, "New Zealand", "NZ"),
            ),
            match_entry(
                104, "Upcoming", "Match scheduled",
                series="New Zealand tour of England, 2026", desc="2nd Test", match_format="TEST",
                team1=team(9, "England", "ENG"), team2=team(13, "New Zealand", "NZ"),
            ),
        ],
    ]


@pytest.fixture
def live_scores_html(sample_entries) -> str:
    """Live-scores page with four matches, three of them with slugs."""
    return build_live_scores_html(sample_entries, SAMPLE_SLUGS)


LIVE_MATCH_ID = "101~" + SAMPLE_SLUGS[101]


# =============================================================================
# SCORECARD PAGE FIXTURES
# =============================================================================

SCORECARD_BLOCK = """
<div id="scard-team-2-innings-1">
  <div class="scorecard-bat-grid bg-cbBorderGrey">
    <div>Batter</div><div>R</div><div>B</div><div>4s</div><div>6s</div><div>SR</div>
  </div>
  <div class="scorecard-bat-grid">
    <div>
      <a href="/profiles/576/rohit-sharma">Rohit Sharma</a>
      <div class="text-xs cbTxtSec">c Smith b Starc</div>
    </div>
    <div>45</div><div>30</div><div>5</div><div>2</div><div>150.00</div>
  </div>
  <div class="scorecard-bat-grid">
    <div><a href="/profiles/1413/virat-kohli">Virat Kohli</a></div>
    <div>20</div><div>18</div><div>2</div><div>0</div><div>111.11</div>
  </div>
  <div class="scorecard-bat-grid">
    <div>Did not bat</div>
  </div>
  <div class="flex justify-between">
    <div class="font-bold">Extras</div>
    <div>9 (b 0, lb 1, w 8, nb 0, p 0)</div>
  </div>
  <div class="flex justify-between">
    <div class="font-bold">Total</div>
    <div>79-3 (18 Overs, RR: 4.39)</div>
  </div>
  <div class="scorecard-bowl-grid bg-cbBorderGrey">
    <div>Bowler</div><div>O</div><div>M</div><div>R</div><div>W</div><div>NB</div><div>WD</div>
  </div>
  <div class="scorecard-bowl-grid">
    <a href="/profiles/7710/mitchell-starc">Mitchell Starc</a>
    <div>4</div><div>0</div><div>28</div><div>2</div><div>0</div><div>3</div>
  </div>
  <div class="scorecard-bowl-grid">
    <div><a href="/profiles/8095/pat-cummins">Pat Cummins</a></div>
    <div>3.4</div><div>1</div><div>17</div><div>1</div><div>1</div><div>0</div>
  </div>
</div>
"""

SCORECARD_HTML = f"""<!DOCTYPE html>
<html>
<head>
<title>India vs Australia, 1st T20I - Scorecard</title>
<script type="application/ld+json">
{{"@context": "https://schema.org", "@type": "WebPage", "name": "Cricbuzz"}}
</script>
<script type="application/ld+json">
{{"@context": "https://schema.org", "@type": "SportsEvent",
  "name": "India vs Australia, 1st T20I, India tour of Australia, 2026 - Live Cricket Score",
  "startDate": "2026-01-15T04:00:00+00:00"}}
</script>
</head>
<body>
<div id="team-2-innings-1" class="flex justify-between">
  <div class="font-bold">IND</div>
  <div class="hidden tb:block font-bold">India</div>
  <div><span class="font-bold">79-3</span> <span>(18 Ov)</span></div>
</div>
<div class="mobile-only">{SCORECARD_BLOCK}</div>
<div class="desktop-only">{SCORECARD_BLOCK}</div>
<div class="facts">
  <div class="facts-row-grid"><div class="font-bold">Match</div><div>1st T20I</div></div>
  <div class="facts-row-grid"><div class="font-bold">Toss</div><div>India won the toss and opted to bat</div></div>
  <div class="facts-row-grid"><div class="font-bold">Venue</div><div>Melbourne Cricket Ground, Melbourne</div></div>
  <div class="facts-row-grid"><div class="font-bold">Umpires</div><div>Richard Illingworth, Nitin Menon</div></div>
  <div class="facts-row-grid"><div class="font-bold">3rd Umpire</div><div>Joel Wilson</div></div>
  <div class="facts-row-grid"><div class="font-bold">Referee</div><div>Javagal Srinath</div></div>
</div>
</body>
</html>
"""


@pytest.fixture
def scorecard_html() -> str:
    """Scorecard page for match 101 with one innings rendered twice."""
    return SCORECARD_HTML


# =============================================================================
# UPSTREAM FAKES
# =============================================================================

def make_transport(
    routes: Dict[str, Any],
    calls: Optional[List[str]] = None,
) -> httpx.MockTransport:
    """MockTransport answering by URL path.

    Values are page text (200), an int status code, or an exception to raise.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request.url.path)
        result = routes.get(request.url.path, 404)
        if isinstance(result, Exception):
            raise result
        if isinstance(result, int):
            return httpx.Response(result, text="error")
        return httpx.Response(200, text=result)

    return httpx.MockTransport(handler)


def make_client(routes: Dict[str, Any], calls: Optional[List[str]] = None) -> CricbuzzClient:
    return CricbuzzClient(base_url="https://cricbuzz.test", timeout=1, transport=make_transport(routes, calls))


@pytest.fixture
def upstream_calls() -> List[str]:
    """Paths requested from the fake upstream, in order."""
    return []


@pytest.fixture
def build_strategy_for(cache, upstream_calls) -> Callable[..., OnDemandRefresh]:
    """Factory for an on-demand strategy over a fake upstream."""

    def factory(routes: Dict[str, Any]) -> OnDemandRefresh:
        return OnDemandRefresh(cache, make_client(routes, upstream_calls))

    return factory
