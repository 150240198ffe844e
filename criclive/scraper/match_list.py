"""
Match list parser for the Cricbuzz live-scores page.

The page is a Next.js app that streams its data as React Server Component
payloads: the match list is a JSON object embedded as a quote-escaped string
inside self.__next_f.push([1,"..."]) calls. Extraction steps:

1. Find the currentMatchesList marker
2. Scan from the next "{" to its matching "}" (brace depth, string aware)
3. Unescape the string literal and parse it as JSON
4. Flatten typeMatches -> seriesMatches -> seriesAdWrapper.matches
5. Attach the URL slug from the page's navigation links to build the match id
"""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

from criclive.exceptions import RecordMalformed, UpstreamShapeChanged
from criclive.models.match import InningsScore, Match, TeamInfo, compose_match_id

logger = logging.getLogger(__name__)

MATCH_LIST_MARKER = "currentMatchesList"

# Navigation links carry the slug for each numeric match id
SLUG_LINK_RE = re.compile(r'href="/live-cricket-scores/(\d+)/([^"]+)"')

TEAM_IMAGE_URL = "https://static.cricbuzz.com/a/img/v1/75x75/i1/c{image_id}/team.jpg"

LIVE_STATES = frozenset({
    "in progress", "innings break", "strategic timeout", "rain", "bad light",
    "stumps", "drinks", "tea", "lunch", "in break",
})
ENDED_STATES = frozenset({"complete", "result", "abandoned", "no result", "cancelled"})


def classify_state(state: Optional[str]) -> tuple[bool, bool]:
    """Map the source's free-text state to (match_started, match_ended)."""
    normalized = (state or "").strip().lower()
    match_ended = normalized in ENDED_STATES
    match_started = match_ended or normalized in LIVE_STATES
    return match_started, match_ended


def _is_quote_escaped(text: str, start: int = 0) -> bool:
    """Quote-escaped payloads look like {\\"key\\": ...}."""
    first_quote = text.find('"', start)
    return first_quote > 0 and text[first_quote - 1] == "\\"


def _is_string_delimiter(text: str, index: int, escaped: bool) -> bool:
    """Check whether the quote at index opens or closes a JSON string.

    In a plain payload a delimiter has an even number of backslashes before it.
    In a quote-escaped payload delimiters are written \\" and literal quotes
    inside strings \\\\\\", so the backslash run is 1 (mod 4).
    """
    backslashes = 0
    i = index - 1
    while i >= 0 and text[i] == "\\":
        backslashes += 1
        i -= 1
    if escaped:
        return backslashes % 4 == 1
    return backslashes % 2 == 0


def extract_balanced_object(text: str, start: int) -> Optional[str]:
    """Return the substring from the first "{" at or after start to its matching "}".

    Braces inside JSON strings are ignored. Returns None when no opening brace
    exists or the object is never closed.
    """
    open_idx = text.find("{", start)
    if open_idx < 0:
        return None

    escaped = _is_quote_escaped(text, open_idx)

    depth = 0
    in_string = False
    for i in range(open_idx, len(text)):
        char = text[i]
        if char == '"' and _is_string_delimiter(text, i, escaped):
            in_string = not in_string
        elif in_string:
            continue
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[open_idx:i + 1]
    return None


def decode_embedded_json(raw: str) -> Any:
    """Parse an embedded object that may still be JS string-escaped.

    Raises:
        ValueError: If the text is not valid JSON after unescaping
    """
    if not _is_quote_escaped(raw):
        return json.loads(raw)
    try:
        unescaped = json.loads('"' + raw.replace("\\'", "'") + '"')
    except ValueError:
        unescaped = raw.replace('\\"', '"').replace("\\'", "'")
    return json.loads(unescaped)


def extract_slug_map(html: str) -> dict[str, str]:
    """Map numeric match ids to URL slugs from the page's match links."""
    return {match_id: slug for match_id, slug in SLUG_LINK_RE.findall(html)}


def _team_image(image_id: Any) -> Optional[str]:
    if not image_id:
        return None
    return TEAM_IMAGE_URL.format(image_id=image_id)


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _first_present(data: dict, *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _build_scores(match_info: dict, match_score: Optional[dict]) -> list[InningsScore]:
    """Collect innings scores for both teams.

    Scores may live in matchScore or inline in matchInfo; matchScore wins.
    """
    match_score = match_score or {}
    scores = []
    for team_key, score_key in (("team1", "team1Score"), ("team2", "team2Score")):
        team_name = (match_info.get(team_key) or {}).get("teamName", "")
        team_score = match_score.get(score_key) or match_info.get(score_key) or {}
        if not isinstance(team_score, dict):
            continue
        for innings in team_score.values():
            if not isinstance(innings, dict):
                continue
            scores.append(InningsScore(
                inning_label=f"{team_name} Inning {innings.get('inningsId') or 1}",
                runs=_as_int(_first_present(innings, "runs", "r")),
                wickets=_as_int(_first_present(innings, "wickets", "w")),
                overs=_as_float(_first_present(innings, "overs", "o")),
            ))
    return scores


def _parse_start_time(value: Any) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def normalize_match(match_info: dict, match_score: Optional[dict], slug: str = "") -> Match:
    """Convert one matchInfo/matchScore pair into a Match.

    Raises:
        RecordMalformed: If the entry has no usable match id or bad team data
    """
    if not isinstance(match_info, dict) or match_info.get("matchId") in (None, ""):
        raise RecordMalformed("match entry has no matchId")

    team1 = match_info.get("team1")
    team2 = match_info.get("team2")
    if any(team is not None and not isinstance(team, dict) for team in (team1, team2)):
        raise RecordMalformed(f"match {match_info['matchId']} has malformed team data")

    match_started, match_ended = classify_state(match_info.get("state"))
    try:
        team_info = [
            TeamInfo(
                name=team.get("teamName", ""),
                short_name=team.get("teamSName", ""),
                logo_url=_team_image(team.get("imageId")),
            )
            for team in (team1, team2) if team
        ]
        return Match(
            id=compose_match_id(str(match_info["matchId"]), slug),
            name=" – ".join(
                part for part in (match_info.get("seriesName"), match_info.get("matchDesc")) if part
            ),
            match_type=(match_info.get("matchFormat") or "").lower(),
            status=match_info.get("status") or "",
            start_time=_parse_start_time(match_info.get("startDate")),
            match_started=match_started,
            match_ended=match_ended,
            teams=[team["teamName"] for team in (team1, team2) if team and team.get("teamName")],
            team_info=team_info,
            score=_build_scores(match_info, match_score),
        )
    except (AttributeError, TypeError, ValueError) as e:
        raise RecordMalformed(f"match {match_info['matchId']}: {e}") from e


def _dict_items(container: Any, key: str) -> Iterator[dict]:
    """Yield the dict members of container[key], skipping anything else."""
    items = container.get(key) if isinstance(container, dict) else None
    if not isinstance(items, list):
        return
    for item in items:
        if isinstance(item, dict):
            yield item


def _iter_match_entries(data: dict) -> Iterator[dict]:
    """Walk typeMatches -> seriesMatches -> seriesAdWrapper.matches.

    Blocks of the wrong shape (ad slots, nulls) are skipped one at a time.
    """
    for type_block in _dict_items(data, "typeMatches"):
        for series_block in _dict_items(type_block, "seriesMatches"):
            for entry in _dict_items(series_block.get("seriesAdWrapper"), "matches"):
                if entry.get("matchInfo"):
                    yield entry


def parse_match_list(html: str) -> list[Match]:
    """Parse the live-scores page into Match records.

    Malformed entries are skipped; the rest of the list is returned.

    Args:
        html: Raw live-scores page

    Returns:
        List of Match objects in page order

    Raises:
        UpstreamShapeChanged: If the embedded match list cannot be located or parsed
    """
    marker_idx = html.find(MATCH_LIST_MARKER)
    if marker_idx < 0:
        raise UpstreamShapeChanged(MATCH_LIST_MARKER, "marker missing")

    raw = extract_balanced_object(html, marker_idx + len(MATCH_LIST_MARKER))
    if raw is None:
        raise UpstreamShapeChanged(MATCH_LIST_MARKER, "no balanced object after marker")

    try:
        data = decode_embedded_json(raw)
    except ValueError as e:
        raise UpstreamShapeChanged(MATCH_LIST_MARKER, f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise UpstreamShapeChanged(MATCH_LIST_MARKER, "payload is not an object")

    slug_map = extract_slug_map(html)
    matches = []
    for entry in _iter_match_entries(data):
        match_info = entry["matchInfo"]
        try:
            slug = slug_map.get(str(match_info.get("matchId")), "") if isinstance(match_info, dict) else ""
            matches.append(normalize_match(match_info, entry.get("matchScore"), slug))
        except RecordMalformed as e:
            logger.warning(f"Skipping malformed match entry: {e}")
            continue

    logger.debug(f"Parsed {len(matches)} matches from live-scores page")
    return matches


def select_current_matches(matches: list[Match]) -> list[Match]:
    """Keep live, finished and about-to-start matches.

    Falls back to the full list when nothing qualifies.
    """
    current = [
        m for m in matches
        if m.match_started
        or "preview" in m.status.lower()
        or "starts" in m.status.lower()
    ]
    return current or list(matches)
