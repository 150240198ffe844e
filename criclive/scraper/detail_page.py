"""
Scorecard and match info parsers for Cricbuzz detail pages.

Both views are read from the rendered scorecard page
(/live-cricket-scorecard/{id}/{slug}). The page is Tailwind-styled HTML, so
elements are located by id prefixes and class-name fragments:

- Innings blocks:   id="scard-team-{teamId}-innings-{n}" (rendered twice, mobile + desktop)
- Innings headers:  id="team-{teamId}-innings-{n}"
- Batting rows:     class contains "scorecard-bat-grid"
- Bowling rows:     class contains "scorecard-bowl-grid"
- Header rows:      class contains "bg-cbBorderGrey"
- Facts table:      class contains "facts-row-grid"
- Event schema:     <script type="application/ld+json"> with @type SportsEvent

Every field is optional; only an unparseable document is an error.
"""

import json
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Iterator, Optional

import lxml.html
from lxml import etree

from criclive.exceptions import RecordMalformed, UpstreamShapeChanged
from criclive.models.match import InningsScore, TeamInfo
from criclive.models.match_info import MatchInfo
from criclive.models.scorecard import (
    BattingRow,
    BowlingRow,
    Extras,
    InningsDetail,
    InningsTotal,
    Scorecard,
)

logger = logging.getLogger(__name__)

IST = timezone(timedelta(hours=5, minutes=30), "IST")

INNINGS_NUMBER_RE = re.compile(r"innings-(\d+)$")
NUMBER_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)")

EXTRAS_LABELS = {
    "byes": re.compile(r"\bb (\d+)"),
    "leg_byes": re.compile(r"\blb (\d+)"),
    "wides": re.compile(r"\bw (\d+)"),
    "no_balls": re.compile(r"\bnb (\d+)"),
    "penalty": re.compile(r"\bp (\d+)"),
}
TOTAL_SCORE_RE = re.compile(r"(\d+)[-/](\d+)")
TOTAL_OVERS_RE = re.compile(r"\(([0-9.]+)\s+Ov", re.IGNORECASE)
HEADER_SCORE_RE = re.compile(r"^(\d+)[-/](\d+)$")

TOSS_WINNER_RE = re.compile(r"^(.+?)\s+won the toss", re.IGNORECASE)
TOSS_CHOICE_RE = re.compile(r"opt(?:ed|s)? to (bat|bowl)", re.IGNORECASE)

# "Australia Women vs India Women, 1st ODI, India Women tour of Australia, 2026 - Live Cricket Score"
EVENT_TEAMS_RE = re.compile(r"^(.+?)\s+vs\s+(.+?),", re.IGNORECASE)
EVENT_DESC_RE = re.compile(r"vs .+?,\s*(.+?),", re.IGNORECASE)
EVENT_SERIES_RE = re.compile(r"vs .+?, .+?,\s*(.+?)(?:\s+-\s+|$)", re.IGNORECASE)
MATCH_FORMAT_RE = re.compile(r"\b(test|odi|t20i?|t10|hundred|fc|list\s*a)\b", re.IGNORECASE)


# =============================================================================
# HELPERS
# =============================================================================

def _has_class(fragment: str) -> str:
    """XPath predicate: class attribute contains fragment (like [class*=...])."""
    return f'contains(@class, "{fragment}")'


def _has_class_token(token: str) -> str:
    """XPath predicate: class list contains the exact token (like .token)."""
    return f'contains(concat(" ", normalize-space(@class), " "), " {token} ")'


def _text(element: Optional[etree._Element]) -> str:
    """Whitespace-normalized text content of an element."""
    if element is None:
        return ""
    return " ".join(element.text_content().split())


def _first(elements: list) -> Optional[etree._Element]:
    return elements[0] if elements else None


def to_number(text: Optional[str]) -> Optional[float]:
    """Parse a leading number leniently; anything else is None."""
    found = NUMBER_RE.match(text or "")
    return float(found.group(1)) if found else None


def to_int(text: Optional[str]) -> Optional[int]:
    number = to_number(text)
    return int(number) if number is not None else None


def load_document(html: str) -> etree._Element:
    """Parse an HTML document.

    Raises:
        UpstreamShapeChanged: If the input cannot be parsed as a document
    """
    if not html or not html.strip():
        raise UpstreamShapeChanged("<html>", "empty document")
    try:
        return lxml.html.document_fromstring(html)
    except (etree.ParserError, ValueError) as e:
        raise UpstreamShapeChanged("<html>", f"unparseable document: {e}") from e


def _innings_number(element_id: str) -> str:
    found = INNINGS_NUMBER_RE.search(element_id)
    return found.group(1) if found else "1"


def _unique_by_id(elements: list) -> Iterator[etree._Element]:
    """Yield elements, skipping repeats of an id already seen."""
    seen = set()
    for element in elements:
        element_id = element.get("id")
        if not element_id or element_id in seen:
            continue
        seen.add(element_id)
        yield element


# =============================================================================
# SCORECARD
# =============================================================================

def parse_extras(text: str) -> Extras:
    """Parse an extras line, e.g. "Extras 9 (b 0, lb 1, w 8, nb 0, p 0)".

    Labels that are not present count as zero.
    """
    values = {}
    for field, pattern in EXTRAS_LABELS.items():
        found = pattern.search(text or "")
        values[field] = int(found.group(1)) if found else 0
    return Extras(**values)


def parse_total(text: str) -> Optional[InningsTotal]:
    """Parse a total line, e.g. "Total 79-3 (18 Overs, RR: 4.39)".

    Returns None when no runs-wickets pair is present.
    """
    score = TOTAL_SCORE_RE.search(text or "")
    if not score:
        return None
    overs = TOTAL_OVERS_RE.search(text)
    return InningsTotal(
        runs=int(score.group(1)),
        wickets=int(score.group(2)),
        overs=overs.group(1) if overs else None,
    )


def _innings_team_name(document: etree._Element, header_id: str) -> str:
    # Ids come from the page, so they are passed as a variable, never spliced in
    header = _first(document.xpath('//*[@id=$header_id]', header_id=header_id))
    if header is None:
        return "Team"
    # The long name is hidden on mobile and shown on desktop
    long_name = _first(header.xpath(
        f'.//*[{_has_class("hidden")} and {_has_class("font-bold")}]'
    ))
    short_name = _first(header.xpath(f'.//*[{_has_class("font-bold")}]'))
    return _text(long_name) or _text(short_name) or "Team"


def _grid_rows(block: etree._Element, grid_class: str) -> list:
    return block.xpath(
        f'.//*[{_has_class(grid_class)} and not({_has_class("bg-cbBorderGrey")})]'
    )


def _parse_batting_row(row: etree._Element) -> BattingRow:
    cells = list(row.iterchildren(tag=etree.Element))
    if len(cells) < 6:
        raise RecordMalformed(f"batting row has {len(cells)} cells")

    batter = _text(_first(cells[0].xpath(".//a")))
    if not batter:
        raise RecordMalformed("batting row has no batter")

    dismissal = _text(_first(cells[0].xpath(f'.//*[{_has_class("cbTxtSec")}]')))
    return BattingRow(
        batter_name=batter,
        dismissal_text=dismissal or "not out",
        runs=to_int(_text(cells[1])),
        balls=to_int(_text(cells[2])),
        fours=to_int(_text(cells[3])),
        sixes=to_int(_text(cells[4])),
        strike_rate=to_number(_text(cells[5])),
    )


def _parse_bowling_row(row: etree._Element) -> BowlingRow:
    cells = list(row.iterchildren(tag=etree.Element))
    if len(cells) < 5:
        raise RecordMalformed(f"bowling row has {len(cells)} cells")

    # The bowler cell is either a bare <a> or a wrapper around one
    first_cell = cells[0]
    if first_cell.tag == "a":
        bowler = _text(first_cell)
    else:
        bowler = _text(_first(first_cell.xpath(".//a")))
    if not bowler:
        raise RecordMalformed("bowling row has no bowler")

    def cell(index: int) -> str:
        return _text(cells[index]) if index < len(cells) else ""

    return BowlingRow(
        bowler_name=bowler,
        overs=to_number(cell(1)),
        maidens=to_int(cell(2)),
        runs=to_int(cell(3)),
        wickets=to_int(cell(4)),
        no_balls=to_int(cell(5)),
        wides=to_int(cell(6)),
    )


def _labeled_line(block: etree._Element, label: str) -> str:
    """Text of the flex row holding a bold label such as "Extras" or "Total"."""
    label_el = _first(block.xpath(
        f'.//*[{_has_class_token("font-bold")} and contains(., "{label}")]'
    ))
    if label_el is None:
        return ""
    row = _first(label_el.xpath(f'ancestor-or-self::*[{_has_class("flex")}][1]'))
    return _text(row if row is not None else label_el)


def _parse_rows(rows: list, parse_row, kind: str) -> list:
    parsed = []
    for row in rows:
        try:
            parsed.append(parse_row(row))
        except RecordMalformed as e:
            logger.debug(f"Skipping {kind} row: {e}")
    return parsed


def parse_scorecard(html: str) -> Scorecard:
    """Parse a scorecard page into innings details.

    Args:
        html: Raw scorecard page

    Returns:
        Scorecard with one InningsDetail per innings block, in page order

    Raises:
        UpstreamShapeChanged: If the document cannot be parsed at all
    """
    document = load_document(html)
    innings = []

    for block in _unique_by_id(document.xpath('//*[starts-with(@id, "scard-team-")]')):
        block_id = block.get("id")
        header_id = block_id[len("scard-"):]
        team_name = _innings_team_name(document, header_id)

        innings.append(InningsDetail(
            inning_label=f"{team_name} Inning {_innings_number(header_id)}",
            batting=_parse_rows(_grid_rows(block, "scorecard-bat-grid"), _parse_batting_row, "batting"),
            bowling=_parse_rows(_grid_rows(block, "scorecard-bowl-grid"), _parse_bowling_row, "bowling"),
            extras=parse_extras(_labeled_line(block, "Extras")),
            total=parse_total(_labeled_line(block, "Total")),
        ))

    logger.debug(f"Parsed scorecard with {len(innings)} innings")
    return Scorecard(innings=innings)


# =============================================================================
# MATCH INFO
# =============================================================================

def _parse_facts(document: etree._Element) -> dict[str, str]:
    """Key-value rows such as Toss, Venue, Umpires, 3rd Umpire, Referee."""
    facts = {}
    for row in document.xpath(f'//*[{_has_class("facts-row-grid")}]'):
        label = _text(_first(row.xpath(f'.//*[{_has_class_token("font-bold")}]')))
        children = list(row.iterchildren(tag=etree.Element))
        value = _text(children[-1]) if children else ""
        if label and value and label != value:
            facts[label] = value
    return facts


def _iter_ld_json(document: etree._Element) -> Iterator[dict]:
    for script in document.xpath('//script[@type="application/ld+json"]'):
        try:
            data = json.loads(script.text or "")
        except ValueError:
            logger.debug("Skipping unparseable ld+json block")
            continue
        for item in data if isinstance(data, list) else [data]:
            if isinstance(item, dict):
                yield item


def _sports_event(document: etree._Element) -> tuple[str, str]:
    """Return (startDate, name) of the SportsEvent schema, empty if absent."""
    start_date, name = "", ""
    for item in _iter_ld_json(document):
        if item.get("@type") == "SportsEvent":
            start_date = str(item.get("startDate") or "")
            name = str(item.get("name") or "")
    return start_date, name


def parse_event_name(name: str) -> dict[str, str]:
    """Split a SportsEvent name into teams, match type and series.

    "A vs B, 1st ODI, B tour of A, 2026 - Live" gives team1 "A", team2 "B",
    match_type "odi", series_name "B tour of A, 2026".
    """
    teams = EVENT_TEAMS_RE.search(name)
    desc = EVENT_DESC_RE.search(name)
    series = EVENT_SERIES_RE.search(name)

    match_desc = desc.group(1).strip() if desc else ""
    match_format = MATCH_FORMAT_RE.search(match_desc)
    return {
        "team1": teams.group(1).strip() if teams else "",
        "team2": teams.group(2).strip() if teams else "",
        "match_type": re.sub(r"\s+", "", match_format.group(1).lower()) if match_format else "",
        "series_name": series.group(1).strip() if series else "",
    }


def format_ist_date(start_date: str) -> str:
    """Render an ISO timestamp as e.g. "Thu, 15 Jan 2026, 09:30 AM IST"."""
    if not start_date:
        return ""
    try:
        parsed = datetime.fromisoformat(start_date.replace("Z", "+00:00"))
    except ValueError:
        return ""
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    local = parsed.astimezone(IST)
    return f"{local:%a}, {local.day} {local:%b %Y, %I:%M %p} IST"


def _parse_innings_headers(document: etree._Element) -> tuple[list[str], list[TeamInfo], list[InningsScore]]:
    """Teams and current scores from innings headers (only teams that batted)."""
    teams: list[str] = []
    team_info: list[TeamInfo] = []
    score: list[InningsScore] = []

    headers = document.xpath('//*[starts-with(@id, "team-") and contains(@id, "-innings-")]')
    for header in _unique_by_id(headers):
        # Short name shows on mobile, long name ("tb:block") on tablet and desktop
        short_name = _text(_first(header.xpath(f'./*[{_has_class("font-bold")}]')))
        long_name = _text(_first(header.xpath(f'./*[{_has_class("tb:block")}]'))) or short_name

        if long_name and long_name not in teams:
            teams.append(long_name)
            team_info.append(TeamInfo(name=long_name, short_name=short_name))

        score_text = _text(_first(header.xpath(f'.//span[{_has_class("font-bold")}]')))
        overs_text = _text(_first(header.xpath(f'.//span[not({_has_class("font-bold")})]')))
        runs_wickets = HEADER_SCORE_RE.match(score_text)
        if runs_wickets:
            overs = re.sub(r"\s*Ov$", "", overs_text.replace("(", "").replace(")", "").strip(), flags=re.IGNORECASE)
            score.append(InningsScore(
                inning_label=f"{long_name} Inning {_innings_number(header.get('id'))}",
                runs=int(runs_wickets.group(1)),
                wickets=int(runs_wickets.group(2)),
                overs=to_number(overs),
            ))

    return teams, team_info, score


def _parse_toss(toss_text: str) -> tuple[Optional[str], Optional[str]]:
    winner = TOSS_WINNER_RE.search(toss_text)
    choice = TOSS_CHOICE_RE.search(toss_text)
    return (
        winner.group(1).strip() if winner else None,
        choice.group(1).lower() if choice else None,
    )


def parse_match_info(html: str, match_id: str = "") -> MatchInfo:
    """Parse venue, toss, officials, teams and scores from a scorecard page.

    Teams come from the innings headers first; the SportsEvent schema fills in
    teams that have not batted yet.

    Args:
        html: Raw scorecard page
        match_id: Composite match id to stamp on the result

    Returns:
        MatchInfo with absent fields left empty

    Raises:
        UpstreamShapeChanged: If the document cannot be parsed at all
    """
    document = load_document(html)
    facts = _parse_facts(document)
    start_date, event_name = _sports_event(document)
    event = parse_event_name(event_name)

    teams, team_info, score = _parse_innings_headers(document)
    if event["team1"] and event["team2"]:
        for name in (event["team1"], event["team2"]):
            if name not in teams:
                teams.append(name)
                team_info.append(TeamInfo(name=name))

    toss_text = facts.get("Toss", "")
    toss_winner, toss_choice = _parse_toss(toss_text)

    return MatchInfo(
        match_id=match_id,
        teams=teams,
        team_info=team_info,
        score=score,
        match_type=event["match_type"],
        series_name=event["series_name"],
        date=format_ist_date(start_date),
        venue=facts.get("Venue", ""),
        start_time_raw=start_date,
        status=toss_text,
        toss_winner=toss_winner,
        toss_choice=toss_choice,
        umpires=", ".join(v for v in (facts.get("Umpires"), facts.get("3rd Umpire")) if v),
        referee=facts.get("Referee", ""),
    )
