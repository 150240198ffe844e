"""
Parsers that turn Cricbuzz pages into CricLive models.

All functions here are pure: they take page text and return models, so
captured pages can drive tests without network access.
"""

from criclive.scraper.match_list import (
    MATCH_LIST_MARKER,
    parse_match_list,
    select_current_matches,
)
from criclive.scraper.detail_page import parse_match_info, parse_scorecard

__all__ = [
    "MATCH_LIST_MARKER",
    "parse_match_list",
    "select_current_matches",
    "parse_scorecard",
    "parse_match_info",
]
