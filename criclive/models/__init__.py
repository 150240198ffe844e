"""Data models for the CricLive application."""

from criclive.models.match import (
    Match,
    TeamInfo,
    InningsScore,
    compose_match_id,
    split_match_id,
)
from criclive.models.scorecard import (
    Scorecard,
    InningsDetail,
    BattingRow,
    BowlingRow,
    Extras,
    InningsTotal,
)
from criclive.models.match_info import MatchInfo

__all__ = [
    "Match",
    "TeamInfo",
    "InningsScore",
    "compose_match_id",
    "split_match_id",
    "Scorecard",
    "InningsDetail",
    "BattingRow",
    "BowlingRow",
    "Extras",
    "InningsTotal",
    "MatchInfo",
]
