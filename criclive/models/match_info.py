"""Match info data model."""

from typing import Literal, Optional
from pydantic import BaseModel, Field

from criclive.models.match import InningsScore, TeamInfo


class MatchInfo(BaseModel):
    """Venue, toss and officials for a match, with the current score."""

    match_id: str = Field("", alias="id")
    teams: list[str] = []
    team_info: list[TeamInfo] = Field([], alias="teamInfo")
    score: list[InningsScore] = []
    match_type: str = Field("", alias="matchType")
    series_name: str = Field("", alias="seriesName")
    date: str = ""  # human readable, IST
    venue: str = ""
    start_time_raw: str = Field("", alias="dateTimeGMT")
    status: str = ""  # raw toss sentence
    toss_winner: Optional[str] = Field(None, alias="tossWinner")
    toss_choice: Optional[Literal["bat", "bowl"]] = Field(None, alias="tossChoice")
    umpires: str = ""
    referee: str = Field("", alias="matchReferee")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True
