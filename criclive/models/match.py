"""Match data model."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from criclive.exceptions import InvalidMatchId

# Separates the numeric source id from the URL slug in a composite match id
MATCH_ID_SEPARATOR = "~"


def compose_match_id(numeric_id: str, slug: str = "") -> str:
    """Build a composite match id, "<numericId>~<slug>" or just "<numericId>"."""
    if slug:
        return f"{numeric_id}{MATCH_ID_SEPARATOR}{slug}"
    return str(numeric_id)


def split_match_id(match_id: str) -> tuple[str, str]:
    """Split a composite match id into (numeric id, slug).

    Raises:
        InvalidMatchId: If the numeric part is empty or not all digits
    """
    numeric_id, _, slug = match_id.partition(MATCH_ID_SEPARATOR)
    if not numeric_id.isdigit():
        raise InvalidMatchId(f"Invalid match id: {match_id}")
    return numeric_id, slug


class TeamInfo(BaseModel):
    """Team name, short name and logo."""

    name: str
    short_name: str = Field("", alias="shortname")
    logo_url: Optional[str] = Field(None, alias="img")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class InningsScore(BaseModel):
    """Headline score for one innings. Unknown values stay None."""

    inning_label: str = Field(..., alias="inning")
    runs: Optional[int] = Field(None, alias="r")
    wickets: Optional[int] = Field(None, alias="w")
    overs: Optional[float] = Field(None, alias="o")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class Match(BaseModel):
    """Represents a cricket match from the live-scores list."""

    id: str
    name: str = ""
    match_type: str = Field("", alias="matchType")
    status: str = ""
    start_time: Optional[datetime] = Field(None, alias="dateTimeGMT")
    match_started: bool = Field(False, alias="matchStarted")
    match_ended: bool = Field(False, alias="matchEnded")
    teams: list[str] = []
    team_info: list[TeamInfo] = Field([], alias="teamInfo")
    score: list[InningsScore] = []

    class Config:
        """Pydantic configuration."""

        populate_by_name = True

    @property
    def is_live(self) -> bool:
        """True while the match is in progress."""
        return self.match_started and not self.match_ended
