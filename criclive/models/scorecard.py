"""Scorecard data models."""

from typing import Optional
from pydantic import BaseModel, Field


class BattingRow(BaseModel):
    """One batter's line in an innings."""

    batter_name: str = Field(..., alias="batsman")
    dismissal_text: str = Field("not out", alias="dismissal-text")
    runs: Optional[int] = Field(None, alias="r")
    balls: Optional[int] = Field(None, alias="b")
    fours: Optional[int] = Field(None, alias="4s")
    sixes: Optional[int] = Field(None, alias="6s")
    strike_rate: Optional[float] = Field(None, alias="sr")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class BowlingRow(BaseModel):
    """One bowler's figures in an innings."""

    bowler_name: str = Field(..., alias="bowler")
    overs: Optional[float] = Field(None, alias="o")
    maidens: Optional[int] = Field(None, alias="m")
    runs: Optional[int] = Field(None, alias="r")
    wickets: Optional[int] = Field(None, alias="w")
    no_balls: Optional[int] = Field(None, alias="nb")
    wides: Optional[int] = Field(None, alias="wd")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class Extras(BaseModel):
    """Extras conceded in an innings. Missing labels count as zero."""

    byes: int = Field(0, alias="b")
    leg_byes: int = Field(0, alias="lb")
    wides: int = Field(0, alias="w")
    no_balls: int = Field(0, alias="nb")
    penalty: int = Field(0, alias="p")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class InningsTotal(BaseModel):
    """Innings total, e.g. 79-3 (18 Ov)."""

    runs: int = Field(..., alias="r")
    wickets: int = Field(..., alias="w")
    overs: Optional[str] = Field(None, alias="o")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class InningsDetail(BaseModel):
    """Full batting and bowling card for one innings."""

    inning_label: str = Field(..., alias="inning")
    batting: list[BattingRow] = []
    bowling: list[BowlingRow] = []
    extras: Extras = Field(default_factory=Extras)
    total: Optional[InningsTotal] = None

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class Scorecard(BaseModel):
    """All innings of a match, in page order."""

    innings: list[InningsDetail] = Field([], alias="scorecard")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True
