# src/parlaypro/models.py
"""
Core data models for ParlayPro.

These Pydantic models describe the schedule, matchup analysis and parlay
legs returned by the AI analyst.  The analyst emits camelCase JSON
(``homeTeam``, ``propType``); every model accepts both the camelCase alias
and the snake_case field name, and ``to_payload()`` produces the camelCase
JSON form that is written to the cache.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe dict using the camelCase wire names."""
        return self.model_dump(mode="json", by_alias=True)


class Game(_CamelModel):
    """A scheduled NFL game."""
    id: str
    home_team: str
    away_team: str
    time: str = ""
    date: str = ""
    status: str | None = None


class ScheduleResponse(_CamelModel):
    """One week of the schedule."""
    week: str
    games: list[Game] = Field(default_factory=list)


class DefenseStat(_CamelModel):
    """A defense's ranking against one position (e.g. "TE", "32nd")."""
    position: str
    rank: str | int = ""
    avg_allowed: str | float = ""
    description: str = ""


class ParlayLeg(_CamelModel):
    """A single player prop that can be pinned to the slip."""
    id: str = ""
    player: str
    team: str = ""
    position: str = ""
    prop_type: str = ""
    line: float = 0.0
    confidence: int = Field(default=0, ge=0, le=100)
    reasoning: str = ""
    player_avg: float = 0.0
    defense_allowed_vs_pos: float | str = ""

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return max(0, min(100, int(round(v))))
        return v


class GameLog(_CamelModel):
    """One game's box-score line for a player.

    The analyst sometimes returns plain strings like ``"vs KC: 250 yds, 2 TD"``;
    those are kept in ``summary`` with empty ``stats``.
    """
    opponent: str = ""
    date: str | None = None
    stats: dict[str, str | float] = Field(default_factory=dict)
    summary: str | None = None


class PlayerStat(_CamelModel):
    name: str
    position: str = ""
    avg_stats: str = ""
    last5_games: list[GameLog] = Field(default_factory=list, alias="last5Games")
    suggested_legs: list[ParlayLeg] = Field(default_factory=list)

    @field_validator("last5_games", mode="before")
    @classmethod
    def _coerce_game_lines(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return v
        return [{"summary": item} if isinstance(item, str) else item for item in v]


class TeamRoster(_CamelModel):
    team_name: str
    players: list[PlayerStat] = Field(default_factory=list)


class Rosters(BaseModel):
    team_a: TeamRoster = Field(alias="teamA")
    team_b: TeamRoster = Field(alias="teamB")

    model_config = ConfigDict(populate_by_name=True)


class AnalysisResult(_CamelModel):
    """Structured matchup analysis."""
    matchup: str = ""
    summary: str = ""
    defense_stats: list[DefenseStat] = Field(default_factory=list)
    legs: list[ParlayLeg] = Field(default_factory=list)
    rosters: Rosters | None = None

    def all_legs(self) -> list[ParlayLeg]:
        """Headline legs followed by every roster-suggested leg."""
        legs = list(self.legs)
        if self.rosters:
            for team in (self.rosters.team_a, self.rosters.team_b):
                for player in team.players:
                    legs.extend(player.suggested_legs)
        return legs


class GroundingSource(_CamelModel):
    """A web page the model cited via search grounding."""
    title: str
    uri: str


class MatchupAnalysis(_CamelModel):
    """What the analyst returns and what gets cached under the matchup namespace.

    ``analysis`` is None when the model's reply had no parseable JSON block;
    ``raw_text`` then holds the reply for display.
    """
    analysis: AnalysisResult | None = None
    sources: list[GroundingSource] = Field(default_factory=list)
    raw_text: str = ""
