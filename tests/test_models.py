# tests/test_models.py
"""Tests for the camelCase domain models."""

import pytest
from pydantic import ValidationError

from parlaypro.models import (
    AnalysisResult,
    Game,
    MatchupAnalysis,
    ParlayLeg,
    PlayerStat,
    ScheduleResponse,
)


class TestGame:

    def test_camel_case_input(self):
        game = Game.model_validate({"id": "kc-lv", "homeTeam": "Chiefs", "awayTeam": "Raiders"})
        assert game.home_team == "Chiefs"
        assert game.status is None

    def test_snake_case_input(self):
        game = Game(id="kc-lv", home_team="Chiefs", away_team="Raiders")
        assert game.to_payload()["homeTeam"] == "Chiefs"

    def test_required_fields(self):
        with pytest.raises(ValidationError):
            Game.model_validate({"id": "x"})


class TestParlayLeg:

    @pytest.mark.parametrize("raw,expected", [(150, 100), (-5, 0), (72.6, 73), (50, 50)])
    def test_confidence_clamped(self, raw, expected):
        assert ParlayLeg(player="P", confidence=raw).confidence == expected

    def test_payload_uses_camel_case(self):
        payload = ParlayLeg(id="l1", player="P", prop_type="Rec Yds", player_avg=60.0).to_payload()
        assert payload["propType"] == "Rec Yds"
        assert payload["playerAvg"] == 60.0
        assert "prop_type" not in payload


class TestPlayerStat:

    def test_string_game_lines_become_summaries(self):
        player = PlayerStat.model_validate(
            {"name": "Josh Jacobs", "last5Games": ["vs KC: 80 yds", {"opponent": "DEN", "stats": {"Yds": 95}}]}
        )
        assert player.last5_games[0].summary == "vs KC: 80 yds"
        assert player.last5_games[0].stats == {}
        assert player.last5_games[1].opponent == "DEN"

    def test_payload_alias(self):
        assert "last5Games" in PlayerStat(name="X").to_payload()


class TestAnalysisResult:

    def test_all_legs_includes_roster_suggestions(self):
        result = AnalysisResult.model_validate(
            {
                "legs": [{"id": "h1", "player": "A"}],
                "rosters": {
                    "teamA": {"teamName": "Chiefs", "players": [{"name": "A", "suggestedLegs": [{"id": "r1", "player": "A"}]}]},
                    "teamB": {"teamName": "Raiders", "players": [{"name": "B", "suggestedLegs": [{"id": "r2", "player": "B"}]}]},
                },
            }
        )
        assert [leg.id for leg in result.all_legs()] == ["h1", "r1", "r2"]

    def test_all_legs_without_rosters(self):
        assert AnalysisResult(legs=[ParlayLeg(id="h", player="A")]).all_legs()[0].id == "h"


class TestMatchupAnalysis:

    def test_payload_round_trip(self):
        analysis = MatchupAnalysis.model_validate(
            {
                "analysis": {"matchup": "A vs B", "summary": "s"},
                "sources": [{"title": "ESPN", "uri": "https://espn.com"}],
                "rawText": "raw",
            }
        )
        payload = analysis.to_payload()
        assert set(payload) == {"analysis", "sources", "rawText"}
        assert MatchupAnalysis.model_validate(payload) == analysis

    def test_schedule_payload(self):
        schedule = ScheduleResponse(week="Week 1", games=[Game(id="g", home_team="H", away_team="A")])
        assert ScheduleResponse.model_validate(schedule.to_payload()) == schedule
