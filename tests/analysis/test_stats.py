# tests/analysis/test_stats.py
"""Tests for game-log stat summaries and safe-leg scoring."""

import pytest

from parlaypro.analysis.stats import (
    defense_advantage,
    parse_stat_value,
    safe_line,
    safety_score,
    stat_names,
    summarize_all,
    summarize_stat,
    top_safe_legs,
)
from parlaypro.models import GameLog, PlayerStat


def _logs(*rows):
    return [GameLog(opponent=f"OPP{i}", stats=row) for i, row in enumerate(rows)]


class TestParseStatValue:

    @pytest.mark.parametrize(
        "value,expected",
        [
            (12, 12.0),
            (4.5, 4.5),
            ("87", 87.0),
            (" 3.5 yds", 3.5),
            ("-2", -2.0),
            ("DNP", 0.0),
            (None, 0.0),
            (True, 0.0),
        ],
    )
    def test_values(self, value, expected):
        assert parse_stat_value(value) == expected


class TestSummaries:

    def test_stat_names_from_first_log(self):
        logs = _logs({"Yds": 80, "TD": "1", "Note": "limited"}, {"Yds": 60, "Rec": 5})
        assert stat_names(logs) == ["Yds", "TD"]

    def test_stat_names_empty(self):
        assert stat_names([]) == []
        assert stat_names([GameLog(summary="vs KC: 250 yds")]) == []

    def test_summarize_stat(self):
        logs = _logs({"Yds": 60}, {"Yds": 80}, {"Yds": 100})
        summary = summarize_stat("Yds", logs)
        assert summary.average == 80
        assert summary.value == 80
        assert summary.minimum == 60
        assert summary.maximum == 100
        assert summary.std_dev == 16.33

    def test_summarize_missing_stat(self):
        assert summarize_stat("TD", _logs({"Yds": 1})) is None

    def test_summarize_all(self):
        logs = _logs({"Yds": 50, "Rec": 4}, {"Yds": 70, "Rec": 6})
        names = [s.name for s in summarize_all(logs)]
        assert names == ["Yds", "Rec"]


class TestScoring:

    @pytest.mark.parametrize(
        "average,expected",
        [(100, 85.0), (80, 70.0), (10, 10.0), (0, 0.0), (20.6, 20.0)],
    )
    def test_safe_line(self, average, expected):
        assert safe_line(average) == expected

    def test_safety_score(self):
        assert safety_score(100, 10) == 90.0
        assert safety_score(10, 20) == 0.0
        assert safety_score(0, 5) == 0.0
        assert safety_score(50, 0) == 100.0

    @pytest.mark.parametrize(
        "rank,expected",
        [(1, 97.0), ("32nd", 0.0), ("16th", 50.0), ("unranked", 50.0), (None, 0.0), ("", 0.0)],
    )
    def test_defense_advantage(self, rank, expected):
        assert defense_advantage(rank) == expected


class TestTopSafeLegs:

    def test_ranks_consistent_stats_first(self):
        player = PlayerStat(
            name="Travis Kelce",
            position="TE",
            last5Games=[
                {"opponent": "LV", "stats": {"Yds": 70, "Rec": 6}},
                {"opponent": "DEN", "stats": {"Yds": 20, "Rec": 6}},
                {"opponent": "LAC", "stats": {"Yds": 110, "Rec": 6}},
            ],
        )
        legs = top_safe_legs(player, "Chiefs", defense_rank="32nd")

        assert [leg.stat_name for leg in legs] == ["Rec", "Yds"]
        rec = legs[0]
        assert rec.player == "Travis Kelce"
        assert rec.team == "Chiefs"
        assert rec.safety_score == 100.0
        assert rec.defense_advantage == 0.0
        assert rec.combined_score == pytest.approx(60.0)
        assert rec.recommended == 5.0

    def test_limit(self):
        player = PlayerStat(
            name="X",
            last5Games=[{"stats": {"a": 1, "b": 2, "c": 3}}],
        )
        assert len(top_safe_legs(player, "T", limit=2)) == 2

    def test_string_game_logs_yield_nothing(self):
        player = PlayerStat(name="X", last5Games=["vs KC: 250 yds, 2 TD"])
        assert top_safe_legs(player, "T") == []
