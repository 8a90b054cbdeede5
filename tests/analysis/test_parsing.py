# tests/analysis/test_parsing.py
"""
Tests for Gemini reply parsing.

These tests verify:
- JSON extraction from fenced and bare replies
- Grounding source extraction from response metadata
- Leg id backfilling
- Schedule and analysis parsing into models
"""

import json
from types import SimpleNamespace

import pytest

from parlaypro.analysis.parsing import (
    assign_leg_ids,
    extract_grounding_sources,
    extract_json_block,
    parse_analysis,
    parse_schedule,
)


# =============================================================================
# JSON EXTRACTION TESTS
# =============================================================================


class TestExtractJsonBlock:

    def test_fenced_block(self):
        text = 'Here you go:\n```json\n{"week": "Week 12"}\n```\nGood luck!'
        assert extract_json_block(text) == {"week": "Week 12"}

    def test_fenced_block_preferred_over_braces_in_prose(self):
        text = 'Notes {not json}\n```json\n{"a": 1}\n```'
        assert extract_json_block(text) == {"a": 1}

    def test_bare_object(self):
        assert extract_json_block('Result: {"a": {"b": 2}} end') == {"a": {"b": 2}}

    def test_literal_newline_inside_string(self):
        text = '```json\n{"summary": "line one\nline two"}\n```'
        assert extract_json_block(text) == {"summary": "line one line two"}

    @pytest.mark.parametrize("text", ["", "no json here", "```json\n{broken\n```"])
    def test_unparseable(self, text):
        assert extract_json_block(text) is None


# =============================================================================
# GROUNDING TESTS
# =============================================================================


def _response(chunks):
    metadata = SimpleNamespace(grounding_chunks=chunks)
    return SimpleNamespace(candidates=[SimpleNamespace(grounding_metadata=metadata)])


def _chunk(title, uri):
    return SimpleNamespace(web=SimpleNamespace(title=title, uri=uri))


class TestExtractGroundingSources:

    def test_collects_web_chunks(self):
        response = _response([_chunk("ESPN", "https://espn.com"), _chunk("PFR", "https://pfr.com")])
        sources = extract_grounding_sources(response)
        assert [(s.title, s.uri) for s in sources] == [
            ("ESPN", "https://espn.com"),
            ("PFR", "https://pfr.com"),
        ]

    def test_skips_incomplete_chunks(self):
        response = _response([_chunk(None, "https://x"), SimpleNamespace(web=None), _chunk("ok", "https://ok")])
        assert [s.uri for s in extract_grounding_sources(response)] == ["https://ok"]

    def test_no_candidates(self):
        assert extract_grounding_sources(SimpleNamespace(candidates=None)) == []
        assert extract_grounding_sources(SimpleNamespace()) == []

    def test_no_metadata(self):
        response = SimpleNamespace(candidates=[SimpleNamespace(grounding_metadata=None)])
        assert extract_grounding_sources(response) == []


# =============================================================================
# LEG ID TESTS
# =============================================================================


class TestAssignLegIds:

    def test_headline_legs(self):
        data = {"legs": [{"player": "A"}, {"player": "B", "id": "keep"}, {"player": "C", "id": ""}]}
        assign_leg_ids(data, stamp=123)
        assert [leg["id"] for leg in data["legs"]] == ["leg-123-0", "keep", "leg-123-2"]

    def test_roster_legs(self):
        data = {
            "rosters": {
                "teamA": {"players": [{"name": "Patrick Mahomes", "suggestedLegs": [{}, {}]}]},
                "teamB": {"players": [{"name": "Josh Jacobs", "suggestedLegs": [{"id": "x"}]}]},
            }
        }
        assign_leg_ids(data, stamp=9)
        legs_a = data["rosters"]["teamA"]["players"][0]["suggestedLegs"]
        assert [leg["id"] for leg in legs_a] == [
            "roster-leg-9-PatrickMahomes-0",
            "roster-leg-9-PatrickMahomes-1",
        ]
        assert data["rosters"]["teamB"]["players"][0]["suggestedLegs"][0]["id"] == "x"

    def test_tolerates_odd_shapes(self):
        data = {"legs": "none", "rosters": {"teamA": None, "teamB": {"players": ["bad"]}}}
        assert assign_leg_ids(data, stamp=1) is data


# =============================================================================
# MODEL PARSING TESTS
# =============================================================================


class TestParseSchedule:

    def test_valid(self):
        body = {
            "week": "Week 12",
            "games": [{"id": "kc-lv", "homeTeam": "Chiefs", "awayTeam": "Raiders", "time": "1:00 PM", "date": "Sun"}],
        }
        schedule = parse_schedule(f"```json\n{json.dumps(body)}\n```")
        assert schedule.week == "Week 12"
        assert schedule.games[0].home_team == "Chiefs"

    def test_wrong_shape(self):
        assert parse_schedule('```json\n{"games": "soon"}\n```') is None

    def test_not_an_object(self):
        assert parse_schedule("```json\n[1, 2]\n```") is None


class TestParseAnalysis:

    def test_valid_with_backfilled_ids(self):
        body = {
            "matchup": "Chiefs vs Raiders",
            "summary": "Raiders weak vs TE",
            "defenseStats": [{"position": "TE", "rank": "32nd", "avgAllowed": "65 yds/g"}],
            "legs": [{"player": "Travis Kelce", "propType": "Receiving Yards", "line": 55.5, "confidence": 82}],
        }
        analysis = parse_analysis(f"```json\n{json.dumps(body)}\n```", stamp=7)

        assert analysis.matchup == "Chiefs vs Raiders"
        assert analysis.defense_stats[0].rank == "32nd"
        assert analysis.legs[0].id == "leg-7-0"
        assert analysis.legs[0].prop_type == "Receiving Yards"

    def test_invalid_shape(self):
        assert parse_analysis('```json\n{"legs": [{"line": 5}]}\n```') is None

    def test_no_json(self):
        assert parse_analysis("The model declined to answer.") is None
