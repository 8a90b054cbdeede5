# src/parlaypro/analysis/prompts.py
"""Prompt builders for the matchup analyst."""

from __future__ import annotations

import json
from datetime import date
from typing import Any

_SCHEDULE_SHAPE = {
    "week": "Week 12",
    "games": [
        {
            "homeTeam": "Chiefs",
            "awayTeam": "Raiders",
            "time": "1:00 PM ET",
            "date": "Sunday, Nov 26",
            "id": "kc-lv-2023",
        }
    ],
}

_LEG_SHAPE = {
    "id": "leg-1",
    "player": "Player Name",
    "team": "Team Name",
    "position": "Pos",
    "propType": "Receiving Yards",
    "line": 50.5,
    "confidence": 75,
    "reasoning": "Avg is 60, defense ranks 20th",
    "playerAvg": 60.0,
    "defenseAllowedVsPos": "55.0",
}


def schedule_prompt(week_label: str | None = None, today: date | None = None) -> str:
    today = today or date.today()
    target = (
        f"the NFL schedule for {week_label}"
        if week_label
        else f"the CURRENT or UPCOMING week's NFL schedule relative to today: {today:%a %b %d %Y}"
    )
    return (
        "You are an NFL scheduler assistant.\n"
        f"Use Google Search to find {target}.\n"
        "Return a JSON object with the week label and the list of games, "
        "wrapped in a ```json code block, shaped like:\n"
        f"{json.dumps(_SCHEDULE_SHAPE, indent=2)}"
    )


def roster_prompt(team_a: str, team_b: str) -> str:
    return (
        f"List the current key starters (QB, top 3 WR, top 2 RB, top TE) for the {team_a} "
        f"and the {team_b}, with current season averages, noting injuries.\n"
        "Return a ```json block shaped like "
        '{"rosters": {"teamA": {"teamName": "...", "players": [{"name": "...", '
        '"position": "...", "avgStats": "..."}]}, "teamB": {...}}}'
    )


def analysis_prompt(team_a: str, team_b: str, roster_context: Any = None) -> str:
    shape = {
        "matchup": f"{team_a} vs {team_b}",
        "summary": "Brief executive summary of the defensive matchups.",
        "defenseStats": [
            {"position": "TE", "rank": "32nd", "avgAllowed": "65 yds/g", "description": "Team defense vs TEs"}
        ],
        "rosters": {
            "teamA": {
                "teamName": team_a,
                "players": [
                    {
                        "name": "Player Name",
                        "position": "Pos",
                        "avgStats": "Season Avg String",
                        "last5Games": [{"opponent": "KC", "stats": {"Yds": 250, "TD": 2}}],
                        "suggestedLegs": [_LEG_SHAPE],
                    }
                ],
            },
            "teamB": {"teamName": team_b, "players": []},
        },
        "legs": [_LEG_SHAPE],
    }
    context = ""
    if roster_context:
        context = (
            "\nUse this roster snapshot as the starting point for key starters:\n"
            f"{json.dumps(roster_context, indent=2, default=str)}\n"
        )
    return (
        "You are an expert NFL betting analyst.\n"
        f"Analyze the upcoming NFL matchup between {team_a} and {team_b}.\n"
        "1. Find current defensive rankings for both teams against RB, WR and TE.\n"
        "2. For each team's key starters, get season averages and their last 5 games.\n"
        "3. For each key starter, propose 2 parlay legs based on averages, recent form "
        "and the opposing defense.\n"
        "4. Pick 3-4 high-confidence standout props from the whole pool.\n"
        f"{context}"
        "You MUST use Google Search for real stats. Output strictly one JSON object in a "
        "```json code block shaped like:\n"
        f"{json.dumps(shape, indent=2)}"
    )
