# src/parlaypro/analysis/stats.py
"""
Game-log statistics and "safe leg" scoring.

Given a player's recent game logs, summarise each numeric stat and rank
conservative prop lines by consistency and by the opposing defense's rank.

Scoring:
    - safe line: average minus 15%, rounded to the nearest 5
    - safety score: 100 - 100 * (std-dev / average), clamped to 0..100
    - defense advantage: 100 - 3.125 * rank (rank 1 -> ~97, rank 32 -> 0)
    - combined: 60% safety + 40% defense advantage
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from ..models import GameLog, PlayerStat

_RANK_DIGITS = re.compile(r"\d+")
DEFAULT_RANK = 16


@dataclass
class StatSummary:
    name: str
    average: float
    minimum: float
    maximum: float
    std_dev: float

    @property
    def value(self) -> float:
        return self.average


@dataclass
class SafeLeg:
    player: str
    team: str
    position: str
    stat_name: str
    average: float
    recommended: float
    minimum: float
    maximum: float
    std_dev: float
    safety_score: float
    defense_advantage: float

    @property
    def combined_score(self) -> float:
        return self.safety_score * 0.6 + self.defense_advantage * 0.4


def parse_stat_value(value: str | float | int | None) -> float:
    """Numeric value of a stat cell; unparsable cells count as 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    match = re.match(r"\s*-?\d+(\.\d+)?", value)
    return float(match.group()) if match else 0.0


def _is_numeric(value: str | float) -> bool:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return True
    try:
        float(value)
    except (TypeError, ValueError):
        return False
    return True


def stat_names(game_logs: list[GameLog]) -> list[str]:
    """Numeric stat columns, taken from the first game log."""
    if not game_logs or not game_logs[0].stats:
        return []
    return [name for name, value in game_logs[0].stats.items() if _is_numeric(value)]


def summarize_stat(name: str, game_logs: list[GameLog]) -> StatSummary | None:
    values = [parse_stat_value(log.stats[name]) for log in game_logs if name in log.stats]
    if not values:
        return None
    average = sum(values) / len(values)
    std_dev = math.sqrt(sum((v - average) ** 2 for v in values) / len(values))
    return StatSummary(
        name=name,
        average=average,
        minimum=min(values),
        maximum=max(values),
        std_dev=round(std_dev, 2),
    )


def summarize_all(game_logs: list[GameLog]) -> list[StatSummary]:
    summaries = (summarize_stat(name, game_logs) for name in stat_names(game_logs))
    return [s for s in summaries if s is not None]


def safe_line(average: float, conservative_percent: float = 15) -> float:
    """A line below the average, rounded to a 5-unit increment."""
    recommended = average - average * (conservative_percent / 100)
    # floor(x + 0.5) rounds halves up rather than to even
    return float(math.floor(recommended / 5 + 0.5) * 5)


def safety_score(average: float, std_dev: float) -> float:
    if average == 0:
        return 0.0
    score = 100 - (std_dev / average) * 100
    return float(round(max(0.0, min(100.0, score))))


def defense_advantage(rank: str | int | None) -> float:
    """Higher for better-ranked (lower number) defenses, 0 at rank 32."""
    if rank is None or rank == "":
        return 0.0
    if isinstance(rank, str):
        match = _RANK_DIGITS.search(rank)
        rank_num = int(match.group()) if match else DEFAULT_RANK
    else:
        rank_num = int(rank)
    return float(round(max(0.0, 100 - rank_num * 3.125)))


def top_safe_legs(
    player: PlayerStat,
    team_name: str,
    limit: int = 5,
    defense_rank: str | int | None = None,
) -> list[SafeLeg]:
    """The player's most consistent stat lines, best combined score first."""
    advantage = defense_advantage(defense_rank)
    legs = [
        SafeLeg(
            player=player.name,
            team=team_name,
            position=player.position,
            stat_name=summary.name,
            average=round(summary.average, 1),
            recommended=safe_line(summary.average),
            minimum=round(summary.minimum, 1),
            maximum=round(summary.maximum, 1),
            std_dev=summary.std_dev,
            safety_score=safety_score(summary.average, summary.std_dev),
            defense_advantage=advantage,
        )
        for summary in summarize_all(player.last5_games)
    ]
    legs.sort(key=lambda leg: leg.combined_score, reverse=True)
    return legs[:limit]
