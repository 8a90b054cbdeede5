# src/parlaypro/analysis/__init__.py
"""
AI matchup analysis: Gemini client, reply parsing and stat scoring.
"""

from .gemini_client import MatchupAnalyst
from .parsing import (
    assign_leg_ids,
    extract_grounding_sources,
    extract_json_block,
    parse_analysis,
    parse_schedule,
)
from .stats import SafeLeg, StatSummary, summarize_all, top_safe_legs

__all__ = [
    "MatchupAnalyst",
    "SafeLeg",
    "StatSummary",
    "assign_leg_ids",
    "extract_grounding_sources",
    "extract_json_block",
    "parse_analysis",
    "parse_schedule",
    "summarize_all",
    "top_safe_legs",
]
