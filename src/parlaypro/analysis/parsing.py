# src/parlaypro/analysis/parsing.py
"""Helpers that turn Gemini replies into ParlayPro models."""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any

from pydantic import ValidationError

from ..models import AnalysisResult, GroundingSource, ScheduleResponse

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```")
_BARE_OBJECT = re.compile(r"\{[\s\S]*\}")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s")


def extract_json_block(text: str) -> Any | None:
    """Pull the JSON object out of a model reply.

    Prefers a ```json fenced block; falls back to the outermost ``{...}``.
    Literal control characters inside strings are invalid JSON and are
    replaced with spaces before a second attempt.
    """
    if not text:
        return None
    match = _FENCED_JSON.search(text)
    candidate = match.group(1) if match else None
    if candidate is None:
        bare = _BARE_OBJECT.search(text)
        candidate = bare.group() if bare else None
    if candidate is None:
        return None

    for attempt in (candidate, _CONTROL_CHARS.sub(" ", candidate)):
        try:
            return json.loads(attempt)
        except json.JSONDecodeError:
            continue
    logger.error("Failed to parse extracted JSON: %s", candidate[:200])
    return None


def extract_grounding_sources(response: Any) -> list[GroundingSource]:
    """Collect ``{title, uri}`` from the first candidate's grounding chunks."""
    sources: list[GroundingSource] = []
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return sources
    metadata = getattr(candidates[0], "grounding_metadata", None)
    for chunk in getattr(metadata, "grounding_chunks", None) or []:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None)
        title = getattr(web, "title", None)
        if uri and title:
            sources.append(GroundingSource(title=title, uri=uri))
    return sources


def assign_leg_ids(data: dict[str, Any], stamp: int | None = None) -> dict[str, Any]:
    """Give every leg without an id a stable-within-response id, in place."""
    stamp = int(time.time() * 1000) if stamp is None else stamp

    legs = data.get("legs")
    if isinstance(legs, list):
        for i, leg in enumerate(legs):
            if isinstance(leg, dict) and not leg.get("id"):
                leg["id"] = f"leg-{stamp}-{i}"

    rosters = data.get("rosters")
    if isinstance(rosters, dict):
        for team_key in ("teamA", "teamB"):
            team = rosters.get(team_key)
            if not isinstance(team, dict):
                continue
            for player in team.get("players") or []:
                if not isinstance(player, dict):
                    continue
                name = _WHITESPACE.sub("", str(player.get("name", "")))
                for i, leg in enumerate(player.get("suggestedLegs") or []):
                    if isinstance(leg, dict) and not leg.get("id"):
                        leg["id"] = f"roster-leg-{stamp}-{name}-{i}"
    return data


def parse_schedule(text: str) -> ScheduleResponse | None:
    data = extract_json_block(text)
    if not isinstance(data, dict):
        return None
    try:
        return ScheduleResponse.model_validate(data)
    except ValidationError as e:
        logger.error("Schedule JSON did not match the expected shape: %s", e)
        return None


def parse_analysis(text: str, stamp: int | None = None) -> AnalysisResult | None:
    data = extract_json_block(text)
    if not isinstance(data, dict):
        return None
    try:
        return AnalysisResult.model_validate(assign_leg_ids(data, stamp))
    except ValidationError as e:
        logger.error("Analysis JSON did not match the expected shape: %s", e)
        return None
