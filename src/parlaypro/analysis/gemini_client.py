# src/parlaypro/analysis/gemini_client.py
"""
Matchup analyst backed by the Google Gemini API (google-genai SDK).

The analyst is a collaborator of the storage layer, not part of it: the
desk calls it on a cache miss and hands the result to ``StorageService``.

All calls use Google Search grounding (configurable) so that stats and
schedules come from live pages; the cited pages are returned as
``GroundingSource`` entries.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..config import GeminiConfig
from ..exceptions import AnalysisError, ConfigError
from ..models import GroundingSource, MatchupAnalysis, ScheduleResponse
from . import prompts
from .parsing import extract_grounding_sources, extract_json_block, parse_analysis, parse_schedule

logger = logging.getLogger(__name__)

PartialTextHandler = Callable[[str], None]


class MatchupAnalyst:
    """
    Fetches schedules, roster snapshots and deep matchup analysis from Gemini.

    Args:
        config: Gemini settings (API key, model, grounding).
        client: Pre-built ``genai.Client``; tests pass a mock.
    """

    def __init__(self, config: GeminiConfig, client: Any | None = None) -> None:
        self.config = config
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.config.api_key:
                raise ConfigError(
                    "Gemini API key not found. Set GEMINI_API_KEY or [gemini] api_key."
                )
            self._client = genai.Client(api_key=self.config.api_key)
            logger.info("Google Gen AI client initialized (model=%s).", self.config.model)
        return self._client

    def _generation_config(self) -> types.GenerateContentConfig:
        tools = [types.Tool(google_search=types.GoogleSearch())] if self.config.use_search_grounding else None
        return types.GenerateContentConfig(tools=tools, temperature=self.config.temperature)

    async def _generate(self, prompt: str, purpose: str) -> Any:
        client = self._get_client()
        try:
            return await client.aio.models.generate_content(
                model=self.config.model,
                contents=prompt,
                config=self._generation_config(),
            )
        except genai_errors.APIError as e:
            logger.error("Google AI API error during %s: %s", purpose, e)
            raise AnalysisError(f"Gemini {purpose} failed: {e}") from e

    # =========================================================================
    # Public API
    # =========================================================================

    async def fetch_schedule(self, week_label: str | None = None) -> ScheduleResponse:
        """
        Get one week of the NFL schedule.

        Args:
            week_label: e.g. "Week 12"; None means the current/upcoming week.

        Raises:
            ConfigError: No API key is configured.
            AnalysisError: The API failed or the reply held no usable schedule.
        """
        response = await self._generate(prompts.schedule_prompt(week_label), "schedule fetch")
        text = response.text or ""
        schedule = parse_schedule(text)
        if schedule is None:
            raise AnalysisError("Gemini reply did not contain a parseable schedule.")
        logger.info("Fetched schedule for %s (%d games)", schedule.week, len(schedule.games))
        return schedule

    async def fetch_roster_snapshot(self, team_a: str, team_b: str) -> dict[str, Any] | None:
        """Quick roster lookup used as context for the deep analysis.

        Returns None instead of raising when the reply is unusable; the deep
        analysis can run without it.
        """
        try:
            response = await self._generate(prompts.roster_prompt(team_a, team_b), "roster snapshot")
        except AnalysisError as e:
            logger.warning("Roster snapshot unavailable for %s vs %s: %s", team_a, team_b, e)
            return None
        data = extract_json_block(response.text or "")
        if not isinstance(data, dict) or "rosters" not in data:
            return None
        return {"rosters": data["rosters"]}

    async def fetch_deep_analysis(
        self,
        team_a: str,
        team_b: str,
        roster_context: Any = None,
        on_partial_text: PartialTextHandler | None = None,
    ) -> MatchupAnalysis:
        """
        Stream a full matchup analysis.

        ``on_partial_text`` is called with the cumulative reply text each time
        a chunk arrives.  It is an observer only: the stream cannot be paused
        or stopped early from the callback.

        Raises:
            ConfigError: No API key is configured.
            AnalysisError: The API call failed.
        """
        client = self._get_client()
        prompt = prompts.analysis_prompt(team_a, team_b, roster_context)
        text = ""
        sources: list[GroundingSource] = []
        seen_uris: set[str] = set()
        try:
            stream = await client.aio.models.generate_content_stream(
                model=self.config.model,
                contents=prompt,
                config=self._generation_config(),
            )
            async for chunk in stream:
                if chunk.text:
                    text += chunk.text
                    if on_partial_text is not None:
                        on_partial_text(text)
                for source in extract_grounding_sources(chunk):
                    if source.uri not in seen_uris:
                        seen_uris.add(source.uri)
                        sources.append(source)
        except genai_errors.APIError as e:
            logger.error("Google AI API error during analysis of %s vs %s: %s", team_a, team_b, e)
            raise AnalysisError(f"Gemini analysis failed: {e}") from e

        analysis = parse_analysis(text)
        if analysis is None:
            logger.warning("No structured analysis for %s vs %s; keeping raw text", team_a, team_b)
        return MatchupAnalysis(analysis=analysis, sources=sources, raw_text=text)
