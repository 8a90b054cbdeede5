# src/parlaypro/desk.py
"""
ParlayDesk - the controller a front end drives.

It applies cache-aside over ``StorageService`` for the two expensive AI
lookups (weekly schedule, matchup analysis), owns the parlay slip, and
reports which storage mode is active.  Storage failures never surface here;
only analyst failures (``AnalysisError``/``ConfigError``) do.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from .analysis.gemini_client import MatchupAnalyst, PartialTextHandler
from .logging_config import log_display
from .models import Game, MatchupAnalysis, ScheduleResponse
from .parlay import ParlaySlip
from .storage import Namespace, StorageService

logger = logging.getLogger(__name__)

CURRENT_WEEK_KEY = "current"
CLOUD_MODE_LABEL = "Cloud Connected"
LOCAL_MODE_LABEL = "Local Storage Mode"


class ParlayDesk:
    """
    Args:
        storage: Tiered cache.
        analyst: Gemini-backed matchup analyst.
        slip: Parlay slip to pin legs into (a fresh one by default).
    """

    def __init__(
        self,
        storage: StorageService,
        analyst: MatchupAnalyst,
        slip: ParlaySlip | None = None,
    ) -> None:
        self.storage = storage
        self.analyst = analyst
        self.slip = slip or ParlaySlip()

    async def start(self) -> bool:
        """Open storage and probe the remote tier once. Returns remote availability."""
        await self.storage.initialize()
        connected = await self.storage.verify_connection()
        log_display(logger, logging.INFO, "Storage: %s", self.storage_mode_label())
        return connected

    async def retry_remote(self) -> bool:
        """User-initiated reconnect; the only path back to the remote tier."""
        return await self.storage.verify_connection()

    def storage_mode_label(self) -> str:
        return CLOUD_MODE_LABEL if self.storage.is_remote_active() else LOCAL_MODE_LABEL

    async def load_schedule(
        self, week_label: str | None = None, refresh: bool = False
    ) -> ScheduleResponse:
        """Schedule for ``week_label`` (or the current week), from cache when possible."""
        key = week_label or CURRENT_WEEK_KEY
        if not refresh:
            cached = await self.storage.get(Namespace.SCHEDULE, key)
            if cached is not None:
                try:
                    return ScheduleResponse.model_validate(cached)
                except ValidationError as e:
                    logger.warning("Cached schedule %s is unusable, refetching: %s", key, e)

        schedule = await self.analyst.fetch_schedule(week_label)
        payload = schedule.to_payload()
        await self.storage.save(Namespace.SCHEDULE, key, payload)
        if schedule.week and schedule.week != key:
            await self.storage.save(Namespace.SCHEDULE, schedule.week, payload)
        return schedule

    async def load_matchup(
        self,
        game: Game,
        on_partial_text: PartialTextHandler | None = None,
        refresh: bool = False,
    ) -> MatchupAnalysis:
        """Analysis for ``game``: cached copy if valid, otherwise a fresh AI run."""
        if not refresh:
            cached = await self.storage.get(Namespace.MATCHUP, game.id)
            if cached is not None:
                try:
                    return MatchupAnalysis.model_validate(cached)
                except ValidationError as e:
                    logger.warning("Cached analysis %s is unusable, refetching: %s", game.id, e)

        roster = await self.analyst.fetch_roster_snapshot(game.home_team, game.away_team)
        result = await self.analyst.fetch_deep_analysis(
            game.home_team, game.away_team, roster, on_partial_text
        )
        if result.analysis is not None or result.raw_text:
            await self.storage.save(Namespace.MATCHUP, game.id, result.to_payload())
        return result

    async def cached_game_ids(self) -> set[str]:
        """Games with something cached, used to mark them as instantly loadable."""
        return await self.storage.list_keys(Namespace.MATCHUP)
