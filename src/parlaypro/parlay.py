# src/parlaypro/parlay.py
"""
The parlay slip: legs the user has pinned while browsing matchups.

Odds shown on the slip are an estimate that assumes every leg is priced
at -110; they are a display aid, not a pricing engine.
"""

from __future__ import annotations

import logging

from .models import ParlayLeg

logger = logging.getLogger(__name__)

# payout multipliers for 2..6 legs at -110 each
_MULTIPLIERS = (2.6, 6.0, 12.0, 24.0, 45.0)


def american_to_decimal(odds: str | int) -> float:
    value = int(str(odds).replace("+", ""))
    if value > 0:
        return 1 + value / 100
    return 1 + 100 / abs(value)


def decimal_to_american(decimal: float) -> str:
    if decimal <= 1.0:
        raise ValueError(f"Decimal odds must be greater than 1.0, got {decimal}")
    if decimal >= 2.0:
        return f"+{round((decimal - 1) * 100)}"
    return f"{round(-100 / (decimal - 1))}"


class ParlaySlip:
    """Ordered, duplicate-free collection of pinned legs keyed by leg id."""

    def __init__(self) -> None:
        self._legs: list[ParlayLeg] = []

    def __len__(self) -> int:
        return len(self._legs)

    def __iter__(self):
        return iter(self._legs)

    @property
    def legs(self) -> list[ParlayLeg]:
        return list(self._legs)

    def is_pinned(self, leg_id: str) -> bool:
        return any(leg.id == leg_id for leg in self._legs)

    def toggle(self, leg: ParlayLeg) -> bool:
        """Pin ``leg``, or unpin it if already pinned. Returns the new pinned state."""
        if self.is_pinned(leg.id):
            self.remove(leg.id)
            return False
        self._legs.append(leg)
        logger.debug("Pinned leg %s (%s %s)", leg.id, leg.player, leg.prop_type)
        return True

    def remove(self, leg_id: str) -> None:
        self._legs = [leg for leg in self._legs if leg.id != leg_id]

    def clear(self) -> None:
        self._legs.clear()

    def estimated_odds(self) -> str:
        """American odds for the whole slip, assuming -110 per leg."""
        count = len(self._legs)
        if count == 0:
            return "+0"
        if count == 1:
            return "-110"
        if count - 2 < len(_MULTIPLIERS):
            multiplier = _MULTIPLIERS[count - 2]
        else:
            multiplier = 2.0 ** count
        return f"+{int((multiplier - 1) * 100)}"
