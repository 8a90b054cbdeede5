# src/parlaypro/storage/eviction.py
"""
Eviction policy for the local tier.

When a local write hits the quota, the oldest entries by ``capturedAt`` are
dropped in a fixed-size batch.  Entries whose stored text cannot be parsed
are ranked with ``capturedAt = 0`` so corrupt data is always purged before
valid old data.  Eviction is unconditional; evicted entries can be rebuilt
from the remote tier or the AI client.
"""

from __future__ import annotations

import logging

from .entry import CacheEntry

logger = logging.getLogger(__name__)

DEFAULT_EVICTION_BATCH = 5


def stored_timestamp(key: str, raw: str | None) -> int:
    """Capture time of a stored entry, or 0 when it is missing or corrupt."""
    if raw is None:
        return 0
    try:
        return CacheEntry.decode(key, raw).captured_at
    except ValueError:
        # json.JSONDecodeError is a ValueError
        return 0


def select_oldest(stored: dict[str, str | None], count: int = DEFAULT_EVICTION_BATCH) -> list[str]:
    """Pick the ``count`` oldest keys from a mapping of local key to raw text.

    Ties keep the mapping's iteration order.
    """
    if count <= 0:
        return []
    ranked = sorted(stored, key=lambda k: stored_timestamp(k, stored[k]))
    return ranked[:count]
