# src/parlaypro/storage/entry.py
"""
Cache entry codec.

A ``CacheEntry`` pairs an opaque JSON payload with the time it was produced.
Entries are short-lived values: they are built on every read and write and
never shared between calls.

Local encoding (human-inspectable)::

    {"capturedAt": 1732550400000, "payload": {...}}

Remote row encoding::

    id | captured_at | payload | sources | raw_text

Matchup payloads ``{analysis, sources, rawText}`` are spread across the
``payload``/``sources``/``raw_text`` columns; schedule payloads live entirely
in ``payload``.
"""

from __future__ import annotations

import json
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..exceptions import PayloadValidationError


class Namespace(str, Enum):
    """Logical partitions of cached data, each with its own TTL and remote table."""

    MATCHUP = "matchup"
    SCHEDULE = "schedule"

    @property
    def tag(self) -> str:
        """Segment inserted between the key prefix and the entity id."""
        return f"{self.value}_"

    @property
    def splits_payload(self) -> bool:
        return self is Namespace.MATCHUP


_MATCHUP_FIELDS = frozenset({"analysis", "sources", "rawText"})


def now_ms() -> int:
    return int(time.time() * 1000)


def _is_matchup_shape(payload: Any) -> bool:
    return (
        isinstance(payload, dict)
        and set(payload) == _MATCHUP_FIELDS
        and isinstance(payload["sources"], list)
        and isinstance(payload["rawText"], str)
    )


def ensure_json_payload(key: str, payload: Any) -> str:
    """Serialize ``payload`` and prove it round-trips.

    Returns:
        The compact JSON text of the payload.

    Raises:
        PayloadValidationError: The payload cannot be represented losslessly.
    """
    try:
        text = json.dumps(payload, allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise PayloadValidationError(key, f"Payload is not JSON-serializable ({e}).") from e
    # tuples and non-string dict keys survive dumps but not the trip back
    if json.loads(text) != payload:
        raise PayloadValidationError(key, "Payload does not survive a JSON round-trip.")
    return text


@dataclass(frozen=True)
class CacheEntry:
    """A payload plus the millisecond timestamp at which it was captured."""

    key: str
    captured_at: int
    payload: Any

    @classmethod
    def capture(cls, key: str, payload: Any, now: int | None = None) -> CacheEntry:
        ensure_json_payload(key, payload)
        return cls(key=key, captured_at=now_ms() if now is None else now, payload=payload)

    # -- validity ------------------------------------------------------------

    def age_ms(self, now: int) -> int:
        return now - self.captured_at

    def is_valid(self, ttl_ms: int, now: int) -> bool:
        """Valid iff strictly younger than the TTL."""
        return self.age_ms(now) < ttl_ms

    # -- local codec ---------------------------------------------------------

    def encode(self) -> str:
        return json.dumps(
            {"capturedAt": self.captured_at, "payload": self.payload},
            allow_nan=False,
            separators=(",", ":"),
        )

    @classmethod
    def decode(cls, key: str, raw: str) -> CacheEntry:
        """Parse a locally stored entry.

        Raises:
            ValueError: The stored text is corrupt or lacks a timestamp.
        """
        data = json.loads(raw)
        if not isinstance(data, dict) or "payload" not in data:
            raise ValueError(f"Malformed cache entry for '{key}'")
        captured_at = data.get("capturedAt")
        if not isinstance(captured_at, (int, float)) or isinstance(captured_at, bool) or not math.isfinite(captured_at):
            raise ValueError(f"Cache entry for '{key}' has no usable capturedAt")
        return cls(key=key, captured_at=int(captured_at), payload=data["payload"])

    # -- remote codec --------------------------------------------------------

    def to_row(self, namespace: Namespace) -> dict[str, Any]:
        row: dict[str, Any] = {"id": self.key, "captured_at": self.captured_at}
        if namespace.splits_payload and _is_matchup_shape(self.payload):
            row["payload"] = self.payload["analysis"]
            row["sources"] = self.payload["sources"]
            row["raw_text"] = self.payload["rawText"]
        else:
            # sources/raw_text left NULL marks an unsplit row
            row["payload"] = self.payload
            row["sources"] = None
            row["raw_text"] = None
        return row

    @classmethod
    def from_row(cls, namespace: Namespace, row: dict[str, Any]) -> CacheEntry:
        split = row.get("sources") is not None or row.get("raw_text") is not None
        if namespace.splits_payload and split:
            payload: Any = {
                "analysis": row.get("payload"),
                "sources": row.get("sources") or [],
                "rawText": row.get("raw_text") or "",
            }
        else:
            payload = row.get("payload")
        return cls(key=str(row["id"]), captured_at=int(row.get("captured_at") or 0), payload=payload)
