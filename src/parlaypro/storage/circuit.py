# src/parlaypro/storage/circuit.py
"""
Remote-tier circuit breaker.

State Machine:
    CLOSED -> OPEN: on any failure whose kind opens the circuit
                    (TRANSIENT or PERMISSION), or through ``trip()`` after a
                    failed connectivity probe of any kind
    OPEN -> CLOSED: only through ``reset()``, which the storage service calls
                    after a successful explicit connectivity probe

There is no HALF_OPEN state and no recovery timer.  Ordinary successful
reads and writes never close an open breaker, so a flaky remote cannot
flip the service back and forth between tiers mid-session.

The breaker is a plain object owned by one ``StorageService``.  All access
happens on the event loop thread, so no lock is taken.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any

from ..exceptions import FailureKind

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # remote tier in use
    OPEN = "open"  # remote tier bypassed


class RemoteCircuitBreaker:
    """Tracks whether the remote tier is currently considered reachable.

    Args:
        start_open: Begin in the OPEN state, e.g. when no remote store is
            configured at all.
    """

    def __init__(self, start_open: bool = False) -> None:
        self._state = CircuitState.OPEN if start_open else CircuitState.CLOSED
        self._trip_count = 0
        self._last_failure_kind: FailureKind | None = None
        self._last_failure_detail: str = "remote store not configured" if start_open else ""
        self._opened_at: float | None = time.time() if start_open else None

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def is_closed(self) -> bool:
        """True when the remote tier may be used."""
        return self._state == CircuitState.CLOSED

    @property
    def is_open(self) -> bool:
        return self._state == CircuitState.OPEN

    def record_failure(self, kind: FailureKind, detail: str = "") -> bool:
        """Record a classified remote failure.

        Returns:
            True if this failure opened the circuit.
        """
        self._last_failure_kind = kind
        self._last_failure_detail = detail
        if not kind.opens_circuit:
            logger.debug("Remote %s failure does not open the circuit: %s", kind.value, detail)
            return False
        if self._state == CircuitState.OPEN:
            return False
        self._state = CircuitState.OPEN
        self._opened_at = time.time()
        self._trip_count += 1
        logger.warning(
            "Circuit breaker OPEN after %s failure; using local storage only (%s)",
            kind.value,
            detail,
        )
        return True

    def trip(
        self, kind: FailureKind = FailureKind.TRANSIENT, detail: str = "connectivity probe failed"
    ) -> None:
        """Open the circuit unconditionally, recording the failure kind as given."""
        self._last_failure_kind = kind
        self._last_failure_detail = detail
        if self._state == CircuitState.OPEN:
            return
        self._state = CircuitState.OPEN
        self._opened_at = time.time()
        self._trip_count += 1
        logger.warning("Circuit breaker OPEN after failed probe (%s): %s", kind.value, detail)

    def reset(self) -> None:
        """Close the circuit. Reserved for a successful connectivity probe."""
        if self._state == CircuitState.OPEN:
            logger.info("Circuit breaker CLOSED after successful connectivity probe")
        self._state = CircuitState.CLOSED
        self._opened_at = None
        self._last_failure_kind = None
        self._last_failure_detail = ""

    def get_status(self) -> dict[str, Any]:
        """Get full status as dictionary."""
        return {
            "state": self._state.value,
            "remote_active": self.is_closed,
            "trip_count": self._trip_count,
            "last_failure_kind": self._last_failure_kind.value if self._last_failure_kind else None,
            "last_failure_detail": self._last_failure_detail,
            "opened_at": self._opened_at,
        }
