# tests/conftest.py
"""
Shared fixtures for ParlayPro tests.

Provides:
- ``FakeClock``: controllable millisecond clock for TTL tests
- ``FakeRemoteStore``: in-memory RemoteRecordStore that counts calls and can
  be told to fail with a given FailureKind
- Ready-made ``StorageService`` instances wired to the fakes
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from parlaypro.config import StorageConfig
from parlaypro.exceptions import FailureKind, RemoteStoreError
from parlaypro.storage import MemoryKeyValueStore, Namespace, RemoteRecordStore, StorageService

HOUR_MS = 60 * 60 * 1000
T0 = 1_700_000_000_000


# =============================================================================
# FAKES
# =============================================================================


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = T0):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeRemoteStore(RemoteRecordStore):
    """Dict-backed remote store.

    Set ``fail_with`` to a FailureKind to make every call raise, or
    ``hang`` to make every call sleep past any reasonable timeout.
    """

    def __init__(self):
        self.rows: Dict[Namespace, Dict[str, Dict[str, Any]]] = {ns: {} for ns in Namespace}
        self.calls: List[str] = []
        self.fail_with: Optional[FailureKind] = None
        self.hang = False
        self.closed = False

    async def _maybe_fail(self, op: str) -> None:
        self.calls.append(op)
        if self.hang:
            await asyncio.sleep(60)
        if self.fail_with is not None:
            raise RemoteStoreError(self.fail_with, f"simulated {self.fail_with.value} on {op}")

    def count(self, op: str) -> int:
        return sum(1 for c in self.calls if c == op)

    async def close(self) -> None:
        self.closed = True

    async def upsert(self, namespace: Namespace, row: Dict[str, Any]) -> None:
        await self._maybe_fail("upsert")
        self.rows[namespace][row["id"]] = dict(row)

    async def fetch(self, namespace: Namespace, key: str) -> Optional[Dict[str, Any]]:
        await self._maybe_fail("fetch")
        row = self.rows[namespace].get(key)
        return dict(row) if row is not None else None

    async def list_keys(self, namespace: Namespace) -> List[str]:
        await self._maybe_fail("list_keys")
        return list(self.rows[namespace])

    async def probe(self) -> None:
        await self._maybe_fail("probe")


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def remote():
    return FakeRemoteStore()


@pytest.fixture
def make_remote():
    """Factory for extra FakeRemoteStore instances."""
    return FakeRemoteStore


@pytest.fixture
def local():
    return MemoryKeyValueStore()


@pytest.fixture
def storage_config():
    return StorageConfig(local_backend="memory", key_prefix="test_cache_v1_")


@pytest.fixture
def service(local, remote, storage_config, clock):
    """StorageService with a healthy fake remote and an unlimited memory tier."""
    return StorageService(
        local=local,
        remote=remote,
        config=storage_config,
        remote_timeout_seconds=0.05,
        clock=clock,
    )


@pytest.fixture
def local_only_service(local, storage_config, clock):
    """StorageService with no remote store configured."""
    return StorageService(local=local, remote=None, config=storage_config, clock=clock)
