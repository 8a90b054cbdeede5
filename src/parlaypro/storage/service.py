# src/parlaypro/storage/service.py
"""
Storage Orchestrator - tiered cache over a remote row store and a local
key-value store.

Policies:

- **Reads are cache-aside, remote first.**  While the circuit is closed the
  remote table is consulted before the local tier, because it is shared
  across sessions.  A valid remote hit is copied into the local tier so it
  stays available if the circuit later opens.
- **Writes are write-through.**  Every save goes to the remote table (when
  the circuit is closed) *and* to the local tier, whatever the remote
  outcome.
- **Expiry is lazy.**  ``now - capturedAt >= TTL`` means absent.  Expired
  local entries are deleted when read; there is no background sweep.
- **Quota is best-effort.**  A full local tier triggers eviction of the
  oldest entries and one retry; a second failure is logged and dropped.
- **Remote failures never escape.**  TRANSIENT and PERMISSION failures
  open the circuit breaker; only ``verify_connection()`` closes it again.

Only ``PayloadValidationError`` propagates out of this class.

Usage:
    service = StorageService.from_config(load_config())
    await service.initialize()
    await service.verify_connection()

    await service.save(Namespace.SCHEDULE, "Week 12", {"week": "Week 12", "games": [...]})
    schedule = await service.get(Namespace.SCHEDULE, "Week 12")
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass
from typing import Any, TypeVar

from ..config import AppConfig, StorageConfig
from ..exceptions import FailureKind, LocalQuotaExceededError, RemoteStoreError
from .circuit import RemoteCircuitBreaker
from .entry import CacheEntry, Namespace, now_ms
from .eviction import select_oldest
from .local import LocalKeyValueStore, MemoryKeyValueStore, SQLiteKeyValueStore
from .remote import RemoteRecordStore, SupabaseRecordStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class StorageStats:
    """Counts and sizes across both tiers for one namespace."""

    namespace: str
    local_count: int = 0
    remote_count: int = 0
    remote_connected: bool = False
    local_byte_size: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class StorageService:
    """Public storage API used by the desk and the CLI.

    Args:
        local: Local key-value store.
        remote: Remote record store, or None to run local-only.
        config: Cache policy (prefix, TTLs, eviction batch size).
        remote_timeout_seconds: Upper bound for any single remote call.
        clock: Returns the current time in epoch milliseconds.
    """

    def __init__(
        self,
        local: LocalKeyValueStore,
        remote: RemoteRecordStore | None = None,
        config: StorageConfig | None = None,
        remote_timeout_seconds: float = 10.0,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._local = local
        self._remote = remote
        self._config = config or StorageConfig()
        self._remote_timeout = remote_timeout_seconds
        self._clock = clock
        self._breaker = RemoteCircuitBreaker(start_open=remote is None)
        self._ttl_ms = {
            Namespace.MATCHUP: int(self._config.matchup_ttl_seconds * 1000),
            Namespace.SCHEDULE: int(self._config.schedule_ttl_seconds * 1000),
        }

    @classmethod
    def from_config(cls, config: AppConfig) -> StorageService:
        """Build the configured local backend and, if configured, Supabase."""
        storage = config.storage
        local: LocalKeyValueStore
        if storage.local_backend == "memory":
            local = MemoryKeyValueStore(max_bytes=storage.max_local_bytes)
        else:
            local = SQLiteKeyValueStore(storage.sqlite_path, max_bytes=storage.max_local_bytes)
        return cls(
            local=local,
            remote=SupabaseRecordStore.from_config(config.remote),
            config=storage,
            remote_timeout_seconds=config.remote.timeout_seconds,
        )

    async def initialize(self) -> None:
        await self._local.initialize()

    async def close(self) -> None:
        await self._local.close()
        if self._remote is not None:
            await self._remote.close()

    async def __aenter__(self) -> StorageService:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # =========================================================================
    # Introspection
    # =========================================================================

    def is_remote_active(self) -> bool:
        """Current circuit state; drives the "Cloud Connected" badge."""
        return self._breaker.is_closed

    def circuit_status(self) -> dict[str, Any]:
        return self._breaker.get_status()

    def ttl_ms(self, namespace: Namespace) -> int:
        return self._ttl_ms[namespace]

    def local_key(self, namespace: Namespace, key: str) -> str:
        return f"{self._config.key_prefix}{namespace.tag}{key}"

    def _namespace_prefix(self, namespace: Namespace) -> str:
        return f"{self._config.key_prefix}{namespace.tag}"

    # =========================================================================
    # Remote plumbing
    # =========================================================================

    async def _call_remote(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        """Run one bounded remote call, normalising every failure to RemoteStoreError."""
        try:
            return await asyncio.wait_for(call(), timeout=self._remote_timeout)
        except RemoteStoreError:
            raise
        except asyncio.TimeoutError as e:
            raise RemoteStoreError(
                FailureKind.TRANSIENT, f"{operation} timed out after {self._remote_timeout}s"
            ) from e
        except Exception as e:
            raise RemoteStoreError(FailureKind.TRANSIENT, f"{operation} failed: {e}") from e

    def _remote_failed(self, operation: str, error: RemoteStoreError) -> None:
        logger.warning("Remote %s failed (%s): %s", operation, error.kind.value, error.detail)
        self._breaker.record_failure(error.kind, error.detail)

    # =========================================================================
    # Local plumbing
    # =========================================================================

    async def _write_local(self, namespace: Namespace, entry: CacheEntry) -> bool:
        """Write an entry locally, evicting once on quota. Returns success."""
        local_key = self.local_key(namespace, entry.key)
        value = entry.encode()
        try:
            await self._local.set(local_key, value)
            return True
        except LocalQuotaExceededError:
            logger.warning("Local quota exceeded writing %s. Cleaning up old cache...", local_key)

        await self._evict(self._config.key_prefix, self._config.eviction_batch_size)
        try:
            await self._local.set(local_key, value)
            return True
        except LocalQuotaExceededError as e:
            logger.error("Failed to save %s locally even after pruning: %s", local_key, e)
            return False

    async def _evict(self, prefix: str, count: int) -> list[str]:
        stored = await self._local.items(prefix)
        victims = select_oldest(stored, count)
        for key in victims:
            await self._local.delete(key)
            logger.info("Pruned %s", key)
        return victims

    async def _read_local(self, namespace: Namespace, key: str) -> Any | None:
        local_key = self.local_key(namespace, key)
        raw = await self._local.get(local_key)
        if raw is None:
            return None
        try:
            entry = CacheEntry.decode(key, raw)
        except ValueError as e:
            logger.error("Corrupt local cache entry %s, removing: %s", local_key, e)
            await self._local.delete(local_key)
            return None

        if not entry.is_valid(self.ttl_ms(namespace), self._clock()):
            logger.info("Expired local cache for %s", local_key)
            await self._local.delete(local_key)
            return None

        logger.debug("Hit local cache for %s", local_key)
        return entry.payload

    # =========================================================================
    # Public API
    # =========================================================================

    async def save(self, namespace: Namespace, key: str, payload: Any) -> None:
        """Store ``payload`` under ``key`` in both tiers.

        Raises:
            PayloadValidationError: ``payload`` does not round-trip through JSON.
        """
        entry = CacheEntry.capture(key, payload, now=self._clock())

        if self._remote is not None and self._breaker.is_closed:
            remote = self._remote
            try:
                await self._call_remote(
                    f"upsert {namespace.value}/{key}",
                    lambda: remote.upsert(namespace, entry.to_row(namespace)),
                )
                logger.debug("Saved %s/%s to remote store", namespace.value, key)
            except RemoteStoreError as e:
                self._remote_failed("save", e)

        if await self._write_local(namespace, entry):
            logger.debug("Saved %s/%s to local store", namespace.value, key)

    async def get(self, namespace: Namespace, key: str) -> Any | None:
        """Return the cached payload for ``key``, or None if absent or expired."""
        if self._remote is not None and self._breaker.is_closed:
            remote = self._remote
            try:
                row = await self._call_remote(
                    f"fetch {namespace.value}/{key}", lambda: remote.fetch(namespace, key)
                )
            except RemoteStoreError as e:
                self._remote_failed("get", e)
                row = None

            if row is not None:
                try:
                    entry = CacheEntry.from_row(namespace, row)
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning("Unreadable remote row for %s/%s: %s", namespace.value, key, e)
                    entry = None
                if entry is not None:
                    if entry.is_valid(self.ttl_ms(namespace), self._clock()):
                        logger.debug("Hit remote cache for %s/%s", namespace.value, key)
                        await self._write_local(namespace, entry)
                        return entry.payload
                    logger.info("Expired remote cache for %s/%s", namespace.value, key)

        return await self._read_local(namespace, key)

    async def list_keys(self, namespace: Namespace) -> set[str]:
        """Keys present in either tier, expired entries included."""
        prefix = self._namespace_prefix(namespace)
        keys = {k[len(prefix):] for k in await self._local.keys(prefix)}

        if self._remote is not None and self._breaker.is_closed:
            remote = self._remote
            try:
                keys.update(
                    await self._call_remote(
                        f"list {namespace.value}", lambda: remote.list_keys(namespace)
                    )
                )
            except RemoteStoreError as e:
                self._remote_failed("list_keys", e)
        return keys

    async def stats(self, namespace: Namespace) -> StorageStats:
        """Never raises; remote problems show up as zero counts."""
        result = StorageStats(namespace=namespace.value)
        try:
            stored = await self._local.items(self._namespace_prefix(namespace))
            result.local_count = len(stored)
            result.local_byte_size = sum(len(v) for v in stored.values() if v is not None)
        except Exception as e:
            logger.warning("Local stats for %s unavailable: %s", namespace.value, e)

        if self._remote is not None and self._breaker.is_closed:
            remote = self._remote
            try:
                remote_keys = await self._call_remote(
                    f"count {namespace.value}", lambda: remote.list_keys(namespace)
                )
                result.remote_count = len(remote_keys)
            except RemoteStoreError as e:
                self._remote_failed("stats", e)

        result.remote_connected = self._breaker.is_closed
        return result

    async def verify_connection(self) -> bool:
        """Probe the remote tier; the only way to close an open circuit."""
        if self._remote is None:
            logger.info("No remote store configured; staying in local storage mode")
            return False
        remote = self._remote
        try:
            await self._call_remote("probe", remote.probe)
        except RemoteStoreError as e:
            logger.warning("Remote connectivity probe failed (%s): %s", e.kind.value, e.detail)
            self._breaker.trip(e.kind, e.detail)
            return False
        self._breaker.reset()
        return True

    async def prune(self, namespace: Namespace | None = None, count: int | None = None) -> list[str]:
        """Evict the oldest local entries on demand.

        Args:
            namespace: Restrict the candidates to one namespace (default: all).
            count: Batch size (default: configured eviction batch size).

        Returns:
            Local keys removed.
        """
        prefix = self._namespace_prefix(namespace) if namespace else self._config.key_prefix
        if count is None:
            count = self._config.eviction_batch_size
        return await self._evict(prefix, count)

    async def clear_local(self, namespace: Namespace | None = None) -> int:
        """Delete every local entry of one namespace, or of all namespaces."""
        prefix = self._namespace_prefix(namespace) if namespace else self._config.key_prefix
        removed = 0
        for key in await self._local.keys(prefix):
            if await self._local.delete(key):
                removed += 1
        logger.info("Local cache cleared (%d entries, prefix %s)", removed, prefix)
        return removed
