# src/parlaypro/storage/remote.py
"""
Remote record stores.

A remote store holds one table per namespace with rows shaped
``id | captured_at | payload | sources | raw_text``.  Every failure leaves
the store as a ``RemoteStoreError`` carrying a ``FailureKind``; callers never
inspect messages or status codes themselves.

A row that does not exist is not an error: ``fetch`` returns ``None``.

``SupabaseRecordStore`` talks to the tables through the official ``supabase``
async client::

    store = SupabaseRecordStore.from_config(config.remote)
    await store.upsert(Namespace.SCHEDULE, {"id": "Week 12", ...})
    row = await store.fetch(Namespace.SCHEDULE, "Week 12")
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx
from supabase import (
    AsyncClient,
    AsyncClientOptions,
    AsyncSupabaseException,
    PostgrestAPIError,
    acreate_client,
)

from ..config import RemoteStoreConfig
from ..exceptions import FailureKind, RemoteStoreError
from .entry import Namespace

logger = logging.getLogger(__name__)

# PostgREST / Postgres error codes with a fixed meaning
_PERMISSION_CODES = {"42501", "PGRST301", "PGRST302"}
_NOT_FOUND_CODES = {"PGRST116", "PGRST205", "42P01"}
_TRANSIENT_CODES = {"PGRST000", "PGRST001", "PGRST002", "PGRST003", "57014", "53300"}


class RemoteRecordStore(ABC):
    """Async row store addressed by namespace and key."""

    async def close(self) -> None:
        """Release network resources. No-op by default."""

    @abstractmethod
    async def upsert(self, namespace: Namespace, row: dict[str, Any]) -> None:
        """Insert or replace the row whose ``id`` matches."""

    @abstractmethod
    async def fetch(self, namespace: Namespace, key: str) -> dict[str, Any] | None:
        ...

    @abstractmethod
    async def list_keys(self, namespace: Namespace) -> list[str]:
        ...

    @abstractmethod
    async def probe(self) -> None:
        """Minimal bounded read; raises ``RemoteStoreError`` when unusable."""


def classify_status(status_code: int | None, code: str | None = None) -> FailureKind:
    """Map an HTTP status and/or a PostgREST error code to a FailureKind."""
    if code in _PERMISSION_CODES:
        return FailureKind.PERMISSION
    if code in _NOT_FOUND_CODES:
        return FailureKind.NOT_FOUND
    if code in _TRANSIENT_CODES:
        return FailureKind.TRANSIENT
    if status_code in (401, 403):
        return FailureKind.PERMISSION
    if status_code == 404:
        return FailureKind.NOT_FOUND
    if status_code is not None and (status_code in (408, 429) or status_code >= 500):
        return FailureKind.TRANSIENT
    return FailureKind.VALIDATION


def classify_api_error(error: PostgrestAPIError) -> FailureKind:
    """Classify a postgrest ``APIError``.

    A JSON error body carries the PostgREST code.  Any other body leaves the
    HTTP status in ``code`` instead.
    """
    code = error.code
    if isinstance(code, int):
        return classify_status(code)
    if isinstance(code, str) and code.isdigit() and len(code) == 3:
        return classify_status(int(code))
    return classify_status(None, code)


def _describe(error: PostgrestAPIError) -> str:
    parts = [error.message, error.details, error.hint]
    return "; ".join(str(p) for p in parts if p) or repr(error)


class SupabaseRecordStore(RemoteRecordStore):
    """Supabase-backed store.

    The supabase client is created on first use and shares one
    ``httpx.AsyncClient`` for every request.

    Args:
        url: Supabase project URL.
        api_key: Anon or service role key.
        tables: Namespace to table name.
        timeout_seconds: httpx timeout for each request.
        http_client: Pre-built ``httpx.AsyncClient`` (tests inject a MockTransport).
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        tables: dict[Namespace, str],
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.tables = tables
        self._url = url
        self._api_key = api_key
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._client: AsyncClient | None = None

    @classmethod
    def from_config(
        cls, config: RemoteStoreConfig, http_client: httpx.AsyncClient | None = None
    ) -> SupabaseRecordStore | None:
        """Build a store, or return None when url/key are not configured."""
        if not config.is_configured:
            logger.warning("Supabase config missing. Running in Local Mode.")
            return None
        return cls(
            url=config.url,
            api_key=config.api_key,
            tables={
                Namespace.MATCHUP: config.matchup_table,
                Namespace.SCHEDULE: config.schedule_table,
            },
            timeout_seconds=config.timeout_seconds,
            http_client=http_client,
        )

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _supabase(self) -> AsyncClient:
        if self._client is None:
            try:
                self._client = await acreate_client(
                    self._url, self._api_key, options=AsyncClientOptions(httpx_client=self._http)
                )
            except AsyncSupabaseException as e:
                # unusable url or key: treat like rejected credentials
                raise RemoteStoreError(FailureKind.PERMISSION, f"Supabase client rejected settings: {e}") from e
            logger.debug("Supabase client created for %s", self._url)
        return self._client

    async def _table(self, namespace: Namespace) -> Any:
        client = await self._supabase()
        return client.table(self.tables[namespace])

    async def _execute(self, query: Any, description: str) -> Any:
        try:
            response = await query.execute()
        except PostgrestAPIError as e:
            raise RemoteStoreError(classify_api_error(e), f"{description}: {_describe(e)}") from e
        except httpx.TimeoutException as e:
            raise RemoteStoreError(FailureKind.TRANSIENT, f"timeout on {description}: {e}") from e
        except httpx.TransportError as e:
            raise RemoteStoreError(FailureKind.TRANSIENT, f"connection error on {description}: {e}") from e
        return response.data

    async def _select(self, query: Any, description: str) -> list[dict[str, Any]]:
        rows = await self._execute(query, description)
        if not isinstance(rows, list):
            raise RemoteStoreError(FailureKind.VALIDATION, f"non-JSON response for {description}")
        return rows

    async def upsert(self, namespace: Namespace, row: dict[str, Any]) -> None:
        table = await self._table(namespace)
        await self._execute(
            table.upsert(row, on_conflict="id"),
            f"upsert {self.tables[namespace]}/{row.get('id')}",
        )

    async def fetch(self, namespace: Namespace, key: str) -> dict[str, Any] | None:
        table = await self._table(namespace)
        rows = await self._select(
            table.select("*").eq("id", key).limit(1),
            f"fetch {self.tables[namespace]}/{key}",
        )
        if not rows:
            return None
        return rows[0]

    async def list_keys(self, namespace: Namespace) -> list[str]:
        table = await self._table(namespace)
        rows = await self._select(table.select("id"), f"list {self.tables[namespace]}")
        return [str(r["id"]) for r in rows]

    async def probe(self) -> None:
        table = await self._table(Namespace.MATCHUP)
        await self._select(table.select("id").limit(1), f"probe {self.tables[Namespace.MATCHUP]}")
