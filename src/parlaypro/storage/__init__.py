# src/parlaypro/storage/__init__.py
"""
Tiered cache for matchup analysis and schedules.

Architecture::

    StorageService ──► RemoteCircuitBreaker
         │
         ├──► RemoteRecordStore (Supabase tables, shared)
         └──► LocalKeyValueStore (SQLite / memory, per machine)
"""

from .circuit import CircuitState, RemoteCircuitBreaker
from .entry import CacheEntry, Namespace, ensure_json_payload, now_ms
from .eviction import DEFAULT_EVICTION_BATCH, select_oldest
from .local import LocalKeyValueStore, MemoryKeyValueStore, SQLiteKeyValueStore
from .remote import RemoteRecordStore, SupabaseRecordStore, classify_api_error, classify_status
from .service import StorageService, StorageStats

__all__ = [
    "CacheEntry",
    "CircuitState",
    "DEFAULT_EVICTION_BATCH",
    "LocalKeyValueStore",
    "MemoryKeyValueStore",
    "Namespace",
    "RemoteCircuitBreaker",
    "RemoteRecordStore",
    "SQLiteKeyValueStore",
    "StorageService",
    "StorageStats",
    "SupabaseRecordStore",
    "classify_api_error",
    "classify_status",
    "ensure_json_payload",
    "now_ms",
    "select_oldest",
]
