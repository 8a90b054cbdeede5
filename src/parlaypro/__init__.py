# src/parlaypro/__init__.py
"""
ParlayPro - NFL matchup research with AI analysis and a tiered cache.

The storage layer (``parlaypro.storage``) caches schedules and matchup
analysis across a shared Supabase table and a local SQLite store, falling
back to local-only mode when the remote tier misbehaves.
"""

from importlib.metadata import PackageNotFoundError, version

from .config import AppConfig, load_config
from .desk import ParlayDesk
from .exceptions import (
    AnalysisError,
    ConfigError,
    FailureKind,
    LocalQuotaExceededError,
    ParlayProError,
    PayloadValidationError,
    RemoteStoreError,
    StorageError,
)
from .parlay import ParlaySlip
from .storage import Namespace, StorageService, StorageStats

try:
    __version__ = version("parlaypro")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

__all__ = [
    "AnalysisError",
    "AppConfig",
    "ConfigError",
    "FailureKind",
    "LocalQuotaExceededError",
    "Namespace",
    "ParlayDesk",
    "ParlayProError",
    "ParlaySlip",
    "PayloadValidationError",
    "RemoteStoreError",
    "StorageError",
    "StorageService",
    "StorageStats",
    "load_config",
]
