# src/parlaypro/exceptions.py
"""
Custom exceptions for the ParlayPro toolkit.

This module defines a hierarchy of custom exception classes so callers can
tell apart the few errors they must handle (bad payloads, AI failures) from
the storage failures that the orchestrator absorbs internally.
"""

from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    """Classification of a remote-tier failure, decided at the store boundary."""

    TRANSIENT = "transient"  # network drop, timeout, 5xx
    PERMISSION = "permission"  # auth or row-level policy rejection
    NOT_FOUND = "not_found"  # missing row or table
    VALIDATION = "validation"  # malformed request or payload

    @property
    def opens_circuit(self) -> bool:
        return self in (FailureKind.TRANSIENT, FailureKind.PERMISSION)


class ParlayProError(Exception):
    """Base class for all ParlayPro specific errors."""
    def __init__(self, message: str = "An unspecified error occurred in ParlayPro."):
        super().__init__(message)

class ConfigError(ParlayProError):
    """Raised for errors related to configuration loading or validation."""
    def __init__(self, message: str = "Configuration error."):
        super().__init__(message)

class StorageError(ParlayProError):
    """Base class for errors related to storage operations."""
    def __init__(self, message: str = "Storage error."):
        super().__init__(message)

class PayloadValidationError(StorageError):
    """
    Raised when a payload cannot be stored because it does not survive a JSON
    round-trip (sets, arbitrary objects, NaN, circular references).
    This is the only storage error that propagates to callers.
    """
    def __init__(self, key: str, message: str = "Payload is not JSON-serializable."):
        self.key = key
        super().__init__(f"{message} Key: '{key}'")

class LocalQuotaExceededError(StorageError):
    """Raised by a local key-value store when a write would exceed its capacity."""
    def __init__(self, key: str, needed: int = 0, capacity: int = 0):
        self.key = key
        self.needed = needed
        self.capacity = capacity
        super().__init__(
            f"Local storage quota exceeded writing '{key}' "
            f"(needed {needed} bytes, capacity {capacity} bytes)."
        )

class RemoteStoreError(StorageError):
    """Raised by a remote record store; ``kind`` drives the circuit breaker."""
    def __init__(self, kind: FailureKind, detail: str = "Remote store error."):
        self.kind = kind
        self.detail = detail
        super().__init__(f"Remote store {kind.value} failure: {detail}")

class AnalysisError(ParlayProError):
    """Raised for failures of the generative-AI client (API errors, unusable responses)."""
    def __init__(self, message: str = "Matchup analysis failed."):
        super().__init__(message)
