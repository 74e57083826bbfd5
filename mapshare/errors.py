"""Exception hierarchy for mapshare.

Store-level failures, caller mistakes and identity failures are kept
apart so the HTTP layer can map each one to a status code in one place.
"""

from __future__ import annotations


class MapShareError(Exception):
    """Base exception for all mapshare failures."""


class ConfigError(MapShareError):
    """Raised for missing or invalid process configuration."""


class InvalidPayload(MapShareError):
    """Raised when a payload cannot be stored (caller error, not retryable)."""


class RecordNotFound(MapShareError):
    """Raised when a record is absent or outside the caller's partition."""

    def __init__(self, record_id: str, message: str | None = None):
        self.record_id = record_id
        super().__init__(message or f"Record not found: {record_id}")


class StoreError(MapShareError):
    """Raised when the key-value service rejects a command."""


class StoreUnavailable(StoreError):
    """Raised on transport, timeout or auth failure talking to the store."""


class ResourceExhausted(MapShareError):
    """Raised when the entropy source cannot produce an identifier."""


class Unauthenticated(MapShareError):
    """Raised when a credential is missing, unknown or expired."""


class AccountExists(MapShareError):
    """Raised when registering a username that is already taken."""
