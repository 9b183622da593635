"""Custom exceptions for the Pocket Ledger application."""

from __future__ import annotations


class PocketLedgerError(Exception):
    """Base exception for all Pocket Ledger errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(PocketLedgerError):
    """Raised when input validation fails."""

    pass


class RecordNotFoundError(PocketLedgerError):
    """Raised when a transaction or debt record is not found."""

    pass


class StorageError(PocketLedgerError):
    """Raised when the blob store cannot be read or written."""

    pass


class DuplicateUserError(PocketLedgerError):
    """Raised when signing up with a username that is already taken."""

    pass


class SyncError(PocketLedgerError):
    """Raised when a queued operation cannot be replayed against the server."""

    def __init__(self, message: str, status_code: int | None = None, details: dict | None = None) -> None:
        super().__init__(message, details)
        self.status_code = status_code
