"""Error taxonomy raised by the core and the storage adapters."""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger errors."""


class MalformedEntry(LedgerError):
    """Input text does not start with a numeric amount."""


class NoEntries(LedgerError):
    """The user has no entries to act on."""


class NotFound(LedgerError):
    """The targeted entry no longer exists."""


class StorageError(LedgerError):
    """The storage backend failed or rejected the operation."""
