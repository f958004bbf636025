"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum


class Currency(str, Enum):
    """Currency attached to every entry at creation time."""

    RUB = "RUB"


@dataclass(frozen=True)
class User:
    """Internal user record keyed by the transport's external id."""

    id: int
    external_id: str
    created_at: datetime


@dataclass(frozen=True)
class EntryDraft:
    """Parsed, not yet persisted entry."""

    value: Decimal
    comment: str
    tags: frozenset[str]


@dataclass(frozen=True)
class Entry:
    """One recorded monetary transaction."""

    id: int
    user_id: int
    value: Decimal
    currency: Currency
    tags: frozenset[str]
    comment: str
    created_at: datetime


@dataclass(frozen=True)
class ReportRow:
    """Sum of entry values for a single calendar day."""

    day: date
    total: Decimal
