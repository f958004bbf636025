"""Ports (interfaces) used by the core.

Ports define the minimal storage contract so that the core can be reused with
different backends and tested against isolated instances.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Protocol

from ledgerbot.core.models import Currency, Entry, User


class StoragePort(Protocol):
    """Storage operations required by the core."""

    def get_user(self, external_id: str) -> Optional[User]:
        ...

    def get_or_create_user(self, external_id: str) -> User:
        ...

    def register_user(self, external_id: str) -> tuple[User, bool]:
        ...

    def create_entry(
        self,
        user_id: int,
        value: Decimal,
        currency: Currency,
        tags: Iterable[str],
        comment: str,
        created_at: Optional[datetime] = None,
    ) -> Entry:
        ...

    def most_recent_entry(self, user_id: int) -> Entry:
        ...

    def delete_entry(self, entry_id: int) -> None:
        ...

    def pop_most_recent_entry(self, user_id: int) -> Entry:
        ...

    def query_entries(
        self,
        user_id: int,
        start: datetime,
        end: datetime,
        tags: Optional[Iterable[str]] = None,
    ) -> list[Entry]:
        ...

    def list_entries(self, user_id: int) -> list[Entry]:
        ...
