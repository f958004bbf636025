"""Weekly report aggregation (core domain)."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Iterable, Optional
from zoneinfo import ZoneInfo

from ledgerbot.core.config import DEFAULT_REPORT_CONFIG, ReportConfig
from ledgerbot.core.models import ReportRow
from ledgerbot.core.ports import StoragePort


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReportAggregator:
    """Sum entry values per calendar day over a trailing window."""

    def __init__(
        self,
        storage: StoragePort,
        config: ReportConfig = DEFAULT_REPORT_CONFIG,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._storage = storage
        self._tz = ZoneInfo(config.timezone)
        self._window = timedelta(days=config.window_days)
        self._clock = clock or _utc_now

    def window(self) -> tuple[datetime, datetime]:
        """Return the (start, end) bounds of the report window right now."""

        end = self._clock()
        return end - self._window, end

    def build_report(self, user_id: int, tags: Optional[Iterable[str]] = None) -> list[ReportRow]:
        """Return per-day totals for the user, oldest day first.

        Days are calendar dates in the configured time zone. When tags are
        given only entries carrying all of them are summed.
        """

        start, end = self.window()
        entries = self._storage.query_entries(user_id, start, end, tags)

        totals: dict[date, Decimal] = defaultdict(Decimal)
        for entry in entries:
            day = entry.created_at.astimezone(self._tz).date()
            totals[day] += entry.value

        return [ReportRow(day=day, total=totals[day]) for day in sorted(totals)]
