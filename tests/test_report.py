from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from ledgerbot.adapters.sqlite_storage import SQLiteStorage
from ledgerbot.core.config import ReportConfig
from ledgerbot.core.models import Currency, ReportRow
from ledgerbot.core.report import ReportAggregator

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


def _setup(tmp_path, tz_name: str = "UTC") -> tuple[SQLiteStorage, ReportAggregator, int]:
    storage = SQLiteStorage(str(tmp_path / "ledger.db"))
    storage.init_db()
    user = storage.get_or_create_user("1")
    aggregator = ReportAggregator(storage, ReportConfig(timezone=tz_name, window_days=7), clock=lambda: NOW)
    return storage, aggregator, user.id


def _add(storage: SQLiteStorage, user_id: int, value: str, created_at: datetime, tags=()) -> None:
    storage.create_entry(
        user_id=user_id,
        value=Decimal(value),
        currency=Currency.RUB,
        tags=tags,
        comment="",
        created_at=created_at,
    )


def test_groups_by_date_ascending(tmp_path) -> None:
    storage, aggregator, user_id = _setup(tmp_path)
    day2 = NOW - timedelta(days=1)
    day1 = NOW - timedelta(days=3)
    # Inserted out of order on purpose.
    _add(storage, user_id, "3", day2)
    _add(storage, user_id, "10", day1)
    _add(storage, user_id, "5", day1 + timedelta(hours=1))

    assert aggregator.build_report(user_id) == [
        ReportRow(day=day1.date(), total=Decimal("15")),
        ReportRow(day=day2.date(), total=Decimal("3")),
    ]


def test_tag_filter_excludes_other_tags(tmp_path) -> None:
    storage, aggregator, user_id = _setup(tmp_path)
    _add(storage, user_id, "100", NOW - timedelta(hours=2), tags={"#food"})
    _add(storage, user_id, "40", NOW - timedelta(hours=1), tags={"#transport"})

    rows = aggregator.build_report(user_id, {"#food"})
    assert rows == [ReportRow(day=NOW.date(), total=Decimal("100"))]


def test_out_of_window_entries_are_excluded(tmp_path) -> None:
    storage, aggregator, user_id = _setup(tmp_path)
    _add(storage, user_id, "999", NOW - timedelta(days=8))
    _add(storage, user_id, "7", NOW - timedelta(days=7))
    _add(storage, user_id, "1", NOW + timedelta(minutes=1))

    rows = aggregator.build_report(user_id)
    assert rows == [ReportRow(day=(NOW - timedelta(days=7)).date(), total=Decimal("7"))]


def test_empty_report(tmp_path) -> None:
    _, aggregator, user_id = _setup(tmp_path)
    assert aggregator.build_report(user_id) == []


def test_negative_values_are_summed(tmp_path) -> None:
    storage, aggregator, user_id = _setup(tmp_path)
    _add(storage, user_id, "10.5", NOW - timedelta(hours=3))
    _add(storage, user_id, "-2.25", NOW - timedelta(hours=2))

    assert aggregator.build_report(user_id) == [ReportRow(day=NOW.date(), total=Decimal("8.25"))]


def test_days_follow_configured_timezone(tmp_path) -> None:
    storage, aggregator, user_id = _setup(tmp_path, tz_name="Asia/Tokyo")
    # 20:00 UTC on the 9th is already the 10th in Tokyo (UTC+9).
    _add(storage, user_id, "4", datetime(2024, 3, 9, 20, 0, tzinfo=timezone.utc))
    _add(storage, user_id, "6", datetime(2024, 3, 10, 1, 0, tzinfo=timezone.utc))

    assert aggregator.build_report(user_id) == [ReportRow(day=date(2024, 3, 10), total=Decimal("10"))]


def test_window_is_trailing_seven_days() -> None:
    aggregator = ReportAggregator(storage=None, clock=lambda: NOW)
    start, end = aggregator.window()
    assert end == NOW
    assert end - start == timedelta(days=7)


def test_window_length_follows_config(tmp_path) -> None:
    storage = SQLiteStorage(str(tmp_path / "ledger.db"))
    storage.init_db()
    user_id = storage.get_or_create_user("1").id
    aggregator = ReportAggregator(storage, ReportConfig(timezone="UTC", window_days=3), clock=lambda: NOW)
    _add(storage, user_id, "1", NOW - timedelta(days=2))
    _add(storage, user_id, "5", NOW - timedelta(days=4))

    start, end = aggregator.window()
    assert end - start == timedelta(days=3)
    assert aggregator.build_report(user_id) == [ReportRow(day=date(2024, 3, 8), total=Decimal("1"))]
