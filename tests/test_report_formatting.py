from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from ledgerbot.adapters.report_formatting import (
    NOTHING_TO_DUMP,
    format_added,
    format_dump,
    format_report,
    format_reverted,
    render_table,
)
from ledgerbot.core.models import Currency, Entry, ReportRow


def _entry(value: str, comment: str = "", tags: frozenset = frozenset()) -> Entry:
    return Entry(
        id=1,
        user_id=1,
        value=Decimal(value),
        currency=Currency.RUB,
        tags=tags,
        comment=comment,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def test_render_table_pads_columns() -> None:
    table = render_table(["date", "amount"], [["2024-01-01", "1234.5"]])
    assert table.splitlines() == [
        "| date       | amount |",
        "| ---------- | ------ |",
        "| 2024-01-01 | 1234.5 |",
    ]


def test_format_report_wraps_table_in_code_block() -> None:
    text = format_report([ReportRow(day=date(2024, 1, 2), total=Decimal("7"))], {"#b", "#a"})
    assert text.startswith("Report for last week (`#a #b`):")
    assert "```\n| date       | amount |" in text
    assert text.endswith("```")


def test_confirmations_include_currency() -> None:
    assert format_added(_entry("150.5")) == "Added: 150.5RUB"
    assert format_reverted(_entry("-3")) == "Reverted: -3RUB"


def test_format_dump_empty() -> None:
    assert format_dump([]) == [NOTHING_TO_DUMP]


def test_format_dump_chunks_repeat_header_and_fit_limit() -> None:
    entries = [_entry(str(n), comment="groceries for the week") for n in range(20)]
    chunks = format_dump(entries, limit=300)

    assert len(chunks) > 1
    for chunk in chunks:
        assert len(chunk) <= 300
        assert chunk.startswith("```\ncreated_at,value,currency,tags,comment\n")
        assert chunk.endswith("\n```")
    body = "".join(chunks)
    assert [f",{n},RUB," in body for n in range(20)] == [True] * 20


def test_format_dump_truncates_a_single_oversized_row() -> None:
    chunks = format_dump([_entry("1", comment="x" * 500)], limit=200)
    assert len(chunks) == 1
    assert len(chunks[0]) <= 200


def test_format_dump_replaces_backticks() -> None:
    (chunk,) = format_dump([_entry("1", comment="see ``` here", tags=frozenset({"#a"}))])
    assert chunk.count("```") == 2
    assert "see ''' here" in chunk
