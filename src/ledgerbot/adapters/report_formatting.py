"""Shared reply formatting helpers.

Keeping formatting here prevents drift between commands and keeps replies
consistent regardless of which command produced them.
"""

from __future__ import annotations

import csv
import io
from typing import Iterable, Sequence

from ledgerbot.core.models import Entry, ReportRow

HELP = """Accounting Helper

Usage:
`/help` - this help
`/revert` - revert last entry
`/report [#tags]` - sums per day for the last week, optionally only entries with all given hashtags
`/dump` - all your entries as CSV
`<amount> [<comment with hashtags>]` - add new entry, e.g. `150 awesome #burger and #cola`. Comment is optional. Hashtags are used for grouping entries and making reports by categories.
"""

NOT_UNDERSTOOD = "I don't understand you"
NOTHING_TO_REVERT = "Nothing to revert"
NOTHING_TO_REPORT = "Nothing to report for last week"
NOTHING_TO_DUMP = "Nothing to dump"
GENERIC_FAILURE = "Something went wrong, please try again later"

# Telegram rejects longer messages.
MESSAGE_LIMIT = 4096
DUMP_HEADER = ["created_at", "value", "currency", "tags", "comment"]


def format_amount(entry: Entry) -> str:
    return f"{entry.value}{entry.currency.value}"


def format_added(entry: Entry) -> str:
    return f"Added: {format_amount(entry)}"


def format_reverted(entry: Entry) -> str:
    return f"Reverted: {format_amount(entry)}"


def render_table(header: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    """Render rows as a Markdown table with padded columns."""

    all_rows = [list(header)] + [list(row) for row in rows]
    widths = [max(3, *(len(row[i]) for row in all_rows)) for i in range(len(header))]

    def line(cells: Sequence[str]) -> str:
        return "| " + " | ".join(cell.ljust(width) for cell, width in zip(cells, widths)) + " |"

    lines = [line(all_rows[0]), line(["-" * width for width in widths])]
    lines.extend(line(row) for row in all_rows[1:])
    return "\n".join(lines)


def format_report(rows: Sequence[ReportRow], tags: Iterable[str] = ()) -> str:
    """Create the Markdown report body sent to the chat."""

    tag_list = sorted(tags)
    if not rows:
        if tag_list:
            return f"{NOTHING_TO_REPORT} (`{' '.join(tag_list)}`)"
        return NOTHING_TO_REPORT

    table = render_table(
        ["date", "amount"],
        [[row.day.isoformat(), str(row.total)] for row in rows],
    )
    title = "Report for last week"
    if tag_list:
        title = f"{title} (`{' '.join(tag_list)}`)"
    # Code block content is not parsed as Markdown, so the table stays raw.
    return f"{title}:\n\n```\n{table}\n```"


def _csv_line(cells: Sequence[str]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(cells)
    return buffer.getvalue().rstrip("\n")


def _code_safe(value: str) -> str:
    # A backtick run inside a pre block would close it early.
    return value.replace("`", "'")


def format_dump(entries: Sequence[Entry], limit: int = MESSAGE_LIMIT) -> list[str]:
    """Render entries as CSV split into code blocks of at most limit chars.

    Every block repeats the CSV header so each message stands on its own.
    """

    if not entries:
        return [NOTHING_TO_DUMP]

    header = _csv_line(DUMP_HEADER)
    # Room left after the fences, the header and its newline.
    budget = limit - len("```\n\n```") - len(header) - 1

    chunks: list[list[str]] = []
    current: list[str] = []
    size = 0
    for entry in entries:
        line = _csv_line(
            [
                entry.created_at.isoformat(timespec="seconds"),
                str(entry.value),
                entry.currency.value,
                _code_safe(" ".join(sorted(entry.tags))),
                _code_safe(entry.comment),
            ]
        )[:budget]
        if current and size + len(line) + 1 > budget:
            chunks.append(current)
            current, size = [], 0
        current.append(line)
        size += len(line) + 1
    chunks.append(current)

    return ["```\n" + header + "\n" + "\n".join(lines) + "\n```" for lines in chunks]
