"""Entry parsing logic (core domain)."""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Optional

from ledgerbot.core.errors import MalformedEntry
from ledgerbot.core.models import EntryDraft

ENTRY_PATTERN = re.compile(r"^\s*(-?\d+(?:\.\d+)?)(.*)$", re.DOTALL)
TAG_PATTERN = re.compile(r"#\w+")


def extract_tags(text: Optional[str]) -> frozenset[str]:
    """Return the deduplicated set of hashtags found in the text."""

    if not text:
        return frozenset()
    return frozenset(TAG_PATTERN.findall(text))


def parse_entry(text: Optional[str]) -> EntryDraft:
    """Split raw text into a leading amount and a trailing comment.

    "150 awesome #burger and #cola" yields value 150, the comment
    "awesome #burger and #cola" and tags {"#burger", "#cola"}.
    """

    match = ENTRY_PATTERN.match(text or "")
    if not match:
        raise MalformedEntry(f"No leading amount in {text!r}")

    comment = match.group(2).strip()
    return EntryDraft(
        value=Decimal(match.group(1)),
        comment=comment,
        tags=extract_tags(comment),
    )
