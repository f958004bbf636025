"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass

from ledgerbot.core.models import Currency


@dataclass(frozen=True)
class LedgerConfig:
    """Ledger settings for new entries."""

    currency: Currency


@dataclass(frozen=True)
class ReportConfig:
    """Report window and the time zone used to bucket entries by date."""

    timezone: str
    window_days: int


DEFAULT_REPORT_CONFIG = ReportConfig(timezone="UTC", window_days=7)
