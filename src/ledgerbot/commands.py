"""Command dispatch for incoming chat messages.

The dispatcher is transport-agnostic: it receives an already identified
command, runs the matching core operation and returns the reply text. Typed
ledger errors are turned into user-facing replies here so that no failure is
silently dropped by the transport.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ledgerbot.adapters.report_formatting import (
    GENERIC_FAILURE,
    HELP,
    NOT_UNDERSTOOD,
    NOTHING_TO_REVERT,
    format_added,
    format_dump,
    format_report,
    format_reverted,
)
from ledgerbot.core.config import LedgerConfig
from ledgerbot.core.errors import MalformedEntry, NoEntries, NotFound, StorageError
from ledgerbot.core.models import ReportRow
from ledgerbot.core.parser import extract_tags, parse_entry
from ledgerbot.core.ports import StoragePort
from ledgerbot.core.registry import UserRegistry
from ledgerbot.core.report import ReportAggregator

LOGGER = logging.getLogger(__name__)

REGISTER = "register"
HELP_COMMAND = "help"
ADD = "add"
REVERT = "revert"
REPORT = "report"
DUMP = "dump"


@dataclass(frozen=True)
class CommandContext:
    """Transport-neutral description of one incoming command."""

    command: str
    external_id: str
    text: str


@dataclass(frozen=True)
class Reply:
    """Text to send back to the user."""

    text: str
    parse_mode: Optional[str] = "md"
    # Follow-up messages for replies too long for a single message.
    continuation: tuple[str, ...] = ()

    @property
    def messages(self) -> tuple[str, ...]:
        return (self.text, *self.continuation)


class CommandDispatcher:
    """Route commands to the registry, storage and report aggregator."""

    def __init__(
        self,
        storage: StoragePort,
        registry: UserRegistry,
        aggregator: ReportAggregator,
        ledger_config: LedgerConfig,
    ) -> None:
        self._storage = storage
        self._registry = registry
        self._aggregator = aggregator
        self._ledger = ledger_config
        self._handlers: dict[str, Callable[[CommandContext], Reply]] = {
            REGISTER: self.register,
            HELP_COMMAND: self.help,
            ADD: self.add,
            REVERT: self.revert,
            REPORT: self.report,
            DUMP: self.dump,
        }

    def handle(self, context: CommandContext) -> Reply:
        """Run one command and return its reply.

        Unknown commands get the help text. Storage failures are logged and
        answered with a generic message instead of propagating.
        """

        handler = self._handlers.get(context.command, self.help)
        try:
            return handler(context)
        except StorageError:
            LOGGER.exception("Storage failure while handling %s for %s", context.command, context.external_id)
            return Reply(GENERIC_FAILURE, parse_mode=None)

    def register(self, context: CommandContext) -> Reply:
        self._registry.resolve(context.external_id)
        return self.help(context)

    def help(self, context: CommandContext) -> Reply:
        return Reply(HELP)

    def add(self, context: CommandContext) -> Reply:
        try:
            draft = parse_entry(context.text)
        except MalformedEntry:
            return Reply(NOT_UNDERSTOOD, parse_mode=None)

        # First add without /start registers the user.
        user = self._registry.resolve(context.external_id)
        entry = self._storage.create_entry(
            user_id=user.id,
            value=draft.value,
            currency=self._ledger.currency,
            tags=draft.tags,
            comment=draft.comment,
        )
        LOGGER.info("Entry %s added for user %s", entry.id, user.id)
        return Reply(format_added(entry), parse_mode=None)

    def revert(self, context: CommandContext) -> Reply:
        user = self._registry.resolve(context.external_id)
        try:
            entry = self._storage.pop_most_recent_entry(user.id)
        except (NoEntries, NotFound):
            return Reply(NOTHING_TO_REVERT, parse_mode=None)
        LOGGER.info("Entry %s reverted for user %s", entry.id, user.id)
        return Reply(format_reverted(entry))

    def report_rows(self, external_id: str, text: str = "") -> list[ReportRow]:
        """Return the raw (date, sum) rows for programmatic callers."""

        user = self._registry.resolve(external_id)
        return self._aggregator.build_report(user.id, extract_tags(text))

    def report(self, context: CommandContext) -> Reply:
        tags = extract_tags(context.text)
        rows = self.report_rows(context.external_id, context.text)
        return Reply(format_report(rows, tags))

    def dump(self, context: CommandContext) -> Reply:
        user = self._registry.resolve(context.external_id)
        first, *rest = format_dump(self._storage.list_entries(user.id))
        return Reply(first, continuation=tuple(rest))
