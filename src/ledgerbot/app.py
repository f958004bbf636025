"""Application entry point for the ledger bot."""

from __future__ import annotations

import argparse
import logging
from typing import Optional

from art import tprint
from dotenv import load_dotenv
from telethon import events

from ledgerbot import settings
from ledgerbot.adapters.report_formatting import render_table
from ledgerbot.adapters.sqlite_storage import SQLiteStorage
from ledgerbot.adapters.telegram_mapper import build_command_context
from ledgerbot.client import build_client
from ledgerbot.commands import CommandDispatcher
from ledgerbot.core.config import LedgerConfig, ReportConfig
from ledgerbot.core.models import Currency
from ledgerbot.core.registry import UserRegistry
from ledgerbot.core.report import ReportAggregator
from ledgerbot.logging_setup import configure_logging

NAME = "LEDGER"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _configure_logging() -> None:
    # Secrets to mask are read from the environment, so .env must be loaded first.
    load_dotenv()
    configure_logging(settings.LOGGING, settings.PROJECT_ROOT)


def _build_storage() -> SQLiteStorage:
    storage = SQLiteStorage(settings.DB_PATH, timeout=settings.DB_TIMEOUT_SECONDS)
    storage.init_db()
    return storage


def _build_dispatcher(storage: SQLiteStorage) -> CommandDispatcher:
    return CommandDispatcher(
        storage=storage,
        registry=UserRegistry(storage),
        aggregator=ReportAggregator(
            storage,
            ReportConfig(timezone=settings.REPORT_TIMEZONE, window_days=settings.REPORT_WINDOW_DAYS),
        ),
        ledger_config=LedgerConfig(currency=Currency[settings.CURRENCY]),
    )


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting ledger bot")

    storage = _build_storage()
    dispatcher = _build_dispatcher(storage)
    logger.info("Ledger database ready at %s", settings.DB_PATH)

    client, bot_token = build_client()

    # Single handler keeps Telethon integration minimal and defers all routing
    # to the dispatcher for consistency and testability.
    @client.on(events.NewMessage(incoming=True))
    async def handler(event) -> None:
        try:
            sender = await event.get_sender()
            # Ignore other bots to avoid reply loops in shared chats.
            if sender and getattr(sender, "bot", False):
                return
            context = build_command_context(event.message)
            if context is None:
                return
            reply = dispatcher.handle(context)
            for text in reply.messages:
                await event.respond(text, parse_mode=reply.parse_mode, link_preview=False)
        except Exception:
            logger.exception("Error while processing message")

    # Explicit lifecycle management makes start/shutdown behavior obvious.
    client.start(bot_token=bot_token)
    logger.info("Bot connected. Listening for incoming messages...")
    client.run_until_disconnected()


def _init_db() -> None:
    _configure_logging()
    _build_storage()
    print(f"Database initialized at {settings.DB_PATH}")


def _report(external_id: str, tags: list[str]) -> None:
    _configure_logging()
    dispatcher = _build_dispatcher(_build_storage())
    rows = dispatcher.report_rows(external_id, " ".join(tags))
    if not rows:
        print("No entries in the last week.")
        return
    print(render_table(["date", "amount"], [[row.day.isoformat(), str(row.total)] for row in rows]))


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="ledgerbot")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bot")
    subparsers.add_parser("init-db", help="Create the SQLite schema and exit")
    report_parser = subparsers.add_parser("report", help="Print the weekly report for a user")
    report_parser.add_argument("external_id", help="Telegram user id")
    report_parser.add_argument("tags", nargs="*", help="Hashtags to filter by, e.g. #food")

    args = parser.parse_args(argv)
    if args.command == "init-db":
        _init_db()
        return
    if args.command == "report":
        _report(args.external_id, args.tags)
        return
    _run()


if __name__ == "__main__":
    main()
