"""Telegram client factory for ledgerbot.

We explicitly manage the client's lifecycle (start/run_until_disconnected)
so it is obvious when the session is created and when it ends.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from telethon import TelegramClient


def build_client() -> tuple[TelegramClient, str]:
    """Create a Telethon client and return it with the bot token.

    We read API_ID/API_HASH/BOT_TOKEN via python-dotenv to keep secrets out of
    the repo. The session name defaults to "ledgerbot".
    """

    load_dotenv()

    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")
    bot_token = os.getenv("BOT_TOKEN")
    session_name = os.getenv("SESSION_NAME", "ledgerbot")

    # Fail fast on missing credentials instead of falling back to a user login prompt.
    if not api_id or not api_hash:
        raise RuntimeError("Missing API_ID or API_HASH in environment")
    if not bot_token:
        raise RuntimeError("Missing BOT_TOKEN in environment")

    logging.getLogger(__name__).info("Initializing Telegram bot client")

    return TelegramClient(session_name, int(api_id), api_hash), bot_token
