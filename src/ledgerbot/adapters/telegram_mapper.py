"""Telegram-to-core message mapping adapter.

This keeps Telethon-specific details out of the command dispatcher.
"""

from __future__ import annotations

from typing import Optional

from telethon.tl.custom import Message

from ledgerbot.commands import ADD, REGISTER, CommandContext

# Bot commands that differ from the dispatcher's command names.
COMMAND_ALIASES = {"start": REGISTER}


def split_command(text: str) -> tuple[Optional[str], str]:
    """Split "/report@bot #food" into ("report", "#food").

    Returns (None, text) when the text is not a slash command.
    """

    stripped = text.strip()
    if not stripped.startswith("/"):
        return None, text
    head, *rest = stripped.split(maxsplit=1)
    name = head[1:].split("@", 1)[0].lower()
    if not name:
        return None, text
    return COMMAND_ALIASES.get(name, name), rest[0].strip() if rest else ""


def build_command_context(message: Message) -> Optional[CommandContext]:
    """Build a CommandContext from a Telethon Message.

    Media-only messages without text produce no context.
    """

    text = message.raw_text or ""
    if not text.strip():
        return None

    sender_id = getattr(message, "sender_id", None) or message.chat_id
    command, rest = split_command(text)
    return CommandContext(
        command=command or ADD,
        external_id=str(sender_id),
        text=rest,
    )
