from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from ledgerbot.logging_setup import (
    MASK,
    SecretMaskingFormatter,
    build_handlers,
    configure_logging,
    secrets_from_env,
)

REDACT = {"enabled": True, "patterns": ["BOT_TOKEN", "API_HASH"]}


def _record(message: str) -> logging.LogRecord:
    return logging.LogRecord("ledgerbot", logging.INFO, __file__, 1, message, None, None)


def test_secrets_from_env_reads_listed_vars(monkeypatch) -> None:
    monkeypatch.setenv("BOT_TOKEN", "123:abc")
    monkeypatch.delenv("API_HASH", raising=False)

    assert secrets_from_env(REDACT) == ["123:abc"]
    assert secrets_from_env({**REDACT, "enabled": False}) == []


def test_formatter_masks_secrets() -> None:
    formatter = SecretMaskingFormatter(["123:abc", "123:abcdef", ""])
    text = formatter.format(_record("token=123:abcdef other=123:abc"))

    assert "123:abc" not in text
    assert text.endswith(f"token={MASK} other={MASK}")


def test_build_handlers_creates_rotating_file(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("BOT_TOKEN", "secret-token")
    config = {
        "console": False,
        "file": {"enabled": True, "path": "logs/bot.log", "max_bytes": 1024, "backup_count": 2},
        "redact": REDACT,
    }

    handlers = build_handlers(config, str(tmp_path))
    try:
        assert len(handlers) == 1
        handler = handlers[0]
        assert isinstance(handler, RotatingFileHandler)
        assert handler.maxBytes == 1024
        assert handler.backupCount == 2
        handler.emit(_record("using secret-token"))
        handler.flush()
    finally:
        for handler in handlers:
            handler.close()

    written = (tmp_path / "logs" / "bot.log").read_text(encoding="utf-8")
    assert "secret-token" not in written
    assert f"using {MASK}" in written


def test_configure_logging_disabled_or_without_handlers(tmp_path) -> None:
    assert configure_logging(None, str(tmp_path)) is False
    assert configure_logging({"enabled": False}, str(tmp_path)) is False
    assert configure_logging({"enabled": True, "console": False}, str(tmp_path)) is False
