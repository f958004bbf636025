"""Config-driven logging for the bot.

Handlers come from the "logging" section of config.json. Values of the env
vars listed under redact.patterns (bot token, API hash) are masked in every
record so they never reach the console or the log file.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Iterable, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MASK = "***"


class SecretMaskingFormatter(logging.Formatter):
    """Formatter that replaces known secret values with a mask."""

    def __init__(self, secrets: Iterable[str]) -> None:
        super().__init__(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
        # Longest first so a secret containing another is masked whole.
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, MASK)
        return message


def secrets_from_env(redact: dict) -> list[str]:
    """Return the current values of the env vars named in the redact section."""

    if not redact.get("enabled", False):
        return []
    return [os.environ[name] for name in redact.get("patterns", []) if os.environ.get(name)]


def _file_handler(file_cfg: dict, project_root: str) -> RotatingFileHandler:
    path = file_cfg.get("path", "logs/ledgerbot.log")
    if not os.path.isabs(path):
        path = os.path.join(project_root, path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
        backupCount=int(file_cfg.get("backup_count", 5)),
        encoding="utf-8",
    )


def build_handlers(config: dict, project_root: str) -> list[logging.Handler]:
    """Create console and rotating file handlers sharing one masking formatter."""

    handlers: list[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())
    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        handlers.append(_file_handler(file_cfg, project_root))

    formatter = SecretMaskingFormatter(secrets_from_env(config.get("redact", {})))
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure_logging(config: Optional[dict], project_root: str) -> bool:
    """Install the configured handlers on the root logger.

    Returns False when logging is disabled or no handler is configured.
    """

    config = config or {}
    if not config.get("enabled", False):
        return False

    handlers = build_handlers(config, project_root)
    if not handlers:
        return False

    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=level, handlers=handlers)
    return True
