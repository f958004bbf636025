"""Static configuration for ledgerbot.

All user-editable settings (storage, currency, report window, logging) live
in a single JSON file for quick edits without touching Python.
"""

import json
import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

# config.json sits in the project root unless LEDGERBOT_CONFIG points elsewhere.
CONFIG_PATH = os.getenv("LEDGERBOT_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Where to store the SQLite database and how long to wait on a locked file.
_storage = _CONFIG.get("storage", {})
DB_PATH = _resolve_path(_storage.get("db_path", "ledger.db"))
DB_TIMEOUT_SECONDS = float(_storage.get("timeout_seconds", 5))

# Currency attached to every new entry (member name of core.models.Currency).
_ledger = _CONFIG.get("ledger", {})
CURRENCY = _ledger.get("currency", "RUB")

# Report window and the time zone used to bucket entries into days.
_report = _CONFIG.get("report", {})
REPORT_TIMEZONE = _report.get("timezone", "UTC")
REPORT_WINDOW_DAYS = int(_report.get("window_days", 7))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
