"""Adapters that connect the core to SQLite and Telegram."""
