"""Core domain package for ledgerbot.

Core contains entry parsing, user resolution and report aggregation without
any Telegram or storage-specific code, keeping the business logic portable.
"""
