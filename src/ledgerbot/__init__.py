"""ledgerbot: a personal expense ledger driven by Telegram messages."""
