"""SQLite storage adapter.

Implements the core StoragePort using a simple SQLite database.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Iterator, Optional

from ledgerbot.core.errors import NoEntries, NotFound, StorageError
from ledgerbot.core.models import Currency, Entry, User

LOGGER = logging.getLogger(__name__)

# Fixed width keeps lexical order equal to chronological order.
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def format_timestamp(value: datetime) -> str:
    """Serialize an aware datetime as a fixed-width UTC string."""

    if value.tzinfo is None:
        raise ValueError("Naive datetimes are not accepted")
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(raw: str) -> datetime:
    return datetime.strptime(raw, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the StoragePort contract."""

    def __init__(self, db_path: str, timeout: float = 5.0) -> None:
        self._db_path = db_path
        self._timeout = timeout

    def _connect(self) -> sqlite3.Connection:
        # Autocommit mode: transactions are opened explicitly in _transaction.
        conn = sqlite3.connect(self._db_path, timeout=self._timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _transaction(self, immediate: bool = False) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside a transaction, committing on success.

        IMMEDIATE takes the write lock before the first read, which makes
        read-then-write sequences atomic across connections.
        """

        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open {self._db_path}") from exc
        try:
            conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
            yield conn
            conn.execute("COMMIT")
        except sqlite3.Error as exc:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise StorageError(str(exc)) from exc
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - users: one row per transport user id
        - entries: ledger entries owned by a user
        - entry_tags: one row per (entry, tag), removed with the entry
        """

        with self._transaction() as conn:
            # external_id is UNIQUE so registration can rely on the constraint
            # instead of a check-then-insert race.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    external_id TEXT NOT NULL UNIQUE,
                    created_at TEXT NOT NULL
                )
                """
            )
            # value is stored as decimal text to avoid float rounding.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS entries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL REFERENCES users(id),
                    value TEXT NOT NULL,
                    currency TEXT NOT NULL,
                    comment TEXT NOT NULL DEFAULT '',
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS entry_tags (
                    entry_id INTEGER NOT NULL REFERENCES entries(id) ON DELETE CASCADE,
                    tag TEXT NOT NULL,
                    PRIMARY KEY (entry_id, tag)
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_entries_user_created "
                "ON entries (user_id, created_at)"
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_entry_tags_tag ON entry_tags (tag)")

    @staticmethod
    def _user_from_row(row: sqlite3.Row) -> User:
        return User(
            id=int(row["id"]),
            external_id=row["external_id"],
            created_at=parse_timestamp(row["created_at"]),
        )

    def get_user(self, external_id: str) -> Optional[User]:
        """Return the user for an external id, if registered."""

        with self._transaction() as conn:
            row = conn.execute(
                "SELECT id, external_id, created_at FROM users WHERE external_id = ?",
                (external_id,),
            ).fetchone()
        return self._user_from_row(row) if row else None

    def get_or_create_user(self, external_id: str) -> User:
        """Insert the user unless present and return the stored row."""

        return self.register_user(external_id)[0]

    def register_user(self, external_id: str) -> tuple[User, bool]:
        """Insert the user unless present; also report whether it was inserted."""

        now = format_timestamp(datetime.now(timezone.utc))
        with self._transaction(immediate=True) as conn:
            cur = conn.execute(
                """
                INSERT INTO users (external_id, created_at) VALUES (?, ?)
                ON CONFLICT(external_id) DO NOTHING
                """,
                (external_id, now),
            )
            row = conn.execute(
                "SELECT id, external_id, created_at FROM users WHERE external_id = ?",
                (external_id,),
            ).fetchone()
        return self._user_from_row(row), cur.rowcount == 1

    def _load_tags(self, conn: sqlite3.Connection, entry_ids: list[int]) -> dict[int, set[str]]:
        tags: dict[int, set[str]] = {entry_id: set() for entry_id in entry_ids}
        if not entry_ids:
            return tags
        placeholders = ", ".join("?" for _ in entry_ids)
        rows = conn.execute(
            f"SELECT entry_id, tag FROM entry_tags WHERE entry_id IN ({placeholders})",
            entry_ids,
        ).fetchall()
        for row in rows:
            tags[int(row["entry_id"])].add(row["tag"])
        return tags

    def _entries_from_rows(self, conn: sqlite3.Connection, rows: list[sqlite3.Row]) -> list[Entry]:
        tags = self._load_tags(conn, [int(row["id"]) for row in rows])
        return [
            Entry(
                id=int(row["id"]),
                user_id=int(row["user_id"]),
                value=Decimal(row["value"]),
                currency=Currency(row["currency"]),
                tags=frozenset(tags[int(row["id"])]),
                comment=row["comment"],
                created_at=parse_timestamp(row["created_at"]),
            )
            for row in rows
        ]

    def create_entry(
        self,
        user_id: int,
        value: Decimal,
        currency: Currency,
        tags: Iterable[str],
        comment: str,
        created_at: Optional[datetime] = None,
    ) -> Entry:
        """Insert an entry and its tags in a single transaction."""

        created_at = created_at or datetime.now(timezone.utc)
        tag_set = frozenset(tags)
        with self._transaction() as conn:
            cur = conn.execute(
                """
                INSERT INTO entries (user_id, value, currency, comment, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (user_id, str(value), Currency(currency).value, comment, format_timestamp(created_at)),
            )
            entry_id = int(cur.lastrowid)
            conn.executemany(
                "INSERT INTO entry_tags (entry_id, tag) VALUES (?, ?)",
                [(entry_id, tag) for tag in sorted(tag_set)],
            )
        return Entry(
            id=entry_id,
            user_id=user_id,
            value=value,
            currency=Currency(currency),
            tags=tag_set,
            comment=comment,
            created_at=parse_timestamp(format_timestamp(created_at)),
        )

    def _select_most_recent(self, conn: sqlite3.Connection, user_id: int) -> Entry:
        row = conn.execute(
            """
            SELECT id, user_id, value, currency, comment, created_at
            FROM entries
            WHERE user_id = ?
            ORDER BY created_at DESC, id DESC
            LIMIT 1
            """,
            (user_id,),
        ).fetchone()
        if row is None:
            raise NoEntries(f"User {user_id} has no entries")
        return self._entries_from_rows(conn, [row])[0]

    def most_recent_entry(self, user_id: int) -> Entry:
        """Return the latest entry of a user; ties go to the later insert."""

        with self._transaction() as conn:
            return self._select_most_recent(conn, user_id)

    def delete_entry(self, entry_id: int) -> None:
        """Delete one entry; raise NotFound if it is already gone."""

        with self._transaction() as conn:
            cur = conn.execute("DELETE FROM entries WHERE id = ?", (entry_id,))
            if cur.rowcount == 0:
                raise NotFound(f"Entry {entry_id} does not exist")

    def pop_most_recent_entry(self, user_id: int) -> Entry:
        """Atomically delete and return the latest entry of a user."""

        with self._transaction(immediate=True) as conn:
            entry = self._select_most_recent(conn, user_id)
            cur = conn.execute("DELETE FROM entries WHERE id = ?", (entry.id,))
            if cur.rowcount == 0:
                raise NotFound(f"Entry {entry.id} does not exist")
        return entry

    def query_entries(
        self,
        user_id: int,
        start: datetime,
        end: datetime,
        tags: Optional[Iterable[str]] = None,
    ) -> list[Entry]:
        """Return entries created within [start, end] carrying all tags."""

        tag_filter = sorted(set(tags or ()))
        sql = """
            SELECT id, user_id, value, currency, comment, created_at
            FROM entries
            WHERE user_id = ? AND created_at BETWEEN ? AND ?
        """
        params: list = [user_id, format_timestamp(start), format_timestamp(end)]
        if tag_filter:
            placeholders = ", ".join("?" for _ in tag_filter)
            # Superset match: the entry must carry every requested tag.
            sql += f"""
            AND id IN (
                SELECT entry_id FROM entry_tags
                WHERE tag IN ({placeholders})
                GROUP BY entry_id
                HAVING COUNT(DISTINCT tag) = ?
            )
            """
            params.extend(tag_filter)
            params.append(len(tag_filter))

        with self._transaction() as conn:
            rows = conn.execute(sql, params).fetchall()
            return self._entries_from_rows(conn, rows)

    def list_entries(self, user_id: int) -> list[Entry]:
        """Return every entry of a user, oldest first."""

        with self._transaction() as conn:
            rows = conn.execute(
                """
                SELECT id, user_id, value, currency, comment, created_at
                FROM entries
                WHERE user_id = ?
                ORDER BY created_at, id
                """,
                (user_id,),
            ).fetchall()
            return self._entries_from_rows(conn, rows)
