"""SQLite durable tier.

Single source of truth for cached entries and rate-limit counters. Every
statement runs in autocommit mode, so each per-key set/delete is atomic;
counter increments use an explicit IMMEDIATE transaction.

Schema:
    entries  (key, scope, payload, compressed, stored_at, ttl_seconds, expires_at, size)
    counters (key, count, window_start, reset_at)
"""

import logging
import sqlite3
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from plugin_filters.consts import CLEANUP_BATCH_LIMIT, DEFAULT_DATA_DIR
from plugin_filters.errors import CacheError
from plugin_filters.models.model_storage import CacheEntry

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS entries (
    key TEXT PRIMARY KEY,
    scope TEXT NOT NULL,
    payload BLOB NOT NULL,
    compressed INTEGER NOT NULL DEFAULT 0,
    stored_at REAL NOT NULL,
    ttl_seconds INTEGER NOT NULL,
    expires_at REAL NOT NULL,
    size INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_entries_expires ON entries(expires_at);
CREATE INDEX IF NOT EXISTS idx_entries_scope ON entries(scope);

CREATE TABLE IF NOT EXISTS counters (
    key TEXT PRIMARY KEY,
    count INTEGER NOT NULL,
    window_start REAL NOT NULL,
    reset_at REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_counters_reset ON counters(reset_at);
"""

_ENTRY_COLUMNS = "key, scope, payload, compressed, stored_at, ttl_seconds"


def _row_to_entry(row: sqlite3.Row) -> CacheEntry:
    return CacheEntry(
        key=row["key"],
        scope=row["scope"],
        payload=bytes(row["payload"]),
        compressed=bool(row["compressed"]),
        stored_at=row["stored_at"],
        ttl_seconds=row["ttl_seconds"],
    )


class SQLiteStore:
    """Durable key/TTL store backed by one SQLite database file."""

    def __init__(
        self,
        db_path: Path | str | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the store.

        Args:
            db_path: Database file. Defaults to {DEFAULT_DATA_DIR}/cache.db.
                ":memory:" keeps everything in process memory.
            clock: Returns the current Unix time; injectable for tests.
        """
        if db_path is None:
            db_path = DEFAULT_DATA_DIR / "cache.db"
        self.db_path = str(db_path)
        self.clock = clock
        # Statements executed so far; lets callers verify batched access
        self.query_count = 0
        self._lock = threading.RLock()
        self._conn: sqlite3.Connection | None = None
        self._init_db()

    @contextmanager
    def _guard(self, operation: str) -> Iterator[sqlite3.Connection]:
        """Serialize access and convert driver errors into CacheError."""
        with self._lock:
            try:
                yield self._get_conn()
            except sqlite3.Error as e:
                logger.error(f"Durable cache {operation} failed on {self.db_path}: {e}")
                raise CacheError() from e

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                self.db_path,
                timeout=10.0,
                isolation_level=None,
                check_same_thread=False,
            )
            self._conn.row_factory = sqlite3.Row
            if self.db_path != ":memory:":
                self._conn.execute("PRAGMA journal_mode=WAL")
        return self._conn

    def _execute(self, conn: sqlite3.Connection, sql: str, params: tuple | list = ()) -> sqlite3.Cursor:
        self.query_count += 1
        return conn.execute(sql, params)

    def _init_db(self) -> None:
        with self._guard("initialization") as conn:
            conn.executescript(SCHEMA)

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None

    # Entries

    def get(self, key: str) -> CacheEntry | None:
        """Fetch one live entry; an expired row is deleted and reported missing."""
        now = self.clock()
        with self._guard("get") as conn:
            row = self._execute(
                conn, f"SELECT {_ENTRY_COLUMNS}, expires_at FROM entries WHERE key = ?", (key,)
            ).fetchone()
            if row is None:
                return None
            entry = _row_to_entry(row)
            if entry.is_expired(now):
                self._execute(
                    conn, "DELETE FROM entries WHERE key = ? AND expires_at <= ?", (key, now)
                )
                return None
        return entry

    def get_many(self, keys: list[str]) -> dict[str, CacheEntry]:
        """Fetch live entries for many keys in one SELECT.

        Expired rows among the requested keys are removed with one DELETE.
        """
        unique = list(dict.fromkeys(keys))
        if not unique:
            return {}

        now = self.clock()
        placeholders = ",".join("?" * len(unique))
        found: dict[str, CacheEntry] = {}
        expired: list[str] = []

        with self._guard("get_many") as conn:
            rows = self._execute(
                conn,
                f"SELECT {_ENTRY_COLUMNS}, expires_at FROM entries WHERE key IN ({placeholders})",
                unique,
            ).fetchall()
            for row in rows:
                entry = _row_to_entry(row)
                if entry.is_expired(now):
                    expired.append(entry.key)
                else:
                    found[entry.key] = entry

            if expired:
                marks = ",".join("?" * len(expired))
                self._execute(
                    conn,
                    f"DELETE FROM entries WHERE key IN ({marks}) AND expires_at <= ?",
                    [*expired, now],
                )
                logger.debug(f"Lazily removed {len(expired)} expired entries")

        return found

    def set(self, entry: CacheEntry) -> None:
        """Insert or replace one entry."""
        with self._guard("set") as conn:
            self._execute(
                conn,
                """
                INSERT OR REPLACE INTO entries
                    (key, scope, payload, compressed, stored_at, ttl_seconds, expires_at, size)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.key,
                    entry.scope,
                    sqlite3.Binary(entry.payload),
                    int(entry.compressed),
                    entry.stored_at,
                    entry.ttl_seconds,
                    entry.expires_at,
                    len(entry.payload),
                ),
            )

    def delete(self, key: str) -> bool:
        with self._guard("delete") as conn:
            cursor = self._execute(conn, "DELETE FROM entries WHERE key = ?", (key,))
            return cursor.rowcount > 0

    def cleanup(self, limit: int = CLEANUP_BATCH_LIMIT) -> int:
        """Delete up to ``limit`` expired entries, oldest expiry first.

        Returns:
            Number of entries removed.
        """
        now = self.clock()
        with self._guard("cleanup") as conn:
            cursor = self._execute(
                conn,
                """
                DELETE FROM entries WHERE key IN (
                    SELECT key FROM entries WHERE expires_at <= ?
                    ORDER BY expires_at LIMIT ?
                )
                """,
                (now, limit),
            )
            return cursor.rowcount

    def clear(self, scopes: list[str] | None = None) -> int:
        """Delete every entry in the given scopes (all entries when None)."""
        with self._guard("clear") as conn:
            if scopes is None:
                cursor = self._execute(conn, "DELETE FROM entries")
            else:
                marks = ",".join("?" * len(scopes))
                cursor = self._execute(conn, f"DELETE FROM entries WHERE scope IN ({marks})", scopes)
            return cursor.rowcount

    def stats(self) -> dict[str, Any]:
        """Full-scan aggregates over the entries table."""
        now = self.clock()
        with self._guard("stats") as conn:
            rows = self._execute(
                conn,
                """
                SELECT scope, COUNT(*) AS count, COALESCE(SUM(size), 0) AS total_bytes,
                       SUM(CASE WHEN expires_at <= ? THEN 1 ELSE 0 END) AS expired
                FROM entries GROUP BY scope ORDER BY scope
                """,
                (now,),
            ).fetchall()

        by_scope = {
            row["scope"]: {"count": row["count"], "total_bytes": row["total_bytes"]} for row in rows
        }
        return {
            "count": sum(row["count"] for row in rows),
            "total_bytes": sum(row["total_bytes"] for row in rows),
            "expired": sum(row["expired"] or 0 for row in rows),
            "by_scope": by_scope,
        }

    # Counters

    def increment_counter(self, key: str, window_seconds: int) -> tuple[int, float]:
        """Atomically count one hit in the current fixed window.

        A counter whose window has ended restarts at 1.

        Returns:
            Tuple of (count in the window including this hit, window reset time)
        """
        now = self.clock()
        with self._guard("increment_counter") as conn:
            self._execute(conn, "BEGIN IMMEDIATE")
            try:
                row = self._execute(
                    conn, "SELECT count, reset_at FROM counters WHERE key = ?", (key,)
                ).fetchone()
                if row is None or now >= row["reset_at"]:
                    count, reset_at = 1, now + window_seconds
                    self._execute(
                        conn,
                        "INSERT OR REPLACE INTO counters (key, count, window_start, reset_at) "
                        "VALUES (?, ?, ?, ?)",
                        (key, count, now, reset_at),
                    )
                else:
                    count, reset_at = row["count"] + 1, row["reset_at"]
                    self._execute(
                        conn, "UPDATE counters SET count = ? WHERE key = ?", (count, key)
                    )
                self._execute(conn, "COMMIT")
            except sqlite3.Error:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
        return count, reset_at

    def cleanup_counters(self) -> int:
        """Delete counters whose window has ended."""
        now = self.clock()
        with self._guard("cleanup_counters") as conn:
            cursor = self._execute(conn, "DELETE FROM counters WHERE reset_at <= ?", (now,))
            return cursor.rowcount

    def clear_counters(self) -> int:
        with self._guard("clear_counters") as conn:
            return self._execute(conn, "DELETE FROM counters").rowcount
