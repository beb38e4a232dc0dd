"""SQLite database connection, schema and transaction management."""

import asyncio
import contextlib
import os
import sqlite3
from collections.abc import AsyncIterator
from pathlib import Path

import structlog

logger = structlog.get_logger()

_DB_FILE_PERMISSIONS = 0o600

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS players (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    nickname TEXT NOT NULL,
    deleted INTEGER NOT NULL DEFAULT 0,
    version INTEGER NOT NULL DEFAULT 1,
    data TEXT NOT NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_players_nickname
    ON players (nickname COLLATE NOCASE);

CREATE TABLE IF NOT EXISTS pending_submissions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    game_date TEXT NOT NULL,
    sequence_number INTEGER,
    created_at TEXT NOT NULL,
    status TEXT NOT NULL,
    mode TEXT NOT NULL,
    deleted INTEGER NOT NULL DEFAULT 0,
    version INTEGER NOT NULL DEFAULT 1,
    data TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_pending_submissions_status
    ON pending_submissions (status, game_date);

CREATE TABLE IF NOT EXISTS validated_games (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    submission_id INTEGER NOT NULL UNIQUE REFERENCES pending_submissions (id),
    game_date TEXT NOT NULL,
    mode TEXT NOT NULL,
    season_id INTEGER,
    season_eligible INTEGER NOT NULL DEFAULT 0,
    deleted INTEGER NOT NULL DEFAULT 0,
    version INTEGER NOT NULL DEFAULT 1,
    data TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_validated_games_mode_date
    ON validated_games (mode, game_date);

CREATE TABLE IF NOT EXISTS player_standings (
    player_id INTEGER NOT NULL REFERENCES players (id),
    mode TEXT NOT NULL,
    version INTEGER NOT NULL DEFAULT 1,
    data TEXT NOT NULL,
    PRIMARY KEY (player_id, mode)
);

CREATE TABLE IF NOT EXISTS config_tables (
    kind TEXT NOT NULL,
    mode TEXT NOT NULL,
    content_hash TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    data TEXT NOT NULL,
    PRIMARY KEY (kind, mode)
);

CREATE TABLE IF NOT EXISTS seasons (
    id INTEGER PRIMARY KEY,
    is_active INTEGER NOT NULL DEFAULT 0,
    deleted INTEGER NOT NULL DEFAULT 0,
    version INTEGER NOT NULL DEFAULT 1,
    data TEXT NOT NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_seasons_single_active
    ON seasons (is_active) WHERE is_active = 1 AND deleted = 0;
"""


class Database:
    """SQLite database wrapper with schema management and explicit transactions.

    The connection runs in autocommit mode; every write goes through
    ``transaction()``, which serializes writers on one asyncio lock and wraps
    the block in BEGIN IMMEDIATE / COMMIT. A task that is already inside a
    transaction joins it instead of opening a nested one.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = str(path)
        self._conn: sqlite3.Connection | None = None
        self._write_lock = asyncio.Lock()
        self._tx_owner: asyncio.Task | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Return the active connection or raise if disconnected."""
        if self._conn is None:
            raise RuntimeError("Database is not connected")
        return self._conn

    @property
    def in_transaction(self) -> bool:
        return self._tx_owner is not None and self._tx_owner is asyncio.current_task()

    def connect(self) -> None:
        """Open the database, apply pragmas, create schema, and harden file permissions."""
        parent = Path(self._path).parent
        parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(self._path, check_same_thread=False, isolation_level=None)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.execute("PRAGMA busy_timeout=5000")
        self._conn.executescript(_SCHEMA_SQL)

        self._harden_permissions()

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    @contextlib.asynccontextmanager
    async def transaction(self) -> AsyncIterator[sqlite3.Connection]:
        """Run the block in a single write transaction; roll back on any exception."""
        if self.in_transaction:
            yield self.connection
            return

        async with self._write_lock:
            conn = self.connection
            # Ownership is only taken once BEGIN succeeded; a busy database leaves no joinable state.
            conn.execute("BEGIN IMMEDIATE")
            self._tx_owner = asyncio.current_task()
            try:
                yield conn
                conn.execute("COMMIT")
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            finally:
                self._tx_owner = None

    def _harden_permissions(self) -> None:
        """Set restrictive file permissions on POSIX systems (best effort).

        Hardens the main DB file and WAL/SHM sibling files created by WAL mode,
        since they also contain database content.
        """
        if os.name != "posix":  # pragma: no cover
            return
        for suffix in ("", "-wal", "-shm"):
            p = Path(self._path + suffix)
            if p.exists():
                try:
                    p.chmod(_DB_FILE_PERMISSIONS)
                except OSError:
                    logger.warning("could not set file permissions", permissions=oct(_DB_FILE_PERMISSIONS), path=str(p))
