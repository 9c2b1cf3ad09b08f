"""SQLite connection management."""

import sqlite3
from pathlib import Path

from alchemist.lexicon.store import LexiconStore


def get_connection(db_path: Path | str, shared: bool = False) -> sqlite3.Connection:
    """
    Get a SQLite connection with row factory and WAL mode.

    WAL (Write-Ahead Logging) mode lets readers proceed while a lexicon
    commit is being written.

    Args:
        db_path: Database file, or ":memory:"
        shared: Allow use from threads other than the creating one. Callers
            must serialize access themselves (LexiconCache holds its lock
            around every store write).
    """
    conn = sqlite3.connect(db_path, check_same_thread=not shared)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Initialize database schema."""
    LexiconStore(conn).init_schema()
