"""Database schema and connection management for SQLite."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from replicator.config import DATABASE_PATH


def init_database(db_path: str = DATABASE_PATH) -> None:
    """
    Initialize database and create tables if they don't exist.
    """
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS documents (
                path TEXT PRIMARY KEY,
                fields TEXT NOT NULL,
                written_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_documents_written_at ON documents(written_at)
        """)

        conn.commit()


@contextmanager
def get_db_connection(
    db_path: str = DATABASE_PATH,
    autocommit: bool = False
) -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.

    With autocommit=True the connection does not open implicit transactions,
    so callers manage BEGIN/COMMIT themselves.
    """
    if autocommit:
        conn = sqlite3.connect(db_path, isolation_level=None)
    else:
        conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()
