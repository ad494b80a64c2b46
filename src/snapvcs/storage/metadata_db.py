"""SQLite metadata index for SnapVCS.

This module indexes every commit written to the object store in a SQLite
database. The database serves as a rebuildable index - the true source of
truth is the objects/ directory. It backs global-log, find and
abbreviated commit ids.
"""

import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

from snapvcs.constants import DB_SCHEMA_VERSION, METADATA_DB
from snapvcs.errors import SnapVCSError


class DatabaseError(SnapVCSError):
    """Base exception for database errors."""

    pass


class MetadataDB:
    """SQLite database manager for SnapVCS commit metadata.

    Schema Tables:
        - commits: Commit records with digest, parents, timestamp, message
        - metadata: Schema version

    Attributes:
        db_path: Path to the SQLite database file
        conn: Active database connection (if open)

    Example:
        >>> with MetadataDB(Path(".snapvcs")) as db:
        ...     db.init_schema()
        ...     db.insert_commit("abc123...", None, None, "1970-01-01T00:00:00+00:00", "initial commit")
    """

    def __init__(self, store_dir: Path) -> None:
        """Initialize database manager.

        Args:
            store_dir: Path to .snapvcs directory
        """
        self.store_dir = Path(store_dir)
        self.db_path = self.store_dir / METADATA_DB
        self.conn: Optional[sqlite3.Connection] = None

    def open(self) -> None:
        """Open database connection.

        Raises:
            DatabaseError: If connection fails
        """
        if self.conn is not None:
            return  # Already open

        try:
            self.conn = sqlite3.connect(str(self.db_path), timeout=30.0)
            self.conn.row_factory = sqlite3.Row  # Access columns by name
            self.conn.execute("PRAGMA journal_mode=DELETE")
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to open database: {e}") from e

    def close(self) -> None:
        """Close database connection."""
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def __enter__(self) -> "MetadataDB":
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()

    def init_schema(self) -> None:
        """Initialize database schema.

        Safe to call on an existing database (uses IF NOT EXISTS).

        Raises:
            DatabaseError: If schema creation fails
        """
        if self.conn is None:
            raise DatabaseError("Database not open")

        try:
            cursor = self.conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS metadata (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS commits (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    commit_hash TEXT UNIQUE NOT NULL,
                    parent_hash TEXT,
                    merge_parent_hash TEXT,
                    timestamp TEXT NOT NULL,
                    message TEXT NOT NULL
                )
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_commits_hash
                ON commits(commit_hash)
            """)

            cursor.execute(
                "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
                ("schema_version", str(DB_SCHEMA_VERSION)),
            )

            self.conn.commit()

        except sqlite3.Error as e:
            self.conn.rollback()
            raise DatabaseError(f"Failed to initialize schema: {e}") from e

    def insert_commit(
        self,
        commit_hash: str,
        parent_hash: Optional[str],
        merge_parent_hash: Optional[str],
        timestamp: str,
        message: str,
    ) -> bool:
        """Index a commit.

        Commits are content-addressed, so indexing the same digest twice is
        a no-op.

        Returns:
            True if a new row was inserted

        Raises:
            DatabaseError: If insert fails
        """
        if self.conn is None:
            raise DatabaseError("Database not open")

        try:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                INSERT OR IGNORE INTO commits
                    (commit_hash, parent_hash, merge_parent_hash, timestamp, message)
                VALUES (?, ?, ?, ?, ?)
                """,
                (commit_hash, parent_hash, merge_parent_hash, timestamp, message),
            )
            self.conn.commit()
            return cursor.rowcount > 0

        except sqlite3.Error as e:
            self.conn.rollback()
            raise DatabaseError(f"Failed to insert commit: {e}") from e

    def find_commit_hashes(self, prefix: str) -> List[str]:
        """Return every indexed digest starting with ``prefix``."""
        if self.conn is None:
            raise DatabaseError("Database not open")

        try:
            cursor = self.conn.cursor()
            cursor.execute(
                "SELECT commit_hash FROM commits "
                "WHERE substr(commit_hash, 1, length(?)) = ? ORDER BY commit_hash",
                (prefix, prefix),
            )
            return [row[0] for row in cursor.fetchall()]

        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to query commit: {e}") from e

    def get_all_commits(self) -> List[Dict[str, Any]]:
        """Get every indexed commit in insertion order."""
        if self.conn is None:
            raise DatabaseError("Database not open")

        try:
            cursor = self.conn.cursor()
            cursor.execute("SELECT * FROM commits ORDER BY id")
            return [dict(row) for row in cursor.fetchall()]

        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to get commits: {e}") from e

    def find_by_message(self, text: str) -> List[str]:
        """Return digests of commits whose message contains ``text``."""
        if self.conn is None:
            raise DatabaseError("Database not open")

        try:
            cursor = self.conn.cursor()
            cursor.execute(
                "SELECT commit_hash FROM commits WHERE instr(message, ?) > 0 ORDER BY id",
                (text,),
            )
            return [row[0] for row in cursor.fetchall()]

        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to search commits: {e}") from e

    def get_schema_version(self) -> int:
        """Get the database schema version."""
        if self.conn is None:
            raise DatabaseError("Database not open")

        try:
            cursor = self.conn.cursor()
            cursor.execute("SELECT value FROM metadata WHERE key = 'schema_version'")
            row = cursor.fetchone()
            if row is None:
                return 0
            return int(row[0])

        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to get schema version: {e}") from e
