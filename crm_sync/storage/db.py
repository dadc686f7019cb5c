"""
SQLite database module for sync run history and synced contacts.

Provides persistent storage for the lifecycle of each sync run and for the
contacts written to the sink, keyed by user and email.
"""

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from crm_sync.sync.contact import Contact

# SQL Schema for run log and synced contact tables
SCHEMA = """
CREATE TABLE IF NOT EXISTS sync_runs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    status TEXT NOT NULL,
    contacts_processed INTEGER NOT NULL DEFAULT 0,
    conflicts_count INTEGER NOT NULL DEFAULT 0,
    error_message TEXT,
    started_at TIMESTAMP NOT NULL,
    completed_at TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_sync_runs_user ON sync_runs(user_id, started_at);

CREATE TABLE IF NOT EXISTS synced_contacts (
    id INTEGER PRIMARY KEY,
    user_id TEXT NOT NULL,
    email TEXT NOT NULL,
    name TEXT NOT NULL DEFAULT '',
    phone TEXT NOT NULL DEFAULT '',
    company TEXT NOT NULL DEFAULT '',
    external_id TEXT,
    last_synced TIMESTAMP,
    UNIQUE(user_id, email)
);

CREATE INDEX IF NOT EXISTS idx_synced_contacts_user ON synced_contacts(user_id);
"""

# Default number of runs returned by history queries
DEFAULT_HISTORY_LIMIT = 10


class RunStatus(str, Enum):
    """Lifecycle status of a sync run."""

    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        """True for SUCCESS and ERROR."""
        return self is not RunStatus.RUNNING


@dataclass(frozen=True)
class SyncRun:
    """
    One row of the run log.

    Attributes:
        id: Run identifier
        user_id: User the run was performed for
        status: RUNNING until the single terminal update
        contacts_processed: Records written (created + updated)
        conflicts_count: Matched contacts with at least one differing field
        error_message: Cause of an ERROR run
        started_at: Creation time
        completed_at: Terminal transition time (None while running)
    """

    id: int
    user_id: str
    status: RunStatus
    contacts_processed: int
    conflicts_count: int
    error_message: Optional[str]
    started_at: datetime
    completed_at: Optional[datetime]

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "SyncRun":
        """Build a SyncRun from a sync_runs row."""
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            status=RunStatus(row["status"]),
            contacts_processed=row["contacts_processed"],
            conflicts_count=row["conflicts_count"],
            error_message=row["error_message"],
            started_at=row["started_at"],
            completed_at=row["completed_at"],
        )

    @property
    def duration(self) -> Optional[float]:
        """Run duration in seconds, or None while running."""
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()


class SyncDatabase:
    """
    SQLite database manager for the run log and synced contacts.

    Provides methods for:
    - Creating a run and recording its single terminal transition
    - Querying recent runs per user
    - Upserting contacts written to the sink

    Usage:
        db = SyncDatabase('/path/to/sync.db')
        db.initialize()

        run_id = db.create_sync_run("alice")
        db.complete_sync_run(run_id, RunStatus.SUCCESS, contacts_processed=10)

        # Or use in-memory for testing:
        db = SyncDatabase(':memory:')
        db.initialize()
    """

    def __init__(self, db_path: str):
        """
        Initialize the database manager.

        Args:
            db_path: Path to SQLite database file, or ':memory:' for in-memory database
        """
        self.db_path = db_path
        self._shared_connection: Optional[sqlite3.Connection] = None

    def _get_connection(self) -> sqlite3.Connection:
        """
        Get a database connection.

        For in-memory databases, returns a shared connection to ensure
        schema persists across operations. For file databases, creates
        a new connection each time.

        Returns:
            sqlite3.Connection: Database connection
        """
        if self.db_path == ":memory:":
            if self._shared_connection is None:
                # Sync runs write from the engine's calling thread only
                self._shared_connection = sqlite3.connect(
                    ":memory:",
                    detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
                    check_same_thread=False,
                )
                self._shared_connection.row_factory = sqlite3.Row
            return self._shared_connection

        conn = sqlite3.connect(
            self.db_path,
            detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
        )
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for database connections.

        Yields:
            sqlite3.Connection: Database connection

        Usage:
            with db.connection() as conn:
                cursor = conn.execute("SELECT * FROM sync_runs")
        """
        conn = self._get_connection()
        is_shared = self.db_path == ":memory:"
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            if not is_shared:
                conn.close()

    def initialize(self) -> None:
        """Create the run log and synced contact tables if they don't exist."""
        with self.connection() as conn:
            conn.executescript(SCHEMA)

    # =========================================================================
    # Run Log Operations
    # =========================================================================

    def create_sync_run(self, user_id: str) -> int:
        """
        Record the start of a sync run.

        Args:
            user_id: User the run is performed for

        Returns:
            Identifier of the new run (status RUNNING, counts zero)
        """
        with self.connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO sync_runs (user_id, status, started_at)
                VALUES (?, ?, ?)
                """,
                (user_id, RunStatus.RUNNING.value, datetime.utcnow()),
            )
            run_id = cursor.lastrowid
            assert run_id is not None
            return run_id

    def complete_sync_run(
        self,
        run_id: int,
        status: RunStatus,
        contacts_processed: int = 0,
        conflicts_count: int = 0,
        error_message: Optional[str] = None,
    ) -> None:
        """
        Record the terminal state of a sync run.

        Must be called exactly once per run; a second call is a caller bug.

        Args:
            run_id: Identifier returned by create_sync_run()
            status: SUCCESS or ERROR
            contacts_processed: Records written during the run
            conflicts_count: Matched contacts with conflicting fields
            error_message: Cause of an ERROR run
        """
        if not status.is_terminal:
            raise ValueError(f"Run {run_id} must complete with a terminal status")

        with self.connection() as conn:
            conn.execute(
                """
                UPDATE sync_runs SET
                    status = ?,
                    contacts_processed = ?,
                    conflicts_count = ?,
                    error_message = ?,
                    completed_at = ?
                WHERE id = ?
                """,
                (
                    status.value,
                    contacts_processed,
                    conflicts_count,
                    error_message,
                    datetime.utcnow(),
                    run_id,
                ),
            )

    def get_sync_run(self, run_id: int) -> Optional[SyncRun]:
        """
        Get a single run.

        Args:
            run_id: Run identifier

        Returns:
            SyncRun, or None if not found
        """
        with self.connection() as conn:
            cursor = conn.execute("SELECT * FROM sync_runs WHERE id = ?", (run_id,))
            row = cursor.fetchone()
            if row:
                return SyncRun.from_row(row)
            return None

    def get_recent_sync_runs(
        self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> list[SyncRun]:
        """
        Get the most recent runs for a user, newest first.

        Args:
            user_id: User identifier
            limit: Maximum number of runs (default 10)

        Returns:
            List of SyncRun objects
        """
        with self.connection() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM sync_runs
                WHERE user_id = ?
                ORDER BY started_at DESC, id DESC
                LIMIT ?
                """,
                (user_id, limit),
            )
            return [SyncRun.from_row(row) for row in cursor.fetchall()]

    def get_last_sync_run(self, user_id: Optional[str] = None) -> Optional[SyncRun]:
        """
        Get the newest run, optionally restricted to one user.

        Args:
            user_id: User identifier, or None for any user

        Returns:
            SyncRun, or None if no run exists
        """
        with self.connection() as conn:
            if user_id is None:
                cursor = conn.execute(
                    "SELECT * FROM sync_runs ORDER BY started_at DESC, id DESC LIMIT 1"
                )
            else:
                cursor = conn.execute(
                    """
                    SELECT * FROM sync_runs WHERE user_id = ?
                    ORDER BY started_at DESC, id DESC LIMIT 1
                    """,
                    (user_id,),
                )
            row = cursor.fetchone()
            if row:
                return SyncRun.from_row(row)
            return None

    def get_run_count(self, user_id: Optional[str] = None) -> int:
        """
        Count recorded runs.

        Args:
            user_id: Restrict to one user, or None for all users

        Returns:
            Number of runs
        """
        with self.connection() as conn:
            if user_id is None:
                cursor = conn.execute("SELECT COUNT(*) FROM sync_runs")
            else:
                cursor = conn.execute(
                    "SELECT COUNT(*) FROM sync_runs WHERE user_id = ?", (user_id,)
                )
            result: int = cursor.fetchone()[0]
            return result

    # =========================================================================
    # Synced Contact Operations
    # =========================================================================

    def upsert_contact(
        self,
        user_id: str,
        contact: Contact,
        external_id: Optional[str] = None,
        last_synced: Optional[datetime] = None,
    ) -> None:
        """
        Insert or overwrite the stored copy of a synced contact.

        Rows are keyed by (user_id, email); an existing row's name, phone,
        company and last_synced are replaced.

        Args:
            user_id: User the contact belongs to
            contact: Contact as written to the sink
            external_id: Sink identifier (kept if None on update)
            last_synced: Sync timestamp (defaults to current time)
        """
        if last_synced is None:
            last_synced = datetime.utcnow()

        with self.connection() as conn:
            conn.execute(
                """
                INSERT INTO synced_contacts (
                    user_id, email, name, phone, company, external_id, last_synced
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, email) DO UPDATE SET
                    name = excluded.name,
                    phone = excluded.phone,
                    company = excluded.company,
                    external_id = COALESCE(excluded.external_id, external_id),
                    last_synced = excluded.last_synced
                """,
                (
                    user_id,
                    contact.email,
                    contact.name,
                    contact.phone,
                    contact.company,
                    external_id,
                    last_synced,
                ),
            )

    def get_contact(self, user_id: str, email: str) -> Optional[dict[str, Any]]:
        """
        Get the stored copy of a synced contact.

        Args:
            user_id: User identifier
            email: Contact email (exact)

        Returns:
            Dictionary with the stored fields, or None if not found
        """
        with self.connection() as conn:
            cursor = conn.execute(
                """
                SELECT user_id, email, name, phone, company, external_id, last_synced
                FROM synced_contacts
                WHERE user_id = ? AND email = ?
                """,
                (user_id, email),
            )
            row = cursor.fetchone()
            if row:
                return dict(row)
            return None

    def get_contact_count(self, user_id: Optional[str] = None) -> int:
        """
        Count stored contacts.

        Args:
            user_id: Restrict to one user, or None for all users

        Returns:
            Number of stored contacts
        """
        with self.connection() as conn:
            if user_id is None:
                cursor = conn.execute("SELECT COUNT(*) FROM synced_contacts")
            else:
                cursor = conn.execute(
                    "SELECT COUNT(*) FROM synced_contacts WHERE user_id = ?",
                    (user_id,),
                )
            result: int = cursor.fetchone()[0]
            return result
