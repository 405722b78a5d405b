# disk_latency/collector/store.py - Append-only snapshot store
"""
SQLite-backed append-only store for counter snapshots.

The schema is fixed and created once; every statement is parameterized.
"""

from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
import logging
import sqlite3

from disk_latency.collector.snapshot import FileRole, SnapshotRecord
from disk_latency.errors import StoreUnavailableError
from disk_latency.utils.helpers import format_timestamp, parse_timestamp


SCHEMA = """
CREATE TABLE IF NOT EXISTS snapshots (
    captured_at     TEXT    NOT NULL,
    database_id     INTEGER NOT NULL,
    database_name   TEXT    NOT NULL,
    file_id         INTEGER NOT NULL,
    drive           TEXT    NOT NULL DEFAULT '',
    file_role       TEXT    NOT NULL,
    file_type       TEXT    NOT NULL DEFAULT '',
    logical_name    TEXT    NOT NULL DEFAULT '',
    physical_path   TEXT    NOT NULL DEFAULT '',
    reads           INTEGER NOT NULL,
    writes          INTEGER NOT NULL,
    read_stall_ms   INTEGER NOT NULL,
    write_stall_ms  INTEGER NOT NULL,
    total_stall_ms  INTEGER NOT NULL,
    bytes_read      INTEGER NOT NULL,
    bytes_written   INTEGER NOT NULL,
    file_handle     TEXT    NOT NULL DEFAULT '',
    PRIMARY KEY (captured_at, database_id, file_id)
);
CREATE INDEX IF NOT EXISTS ix_snapshots_file_time
    ON snapshots (database_id, file_id, captured_at);
CREATE INDEX IF NOT EXISTS ix_snapshots_database_role_time
    ON snapshots (database_name, file_role, captured_at);
"""

COLUMNS = (
    'captured_at', 'database_id', 'database_name', 'file_id', 'drive',
    'file_role', 'file_type', 'logical_name', 'physical_path',
    'reads', 'writes', 'read_stall_ms', 'write_stall_ms', 'total_stall_ms',
    'bytes_read', 'bytes_written', 'file_handle',
)

_SELECT = "SELECT " + ", ".join(COLUMNS) + " FROM snapshots"

INSERT_SQL = (
    "INSERT INTO snapshots (" + ", ".join(COLUMNS) + ") "
    "VALUES (" + ", ".join("?" for _ in COLUMNS) + ")"
)

WINDOW_SQL = _SELECT + " WHERE captured_at BETWEEN ? AND ?"

# Latest snapshot of every file strictly before the window start
LEAD_IN_SQL = (
    "SELECT " + ", ".join("s." + column for column in COLUMNS) + " FROM snapshots AS s "
    "JOIN (SELECT database_id, file_id, MAX(captured_at) AS captured_at "
    "FROM snapshots WHERE captured_at < ? GROUP BY database_id, file_id) AS p "
    "ON s.database_id = p.database_id AND s.file_id = p.file_id "
    "AND s.captured_at = p.captured_at"
)

LATEST_SQL = "SELECT MAX(captured_at) FROM snapshots"

SCHEMA_CHECK_SQL = "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'snapshots'"


class SnapshotStore:
    """
    Append-only snapshot table in a SQLite database.

    Reports only read from the store; captures only append to it.
    """

    def __init__(self, path: str = ':memory:', read_only: bool = False):
        """
        Open the store.

        A writable store is created (file and schema) when missing. A
        read-only store must already exist and hold the snapshot table.

        Args:
            path: SQLite database path, ':memory:' for a transient store
            read_only: Open an existing store without creating anything

        Raises:
            StoreUnavailableError: If the store cannot be opened
        """
        self.path = path
        self.read_only = read_only
        self.logger = logging.getLogger(__name__)

        try:
            if read_only:
                self.conn = sqlite3.connect(f"{Path(path).resolve().as_uri()}?mode=ro", uri=True)
                found = self.conn.execute(SCHEMA_CHECK_SQL).fetchone()
            else:
                self.conn = sqlite3.connect(path)
                self.conn.executescript(SCHEMA)
                found = True
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Cannot open snapshot store {path}: {e}") from e

        if not found:
            self.conn.close()
            raise StoreUnavailableError(f"{path} is not a snapshot store (no snapshots table)")

        self.logger.debug(f"Opened snapshot store {path}{' read-only' if read_only else ''}")

    def close(self):
        """Close the underlying connection"""
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def append(self, records: Iterable[SnapshotRecord]) -> int:
        """
        Append snapshot records in a single transaction.

        Args:
            records: Records to store

        Returns:
            Number of rows inserted
        """
        rows = [self._to_row(record) for record in records]

        try:
            with self.conn:
                self.conn.executemany(INSERT_SQL, rows)
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Failed to append snapshots: {e}") from e

        self.logger.debug(f"Appended {len(rows)} snapshot rows")
        return len(rows)

    def fetch_window(self, start: datetime, end: datetime) -> Tuple[List[SnapshotRecord], List[SnapshotRecord]]:
        """
        Fetch snapshots for a reporting window.

        Args:
            start: Window start (inclusive)
            end: Window end (inclusive)

        Returns:
            Tuple of (in-window records, lead-in records), where lead-in
            holds each file's latest snapshot before the window start
        """
        try:
            window_rows = self.conn.execute(
                WINDOW_SQL, (format_timestamp(start), format_timestamp(end))
            ).fetchall()
            lead_in_rows = self.conn.execute(
                LEAD_IN_SQL, (format_timestamp(start),)
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Failed to read snapshots: {e}") from e

        window = [self._from_row(row) for row in window_rows]
        lead_in = [self._from_row(row) for row in lead_in_rows]

        self.logger.debug(
            f"Fetched {len(window)} in-window and {len(lead_in)} lead-in snapshots "
            f"for {start} .. {end}"
        )
        return window, lead_in

    def latest_snapshot_time(self) -> Optional[datetime]:
        """
        Get the most recent capture time in the store.

        Returns:
            Latest captured_at or None for an empty store
        """
        try:
            (latest,) = self.conn.execute(LATEST_SQL).fetchone()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Failed to read snapshots: {e}") from e

        return parse_timestamp(latest)

    @staticmethod
    def _to_row(record: SnapshotRecord) -> tuple:
        values = []
        for column in COLUMNS:
            value = getattr(record, column)
            if column == 'captured_at':
                value = format_timestamp(value)
            elif column == 'file_role':
                value = value.value
            values.append(value)
        return tuple(values)

    @staticmethod
    def _from_row(row: tuple) -> SnapshotRecord:
        data = dict(zip(COLUMNS, row))
        data['captured_at'] = parse_timestamp(data['captured_at'])
        data['file_role'] = FileRole(data['file_role'])
        return SnapshotRecord(**data)
