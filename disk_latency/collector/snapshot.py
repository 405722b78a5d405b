# disk_latency/collector/snapshot.py - Counter snapshot data model
"""
Structured representations of per-file I/O counter snapshots and the
deltas derived from consecutive snapshots.
"""

from dataclasses import dataclass, asdict, replace
from datetime import datetime
from enum import Enum
from typing import Dict, NamedTuple, Optional, Tuple


COUNTER_FIELDS = (
    'reads',
    'writes',
    'read_stall_ms',
    'write_stall_ms',
    'total_stall_ms',
    'bytes_read',
    'bytes_written',
)


class FileRole(str, Enum):
    """Role a database file plays for its database."""
    DATA = 'data'
    LOG = 'log'
    OTHER = 'other'

    @property
    def label(self) -> str:
        """Human-readable label"""
        return _ROLE_LABELS[self]

    @classmethod
    def from_type_desc(cls, type_desc: Optional[str]) -> 'FileRole':
        """
        Map an engine file type descriptor to a role.

        Args:
            type_desc: Descriptor such as 'ROWS', 'LOG' or 'FILESTREAM'

        Returns:
            Matching FileRole (OTHER for anything unrecognised)
        """
        value = (type_desc or '').strip().upper()

        if value in ('ROWS', 'DATA'):
            return cls.DATA
        if value == 'LOG':
            return cls.LOG
        return cls.OTHER


_ROLE_LABELS = {
    FileRole.DATA: 'Data File',
    FileRole.LOG: 'Transaction Log',
    FileRole.OTHER: 'Other',
}


class DimensionKey(NamedTuple):
    """Reporting column group: (database name, file role)"""
    database_name: str
    file_role: FileRole


@dataclass(frozen=True)
class SnapshotRecord:
    """
    Cumulative I/O counters of one database file at one capture time.

    Identity is (captured_at, database_id, file_id).
    """
    captured_at: datetime
    database_id: int
    database_name: str
    file_id: int
    file_role: FileRole
    reads: int = 0
    writes: int = 0
    read_stall_ms: int = 0
    write_stall_ms: int = 0
    total_stall_ms: int = 0
    bytes_read: int = 0
    bytes_written: int = 0
    drive: str = ''
    physical_path: str = ''
    file_handle: str = ''
    logical_name: str = ''
    file_type: str = ''

    @property
    def file_key(self) -> Tuple[int, int]:
        """(database_id, file_id)"""
        return (self.database_id, self.file_id)

    @property
    def dimension(self) -> DimensionKey:
        """Dimension key this file reports under"""
        return DimensionKey(self.database_name, self.file_role)

    def counters(self) -> Dict[str, int]:
        """Cumulative counters as a dictionary"""
        return {name: getattr(self, name) for name in COUNTER_FIELDS}

    def stamped(self, captured_at: datetime) -> 'SnapshotRecord':
        """Copy of this record with a new capture time"""
        return replace(self, captured_at=captured_at)

    def to_dict(self) -> Dict:
        """Convert to a JSON-friendly dictionary"""
        data = asdict(self)
        data['captured_at'] = self.captured_at.isoformat() if self.captured_at else None
        data['file_role'] = self.file_role.value
        return data


@dataclass(frozen=True)
class DeltaRecord:
    """
    Counter activity of one file between two adjacent snapshots.
    """
    interval_start: datetime
    interval_end: datetime
    database_id: int
    database_name: str
    file_id: int
    file_role: FileRole
    reads: int
    writes: int
    read_stall_ms: int
    write_stall_ms: int
    total_stall_ms: int
    bytes_read: int
    bytes_written: int
    drive: str = ''

    @property
    def dimension(self) -> DimensionKey:
        """Dimension key this delta aggregates under"""
        return DimensionKey(self.database_name, self.file_role)

    @classmethod
    def between(cls, earlier: SnapshotRecord, later: SnapshotRecord) -> 'DeltaRecord':
        """
        Build the delta from two snapshots of the same file.

        Descriptive attributes come from the later snapshot. No sign
        checks are made here; see DeltaCalculator.
        """
        return cls(
            interval_start=earlier.captured_at,
            interval_end=later.captured_at,
            database_id=later.database_id,
            database_name=later.database_name,
            file_id=later.file_id,
            file_role=later.file_role,
            drive=later.drive,
            **{name: getattr(later, name) - getattr(earlier, name) for name in COUNTER_FIELDS}
        )

    def is_valid(self) -> bool:
        """True when no counter went backwards"""
        return all(getattr(self, name) >= 0 for name in COUNTER_FIELDS)


@dataclass(frozen=True)
class CaptureReceipt:
    """Result of appending one capture to the snapshot store"""
    captured_at: datetime
    records_inserted: int
    latest_snapshot: Optional[datetime]

    def to_dict(self) -> Dict:
        return {
            'captured_at': self.captured_at.isoformat(),
            'records_inserted': self.records_inserted,
            'latest_snapshot': self.latest_snapshot.isoformat() if self.latest_snapshot else None,
        }
