# disk_latency/collector/source.py - Current-state counter sources
"""
Counter sources supply a single read of the engine's cumulative per-file
I/O counters (counted since the engine started).

Records may use the package's own field names or the engine's virtual
file stats names (num_of_reads, io_stall_read_ms, io_stall, ...).
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional
import logging
import yaml

from disk_latency.collector.snapshot import FileRole, SnapshotRecord
from disk_latency.errors import SourceUnavailableError
from disk_latency.utils.helpers import parse_timestamp, to_local_naive


FIELD_ALIASES = {
    'num_of_reads': 'reads',
    'num_of_writes': 'writes',
    'io_stall_read_ms': 'read_stall_ms',
    'io_stall_write_ms': 'write_stall_ms',
    'io_stall': 'total_stall_ms',
    'io_stall_total_ms': 'total_stall_ms',
    'num_of_bytes_read': 'bytes_read',
    'num_of_bytes_written': 'bytes_written',
    'physical_name': 'physical_path',
    'type_desc': 'file_type',
    'name': 'logical_name',
}

REQUIRED_FIELDS = ('database_id', 'database_name', 'file_id')


@dataclass
class CounterReading:
    """
    One read of the live counters.
    """
    records: List[SnapshotRecord]
    read_at: datetime
    engine_started_at: Optional[datetime] = None

    def __post_init__(self):
        self.read_at = to_local_naive(self.read_at)
        self.engine_started_at = to_local_naive(self.engine_started_at)

    @property
    def uptime_seconds(self) -> Optional[float]:
        """Seconds between engine start and this read"""
        if self.engine_started_at is None:
            return None
        return (self.read_at - self.engine_started_at).total_seconds()


def record_from_mapping(data: Dict, captured_at: Optional[datetime] = None) -> SnapshotRecord:
    """
    Build a SnapshotRecord from a counter mapping.

    Args:
        data: Counter mapping (package or engine field names)
        captured_at: Capture time to stamp when the mapping has none

    Returns:
        SnapshotRecord

    Raises:
        SourceUnavailableError: If identity fields are missing or malformed
    """
    if not isinstance(data, dict):
        raise SourceUnavailableError(f"Counter record must be a mapping, got {data!r}")

    values = {FIELD_ALIASES.get(key, key): value for key, value in data.items()}

    missing = [name for name in REQUIRED_FIELDS if values.get(name) is None]
    if missing:
        raise SourceUnavailableError(f"Counter record missing {', '.join(missing)}: {data!r}")

    file_type = values.get('file_type') or values.get('file_role') or ''
    if isinstance(file_type, FileRole):
        file_type = file_type.value
    file_type = str(file_type)
    physical_path = str(values.get('physical_path') or '')

    try:
        return SnapshotRecord(
            captured_at=parse_timestamp(values.get('captured_at')) or captured_at,
            database_id=int(values['database_id']),
            database_name=str(values['database_name']),
            file_id=int(values['file_id']),
            file_role=FileRole.from_type_desc(file_type),
            file_type=file_type.upper(),
            reads=int(values.get('reads', 0)),
            writes=int(values.get('writes', 0)),
            read_stall_ms=int(values.get('read_stall_ms', 0)),
            write_stall_ms=int(values.get('write_stall_ms', 0)),
            total_stall_ms=int(values.get('total_stall_ms', 0)),
            bytes_read=int(values.get('bytes_read', 0)),
            bytes_written=int(values.get('bytes_written', 0)),
            drive=str(values.get('drive') or physical_path[:2]),
            physical_path=physical_path,
            file_handle=str(values.get('file_handle') or ''),
            logical_name=str(values.get('logical_name') or ''),
        )
    except (TypeError, ValueError) as e:
        raise SourceUnavailableError(f"Malformed counter record {data!r}: {e}") from e


def exclude_databases(records: Iterable[SnapshotRecord], excluded_ids: Iterable[int]) -> List[SnapshotRecord]:
    """Drop records belonging to excluded database ids"""
    excluded = set(excluded_ids or ())
    return [record for record in records if record.database_id not in excluded]


class CounterSource:
    """
    Base class for live counter sources.
    """

    def read(self) -> CounterReading:
        """
        Read the current cumulative counters.

        Returns:
            CounterReading with one record per tracked file
        """
        raise NotImplementedError


class StaticCounterSource(CounterSource):
    """
    Counter source over records already held in memory.
    """

    def __init__(self, records: Iterable, engine_started_at: Optional[datetime] = None,
                 clock=datetime.now):
        """
        Args:
            records: SnapshotRecord objects or counter mappings
            engine_started_at: When the engine started, if known
            clock: Callable returning the read time
        """
        self.records = list(records)
        self.engine_started_at = engine_started_at
        self.clock = clock

    def read(self) -> CounterReading:
        read_at = to_local_naive(self.clock())
        records = [
            record.stamped(read_at) if isinstance(record, SnapshotRecord)
            else record_from_mapping(record, read_at).stamped(read_at)
            for record in self.records
        ]
        return CounterReading(records=records, read_at=read_at,
                              engine_started_at=self.engine_started_at)


class FileCounterSource(CounterSource):
    """
    Counter source reading a YAML or JSON document.

    Expected layout:

        engine_started_at: 2026-10-01 06:00:00   # optional
        files:
          - database_id: 5
            database_name: Sales
            file_id: 1
            type_desc: ROWS
            physical_name: D:\\data\\sales.mdf
            num_of_reads: 1200
            ...
    """

    def __init__(self, path: str, clock=datetime.now):
        """
        Args:
            path: Path to the counter document
            clock: Callable returning the read time
        """
        self.path = Path(path)
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    def read(self) -> CounterReading:
        try:
            with open(self.path, 'r') as f:
                document = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise SourceUnavailableError(f"Cannot read counter source {self.path}: {e}") from e

        if isinstance(document, list):
            document = {'files': document}
        if not isinstance(document, dict) or not isinstance(document.get('files'), list):
            raise SourceUnavailableError(f"Counter source {self.path} has no 'files' list")

        read_at = to_local_naive(self.clock())
        records = [record_from_mapping(item, read_at).stamped(read_at) for item in document['files']]

        try:
            engine_started_at = parse_timestamp(document.get('engine_started_at'))
        except (TypeError, ValueError) as e:
            raise SourceUnavailableError(f"Invalid engine_started_at in {self.path}: {e}") from e

        self.logger.debug(f"Read {len(records)} counter records from {self.path}")
        return CounterReading(records=records, read_at=read_at, engine_started_at=engine_started_at)
