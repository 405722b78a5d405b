# disk_latency/collector/aggregator.py - Latency aggregation and metrics
"""
Aggregates counter deltas (or raw cumulative counters) per database and
file role and derives latency, volume and page metrics.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple
from collections import defaultdict
import logging

from disk_latency.collector.snapshot import COUNTER_FIELDS, DimensionKey, FileRole
from disk_latency.errors import ConfigurationError
from disk_latency.utils.helpers import safe_ratio


# Engine page size; configurable through report.page_size_bytes
DEFAULT_PAGE_SIZE_BYTES = 8192

INTERVAL = 'interval'
CUMULATIVE = 'cumulative'


@dataclass
class AggregatedMetric:
    """
    Latency and volume metrics for one (timestamp, database, role) cell.

    counter_basis is 'interval' when the figures come from snapshot deltas
    and 'cumulative' when they are counted since engine start.
    """
    timestamp: Optional[datetime]
    database_name: str
    file_role: FileRole
    avg_read_latency_ms: int = 0
    avg_write_latency_ms: int = 0
    avg_total_latency_ms: int = 0
    total_reads: int = 0
    total_writes: int = 0
    total_read_kb: int = 0
    total_write_kb: int = 0
    total_read_pages: int = 0
    total_write_pages: int = 0
    file_count: int = 0
    counter_basis: str = INTERVAL

    @property
    def dimension(self) -> DimensionKey:
        return DimensionKey(self.database_name, self.file_role)

    @classmethod
    def empty(cls, timestamp: Optional[datetime], key: DimensionKey,
              counter_basis: str = INTERVAL) -> 'AggregatedMetric':
        """Zero-filled metric for a cell without activity"""
        return cls(timestamp=timestamp, database_name=key.database_name,
                   file_role=key.file_role, counter_basis=counter_basis)

    def to_dict(self) -> Dict:
        """Convert to a JSON-friendly dictionary"""
        data = asdict(self)
        data['timestamp'] = self.timestamp.isoformat() if self.timestamp else None
        data['file_role'] = self.file_role.value
        return data


class LatencyAggregator:
    """
    Groups counter rows and computes per-group metrics.

    Averages divide summed stall time by summed operation counts, so busy
    files weigh more than idle ones; an empty group averages to 0.
    """

    def __init__(self, page_size_bytes: int = DEFAULT_PAGE_SIZE_BYTES):
        """
        Initialize the aggregator.

        Args:
            page_size_bytes: Bytes per engine page used for page counts
        """
        if isinstance(page_size_bytes, bool) or not isinstance(page_size_bytes, int) or page_size_bytes <= 0:
            raise ConfigurationError(f"page_size_bytes must be a positive integer, got {page_size_bytes!r}")

        self.page_size_bytes = page_size_bytes
        self.logger = logging.getLogger(__name__)

    def aggregate_deltas(self, deltas: Iterable) -> Dict[Tuple[datetime, DimensionKey], AggregatedMetric]:
        """
        Aggregate interval deltas by (interval end, dimension).

        Args:
            deltas: DeltaRecord objects

        Returns:
            Dictionary mapping (timestamp, DimensionKey) to metrics
        """
        groups: Dict[Tuple[datetime, DimensionKey], List] = defaultdict(list)

        for delta in deltas:
            groups[(delta.interval_end, delta.dimension)].append(delta)

        return {
            (timestamp, key): self._build_metric(timestamp, key, rows, INTERVAL)
            for (timestamp, key), rows in groups.items()
        }

    def aggregate_current(self, records: Iterable, now: datetime) -> Dict[DimensionKey, AggregatedMetric]:
        """
        Aggregate cumulative counters by dimension at a single instant.

        Args:
            records: SnapshotRecord objects holding since-startup counters
            now: Timestamp reported for every group

        Returns:
            Dictionary mapping DimensionKey to metrics
        """
        groups: Dict[DimensionKey, List] = defaultdict(list)

        for record in records:
            groups[record.dimension].append(record)

        return {
            key: self._build_metric(now, key, rows, CUMULATIVE)
            for key, rows in groups.items()
        }

    def _build_metric(self, timestamp: Optional[datetime], key: DimensionKey,
                      rows: List, counter_basis: str) -> AggregatedMetric:
        totals = self._sum_counters(rows)
        reads = totals['reads']
        writes = totals['writes']

        return AggregatedMetric(
            timestamp=timestamp,
            database_name=key.database_name,
            file_role=key.file_role,
            avg_read_latency_ms=safe_ratio(totals['read_stall_ms'], reads),
            avg_write_latency_ms=safe_ratio(totals['write_stall_ms'], writes),
            avg_total_latency_ms=safe_ratio(totals['total_stall_ms'], reads + writes),
            total_reads=reads,
            total_writes=writes,
            total_read_kb=safe_ratio(totals['bytes_read'], 1024),
            total_write_kb=safe_ratio(totals['bytes_written'], 1024),
            total_read_pages=safe_ratio(totals['bytes_read'], self.page_size_bytes),
            total_write_pages=safe_ratio(totals['bytes_written'], self.page_size_bytes),
            file_count=len(rows),
            counter_basis=counter_basis,
        )

    @staticmethod
    def _sum_counters(rows: List) -> Dict[str, int]:
        totals = dict.fromkeys(COUNTER_FIELDS, 0)
        for row in rows:
            for name in COUNTER_FIELDS:
                totals[name] += getattr(row, name)
        return totals
