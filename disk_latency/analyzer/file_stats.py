# disk_latency/analyzer/file_stats.py - Per-file I/O analysis
"""
Per-file view of the live counters: volume, read/write mix, average I/O
size, latency and IOPS since the engine started, with an optional
latency classification against caller-supplied thresholds.
"""

from typing import Dict, List, Optional
import logging

from disk_latency.collector.snapshot import FileRole
from disk_latency.collector.source import CounterReading
from disk_latency.utils.helpers import round_half_up, safe_ratio


BYTES_PER_GB = 1024 ** 3
PEAK_IOPS_FACTOR = 3.0

STATUS_OK = 'OK'
STATUS_HIGH_READ = 'High Read Latency'
STATUS_HIGH_WRITE = 'High Write Latency'
STATUS_HIGH_LOG_WRITE = 'High Log Write Latency'


def _average(numerator: int, denominator: int, places: int = 2) -> Optional[float]:
    if not denominator:
        return None
    return round_half_up(numerator / denominator, places)


class FileStatsAnalyzer:
    """
    Analyzes cumulative per-file counters.

    Classification is informational only; nothing here alerts.
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize the analyzer.

        Args:
            config: Optional thresholds (data_read_latency_ms,
                data_write_latency_ms, log_write_latency_ms)
        """
        self.config = config or {}
        self.logger = logging.getLogger(__name__)

        self.data_read_latency_ms = self.config.get('data_read_latency_ms', 20)
        self.data_write_latency_ms = self.config.get('data_write_latency_ms', 10)
        self.log_write_latency_ms = self.config.get('log_write_latency_ms', 5)

    def analyze(self, reading: CounterReading) -> List[Dict]:
        """
        Build one statistics row per file that has seen any I/O.

        Args:
            reading: Live counter reading

        Returns:
            Rows ordered by database name, then file id
        """
        uptime = reading.uptime_seconds
        rows = []

        for record in sorted(reading.records, key=lambda r: (r.database_name, r.file_id)):
            operations = record.reads + record.writes
            if operations == 0:
                continue

            avg_read = _average(record.read_stall_ms, record.reads)
            avg_write = _average(record.write_stall_ms, record.writes)

            iops = _average(operations, uptime) if uptime and uptime > 0 else None

            rows.append({
                'database_name': record.database_name,
                'logical_name': record.logical_name,
                'physical_path': record.physical_path,
                'file_type': record.file_type or record.file_role.value.upper(),
                'file_role': record.file_role.value,
                'read_gb': safe_ratio(record.bytes_read, BYTES_PER_GB),
                'write_gb': safe_ratio(record.bytes_written, BYTES_PER_GB),
                'read_percent': safe_ratio(record.reads * 100, operations),
                'write_percent': safe_ratio(record.writes * 100, operations),
                'read_count': record.reads,
                'write_count': record.writes,
                'avg_read_size_kb': _average(record.bytes_read, record.reads * 1024) or 0.0,
                'avg_write_size_kb': _average(record.bytes_written, record.writes * 1024) or 0.0,
                'avg_read_latency_ms': avg_read,
                'avg_write_latency_ms': avg_write,
                'avg_io_latency_ms': _average(record.total_stall_ms, operations),
                'total_read_stall_ms': record.read_stall_ms,
                'total_write_stall_ms': record.write_stall_ms,
                'total_io_stall_ms': record.total_stall_ms,
                'avg_iops': iops,
                'estimated_peak_iops': round_half_up(iops * PEAK_IOPS_FACTOR, 2) if iops is not None else None,
                'performance_status': self.classify(record.file_role, avg_read, avg_write),
            })

        self.logger.debug(f"Analyzed {len(rows)} active files")
        return rows

    def classify(self, role: FileRole, avg_read_ms: Optional[float], avg_write_ms: Optional[float]) -> str:
        """
        Classify a file's latency against the configured thresholds.

        Args:
            role: File role
            avg_read_ms: Average read latency, None without reads
            avg_write_ms: Average write latency, None without writes

        Returns:
            Status string
        """
        if role is FileRole.DATA:
            if avg_read_ms is not None and avg_read_ms > self.data_read_latency_ms:
                return STATUS_HIGH_READ
            if avg_write_ms is not None and avg_write_ms > self.data_write_latency_ms:
                return STATUS_HIGH_WRITE
        elif role is FileRole.LOG:
            if avg_write_ms is not None and avg_write_ms > self.log_write_latency_ms:
                return STATUS_HIGH_LOG_WRITE

        return STATUS_OK
