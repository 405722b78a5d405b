# disk_latency/collector/delta.py - Snapshot delta calculation
"""
Turns cumulative counter snapshots into per-interval deltas.

Each snapshot inside the reporting window is paired with the nearest
earlier snapshot of the same file, even when that predecessor lies before
the window start.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple
import logging

from disk_latency.collector.snapshot import DeltaRecord, SnapshotRecord
from disk_latency.utils.helpers import to_local_naive


class DeltaCalculator:
    """
    Computes non-negative counter deltas between consecutive snapshots.

    A pair in which any counter decreased (engine restart, file detached
    and reattached) is dropped as a whole and counted in reset_count.
    """

    def __init__(self):
        self.reset_count = 0
        self.unpaired_count = 0
        self.logger = logging.getLogger(__name__)

    def compute(self, records: Iterable[SnapshotRecord],
                start: Optional[datetime] = None,
                end: Optional[datetime] = None) -> List[DeltaRecord]:
        """
        Compute deltas for all snapshots ending inside [start, end].

        Args:
            records: Snapshots in any order, including predecessors that
                fall before the window
            start: Window start (inclusive), None for unbounded
            end: Window end (inclusive), None for unbounded

        Returns:
            DeltaRecords ordered by (interval_end, database_id, file_id)
        """
        self.reset_count = 0
        self.unpaired_count = 0
        start, end = to_local_naive(start), to_local_naive(end)

        ordered = sorted(records, key=lambda r: (r.database_id, r.file_id, r.captured_at))
        previous: Dict[Tuple[int, int], SnapshotRecord] = {}
        deltas = []

        for record in ordered:
            earlier = previous.get(record.file_key)
            previous[record.file_key] = record

            if not self._in_window(record.captured_at, start, end):
                continue

            if earlier is None:
                self.unpaired_count += 1
                continue

            delta = DeltaRecord.between(earlier, record)
            if not delta.is_valid():
                self.reset_count += 1
                self.logger.debug(
                    f"Counter reset for database {record.database_id} file {record.file_id} "
                    f"between {earlier.captured_at} and {record.captured_at}"
                )
                continue

            deltas.append(delta)

        deltas.sort(key=lambda d: (d.interval_end, d.database_id, d.file_id))

        if self.reset_count:
            self.logger.info(f"Dropped {self.reset_count} snapshot pairs with counter resets")

        return deltas

    @staticmethod
    def _in_window(captured_at: datetime, start: Optional[datetime], end: Optional[datetime]) -> bool:
        if start is not None and captured_at < start:
            return False
        if end is not None and captured_at > end:
            return False
        return True
