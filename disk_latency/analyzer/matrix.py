# disk_latency/analyzer/matrix.py - Time-series matrix construction
"""
Builds the dense (timestamp x dimension) grid a report is laid out on.

A cell that exists in the grid but has no delta means "sampled, no
activity" and is reported with zeros; a timestamp that was never sampled
does not appear at all.
"""

from datetime import datetime
from itertools import product
from typing import Iterable, List, Tuple

from disk_latency.collector.snapshot import DimensionKey, SnapshotRecord


Cell = Tuple[datetime, DimensionKey]


def dimension_sort_key(key: DimensionKey) -> Tuple[str, str]:
    return (key.database_name, key.file_role.value)


def observed_timestamps(records: Iterable[SnapshotRecord]) -> List[datetime]:
    """Distinct capture times, ascending"""
    return sorted({record.captured_at for record in records})


def observed_dimensions(records: Iterable[SnapshotRecord]) -> List[DimensionKey]:
    """Distinct (database, role) keys, ordered by database then role"""
    return sorted({record.dimension for record in records}, key=dimension_sort_key)


def build_matrix(timestamps: Iterable[datetime], dimensions: Iterable[DimensionKey]) -> List[Cell]:
    """
    Cross every timestamp with every dimension key.

    Args:
        timestamps: Sampled instants
        dimensions: Dimension keys seen in the window

    Returns:
        Cells ordered by (timestamp, database, role)
    """
    times = sorted(set(timestamps))
    keys = sorted(set(dimensions), key=dimension_sort_key)
    return list(product(times, keys))
