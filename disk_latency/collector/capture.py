# disk_latency/collector/capture.py - Snapshot capture
"""
Appends one snapshot of the live counters to the store.

Meant to be driven by an external scheduler. Deltas taken less than
about an hour apart tend to hold too little I/O to be meaningful.
"""

from datetime import datetime, timedelta
from typing import Iterable, Optional
import logging

from disk_latency.collector.snapshot import CaptureReceipt
from disk_latency.collector.source import CounterSource, exclude_databases
from disk_latency.collector.store import SnapshotStore
from disk_latency.utils.helpers import to_local_naive


logger = logging.getLogger(__name__)


def collect(source: CounterSource, store: SnapshotStore,
            captured_at: Optional[datetime] = None,
            excluded_database_ids: Iterable[int] = (),
            min_interval_minutes: int = 0) -> CaptureReceipt:
    """
    Capture the current counters into the snapshot store.

    Every record of the capture is stamped with the same time.

    Args:
        source: Live counter source
        store: Snapshot store to append to
        captured_at: Capture time (default: now)
        excluded_database_ids: Database ids that are never captured
        min_interval_minutes: Warn when the previous capture is younger

    Returns:
        CaptureReceipt
    """
    captured_at = to_local_naive(captured_at) or datetime.now()

    previous = store.latest_snapshot_time()
    if previous and min_interval_minutes and captured_at - previous < timedelta(minutes=min_interval_minutes):
        logger.warning(
            f"Previous snapshot taken at {previous}; captures less than "
            f"{min_interval_minutes} minutes apart give unreliable latency deltas"
        )

    reading = source.read()
    records = [
        record.stamped(captured_at)
        for record in exclude_databases(reading.records, excluded_database_ids)
    ]

    inserted = store.append(records)
    receipt = CaptureReceipt(
        captured_at=captured_at,
        records_inserted=inserted,
        latest_snapshot=store.latest_snapshot_time(),
    )

    logger.info(f"Captured {inserted} file snapshots at {captured_at}")
    return receipt
