# tests/conftest.py - Shared test fixtures
"""
Fixtures for building snapshot records and stores.
"""

import pytest

from disk_latency.collector.snapshot import FileRole, SnapshotRecord
from disk_latency.collector.store import SnapshotStore


@pytest.fixture
def make_snapshot():
    """Factory for SnapshotRecord with Sales data file defaults"""

    def _make(captured_at, database_id=5, file_id=1, database_name='Sales',
              role=FileRole.DATA, **counters):
        counters.setdefault(
            'total_stall_ms',
            counters.get('read_stall_ms', 0) + counters.get('write_stall_ms', 0)
        )
        return SnapshotRecord(
            captured_at=captured_at,
            database_id=database_id,
            database_name=database_name,
            file_id=file_id,
            file_role=role,
            **counters
        )

    return _make


@pytest.fixture
def store():
    """In-memory snapshot store"""
    snapshot_store = SnapshotStore(':memory:')
    yield snapshot_store
    snapshot_store.close()
