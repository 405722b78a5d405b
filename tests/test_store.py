# tests/test_store.py - Tests for the snapshot store
"""
Unit tests for SnapshotStore.
"""

import sqlite3
from datetime import datetime, timedelta

import pytest

from disk_latency.collector.snapshot import FileRole
from disk_latency.collector.store import SnapshotStore
from disk_latency.errors import StoreUnavailableError


T0 = datetime(2026, 10, 15, 8, 0)
T1 = T0 + timedelta(hours=1)
T2 = T0 + timedelta(hours=2)


class TestSnapshotStore:
    """Test cases for SnapshotStore"""

    def test_round_trip_preserves_fields(self, store, make_snapshot):
        """Test stored records come back unchanged"""
        record = make_snapshot(
            T0.replace(microsecond=123456), file_id=2, role=FileRole.LOG,
            writes=7, write_stall_ms=21, bytes_written=4096,
            drive='L:', physical_path='L:\\log\\Sales_log.ldf', file_handle='0x0B14',
        )
        store.append([record])

        window, lead_in = store.fetch_window(T0, T1)

        assert window == [record]
        assert lead_in == []

    def test_fetch_window_with_lead_in(self, store, make_snapshot):
        """Test each file's latest pre-window snapshot is returned"""
        store.append([
            make_snapshot(T0, file_id=1, reads=1),
            make_snapshot(T1, file_id=1, reads=2),
            make_snapshot(T0, file_id=2, reads=3),
            make_snapshot(T2, file_id=1, reads=4),
            make_snapshot(T2, file_id=2, reads=5),
        ])

        window, lead_in = store.fetch_window(T1 + timedelta(minutes=30), T2)

        assert sorted((r.file_id, r.reads) for r in window) == [(1, 4), (2, 5)]
        assert sorted((r.file_id, r.captured_at) for r in lead_in) == [(1, T1), (2, T0)]

    def test_window_bounds_inclusive(self, store, make_snapshot):
        """Test snapshots on the window edges are included"""
        store.append([make_snapshot(T0), make_snapshot(T1, file_id=2), make_snapshot(T2, file_id=3)])

        window, _ = store.fetch_window(T0, T1)

        assert sorted(r.file_id for r in window) == [1, 2]

    def test_latest_snapshot_time(self, store, make_snapshot):
        """Test latest capture time"""
        assert store.latest_snapshot_time() is None

        store.append([make_snapshot(T0), make_snapshot(T1)])

        assert store.latest_snapshot_time() == T1

    def test_duplicate_capture_rejected(self, store, make_snapshot):
        """Test the (time, database, file) identity is enforced atomically"""
        store.append([make_snapshot(T0)])

        with pytest.raises(StoreUnavailableError):
            store.append([make_snapshot(T1), make_snapshot(T0)])

        window, _ = store.fetch_window(T0, T2)
        assert [r.captured_at for r in window] == [T0]

    def test_file_store_persists(self, tmp_path, make_snapshot):
        """Test a file-backed store keeps snapshots across connections"""
        path = str(tmp_path / 'latency.db')

        with SnapshotStore(path) as store:
            store.append([make_snapshot(T0)])

        with SnapshotStore(path) as store:
            assert store.latest_snapshot_time() == T0

    def test_unopenable_store(self, tmp_path):
        """Test an unusable path raises StoreUnavailableError"""
        with pytest.raises(StoreUnavailableError):
            SnapshotStore(str(tmp_path / 'missing' / 'latency.db'))

    def test_closed_store(self, make_snapshot):
        """Test reads from a closed store raise StoreUnavailableError"""
        store = SnapshotStore()
        store.close()

        with pytest.raises(StoreUnavailableError):
            store.fetch_window(T0, T1)

    def test_read_only_missing_store(self, tmp_path):
        """Test a read-only open never creates the database file"""
        path = tmp_path / 'typo.db'

        with pytest.raises(StoreUnavailableError):
            SnapshotStore(str(path), read_only=True)

        assert not path.exists()

    def test_read_only_without_snapshot_table(self, tmp_path):
        """Test a SQLite file that is not a snapshot store is rejected"""
        path = tmp_path / 'other.db'
        conn = sqlite3.connect(str(path))
        conn.execute("CREATE TABLE settings (name TEXT)")
        conn.commit()
        conn.close()

        with pytest.raises(StoreUnavailableError):
            SnapshotStore(str(path), read_only=True)

    def test_read_only_reads_existing_store(self, tmp_path, make_snapshot):
        """Test a read-only store reads captures but refuses appends"""
        path = str(tmp_path / 'latency.db')
        with SnapshotStore(path) as store:
            store.append([make_snapshot(T0)])

        with SnapshotStore(path, read_only=True) as store:
            assert store.latest_snapshot_time() == T0
            with pytest.raises(StoreUnavailableError):
                store.append([make_snapshot(T1)])
