# tests/test_source.py - Tests for counter sources and capture
"""
Unit tests for counter sources and snapshot collection.
"""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from disk_latency.collector.capture import collect
from disk_latency.collector.snapshot import FileRole
from disk_latency.collector.source import CounterReading, FileCounterSource, StaticCounterSource, record_from_mapping
from disk_latency.errors import SourceUnavailableError


NOW = datetime(2026, 10, 16, 12, 0)

COUNTER_YAML = """
engine_started_at: 2026-10-16 11:00:00
files:
  - database_id: 5
    database_name: Sales
    file_id: 1
    type_desc: ROWS
    physical_name: D:/data/Sales.mdf
    num_of_reads: 120
    num_of_writes: 30
    io_stall_read_ms: 600
    io_stall_write_ms: 90
    io_stall: 690
    num_of_bytes_read: 983040
    num_of_bytes_written: 245760
  - database_id: 5
    database_name: Sales
    file_id: 2
    type_desc: LOG
    physical_name: L:/log/Sales_log.ldf
    num_of_writes: 400
    io_stall_write_ms: 800
    io_stall: 800
"""


class TestRecordFromMapping:
    """Test cases for record_from_mapping"""

    def test_engine_field_names(self):
        """Test engine view names map onto record fields"""
        record = record_from_mapping({
            'database_id': 5, 'database_name': 'Sales', 'file_id': 1,
            'type_desc': 'ROWS', 'physical_name': 'D:\\data\\Sales.mdf',
            'num_of_reads': 10, 'io_stall_read_ms': 50, 'io_stall': 50,
            'num_of_bytes_read': 8192, 'name': 'Sales',
        }, NOW)

        assert record.captured_at == NOW
        assert record.file_role is FileRole.DATA
        assert record.file_type == 'ROWS'
        assert record.reads == 10
        assert record.read_stall_ms == 50
        assert record.total_stall_ms == 50
        assert record.bytes_read == 8192
        assert record.drive == 'D:'
        assert record.logical_name == 'Sales'

    def test_package_field_names(self):
        """Test records written with package field names"""
        record = record_from_mapping({
            'database_id': '6', 'database_name': 'HR', 'file_id': '2',
            'file_role': 'log', 'writes': '25',
        })

        assert record.database_id == 6
        assert record.file_role is FileRole.LOG
        assert record.writes == 25

    def test_missing_identity(self):
        """Test records without database/file ids are rejected"""
        with pytest.raises(SourceUnavailableError):
            record_from_mapping({'database_name': 'Sales', 'file_id': 1})

    def test_malformed_counter(self):
        """Test non-numeric counters are rejected"""
        with pytest.raises(SourceUnavailableError):
            record_from_mapping({'database_id': 5, 'database_name': 'Sales', 'file_id': 1, 'reads': 'many'})

    def test_not_a_mapping(self):
        """Test list entries must be mappings"""
        with pytest.raises(SourceUnavailableError):
            record_from_mapping(['Sales', 1])


class TestFileCounterSource:
    """Test cases for FileCounterSource"""

    def test_read(self, tmp_path):
        """Test reading a counter document"""
        path = tmp_path / 'counters.yaml'
        path.write_text(COUNTER_YAML)

        reading = FileCounterSource(str(path), clock=lambda: NOW).read()

        assert reading.read_at == NOW
        assert reading.engine_started_at == datetime(2026, 10, 16, 11, 0)
        assert reading.uptime_seconds == 3600
        assert len(reading.records) == 2
        assert all(r.captured_at == NOW for r in reading.records)
        assert reading.records[1].file_role is FileRole.LOG
        assert reading.records[1].reads == 0

    def test_json_list_document(self, tmp_path):
        """Test a bare JSON list is accepted"""
        path = tmp_path / 'counters.json'
        path.write_text('[{"database_id": 5, "database_name": "Sales", "file_id": 1, "reads": 3}]')

        reading = FileCounterSource(str(path)).read()

        assert reading.records[0].reads == 3
        assert reading.uptime_seconds is None

    def test_missing_file(self, tmp_path):
        """Test an absent document raises SourceUnavailableError"""
        with pytest.raises(SourceUnavailableError):
            FileCounterSource(str(tmp_path / 'absent.yaml')).read()

    def test_document_without_files(self, tmp_path):
        """Test a document lacking a files list is rejected"""
        path = tmp_path / 'counters.yaml'
        path.write_text('engine_started_at: 2026-10-16 11:00:00\n')

        with pytest.raises(SourceUnavailableError):
            FileCounterSource(str(path)).read()


class TestCollect:
    """Test cases for collect"""

    def test_collect_appends_snapshot(self, store, make_snapshot):
        """Test every record is stored with the capture time"""
        source = StaticCounterSource([
            make_snapshot(None, database_id=1, database_name='master', reads=1),
            make_snapshot(None, file_id=1, reads=10),
            make_snapshot(None, file_id=2, role=FileRole.LOG, writes=20),
        ])

        receipt = collect(source, store, captured_at=NOW, excluded_database_ids=[1, 3, 4])

        assert receipt.records_inserted == 2
        assert receipt.latest_snapshot == NOW
        window, _ = store.fetch_window(NOW, NOW)
        assert {r.database_name for r in window} == {'Sales'}
        assert all(r.captured_at == NOW for r in window)

    def test_short_interval_warns(self, store, make_snapshot, caplog):
        """Test a capture soon after the previous one logs a warning"""
        source = StaticCounterSource([make_snapshot(None, reads=10)])
        collect(source, store, captured_at=NOW)

        with caplog.at_level(logging.WARNING, logger='disk_latency.collector.capture'):
            receipt = collect(source, store, captured_at=NOW + timedelta(minutes=5), min_interval_minutes=60)

        assert receipt.records_inserted == 1
        assert 'unreliable' in caplog.text

    def test_source_failure_propagates(self, store, tmp_path):
        """Test source errors reach the caller and nothing is stored"""
        source = FileCounterSource(str(tmp_path / 'absent.yaml'))

        with pytest.raises(SourceUnavailableError):
            collect(source, store, captured_at=NOW)

        assert store.latest_snapshot_time() is None


class TestCounterReading:
    """Test cases for CounterReading"""

    def test_zoned_engine_start(self, tmp_path):
        """Test an engine start with a zone is compared on the local basis"""
        path = tmp_path / 'counters.yaml'
        path.write_text(COUNTER_YAML.replace(
            'engine_started_at: 2026-10-16 11:00:00', 'engine_started_at: 2026-10-16T11:00:00Z'
        ))

        reading = FileCounterSource(str(path), clock=lambda: NOW).read()

        started = datetime(2026, 10, 16, 11, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert reading.engine_started_at == started
        assert reading.engine_started_at.tzinfo is None
        assert reading.uptime_seconds == (NOW - started).total_seconds()

    def test_aware_read_time(self):
        """Test aware read and start times give a plain uptime"""
        read_at = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)

        reading = CounterReading([], read_at=read_at, engine_started_at=read_at - timedelta(hours=2))

        assert reading.read_at.tzinfo is None
        assert reading.uptime_seconds == 7200

    def test_engine_start_not_a_timestamp(self, tmp_path):
        """Test a date-only engine start is a source error"""
        path = tmp_path / 'counters.yaml'
        path.write_text(COUNTER_YAML.replace('2026-10-16 11:00:00', '2026-10-16'))

        with pytest.raises(SourceUnavailableError):
            FileCounterSource(str(path)).read()
