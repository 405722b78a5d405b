# tests/test_file_stats.py - Tests for per-file analysis
"""
Unit tests for the FileStatsAnalyzer class.
"""

from datetime import datetime, timedelta

from disk_latency.analyzer.file_stats import FileStatsAnalyzer
from disk_latency.collector.snapshot import FileRole
from disk_latency.collector.source import CounterReading


NOW = datetime(2026, 10, 16, 12, 0)


class TestFileStatsAnalyzer:
    """Test cases for FileStatsAnalyzer"""

    def test_analyzer_initialization(self):
        """Test default thresholds"""
        analyzer = FileStatsAnalyzer()
        assert analyzer.data_read_latency_ms == 20
        assert analyzer.data_write_latency_ms == 10
        assert analyzer.log_write_latency_ms == 5

    def test_file_row(self, make_snapshot):
        """Test volume, mix, size and IOPS figures"""
        record = make_snapshot(
            NOW, reads=150, writes=50, read_stall_ms=1500, write_stall_ms=250,
            bytes_read=150 * 65536, bytes_written=50 * 8192, logical_name='Sales',
        )
        reading = CounterReading([record], read_at=NOW, engine_started_at=NOW - timedelta(seconds=100))

        rows = FileStatsAnalyzer().analyze(reading)

        assert len(rows) == 1
        row = rows[0]
        assert row['read_percent'] == 75
        assert row['write_percent'] == 25
        assert row['avg_read_size_kb'] == 64.0
        assert row['avg_write_size_kb'] == 8.0
        assert row['avg_read_latency_ms'] == 10.0
        assert row['avg_write_latency_ms'] == 5.0
        assert row['avg_io_latency_ms'] == 8.75
        assert row['avg_iops'] == 2.0
        assert row['estimated_peak_iops'] == 6.0
        assert row['performance_status'] == 'OK'

    def test_idle_files_omitted(self, make_snapshot):
        """Test files without any I/O are skipped"""
        reading = CounterReading([make_snapshot(NOW)], read_at=NOW)

        assert FileStatsAnalyzer().analyze(reading) == []

    def test_unknown_uptime(self, make_snapshot):
        """Test IOPS are None without an engine start time"""
        reading = CounterReading([make_snapshot(NOW, reads=10)], read_at=NOW)

        row = FileStatsAnalyzer().analyze(reading)[0]

        assert row['avg_iops'] is None
        assert row['estimated_peak_iops'] is None
        assert row['avg_write_latency_ms'] is None

    def test_classification(self, make_snapshot):
        """Test latency thresholds per file role"""
        reading = CounterReading([
            make_snapshot(NOW, file_id=1, reads=100, read_stall_ms=2500),
            make_snapshot(NOW, file_id=2, role=FileRole.LOG, writes=100, write_stall_ms=600),
            make_snapshot(NOW, file_id=3, writes=100, write_stall_ms=1100),
            make_snapshot(NOW, file_id=4, role=FileRole.OTHER, reads=1, read_stall_ms=900),
        ], read_at=NOW)

        rows = FileStatsAnalyzer().analyze(reading)

        assert [row['performance_status'] for row in rows] == [
            'High Read Latency',
            'High Log Write Latency',
            'High Write Latency',
            'OK',
        ]

    def test_custom_thresholds(self, make_snapshot):
        """Test caller-supplied thresholds"""
        reading = CounterReading([
            make_snapshot(NOW, file_id=2, role=FileRole.LOG, writes=100, write_stall_ms=600),
        ], read_at=NOW)

        rows = FileStatsAnalyzer({'log_write_latency_ms': 10}).analyze(reading)

        assert rows[0]['performance_status'] == 'OK'
