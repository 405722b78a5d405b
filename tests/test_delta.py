# tests/test_delta.py - Tests for delta calculation
"""
Unit tests for DeltaRecord and DeltaCalculator.
"""

from datetime import datetime, timedelta

from disk_latency.collector.delta import DeltaCalculator
from disk_latency.collector.snapshot import DeltaRecord, FileRole


T0 = datetime(2026, 10, 15, 8, 0)
T1 = T0 + timedelta(hours=1)
T2 = T0 + timedelta(hours=2)
T3 = T0 + timedelta(hours=3)


class TestFileRole:
    """Test cases for FileRole mapping"""

    def test_type_descriptors(self):
        """Test engine type descriptors map onto roles"""
        assert FileRole.from_type_desc('ROWS') is FileRole.DATA
        assert FileRole.from_type_desc(' log ') is FileRole.LOG
        assert FileRole.from_type_desc('FILESTREAM') is FileRole.OTHER
        assert FileRole.from_type_desc(None) is FileRole.OTHER

    def test_labels(self):
        """Test display labels"""
        assert FileRole.DATA.label == 'Data File'
        assert FileRole.LOG.label == 'Transaction Log'


class TestDeltaRecord:
    """Test cases for DeltaRecord"""

    def test_between(self, make_snapshot):
        """Test delta counters are later minus earlier"""
        earlier = make_snapshot(T0, reads=100, writes=10, read_stall_ms=500, bytes_read=8192)
        later = make_snapshot(T1, reads=180, writes=15, read_stall_ms=900, bytes_read=16384)

        delta = DeltaRecord.between(earlier, later)

        assert delta.interval_start == T0
        assert delta.interval_end == T1
        assert delta.reads == 80
        assert delta.writes == 5
        assert delta.read_stall_ms == 400
        assert delta.bytes_read == 8192
        assert delta.is_valid()

    def test_negative_counter_is_invalid(self, make_snapshot):
        """Test a single decreasing counter invalidates the delta"""
        earlier = make_snapshot(T0, reads=100, bytes_written=5000)
        later = make_snapshot(T1, reads=120, bytes_written=4000)

        assert not DeltaRecord.between(earlier, later).is_valid()


class TestDeltaCalculator:
    """Test cases for DeltaCalculator"""

    def test_consecutive_pairs(self, make_snapshot):
        """Test each snapshot pairs with its nearest predecessor"""
        records = [
            make_snapshot(T2, reads=300),
            make_snapshot(T0, reads=100),
            make_snapshot(T1, reads=180),
        ]

        deltas = DeltaCalculator().compute(records)

        assert [d.interval_end for d in deltas] == [T1, T2]
        assert [d.reads for d in deltas] == [80, 120]
        assert deltas[1].interval_start == T1

    def test_first_snapshot_yields_no_delta(self, make_snapshot):
        """Test a file's first capture produces nothing"""
        calculator = DeltaCalculator()

        deltas = calculator.compute([make_snapshot(T0, reads=100)])

        assert deltas == []
        assert calculator.unpaired_count == 1

    def test_predecessor_outside_window(self, make_snapshot):
        """Test the first in-window snapshot pairs with an earlier one"""
        records = [
            make_snapshot(T0, reads=100),
            make_snapshot(T2, reads=250),
        ]

        deltas = DeltaCalculator().compute(records, start=T1, end=T3)

        assert len(deltas) == 1
        assert deltas[0].interval_start == T0
        assert deltas[0].interval_end == T2
        assert deltas[0].reads == 150

    def test_snapshots_after_window_ignored(self, make_snapshot):
        """Test snapshots past the window end produce no delta"""
        records = [
            make_snapshot(T0, reads=100),
            make_snapshot(T1, reads=150),
            make_snapshot(T3, reads=400),
        ]

        deltas = DeltaCalculator().compute(records, start=T0, end=T2)

        assert [d.interval_end for d in deltas] == [T1]

    def test_reset_pair_dropped(self, make_snapshot):
        """Test a counter decrease drops the whole pair"""
        records = [
            make_snapshot(T0, reads=100, writes=10),
            make_snapshot(T1, reads=180, writes=20),
            # Engine restart: counters start again from zero
            make_snapshot(T2, reads=50, writes=30),
            make_snapshot(T3, reads=70, writes=35),
        ]
        calculator = DeltaCalculator()

        deltas = calculator.compute(records)

        assert [d.interval_end for d in deltas] == [T1, T3]
        assert deltas[1].reads == 20
        assert calculator.reset_count == 1

    def test_files_are_independent(self, make_snapshot):
        """Test a reset in one file does not affect another"""
        records = [
            make_snapshot(T0, file_id=1, reads=100),
            make_snapshot(T1, file_id=1, reads=50),
            make_snapshot(T0, file_id=2, role=FileRole.LOG, writes=10),
            make_snapshot(T1, file_id=2, role=FileRole.LOG, writes=40),
        ]

        deltas = DeltaCalculator().compute(records)

        assert len(deltas) == 1
        assert deltas[0].file_id == 2
        assert deltas[0].writes == 30

    def test_same_file_id_in_other_database(self, make_snapshot):
        """Test files are keyed by database and file id together"""
        records = [
            make_snapshot(T0, database_id=5, reads=100),
            make_snapshot(T0, database_id=6, database_name='HR', reads=10),
            make_snapshot(T1, database_id=5, reads=110),
            make_snapshot(T1, database_id=6, database_name='HR', reads=30),
        ]

        deltas = DeltaCalculator().compute(records)

        assert {(d.database_name, d.reads) for d in deltas} == {('Sales', 10), ('HR', 20)}
