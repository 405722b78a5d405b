# disk_latency/analyzer/report_generator.py - Report generation
"""
Produces latency reports either from stored snapshot history
(per-interval deltas) or from the live cumulative counters.
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional
import logging

from disk_latency.analyzer.matrix import build_matrix, dimension_sort_key, observed_dimensions, observed_timestamps
from disk_latency.collector.aggregator import AggregatedMetric, LatencyAggregator, DEFAULT_PAGE_SIZE_BYTES
from disk_latency.collector.delta import DeltaCalculator
from disk_latency.collector.snapshot import FileRole
from disk_latency.collector.source import CounterSource, exclude_databases
from disk_latency.collector.store import SnapshotStore
from disk_latency.errors import ConfigurationError
from disk_latency.utils.helpers import format_display_time, to_local_naive


HISTORICAL = 'historical'
CURRENT = 'current'
MODES = (HISTORICAL, CURRENT)

ROLE_FILTERS = {
    'data': FileRole.DATA,
    'log': FileRole.LOG,
    'all': None,
}

DEFAULT_LOOKBACK_HOURS = 24


def normalize_mode(mode: str) -> str:
    """
    Validate an analysis mode.

    Raises:
        ConfigurationError: If the mode is not 'historical' or 'current'
    """
    value = str(mode or '').strip().lower()
    if value not in MODES:
        raise ConfigurationError(f"mode must be one of {', '.join(MODES)}, got {mode!r}")
    return value


def normalize_role(role: Optional[str]) -> Optional[FileRole]:
    """
    Validate a file-role filter.

    Args:
        role: 'data', 'log', 'all' or None (case and surrounding
            whitespace are ignored)

    Returns:
        FileRole to keep, or None for no filtering

    Raises:
        ConfigurationError: For any other value
    """
    if role is None:
        return None
    if isinstance(role, FileRole) and role is not FileRole.OTHER:
        return role

    value = str(role).strip().lower()
    if value not in ROLE_FILTERS:
        raise ConfigurationError(f"role must be 'data', 'log', 'all' or absent, got {role!r}")
    return ROLE_FILTERS[value]


def validate_lookback(lookback_hours) -> int:
    """
    Validate a historical lookback.

    Raises:
        ConfigurationError: Unless lookback_hours is a positive integer
    """
    if isinstance(lookback_hours, bool) or not isinstance(lookback_hours, int):
        raise ConfigurationError(f"lookback_hours must be a positive integer, got {lookback_hours!r}")
    if lookback_hours <= 0:
        raise ConfigurationError(f"lookback_hours must be positive, got {lookback_hours}")
    return lookback_hours


class ReportGenerator:
    """
    Single entry point for latency reports.

    Historical mode pairs stored snapshots into interval deltas and lays
    them out on a dense (time x database x role) grid. Current mode reports
    the live counters, which are cumulative since the engine started and
    therefore not comparable to interval figures; rows carry
    counter_basis to tell the two apart.
    """

    def __init__(self, store: Optional[SnapshotStore] = None,
                 source: Optional[CounterSource] = None,
                 page_size_bytes: int = DEFAULT_PAGE_SIZE_BYTES,
                 excluded_database_ids: Iterable[int] = (),
                 clock=datetime.now):
        """
        Initialize the report generator.

        Args:
            store: Snapshot store for historical reports
            source: Live counter source for current-state reports
            page_size_bytes: Engine page size used for page counts
            excluded_database_ids: Database ids left out of current reports
            clock: Callable returning "now"
        """
        self.store = store
        self.source = source
        self.aggregator = LatencyAggregator(page_size_bytes)
        self.excluded_database_ids = tuple(excluded_database_ids or ())
        self.clock = clock
        self.last_reset_count = 0
        self.logger = logging.getLogger(__name__)

    def report(self, mode: str = HISTORICAL,
               lookback_hours: Optional[int] = DEFAULT_LOOKBACK_HOURS,
               database: Optional[str] = None,
               role: Optional[str] = None,
               now: Optional[datetime] = None) -> List[AggregatedMetric]:
        """
        Build a latency report.

        Args:
            mode: 'historical' or 'current'
            lookback_hours: Window length for historical reports
            database: Exact database name to keep, None for all
            role: 'data', 'log', 'all' or None
            now: Report time (default: the generator's clock)

        Returns:
            Ordered list of AggregatedMetric rows

        Raises:
            ConfigurationError: Invalid arguments or missing collaborator
            CollaboratorError: Store or counter source failure
        """
        mode = normalize_mode(mode)
        role_filter = normalize_role(role)

        if mode == HISTORICAL:
            lookback_hours = validate_lookback(lookback_hours)
            if self.store is None:
                raise ConfigurationError("historical reports need a snapshot store")
        elif self.source is None:
            raise ConfigurationError("current reports need a counter source")

        now = to_local_naive(now or self.clock())

        if mode == HISTORICAL:
            rows = self._historical(now, lookback_hours)
        else:
            rows = self._current(now)

        rows = self._apply_filters(rows, database, role_filter)

        self.logger.info(
            f"{mode.capitalize()} report at {format_display_time(now)}: {len(rows)} rows"
        )
        return rows

    def _historical(self, now: datetime, lookback_hours: int) -> List[AggregatedMetric]:
        start = now - timedelta(hours=lookback_hours)
        window, lead_in = self.store.fetch_window(start, now)

        calculator = DeltaCalculator()
        deltas = calculator.compute(window + lead_in, start, now)
        self.last_reset_count = calculator.reset_count

        metrics = self.aggregator.aggregate_deltas(deltas)
        matrix = build_matrix(observed_timestamps(window), observed_dimensions(window))

        self.logger.debug(
            f"Window {start} .. {now}: {len(window)} snapshots, {len(deltas)} deltas, "
            f"{len(matrix)} cells"
        )

        rows = [
            metrics.get((timestamp, key)) or AggregatedMetric.empty(timestamp, key)
            for timestamp, key in matrix
        ]
        rows.sort(key=lambda row: (row.timestamp,) + dimension_sort_key(row.dimension))
        return rows

    def _current(self, now: datetime) -> List[AggregatedMetric]:
        reading = self.source.read()
        records = exclude_databases(reading.records, self.excluded_database_ids)
        self.last_reset_count = 0

        metrics = self.aggregator.aggregate_current(records, now)
        return sorted(metrics.values(), key=lambda row: dimension_sort_key(row.dimension))

    @staticmethod
    def _apply_filters(rows: List[AggregatedMetric], database: Optional[str],
                       role_filter: Optional[FileRole]) -> List[AggregatedMetric]:
        if database is not None:
            rows = [row for row in rows if row.database_name == database]
        if role_filter is not None:
            rows = [row for row in rows if row.file_role == role_filter]
        return rows

    def generate_text_report(self, rows: List[AggregatedMetric]) -> str:
        """
        Render report rows as a plain-text table.

        Args:
            rows: Report rows

        Returns:
            Formatted text report
        """
        basis = rows[0].counter_basis if rows else 'interval'

        lines = []
        lines.append("=" * 118)
        lines.append("Disk Latency Report")
        lines.append("=" * 118)
        lines.append(f"Generated at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append(f"Counter basis: {basis}")
        lines.append("")
        lines.append(
            f"{'DateTime':<17} {'Database':<20} {'FileType':<16} "
            f"{'Read ms':>7} {'Write ms':>8} {'Total ms':>8} "
            f"{'Reads':>10} {'Writes':>10} {'Read KB':>10} {'Write KB':>10} {'Files':>5}"
        )
        lines.append("-" * 118)

        for row in rows:
            lines.append(
                f"{format_display_time(row.timestamp):<17} {row.database_name:<20} "
                f"{row.file_role.label:<16} "
                f"{row.avg_read_latency_ms:>7} {row.avg_write_latency_ms:>8} {row.avg_total_latency_ms:>8} "
                f"{row.total_reads:>10} {row.total_writes:>10} "
                f"{row.total_read_kb:>10} {row.total_write_kb:>10} {row.file_count:>5}"
            )

        lines.append("")
        return "\n".join(lines)
