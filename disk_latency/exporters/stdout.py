# disk_latency/exporters/stdout.py - Console output exporter
"""
Exports latency reports to stdout in human-readable format.
"""

from typing import Dict, List, Optional
from colorama import Fore, Style, init
import logging

from disk_latency.utils.helpers import format_display_time


# Initialize colorama
init(autoreset=True)


class StdoutExporter:
    """
    Exports report rows to stdout with colored output.

    Latency cells are colored against caller-supplied thresholds; the
    colors are a reading aid, not an alert.
    """

    def __init__(self, use_colors: bool = True, thresholds: Optional[Dict] = None):
        """
        Initialize the stdout exporter.

        Args:
            use_colors: Whether to use colored output
            thresholds: Optional {'warning_ms': ..., 'critical_ms': ...}
        """
        self.use_colors = use_colors
        self.thresholds = thresholds or {}
        self.warning_ms = self.thresholds.get('warning_ms', 10)
        self.critical_ms = self.thresholds.get('critical_ms', 20)
        self.logger = logging.getLogger(__name__)

    def print_report(self, rows: List, title: str = 'Disk Latency'):
        """
        Print report rows as a table.

        Args:
            rows: AggregatedMetric rows
            title: Table title
        """
        basis = rows[0].counter_basis if rows else 'interval'

        print(self._header(f"{title} ({basis} counters, {len(rows)} rows)"))

        if not rows:
            print(f"{self._color(Fore.YELLOW)}No data for the requested window and filters{self._reset()}")
            print()
            return

        print(f"{'DateTime':<17} {'Database':<20} {'FileType':<16} "
              f"{'Read ms':>7} {'Write ms':>8} {'Total ms':>8} "
              f"{'Reads':>10} {'Writes':>10} {'Read KB':>10} {'Write KB':>10} "
              f"{'Read pg':>9} {'Write pg':>9} {'Files':>5}")
        print(f"{'-'*148}")

        for row in rows:
            print(f"{format_display_time(row.timestamp):<17} "
                  f"{row.database_name:<20} "
                  f"{row.file_role.label:<16} "
                  f"{self._latency_cell(row.avg_read_latency_ms, 7)} "
                  f"{self._latency_cell(row.avg_write_latency_ms, 8)} "
                  f"{self._latency_cell(row.avg_total_latency_ms, 8)} "
                  f"{row.total_reads:>10} {row.total_writes:>10} "
                  f"{row.total_read_kb:>10} {row.total_write_kb:>10} "
                  f"{row.total_read_pages:>9} {row.total_write_pages:>9} "
                  f"{row.file_count:>5}")

        print()

    def print_file_stats(self, rows: List[Dict]):
        """
        Print per-file statistics.

        Args:
            rows: Rows from FileStatsAnalyzer.analyze
        """
        print(self._header(f"File I/O Statistics ({len(rows)} files, since engine start)"))

        print(f"{'Database':<20} {'File':<20} {'Type':<6} {'Read %':>6} {'Reads':>10} {'Writes':>10} "
              f"{'Rd ms':>8} {'Wr ms':>8} {'IOPS':>8} {'Status':<22}")
        print(f"{'-'*126}")

        for row in rows:
            status_color = Fore.GREEN if row['performance_status'] == 'OK' else Fore.RED
            print(f"{row['database_name']:<20} "
                  f"{(row['logical_name'] or row['physical_path']):<20.20} "
                  f"{row['file_type']:<6.6} "
                  f"{row['read_percent']:>6} "
                  f"{row['read_count']:>10} {row['write_count']:>10} "
                  f"{self._optional(row['avg_read_latency_ms']):>8} "
                  f"{self._optional(row['avg_write_latency_ms']):>8} "
                  f"{self._optional(row['avg_iops']):>8} "
                  f"{self._color(status_color)}{row['performance_status']:<22}{self._reset()}")

        print()

    def print_receipt(self, receipt):
        """
        Print a capture receipt.

        Args:
            receipt: CaptureReceipt
        """
        print(f"{self._color(Fore.GREEN)}Records inserted: {receipt.records_inserted:,}{self._reset()}")
        print(f"  Latest snapshot: {receipt.latest_snapshot:%Y-%m-%d %H:%M:%S}"
              if receipt.latest_snapshot else "  Latest snapshot: -")

    def _header(self, text: str) -> str:
        rule = f"{self._color(Fore.CYAN)}{'='*80}{self._reset()}"
        return f"\n{rule}\n{self._color(Fore.CYAN)}{text}{self._reset()}\n{rule}\n"

    def _latency_cell(self, latency_ms: int, width: int) -> str:
        return f"{self._get_color_for_latency(latency_ms)}{latency_ms:>{width}}{self._reset()}"

    @staticmethod
    def _optional(value) -> str:
        return '-' if value is None else f"{value:.2f}"

    def _color(self, color: str) -> str:
        return color if self.use_colors else ""

    def _reset(self) -> str:
        return Style.RESET_ALL if self.use_colors else ""

    def _get_color_for_latency(self, latency_ms: float) -> str:
        """
        Get color based on latency threshold.

        Args:
            latency_ms: Latency in milliseconds

        Returns:
            Color code
        """
        if not self.use_colors:
            return ""

        if latency_ms > self.critical_ms:
            return Fore.RED
        elif latency_ms > self.warning_ms:
            return Fore.YELLOW
        else:
            return Fore.GREEN
