# disk_latency/exporters/json_exporter.py - JSON format exporter
"""
Exports latency reports as JSON files.
"""

import json
from pathlib import Path
from datetime import datetime
from typing import Dict, List, Optional
import logging


class JSONExporter:
    """
    Exports report rows and file statistics to JSON format.

    Provides structured JSON output for dashboards and further processing.
    """

    def __init__(self, output_dir: Optional[str] = None):
        """
        Initialize the JSON exporter.

        Args:
            output_dir: Directory to save JSON files (default: current directory)
        """
        self.output_dir = Path(output_dir) if output_dir else Path('.')
        self.logger = logging.getLogger(__name__)

        # Create output directory if it doesn't exist
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def report_document(self, rows: List, mode: str, filters: Optional[Dict] = None) -> Dict:
        """
        Build the JSON document for a report.

        Args:
            rows: AggregatedMetric rows
            mode: 'historical' or 'current'
            filters: Filters the report was built with

        Returns:
            JSON-serializable dictionary
        """
        return {
            'timestamp': datetime.now().isoformat(),
            'mode': mode,
            'counter_basis': rows[0].counter_basis if rows else None,
            'filters': filters or {},
            'row_count': len(rows),
            'rows': [row.to_dict() for row in rows],
        }

    def export_report(self, rows: List, mode: str, filters: Optional[Dict] = None,
                      filename: Optional[str] = None) -> str:
        """
        Export report rows to JSON file.

        Args:
            rows: AggregatedMetric rows
            mode: 'historical' or 'current'
            filters: Filters the report was built with
            filename: Output filename (auto-generated if not provided)

        Returns:
            Path to output file
        """
        if not filename:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            filename = f'latency_{mode}_{timestamp}.json'

        output_path = self.output_dir / filename

        with open(output_path, 'w') as f:
            json.dump(self.report_document(rows, mode, filters), f, indent=2)

        self.logger.info(f"Exported {len(rows)} report rows to {output_path}")
        return str(output_path)

    def export_file_stats(self, rows: List[Dict], filename: Optional[str] = None) -> str:
        """
        Export per-file statistics to JSON file.

        Args:
            rows: Rows from FileStatsAnalyzer.analyze
            filename: Output filename (auto-generated if not provided)

        Returns:
            Path to output file
        """
        if not filename:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            filename = f'file_stats_{timestamp}.json'

        output_path = self.output_dir / filename

        with open(output_path, 'w') as f:
            json.dump({
                'timestamp': datetime.now().isoformat(),
                'file_count': len(rows),
                'files': rows
            }, f, indent=2)

        self.logger.info(f"Exported statistics for {len(rows)} files to {output_path}")
        return str(output_path)
