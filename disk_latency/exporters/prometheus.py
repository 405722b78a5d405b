# disk_latency/exporters/prometheus.py - Prometheus metrics exporter
"""
Exports report metrics in Prometheus format.
Provides HTTP endpoint for Prometheus to scrape.
"""

from prometheus_client import CollectorRegistry, Gauge, REGISTRY, generate_latest, start_http_server
from typing import List, Optional
import logging


GAUGES = (
    ('avg_read_latency_ms', 'Average read latency per I/O in milliseconds'),
    ('avg_write_latency_ms', 'Average write latency per I/O in milliseconds'),
    ('avg_total_latency_ms', 'Average latency per I/O in milliseconds'),
    ('total_reads', 'Read operations'),
    ('total_writes', 'Write operations'),
    ('total_read_kb', 'Kilobytes read'),
    ('total_write_kb', 'Kilobytes written'),
    ('total_read_pages', 'Pages read'),
    ('total_write_pages', 'Pages written'),
    ('file_count', 'Files contributing to the figures'),
)


class PrometheusExporter:
    """
    Exports report metrics to Prometheus.

    Each gauge is labelled by database, file role and counter basis and
    holds the most recent value reported for that combination.
    """

    def __init__(self, port: int = 9090, registry: Optional[CollectorRegistry] = None):
        """
        Initialize the Prometheus exporter.

        Args:
            port: Port to expose metrics on
            registry: Registry to register gauges with (default: global)
        """
        self.port = port
        self.registry = registry if registry is not None else REGISTRY
        self.logger = logging.getLogger(__name__)

        self.gauges = {
            name: Gauge(
                f'disk_latency_{name}',
                description,
                ['database', 'role', 'basis'],
                registry=self.registry,
            )
            for name, description in GAUGES
        }

        self.logger.info(f"Prometheus exporter initialized on port {port}")

    def start(self):
        """
        Start the Prometheus HTTP server.
        """
        try:
            start_http_server(self.port, registry=self.registry)
            self.logger.info(f"Prometheus metrics available at http://localhost:{self.port}/metrics")
        except OSError as e:
            self.logger.error(f"Failed to start Prometheus server: {e}")
            raise

    def update_report(self, rows: List):
        """
        Publish report rows; later rows overwrite earlier ones per label set.

        Args:
            rows: AggregatedMetric rows ordered by time
        """
        for row in rows:
            labels = {
                'database': row.database_name,
                'role': row.file_role.value,
                'basis': row.counter_basis,
            }
            for name, gauge in self.gauges.items():
                gauge.labels(**labels).set(getattr(row, name))

        self.logger.debug(f"Published {len(rows)} report rows")

    def get_metrics_text(self) -> str:
        """
        Get current metrics in Prometheus text format.

        Returns:
            Metrics as text
        """
        return generate_latest(self.registry).decode('utf-8')
