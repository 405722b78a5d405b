# disk_latency/cli.py - Command-line interface
"""
Command-line interface for the disk latency monitor.
"""

import click
import sys
import logging

from disk_latency.errors import CollaboratorError, ConfigurationError
from disk_latency.utils.logger import setup_logging
from disk_latency.utils.config import Config


logger = logging.getLogger(__name__)


def _fail(error: Exception):
    """Report an error and exit: 2 for bad requests, 1 for collaborator failures"""
    click.echo(f"Error: {error}", err=True)
    sys.exit(2 if isinstance(error, ConfigurationError) else 1)


@click.group()
@click.option('--log-level', default='INFO', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']))
@click.option('--log-file', type=click.Path(), help='Log file path')
@click.option('--config', 'config_file', type=click.Path(), help='YAML configuration file')
@click.pass_context
def cli(ctx, log_level, log_file, config_file):
    """
    Disk Latency Monitor

    Snapshots per-file database I/O counters and reports interval
    latency, throughput and operation counts.
    """
    ctx.ensure_object(dict)

    setup_logging(level=log_level, log_file=log_file)

    try:
        ctx.obj['config'] = Config(config_file)
    except ConfigurationError as e:
        _fail(e)


@cli.command()
@click.option('--source', 'source_path', type=click.Path(), required=True, help='Counter document (YAML/JSON)')
@click.option('--store', 'store_path', type=click.Path(), help='Snapshot store (SQLite file)')
@click.pass_context
def collect(ctx, source_path, store_path):
    """
    Append one snapshot of the current counters to the store.

    Example:
        disk-latency collect --source counters.yaml --store latency.db
    """
    from disk_latency.collector.capture import collect as collect_snapshot
    from disk_latency.collector.source import FileCounterSource
    from disk_latency.collector.store import SnapshotStore
    from disk_latency.exporters.stdout import StdoutExporter

    cfg = ctx.obj['config']

    try:
        with SnapshotStore(store_path or cfg.get('store.path')) as store:
            receipt = collect_snapshot(
                FileCounterSource(source_path),
                store,
                excluded_database_ids=cfg.get('capture.excluded_database_ids', []),
                min_interval_minutes=cfg.get_int('capture.min_interval_minutes', 60, minimum=0),
            )
    except (ConfigurationError, CollaboratorError) as e:
        _fail(e)

    StdoutExporter().print_receipt(receipt)


@cli.command()
@click.option('--mode', type=click.Choice(['historical', 'current'], case_sensitive=False), help='Analysis mode')
@click.option('--hours', 'lookback_hours', type=int, help='Hours to look back (historical mode)')
@click.option('--database', help='Only this database (exact name)')
@click.option('--role', type=click.Choice(['data', 'log', 'all'], case_sensitive=False), help='File role filter')
@click.option('--store', 'store_path', type=click.Path(), help='Snapshot store (SQLite file)')
@click.option('--source', 'source_path', type=click.Path(), help='Counter document for current mode')
@click.option('--format', 'output_format', type=click.Choice(['stdout', 'json', 'prometheus']), help='Output format')
@click.option('--output', type=click.Path(), help='Output file (json or text)')
@click.pass_context
def report(ctx, mode, lookback_hours, database, role, store_path, source_path, output_format, output):
    """
    Report disk latency per database and file role.

    Example:
        disk-latency report --hours 48
        disk-latency report --database Sales --role data
        disk-latency report --mode current --source counters.yaml
    """
    from disk_latency.analyzer.report_generator import CURRENT, ReportGenerator, validate_lookback
    from disk_latency.collector.source import FileCounterSource
    from disk_latency.collector.store import SnapshotStore

    cfg = ctx.obj['config']
    mode = (mode or cfg.get('report.mode', 'historical')).lower()
    output_format = output_format or cfg.get('output.format', 'stdout')

    store = None
    try:
        page_size = cfg.get_int('report.page_size_bytes', 8192, minimum=1)
        if lookback_hours is None:
            lookback_hours = cfg.get_int('report.lookback_hours', 24)

        if mode == CURRENT:
            if not source_path:
                raise ConfigurationError("--source is required in current mode")
            source = FileCounterSource(source_path)
        else:
            source = None
            validate_lookback(lookback_hours)
            store = SnapshotStore(store_path or cfg.get('store.path'), read_only=True)

        generator = ReportGenerator(
            store=store,
            source=source,
            page_size_bytes=page_size,
            excluded_database_ids=cfg.get('capture.excluded_database_ids', []),
        )
        rows = generator.report(mode, lookback_hours=lookback_hours, database=database, role=role)
    except (ConfigurationError, CollaboratorError) as e:
        _fail(e)
    finally:
        if store is not None:
            store.close()

    if generator.last_reset_count:
        logger.warning(f"{generator.last_reset_count} snapshot pairs skipped after counter resets")

    filters = {'database': database, 'role': role, 'lookback_hours': lookback_hours if mode != CURRENT else None}
    _emit_report(cfg, rows, mode, filters, output_format, output, generator)


def _stdout_exporter(cfg):
    from disk_latency.exporters.stdout import StdoutExporter

    return StdoutExporter(
        use_colors=sys.stdout.isatty(),
        thresholds={
            'warning_ms': cfg.get('output.latency_warning_ms', 10),
            'critical_ms': cfg.get('output.latency_critical_ms', 20),
        },
    )


def _emit_report(cfg, rows, mode, filters, output_format, output, generator):
    if output_format == 'json':
        from disk_latency.exporters.json_exporter import JSONExporter
        import json

        exporter = JSONExporter()
        if output:
            path = exporter.export_report(rows, mode, filters, filename=output)
            click.echo(f"Report written to {path}")
        else:
            click.echo(json.dumps(exporter.report_document(rows, mode, filters), indent=2))

    elif output_format == 'prometheus':
        from prometheus_client import CollectorRegistry
        from disk_latency.exporters.prometheus import PrometheusExporter

        # One-shot exposition; `serve` runs the scrape endpoint
        exporter = PrometheusExporter(registry=CollectorRegistry())
        exporter.update_report(rows)
        click.echo(exporter.get_metrics_text())

    elif output:
        with open(output, 'w') as f:
            f.write(generator.generate_text_report(rows))
        click.echo(f"Report written to {output}")

    else:
        _stdout_exporter(cfg).print_report(rows, title=f"Disk Latency - {mode}")


@cli.command()
@click.option('--source', 'source_path', type=click.Path(), required=True, help='Counter document (YAML/JSON)')
@click.option('--format', 'output_format', type=click.Choice(['stdout', 'json']), default='stdout', help='Output format')
@click.option('--output', type=click.Path(), help='Output file (JSON format)')
@click.pass_context
def files(ctx, source_path, output_format, output):
    """
    Show per-file I/O statistics since engine start.

    Example:
        disk-latency files --source counters.yaml
    """
    from disk_latency.analyzer.file_stats import FileStatsAnalyzer
    from disk_latency.collector.source import FileCounterSource

    cfg = ctx.obj['config']

    try:
        reading = FileCounterSource(source_path).read()
    except CollaboratorError as e:
        _fail(e)

    rows = FileStatsAnalyzer(cfg.get('analysis', {})).analyze(reading)

    if output_format == 'json':
        from disk_latency.exporters.json_exporter import JSONExporter

        path = JSONExporter().export_file_stats(rows, filename=output)
        click.echo(f"File statistics written to {path}")
    else:
        _stdout_exporter(cfg).print_file_stats(rows)


@cli.command()
@click.option('--store', 'store_path', type=click.Path(), help='Snapshot store (SQLite file)')
@click.option('--hours', 'lookback_hours', type=int, help='Hours to look back')
@click.option('--port', type=int, help='Metrics port (default: output.prometheus_port)')
@click.option('--interval', type=int, help='Seconds between refreshes (default: output.refresh_seconds)')
@click.option('--duration', type=int, help='Stop after this many seconds')
@click.pass_context
def serve(ctx, store_path, lookback_hours, port, interval, duration):
    """
    Serve historical report gauges for Prometheus to scrape.

    The report is rebuilt from the store every interval, so captures
    appended by `collect` show up without a restart.

    Example:
        disk-latency serve --store latency.db --port 9090
    """
    import time
    from prometheus_client import CollectorRegistry
    from disk_latency.analyzer.report_generator import HISTORICAL, ReportGenerator, validate_lookback
    from disk_latency.collector.store import SnapshotStore
    from disk_latency.exporters.prometheus import PrometheusExporter

    cfg = ctx.obj['config']

    try:
        if lookback_hours is None:
            lookback_hours = cfg.get_int('report.lookback_hours', 24)
        validate_lookback(lookback_hours)
        if port is None:
            port = cfg.get_int('output.prometheus_port', 9090, minimum=1)
        if interval is None:
            interval = cfg.get_int('output.refresh_seconds', 60, minimum=1)
        elif interval < 1:
            raise ConfigurationError(f"--interval must be >= 1, got {interval}")
        page_size = cfg.get_int('report.page_size_bytes', 8192, minimum=1)

        store = SnapshotStore(store_path or cfg.get('store.path'), read_only=True)
    except (ConfigurationError, CollaboratorError) as e:
        _fail(e)

    generator = ReportGenerator(store=store, page_size_bytes=page_size)
    exporter = PrometheusExporter(port=port, registry=CollectorRegistry())

    try:
        exporter.start()
        logger.info(f"Refreshing every {interval}s. Press Ctrl+C to stop.")

        started = time.time()
        while True:
            rows = generator.report(HISTORICAL, lookback_hours=lookback_hours)
            exporter.update_report(rows)

            if duration is not None and time.time() - started >= duration:
                break
            time.sleep(interval)

    except KeyboardInterrupt:
        logger.info("Stopping metrics server...")
    except (OSError, CollaboratorError) as e:
        _fail(e)
    finally:
        store.close()


if __name__ == '__main__':
    cli(obj={})
