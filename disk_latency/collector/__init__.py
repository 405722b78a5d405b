# disk_latency/collector/__init__.py - Counter collection module
"""
Collector module for capturing and differencing I/O counter snapshots.

This module provides:
- snapshot.py: Snapshot, delta and dimension data model
- source.py: Live counter sources
- store.py: Append-only SQLite snapshot store
- capture.py: Snapshot capture into the store
- delta.py: Consecutive-snapshot delta calculation
- aggregator.py: Latency aggregation and metrics
"""
