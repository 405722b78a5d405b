# disk_latency/__init__.py - Disk latency monitor
"""
Disk latency monitor for database engines.

Snapshots cumulative per-file I/O counters and rebuilds per-interval
latency, throughput and operation counts from consecutive snapshots.
"""

__version__ = "0.1.0"
