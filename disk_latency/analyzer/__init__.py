# disk_latency/analyzer/__init__.py - Analysis module
"""
Analysis and reporting of collected counters.

This module provides:
- matrix.py: Dense time x dimension grid construction
- report_generator.py: Historical and current-state latency reports
- file_stats.py: Per-file I/O statistics and latency classification
"""
