# disk_latency/utils/__init__.py - Utilities module
"""
Utility functions and helpers.

This module provides:
- config.py: YAML configuration with dot-notation access
- logger.py: Colored console and file logging setup
- helpers.py: Rounding and timestamp helpers
"""
