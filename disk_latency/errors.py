# disk_latency/errors.py - Exception hierarchy
"""
Exceptions raised by the disk latency monitor.

Counter resets and missing predecessors are not errors; they are
absorbed by the delta calculator and never reach this hierarchy.
"""


class DiskLatencyError(Exception):
    """Base class for all disk latency monitor errors"""


class ConfigurationError(DiskLatencyError):
    """Invalid request or configuration, raised before any computation"""


class CollaboratorError(DiskLatencyError):
    """An external collaborator (store or counter source) failed"""


class StoreUnavailableError(CollaboratorError):
    """The snapshot store could not be opened, read or written"""


class SourceUnavailableError(CollaboratorError):
    """The counter source could not be read"""
