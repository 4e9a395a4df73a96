class MonitoringError(Exception):
    """Base exception for performance monitoring errors."""


class UnknownLayerError(MonitoringError, ValueError):
    """Raised when an operation is attributed to an unsupported layer."""


class ExportError(MonitoringError):
    """Raised when a performance summary cannot be written to disk."""
