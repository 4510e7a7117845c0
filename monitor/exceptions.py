"""
Exception hierarchy for the change monitor.
"""


class MonitorError(Exception):
    """Base class for all change monitor errors."""


class SnapshotError(MonitorError):
    """Raised when the snapshot file cannot be read or written."""


class TransportConfigError(MonitorError):
    """Raised when the SMTP connection string is invalid."""


class TargetError(MonitorError):
    """Raised when a monitor target cannot produce usable data."""


class NotificationError(MonitorError):
    """Raised when a notification could not be delivered."""

    def __init__(self, message: str, context: str = ""):
        super().__init__(message)
        self.context = context
