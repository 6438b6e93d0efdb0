"""Exceptions raised by activity-sync."""

from __future__ import annotations


class ActivitySyncError(Exception):
    """Base exception for activity-sync errors."""
    pass


class ConfigurationError(ActivitySyncError, ValueError):
    """Invalid thresholds or intervals passed to an engine or config."""
    pass


class TransportError(ActivitySyncError):
    """A sink failed to deliver a batch."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
