"""Activity telemetry - batched delivery of tracked user activity."""

from .events import ActivityBatch, ActivityEvent, ActivityEventType, ActivityTrackerState
from .tracker import ActivityTracker

__all__ = [
    "ActivityBatch",
    "ActivityEvent",
    "ActivityEventType",
    "ActivityTrackerState",
    "ActivityTracker",
]
