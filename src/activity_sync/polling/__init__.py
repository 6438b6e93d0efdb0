"""Adaptive polling - cadence that follows user activity."""

from .poller import AdaptivePoller, AdaptivePollerConfig, PollerState
from .signals import ActivitySignalSource, ManualSignalSource
from .sync_manager import SyncManager, SyncState, SyncStrategy, SyncStrategyType

__all__ = [
    "AdaptivePoller",
    "AdaptivePollerConfig",
    "PollerState",
    "ActivitySignalSource",
    "ManualSignalSource",
    "SyncManager",
    "SyncState",
    "SyncStrategy",
    "SyncStrategyType",
]
