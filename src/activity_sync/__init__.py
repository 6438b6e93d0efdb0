"""
Activity Sync - adaptive polling and batched activity telemetry

Two independent asyncio engines:
- AdaptivePoller: runs a poll action on a cadence that tightens while the
  user is active and relaxes once they go idle
- ActivityTracker: buffers activity events and delivers them in batches
  on size or timeout, requeueing failed batches and expiring stale ones
"""

__version__ = "0.1.0"
