"""Adaptive polling driven by user activity."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable

from ..errors import ConfigurationError
from ..timers import TimerSlot, call_maybe_async, notify, spawn
from .signals import ActivitySignalSource, Unsubscribe


logger = logging.getLogger(__name__)

# call_later may fire up to one clock tick before the requested delay
_CLOCK_TOLERANCE = 1e-3


class PollerState(str, Enum):
    """Cadence the poller is currently running at."""
    STOPPED = "stopped"
    DEFAULT = "default"  # Started, no activity/idle decision yet
    ACTIVE = "active"    # Recent activity, poll often
    IDLE = "idle"        # No activity for idle_timeout, poll rarely


@dataclass(frozen=True)
class AdaptivePollerConfig:
    """Poller intervals (seconds)."""
    default_interval: float = 30.0
    active_interval: float = 10.0
    idle_interval: float = 60.0

    # Inactivity before switching to idle
    idle_timeout: float = 300.0

    def __post_init__(self):
        for name in ("default_interval", "active_interval", "idle_interval", "idle_timeout"):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError(f"{name} must be > 0, got {value}")


@dataclass
class AdaptivePoller:
    """
    Runs ``on_poll`` repeatedly at an interval that follows user activity.

    States:
        stopped --start--> default
        default | idle --activity--> active
        active --no activity for idle_timeout--> idle
        any --stop--> stopped

    An activity signal outside ``active`` reschedules the next poll at
    ``active_interval`` immediately, discarding the time already waited.
    Polls never overlap; a failing poll is reported to ``on_error`` and
    scheduling carries on.
    """
    on_poll: Callable[[], Awaitable[None] | None]
    config: AdaptivePollerConfig = field(default_factory=AdaptivePollerConfig)
    signal_source: ActivitySignalSource | None = None
    on_error: Callable[[Exception], Awaitable[None] | None] | None = None

    # Internal state
    _state: PollerState = field(default=PollerState.STOPPED, init=False)
    _poll_timer: TimerSlot = field(default_factory=lambda: TimerSlot("poll"), init=False)
    _idle_timer: TimerSlot = field(default_factory=lambda: TimerSlot("idle-check"), init=False)
    _last_activity: float = field(default=0.0, init=False)
    _polling: bool = field(default=False, init=False)
    _unsubscribe: Unsubscribe | None = field(default=None, init=False)
    _tasks: set[asyncio.Task] = field(default_factory=set, init=False)
    _stats: dict = field(default_factory=dict, init=False)

    def __post_init__(self):
        self._stats = {
            "polls": 0,
            "poll_errors": 0,
            "skipped_polls": 0,
        }

    def start(self) -> None:
        """Start polling. Must be called with a running event loop."""
        if self._state != PollerState.STOPPED:
            return

        self._state = PollerState.DEFAULT
        self._last_activity = self._now()
        if self.signal_source is not None:
            self._unsubscribe = self.signal_source.subscribe(self.notify_activity)
        self._schedule_poll()
        self._schedule_idle_check()
        logger.info(
            f"Adaptive poller started (default={self.config.default_interval}s, "
            f"active={self.config.active_interval}s, idle={self.config.idle_interval}s)"
        )

    def stop(self) -> None:
        """Stop polling and cancel all timers. A poll already running still completes."""
        if self._state == PollerState.STOPPED:
            return

        self._state = PollerState.STOPPED
        self._poll_timer.cancel()
        self._idle_timer.cancel()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        logger.info(f"Adaptive poller stopped. Stats: {self._stats}")

    def destroy(self) -> None:
        self.stop()

    def get_state(self) -> PollerState:
        return self._state

    def get_current_interval(self) -> float:
        if self._state == PollerState.ACTIVE:
            return self.config.active_interval
        if self._state == PollerState.IDLE:
            return self.config.idle_interval
        return self.config.default_interval

    async def poll_now(self) -> bool:
        """
        Poll immediately without moving the next scheduled poll.

        Returns False if a poll was already in flight.
        """
        return await self._execute_poll()

    def notify_activity(self) -> None:
        """Record a user activity signal."""
        if self._state == PollerState.STOPPED:
            return

        self._last_activity = self._now()

        if self._state != PollerState.ACTIVE:
            logger.debug(f"Poller {self._state.value} -> active")
            self._state = PollerState.ACTIVE
            self._schedule_poll()

        self._schedule_idle_check()

    def _schedule_poll(self) -> None:
        if self._state == PollerState.STOPPED:
            return
        self._poll_timer.arm(self.get_current_interval(), self._on_poll_timer)

    def _on_poll_timer(self) -> None:
        spawn(self._scheduled_poll(), self._tasks)

    async def _scheduled_poll(self) -> None:
        await self._execute_poll()
        self._schedule_poll()

    def _schedule_idle_check(self) -> None:
        self._idle_timer.arm(self.config.idle_timeout, self._check_idle)

    def _check_idle(self) -> None:
        if self._state == PollerState.STOPPED:
            return

        elapsed = self._now() - self._last_activity
        if elapsed + _CLOCK_TOLERANCE >= self.config.idle_timeout:
            logger.debug(f"Poller {self._state.value} -> idle after {elapsed:.1f}s without activity")
            self._state = PollerState.IDLE
            self._schedule_poll()
        else:
            self._schedule_idle_check()

    async def _execute_poll(self) -> bool:
        if self._polling:
            self._stats["skipped_polls"] += 1
            return False

        self._polling = True
        try:
            await call_maybe_async(self.on_poll)
            self._stats["polls"] += 1
        except Exception as e:
            self._stats["poll_errors"] += 1
            logger.error(f"Poll failed: {e}")
            notify(self.on_error, e, tasks=self._tasks)
        finally:
            self._polling = False
        return True

    @staticmethod
    def _now() -> float:
        return asyncio.get_running_loop().time()

    @property
    def stats(self) -> dict:
        """Get poller statistics."""
        return {
            **self._stats,
            "state": self._state.value,
            "current_interval": self.get_current_interval(),
        }
