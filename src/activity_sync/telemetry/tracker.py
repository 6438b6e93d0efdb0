"""Batching activity tracker with timeout flush and TTL cleanup."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable

from ..errors import ConfigurationError
from ..timers import TimerSlot, call_maybe_async, notify, spawn
from .events import (
    ActivityBatch,
    ActivityEvent,
    ActivityEventType,
    ActivityTrackerState,
)


logger = logging.getLogger(__name__)

THIRTY_DAYS_SECONDS = 30 * 24 * 60 * 60.0


@dataclass
class ActivityTracker:
    """
    Buffers activity events and delivers them to a sink in batches.

    A batch is sent when either:
    - the pending queue reaches ``batch_size`` events, or
    - ``batch_timeout`` seconds pass after the first event of a partial batch

    Only one batch is ever in flight. A batch the sink rejects is put back
    at the front of the queue and goes out again on the next trigger.
    With ``auto_cleanup`` enabled, pending events older than ``ttl`` are
    dropped periodically so an offline sink cannot grow the queue forever.

    Usage:
        tracker = ActivityTracker(sink=HttpSink(...).send)
        tracker.start()
        tracker.track_page_view("/dashboard")
        await tracker.flush()
    """
    # Receives each batch; raising means the batch was not delivered
    sink: Callable[[ActivityBatch], Awaitable[None] | None]

    # Batch configuration
    batch_size: int = 5
    batch_timeout: float = 2.0

    # Expiry of unsent events
    auto_cleanup: bool = True
    ttl: float = THIRTY_DAYS_SECONDS
    cleanup_interval: float = 60.0

    # Cap on pending events; newer events beyond it are dropped, including
    # after a failed batch is requeued
    max_pending: int = 10000

    on_batch_sent: Callable[[ActivityBatch], Awaitable[None] | None] | None = None
    on_error: Callable[[Exception], Awaitable[None] | None] | None = None

    # Internal state
    _pending: list[ActivityEvent] = field(default_factory=list, init=False)
    _active: bool = field(default=False, init=False)
    _closed: bool = field(default=False, init=False)
    _flushing: bool = field(default=False, init=False)
    _flush_done: asyncio.Event = field(default_factory=asyncio.Event, init=False)
    _last_batch_sent: datetime | None = field(default=None, init=False)
    _total_tracked: int = field(default=0, init=False)
    _total_sent: int = field(default=0, init=False)
    _batch_timer: TimerSlot = field(default_factory=lambda: TimerSlot("batch-timeout"), init=False)
    _cleanup_timer: TimerSlot = field(default_factory=lambda: TimerSlot("ttl-cleanup"), init=False)
    _tasks: set[asyncio.Task] = field(default_factory=set, init=False)
    _stats: dict = field(default_factory=dict, init=False)

    def __post_init__(self):
        if self.batch_size < 1:
            raise ConfigurationError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.batch_timeout < 0:
            raise ConfigurationError(f"batch_timeout must be >= 0, got {self.batch_timeout}")
        if self.ttl <= 0:
            raise ConfigurationError(f"ttl must be > 0, got {self.ttl}")
        if self.cleanup_interval <= 0:
            raise ConfigurationError(
                f"cleanup_interval must be > 0, got {self.cleanup_interval}"
            )
        if self.max_pending < self.batch_size:
            raise ConfigurationError(
                f"max_pending ({self.max_pending}) must be >= batch_size ({self.batch_size})"
            )

        self._stats = {
            "batches_sent": 0,
            "events_sent": 0,
            "send_errors": 0,
            "dropped_events": 0,
            "expired_events": 0,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start accepting events. Must be called with a running event loop."""
        if self._active:
            return
        if self._closed:
            logger.warning("Activity tracker was destroyed, ignoring start()")
            return

        self._active = True
        if self.auto_cleanup:
            self._schedule_cleanup()
        if self._pending:
            self._ensure_batch_timer()
        logger.info(
            f"Activity tracker started (batch_size={self.batch_size}, "
            f"batch_timeout={self.batch_timeout}s)"
        )

    def stop(self) -> None:
        """Stop accepting events and cancel timers. Pending events are kept."""
        was_active = self._active
        self._active = False
        self._batch_timer.cancel()
        self._cleanup_timer.cancel()
        if was_active:
            logger.info(f"Activity tracker stopped. Stats: {self.stats}")

    def clear(self) -> None:
        """Discard pending events without sending them."""
        self._pending = []
        self._batch_timer.cancel()

    def destroy(self) -> None:
        """Stop and clear. Outcomes of a batch still in flight are ignored."""
        self.stop()
        self.clear()
        self._closed = True

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    def track_event(self, event: ActivityEvent) -> bool:
        """
        Queue an event for delivery.

        Returns True if queued, False if dropped (tracker stopped or
        queue at ``max_pending``).
        """
        if not self._active:
            logger.debug(f"Activity tracker not started, dropping {event.type.value} event")
            return False

        if len(self._pending) >= self.max_pending:
            self._stats["dropped_events"] += 1
            logger.warning(f"Pending queue full ({self.max_pending}), dropping event")
            return False

        self._pending.append(event.with_timestamp())
        self._total_tracked += 1

        if len(self._pending) >= self.batch_size and self._start_background_flush():
            return True

        self._ensure_batch_timer()
        return True

    def track_page_view(self, page: str, metadata: dict[str, Any] | None = None) -> bool:
        return self.track_event(ActivityEvent(
            type=ActivityEventType.PAGE_VIEW,
            action="view",
            target=page,
            metadata=metadata or {},
        ))

    def track_click(self, target: str, metadata: dict[str, Any] | None = None) -> bool:
        return self.track_event(ActivityEvent(
            type=ActivityEventType.BUTTON_CLICK,
            action="click",
            target=target,
            metadata=metadata or {},
        ))

    def track_form_submit(self, form_id: str, metadata: dict[str, Any] | None = None) -> bool:
        return self.track_event(ActivityEvent(
            type=ActivityEventType.FORM_SUBMIT,
            action="submit",
            target=form_id,
            metadata=metadata or {},
        ))

    def track_custom_event(self, action: str, data: dict[str, Any] | None = None) -> bool:
        return self.track_event(ActivityEvent(
            type=ActivityEventType.CUSTOM,
            action=action,
            event_data=data or {},
        ))

    # ------------------------------------------------------------------
    # Flushing
    # ------------------------------------------------------------------

    async def flush(self) -> bool:
        """
        Send all pending events now.

        Returns False without sending when the queue is empty or another
        flush is already in flight.
        """
        batch = self._take_batch()
        if batch is None:
            return False
        return await self._deliver(batch)

    async def drain(self) -> bool:
        """
        Wait for deliveries in flight, then flush until nothing is pending.

        Returns False as soon as a send fails (the events stay pending).
        """
        while True:
            while self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            if self._flushing:
                # A caller-owned flush() is still awaiting the sink
                await self._flush_done.wait()
                continue
            if not self._pending:
                return True
            if not await self.flush():
                return False

    def _take_batch(self) -> ActivityBatch | None:
        """Claim the whole pending queue as a batch (caller then owns delivery)."""
        if not self._pending or self._flushing:
            return None

        self._batch_timer.cancel()
        self._flushing = True
        self._flush_done.clear()
        batch = ActivityBatch(events=tuple(self._pending))
        self._pending = []
        return batch

    def _start_background_flush(self) -> bool:
        batch = self._take_batch()
        if batch is None:
            return False
        spawn(self._deliver(batch), self._tasks)
        return True

    async def _deliver(self, batch: ActivityBatch) -> bool:
        delivered = False
        try:
            await call_maybe_async(self.sink, batch)
            delivered = True
        except Exception as e:
            self._stats["send_errors"] += 1
            if self._closed:
                logger.warning(
                    f"Failed to send activity batch after destroy, dropping {batch.size} events: {e}"
                )
            else:
                # Requeue ahead of anything tracked while the send was pending
                self._pending[:0] = batch.events
                logger.warning(f"Failed to send activity batch of {batch.size} events: {e}")
                self._trim_overflow()
            notify(self.on_error, e, tasks=self._tasks)
        else:
            self._total_sent += batch.size
            self._last_batch_sent = datetime.now(timezone.utc)
            self._stats["batches_sent"] += 1
            self._stats["events_sent"] += batch.size
            logger.debug(f"Sent activity batch of {batch.size} events")
            notify(self.on_batch_sent, batch, tasks=self._tasks)
        finally:
            self._flushing = False
            self._flush_done.set()

        self._after_delivery(delivered)
        return delivered

    def _trim_overflow(self) -> None:
        """Enforce max_pending after a requeue by dropping the newest events."""
        overflow = len(self._pending) - self.max_pending
        if overflow > 0:
            del self._pending[self.max_pending:]
            self._stats["dropped_events"] += overflow
            logger.warning(f"Pending queue over {self.max_pending} after requeue, dropped {overflow} newest events")

    def _after_delivery(self, delivered: bool) -> None:
        if not self._active or not self._pending:
            return
        if delivered and len(self._pending) >= self.batch_size:
            self._start_background_flush()
        else:
            self._ensure_batch_timer()

    def _ensure_batch_timer(self) -> None:
        if not self._batch_timer.armed:
            self._batch_timer.arm(self.batch_timeout, self._on_batch_timeout)

    def _on_batch_timeout(self) -> None:
        if not self._active:
            return
        # A flush in flight re-arms the timer when it completes
        self._start_background_flush()

    # ------------------------------------------------------------------
    # TTL cleanup
    # ------------------------------------------------------------------

    def cleanup_expired(self) -> int:
        """Drop pending events older than ``ttl``. Returns how many were dropped."""
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=self.ttl)
        kept = [e for e in self._pending if e.timestamp is None or e.timestamp >= cutoff]
        expired = len(self._pending) - len(kept)
        if expired:
            self._pending = kept
            self._stats["expired_events"] += expired
            logger.info(f"Dropped {expired} activity events older than {self.ttl}s")
        return expired

    def _schedule_cleanup(self) -> None:
        self._cleanup_timer.arm(min(self.cleanup_interval, self.ttl), self._on_cleanup)

    def _on_cleanup(self) -> None:
        if not self._active:
            return
        self.cleanup_expired()
        self._schedule_cleanup()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_state(self) -> ActivityTrackerState:
        return ActivityTrackerState(
            pending_events=tuple(self._pending),
            is_active=self._active,
            last_batch_sent=self._last_batch_sent,
            total_events_tracked=self._total_tracked,
            total_events_sent=self._total_sent,
        )

    @property
    def pending_count(self) -> int:
        """Number of events waiting for delivery."""
        return len(self._pending)

    @property
    def in_flight(self) -> bool:
        return self._flushing

    @property
    def stats(self) -> dict:
        """Get tracker statistics."""
        return {
            **self._stats,
            "pending": self.pending_count,
            "in_flight": self._flushing,
            "total_tracked": self._total_tracked,
            "total_sent": self._total_sent,
        }
