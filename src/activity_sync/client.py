"""Client wiring the tracker and the sync manager together."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from .config import Config
from .errors import ConfigurationError
from .polling.signals import ActivitySignalSource
from .polling.sync_manager import SyncManager, SyncStrategy, SyncStrategyType
from .telemetry.events import ActivityBatch
from .telemetry.sinks import BatchSink, create_sink
from .telemetry.tracker import ActivityTracker


logger = logging.getLogger(__name__)


@dataclass
class ActivitySyncClient:
    """
    Activity tracking plus adaptive sync for one user/app.

    Usage:
        async with ActivitySyncClient(config=Config.load("activity.yaml")) as client:
            client.tracker.track_page_view("/dashboard")

        # Or with explicit sync strategies
        client = ActivitySyncClient(
            config=config,
            strategies=[SyncStrategy(SyncStrategyType.PROFILE, refresh_profile)],
            signal_source=ManualSignalSource(),
        )
        await client.start()
    """
    config: Config = field(default_factory=Config)
    strategies: list[SyncStrategy] = field(default_factory=list)
    signal_source: ActivitySignalSource | None = None

    # Overrides the sink described by config.activity
    sink: BatchSink | None = None

    on_batch_sent: Callable[[ActivityBatch], None] | None = None
    on_sync_complete: Callable[[SyncStrategyType], None] | None = None
    on_error: Callable[[Exception], None] | None = None

    # Internal state
    _tracker: ActivityTracker | None = field(default=None, init=False)
    _sync: SyncManager | None = field(default=None, init=False)

    def __post_init__(self):
        activity = self.config.activity
        if activity.enabled:
            if self.sink is None:
                self.sink = create_sink(activity.sink_type, **self._sink_options())
            self._tracker = ActivityTracker(
                sink=self.sink.send,
                batch_size=activity.batch_size,
                batch_timeout=activity.batch_timeout,
                auto_cleanup=activity.auto_cleanup,
                ttl=activity.ttl,
                cleanup_interval=activity.cleanup_interval,
                max_pending=activity.max_pending,
                on_batch_sent=self.on_batch_sent,
                on_error=self.on_error,
            )

        if self.config.sync.enabled:
            self._sync = SyncManager(
                config=self.config.sync.poller_config(),
                strategies=self.strategies,
                signal_source=self.signal_source,
                on_sync_complete=self.on_sync_complete,
                on_error=self.on_error,
            )

    def _sink_options(self) -> dict[str, Any]:
        activity = self.config.activity
        options = dict(activity.sink_config)
        if activity.sink_type == "http":
            if not self.config.user_id or not self.config.app_id:
                raise ConfigurationError("user_id and app_id are required for the http sink")
            options.setdefault("base_url", self.config.api_base_url)
            options.setdefault("user_id", self.config.user_id)
            options.setdefault("app_id", self.config.app_id)
            if activity.auto_cleanup:
                options.setdefault("ttl", activity.ttl)
        return options

    @property
    def tracker(self) -> ActivityTracker:
        if self._tracker is None:
            raise ConfigurationError("Activity tracking is disabled in this configuration")
        return self._tracker

    @property
    def sync(self) -> SyncManager:
        if self._sync is None:
            raise ConfigurationError("Sync is disabled in this configuration")
        return self._sync

    async def start(self) -> None:
        """Start the sink, the tracker and the sync poller."""
        if self._tracker is not None:
            await self.sink.start()
            self._tracker.start()
        if self._sync is not None:
            self._sync.start()
        logger.info(f"Activity sync client started (user={self.config.user_id}, app={self.config.app_id})")

    async def stop(self) -> None:
        """Stop polling, flush what is pending, and close the sink."""
        if self._sync is not None:
            self._sync.stop()
        if self._tracker is not None:
            self._tracker.stop()
            if not await self._tracker.drain():
                logger.warning(f"{self._tracker.pending_count} activity events left unsent on stop")
            await self.sink.stop()
        logger.info("Activity sync client stopped")

    async def __aenter__(self) -> ActivitySyncClient:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    def get_status(self) -> dict[str, Any]:
        """Aggregate status of both engines."""
        status: dict[str, Any] = {"activity": None, "sync": None}
        if self._tracker is not None:
            status["activity"] = self._tracker.stats
        if self._sync is not None:
            state = self._sync.get_state()
            status["sync"] = {
                "is_active": state.is_active,
                "poller_state": state.poller_state.value,
                "last_sync": state.last_sync.isoformat() if state.last_sync else None,
                "total_syncs": state.total_syncs,
                "current_interval": state.current_interval,
            }
        return status
