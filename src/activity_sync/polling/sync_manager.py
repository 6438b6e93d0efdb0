"""Periodic data synchronization on top of the adaptive poller."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable

from ..timers import call_maybe_async, notify
from .poller import AdaptivePoller, AdaptivePollerConfig, PollerState
from .signals import ActivitySignalSource


logger = logging.getLogger(__name__)


class SyncStrategyType(str, Enum):
    """Kind of application data a strategy keeps in sync."""
    PROFILE = "profile"
    PREFERENCES = "preferences"
    ACTIVITY = "activity"
    APP_DATA = "app-data"
    CUSTOM = "custom"


@dataclass
class SyncStrategy:
    """A named sync action run on every poll."""
    name: SyncStrategyType
    sync: Callable[[], Awaitable[None] | None]
    enabled: bool = True


@dataclass(frozen=True)
class SyncState:
    """Snapshot of a SyncManager."""
    is_active: bool
    poller_state: PollerState
    last_sync: datetime | None
    total_syncs: int
    current_interval: float


@dataclass
class SyncManager:
    """
    Runs every enabled sync strategy on each adaptive poll.

    Strategies run concurrently. Each one that succeeds is reported to
    ``on_sync_complete``; if any fails, the first failure goes to
    ``on_error`` and the round is not counted as a completed sync.
    """
    config: AdaptivePollerConfig = field(default_factory=AdaptivePollerConfig)
    strategies: list[SyncStrategy] = field(default_factory=list)
    signal_source: ActivitySignalSource | None = None
    on_sync_complete: Callable[[SyncStrategyType], Awaitable[None] | None] | None = None
    on_error: Callable[[Exception], Awaitable[None] | None] | None = None

    # Internal state
    _strategies: dict[SyncStrategyType, SyncStrategy] = field(default_factory=dict, init=False)
    _poller: AdaptivePoller = field(init=False)
    _last_sync: datetime | None = field(default=None, init=False)
    _total_syncs: int = field(default=0, init=False)
    _tasks: set[asyncio.Task] = field(default_factory=set, init=False)

    def __post_init__(self):
        for strategy in self.strategies:
            self.add_strategy(strategy)

        self._poller = AdaptivePoller(
            on_poll=self._execute_sync,
            config=self.config,
            signal_source=self.signal_source,
            on_error=self.on_error,
        )

    @property
    def poller(self) -> AdaptivePoller:
        return self._poller

    def start(self) -> None:
        self._poller.start()

    def stop(self) -> None:
        self._poller.stop()

    def destroy(self) -> None:
        """Stop polling and forget all strategies."""
        self.stop()
        self._strategies.clear()

    def add_strategy(self, strategy: SyncStrategy) -> None:
        """Register a strategy (disabled strategies are ignored)."""
        if strategy.enabled:
            self._strategies[strategy.name] = strategy

    def remove_strategy(self, name: SyncStrategyType) -> None:
        self._strategies.pop(name, None)

    async def sync_now(self) -> bool:
        """
        Run all strategies immediately, outside the poll schedule.

        Returns False without syncing if a poll is already in flight.
        """
        return await self._poller.poll_now()

    def get_state(self) -> SyncState:
        poller_state = self._poller.get_state()
        return SyncState(
            is_active=poller_state != PollerState.STOPPED,
            poller_state=poller_state,
            last_sync=self._last_sync,
            total_syncs=self._total_syncs,
            current_interval=self._poller.get_current_interval(),
        )

    async def _execute_sync(self) -> None:
        strategies = [s for s in self._strategies.values() if s.enabled]
        results = await asyncio.gather(
            *(call_maybe_async(s.sync) for s in strategies),
            return_exceptions=True,
        )

        errors: list[BaseException] = []
        for strategy, result in zip(strategies, results):
            if isinstance(result, BaseException):
                logger.error(f"Sync strategy {strategy.name.value} failed: {result}")
                errors.append(result)
            else:
                notify(self.on_sync_complete, strategy.name, tasks=self._tasks)

        if errors:
            notify(self.on_error, errors[0], tasks=self._tasks)
            return

        self._last_sync = datetime.now(timezone.utc)
        self._total_syncs += 1
