"""Tests for the sync manager."""

import asyncio

import pytest

from activity_sync.polling.poller import AdaptivePollerConfig, PollerState
from activity_sync.polling.sync_manager import SyncManager, SyncStrategy, SyncStrategyType


class StrategyDouble:
    def __init__(self, fail: bool = False):
        self.calls = 0
        self.fail = fail

    async def __call__(self) -> None:
        self.calls += 1
        if self.fail:
            raise ConnectionError("profile service unreachable")


@pytest.fixture
def completed():
    return []


@pytest.fixture
def errors():
    return []


def make_manager(strategies, completed, errors, **intervals) -> SyncManager:
    return SyncManager(
        config=AdaptivePollerConfig(**intervals),
        strategies=strategies,
        on_sync_complete=completed.append,
        on_error=errors.append,
    )


class TestSyncManager:
    @pytest.mark.asyncio
    async def test_sync_now_runs_all_strategies(self, completed, errors):
        profile, prefs = StrategyDouble(), StrategyDouble()
        manager = make_manager(
            [
                SyncStrategy(SyncStrategyType.PROFILE, profile),
                SyncStrategy(SyncStrategyType.PREFERENCES, prefs),
            ],
            completed,
            errors,
        )

        await manager.sync_now()

        assert profile.calls == 1
        assert prefs.calls == 1
        assert completed == [SyncStrategyType.PROFILE, SyncStrategyType.PREFERENCES]
        state = manager.get_state()
        assert state.total_syncs == 1
        assert state.last_sync is not None
        assert errors == []

    @pytest.mark.asyncio
    async def test_failed_strategy_reported(self, completed, errors):
        manager = make_manager(
            [
                SyncStrategy(SyncStrategyType.PROFILE, StrategyDouble(fail=True)),
                SyncStrategy(SyncStrategyType.APP_DATA, StrategyDouble()),
            ],
            completed,
            errors,
        )

        await manager.sync_now()

        assert completed == [SyncStrategyType.APP_DATA]
        assert len(errors) == 1
        assert isinstance(errors[0], ConnectionError)
        state = manager.get_state()
        assert state.total_syncs == 0
        assert state.last_sync is None

    @pytest.mark.asyncio
    async def test_disabled_strategy_ignored(self, completed, errors):
        disabled = StrategyDouble()
        manager = make_manager(
            [SyncStrategy(SyncStrategyType.CUSTOM, disabled, enabled=False)],
            completed,
            errors,
        )
        manager.add_strategy(SyncStrategy(SyncStrategyType.ACTIVITY, disabled, enabled=False))

        await manager.sync_now()

        assert disabled.calls == 0
        assert manager.get_state().total_syncs == 1

    @pytest.mark.asyncio
    async def test_add_and_remove_strategy(self, completed, errors):
        profile = StrategyDouble()
        manager = make_manager([], completed, errors)
        manager.add_strategy(SyncStrategy(SyncStrategyType.PROFILE, profile))
        await manager.sync_now()

        manager.remove_strategy(SyncStrategyType.PROFILE)
        await manager.sync_now()

        assert profile.calls == 1

    @pytest.mark.asyncio
    async def test_polls_through_adaptive_poller(self, completed, errors):
        profile = StrategyDouble()
        manager = make_manager(
            [SyncStrategy(SyncStrategyType.PROFILE, profile)],
            completed,
            errors,
            default_interval=0.03,
        )

        assert manager.get_state().is_active is False
        manager.start()
        state = manager.get_state()
        assert state.is_active is True
        assert state.poller_state == PollerState.DEFAULT
        assert state.current_interval == 0.03

        await asyncio.sleep(0.1)
        manager.stop()

        assert profile.calls >= 1
        assert manager.get_state().total_syncs == profile.calls

    @pytest.mark.asyncio
    async def test_destroy_drops_strategies(self, completed, errors):
        profile = StrategyDouble()
        manager = make_manager(
            [SyncStrategy(SyncStrategyType.PROFILE, profile)],
            completed,
            errors,
        )
        manager.start()

        manager.destroy()
        await manager.sync_now()

        assert profile.calls == 0
        assert manager.get_state().poller_state == PollerState.STOPPED

    @pytest.mark.asyncio
    async def test_sync_now_skipped_while_poll_in_flight(self, completed, errors):
        gate = asyncio.Event()
        calls = []

        async def slow_profile():
            calls.append(1)
            await gate.wait()

        manager = make_manager(
            [SyncStrategy(SyncStrategyType.PROFILE, slow_profile)],
            completed,
            errors,
            default_interval=0.01,
        )
        manager.start()
        await asyncio.sleep(0.03)
        assert len(calls) == 1

        assert await manager.sync_now() is False
        assert len(calls) == 1

        manager.stop()
        gate.set()
        await asyncio.sleep(0.01)

        assert completed == [SyncStrategyType.PROFILE]
        assert manager.get_state().total_syncs == 1

    @pytest.mark.asyncio
    async def test_sync_now_returns_true_when_idle(self, completed, errors):
        manager = make_manager(
            [SyncStrategy(SyncStrategyType.PROFILE, StrategyDouble())],
            completed,
            errors,
        )

        assert await manager.sync_now() is True

    @pytest.mark.asyncio
    async def test_async_completion_callback_awaited(self, errors):
        completed = []

        async def on_complete(name):
            await asyncio.sleep(0)
            completed.append(name)

        manager = SyncManager(
            strategies=[SyncStrategy(SyncStrategyType.PROFILE, StrategyDouble())],
            on_sync_complete=on_complete,
        )

        await manager.sync_now()
        await asyncio.sleep(0.01)

        assert completed == [SyncStrategyType.PROFILE]
