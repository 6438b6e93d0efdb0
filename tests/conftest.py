"""Shared fixtures for activity-sync tests."""

from __future__ import annotations

import asyncio

import pytest

from activity_sync.errors import TransportError
from activity_sync.telemetry.events import ActivityBatch, ActivityEvent, ActivityEventType


class RecordingSink:
    """
    Sink double that records delivered batches.

    Set ``fail`` to make sends raise, or ``gate`` (an asyncio.Event) to
    hold sends in flight until the test releases them.
    """

    def __init__(self):
        self.batches: list[ActivityBatch] = []
        self.calls = 0
        self.fail = False
        self.gate: asyncio.Event | None = None

    async def __call__(self, batch: ActivityBatch) -> None:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise TransportError("sink unavailable", status_code=503)
        self.batches.append(batch)

    @property
    def actions(self) -> list[list[str]]:
        return [[e.action for e in batch] for batch in self.batches]


def make_event(action: str, **kwargs) -> ActivityEvent:
    return ActivityEvent(type=ActivityEventType.CUSTOM, action=action, **kwargs)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
