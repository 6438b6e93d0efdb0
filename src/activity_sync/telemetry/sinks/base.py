"""Base sink interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..events import ActivityBatch


class BatchSink(ABC):
    """
    Abstract base class for activity batch sinks.

    A sink delivers one batch per call. Raising from ``send`` tells the
    tracker the batch was not delivered and must be requeued.
    """

    @abstractmethod
    async def send(self, batch: ActivityBatch) -> None:
        """
        Deliver a batch of events.

        Should be idempotent if possible (failed batches are resent).
        """
        ...

    async def start(self) -> None:
        """Initialize the sink (called on startup)."""
        pass

    async def stop(self) -> None:
        """Clean up the sink (called on shutdown)."""
        pass

    async def health_check(self) -> bool:
        """Check if the sink is healthy."""
        return True
