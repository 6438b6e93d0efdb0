"""Activity signal sources for the adaptive poller."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable


logger = logging.getLogger(__name__)

Listener = Callable[[], None]
Unsubscribe = Callable[[], None]


class ActivitySignalSource(ABC):
    """
    Something that reports user activity (pointer, keyboard, scroll...).

    The poller subscribes on start and calls the returned function on
    stop, so it never depends on a particular host environment.
    """

    @abstractmethod
    def subscribe(self, callback: Listener) -> Unsubscribe:
        """Register ``callback`` for activity signals; return an unsubscribe function."""
        ...


class ManualSignalSource(ActivitySignalSource):
    """
    In-process signal source.

    Hosts wire their input handlers to ``emit()``:

        source = ManualSignalSource()
        poller = AdaptivePoller(on_poll=sync, signal_source=source)
        window.on_key_press(lambda *_: source.emit())
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, callback: Listener) -> Unsubscribe:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def emit(self) -> None:
        """Report one activity signal to every subscriber."""
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as e:
                logger.error(f"Activity listener error: {e}")

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
