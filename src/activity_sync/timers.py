"""Timer and task helpers shared by the poller and the tracker."""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Coroutine


logger = logging.getLogger(__name__)


@dataclass
class TimerSlot:
    """
    Holds at most one armed timer on the running event loop.

    Arming a slot always cancels the previous handle first, so an engine
    that keeps one slot per concern can never have two timers racing.
    """
    name: str

    _handle: asyncio.TimerHandle | None = field(default=None, init=False)

    def arm(self, delay: float, callback: Callable[[], None]) -> None:
        """Cancel any pending timer and fire ``callback`` after ``delay`` seconds."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(max(0.0, delay), self._fire, callback)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def _fire(self, callback: Callable[[], None]) -> None:
        self._handle = None
        try:
            callback()
        except Exception:
            logger.exception(f"Timer callback for {self.name} failed")


async def call_maybe_async(fn: Callable[..., Any], *args: Any) -> Any:
    """Call a sync or async callable, awaiting the result if needed."""
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def spawn(coro: Coroutine[Any, Any, Any], tasks: set[asyncio.Task]) -> asyncio.Task:
    """
    Run a coroutine as a background task.

    The task is held in ``tasks`` until it finishes so it cannot be
    garbage collected mid-flight.
    """
    task = asyncio.get_running_loop().create_task(coro)
    tasks.add(task)
    task.add_done_callback(tasks.discard)
    return task


def notify(
    callback: Callable[..., Any] | None,
    *args: Any,
    tasks: set[asyncio.Task],
) -> None:
    """
    Invoke an optional user callback, logging anything it raises.

    Coroutine callbacks run as background tasks held in ``tasks``.
    """
    if callback is None:
        return
    name = getattr(callback, "__name__", repr(callback))
    try:
        result = callback(*args)
    except Exception:
        logger.exception(f"Callback {name!r} raised")
        return
    if inspect.isawaitable(result):
        spawn(_await_callback(result, name), tasks)


async def _await_callback(result: Awaitable[Any], name: str) -> None:
    try:
        await result
    except Exception:
        logger.exception(f"Callback {name!r} raised")