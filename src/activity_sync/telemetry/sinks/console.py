"""Console sink for development/debugging."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass

from ..events import ActivityBatch, ActivityEvent
from .base import BatchSink


@dataclass
class ConsoleSink(BatchSink):
    """
    Sink that writes events to console (stdout/stderr).

    Useful for development and debugging.
    """
    # Output destination
    stream: str = "stdout"  # stdout | stderr

    # Output format
    format: str = "json"  # json | compact

    # Prefix for each line
    prefix: str = "[ACTIVITY] "

    async def send(self, batch: ActivityBatch) -> None:
        out = sys.stdout if self.stream == "stdout" else sys.stderr

        for event in batch:
            print(f"{self.prefix}{self._format_event(event)}", file=out)

    def _format_event(self, event: ActivityEvent) -> str:
        if self.format == "compact":
            timestamp = event.timestamp.isoformat() if event.timestamp else "-"
            return f"{timestamp} {event.type.value} {event.action} {event.target or '-'}"
        return json.dumps(event.to_dict(), default=str)
