"""File-based sink for activity batches."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from ..events import ActivityBatch
from .base import BatchSink


@dataclass
class FileSink(BatchSink):
    """
    Sink that appends events to a file (JSONL format).

    Each event is written as a single JSON line, so a file written here
    can be replayed with ``activity-sync send``.
    """
    path: str
    encoding: str = "utf-8"

    # Internal state
    _file: object = field(default=None, init=False)

    async def start(self) -> None:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, "a", encoding=self.encoding)

    async def stop(self) -> None:
        if self._file:
            self._file.close()
            self._file = None

    async def send(self, batch: ActivityBatch) -> None:
        if not self._file:
            await self.start()

        for event in batch:
            self._file.write(json.dumps(event.to_dict(), default=str) + "\n")

        self._file.flush()
