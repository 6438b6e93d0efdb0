"""Activity sinks - transports that deliver batches."""

from __future__ import annotations

from typing import Any

from ...errors import ConfigurationError
from .base import BatchSink
from .console import ConsoleSink
from .file import FileSink
from .http import HttpSink


def create_sink(sink_type: str, **options: Any) -> BatchSink:
    """
    Build a sink by name.

    ``options`` are passed to the sink constructor, e.g.
    ``create_sink("file", path="activity.jsonl")``.
    """
    sinks = {
        "http": HttpSink,
        "console": ConsoleSink,
        "file": FileSink,
    }
    sink_cls = sinks.get(sink_type)
    if sink_cls is None:
        raise ConfigurationError(
            f"Unknown sink type {sink_type!r} (expected one of {', '.join(sinks)})"
        )
    try:
        return sink_cls(**options)
    except TypeError as e:
        raise ConfigurationError(f"Invalid options for {sink_type} sink: {e}") from e


__all__ = [
    "BatchSink",
    "ConsoleSink",
    "FileSink",
    "HttpSink",
    "create_sink",
]
