#!/usr/bin/env python3
"""
CLI tool for delivering activity events.

Usage:
    activity-sync send events.jsonl --user-id u1 --app-id web
    activity-sync send events.jsonl --sink console
    activity-sync --config activity.yaml config
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .config import Config
from .errors import ActivitySyncError
from .telemetry.events import ActivityEvent
from .telemetry.sinks import create_sink
from .telemetry.tracker import ActivityTracker


logger = logging.getLogger(__name__)


def load_config(args) -> Config:
    """Build config from --config, then apply command line overrides."""
    config = Config.load(args.config) if args.config else Config()
    if args.base_url:
        config.api_base_url = args.base_url
    if args.user_id:
        config.user_id = args.user_id
    if args.app_id:
        config.app_id = args.app_id
    return config


def read_events(path: str) -> list[ActivityEvent]:
    """Read JSON-lines events, skipping blank lines."""
    events = []
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                events.append(ActivityEvent.from_dict(json.loads(line)))
            except (ValueError, KeyError) as e:
                raise ActivitySyncError(f"{path}:{lineno}: invalid event: {e}") from e
    return events


def _sink_options(args, config: Config) -> dict:
    activity = config.activity
    sink_type = args.sink or activity.sink_type
    options = dict(activity.sink_config) if sink_type == activity.sink_type else {}
    if sink_type == "http":
        options.setdefault("base_url", config.api_base_url)
        options.setdefault("user_id", config.user_id)
        options.setdefault("app_id", config.app_id)
        if activity.auto_cleanup:
            options.setdefault("ttl", activity.ttl)
    elif sink_type == "file":
        options.setdefault("path", args.output)
    return options


async def cmd_send(args) -> int:
    """Deliver events from a JSON-lines file."""
    config = load_config(args)
    activity = config.activity
    sink_type = args.sink or activity.sink_type

    if sink_type == "http" and not (config.user_id and config.app_id):
        print("Error: --user-id and --app-id are required for the http sink", file=sys.stderr)
        return 1

    events = read_events(args.file)
    sink = create_sink(sink_type, **_sink_options(args, config))
    errors: list[Exception] = []

    tracker = ActivityTracker(
        sink=sink.send,
        batch_size=args.batch_size or activity.batch_size,
        batch_timeout=args.batch_timeout if args.batch_timeout is not None else activity.batch_timeout,
        auto_cleanup=False,
        max_pending=max(activity.max_pending, args.batch_size or activity.batch_size),
        on_error=errors.append,
    )

    await sink.start()
    tracker.start()
    try:
        for event in events:
            if tracker.pending_count >= tracker.max_pending:
                if not await tracker.drain():
                    break
            tracker.track_event(event)
        delivered = await tracker.drain()
    finally:
        tracker.stop()
        await sink.stop()

    state = tracker.get_state()
    summary = {
        "read": len(events),
        "tracked": state.total_events_tracked,
        "sent": state.total_events_sent,
        "pending": len(state.pending_events),
        "batches": tracker.stats["batches_sent"],
        "errors": [str(e) for e in errors],
    }
    print(json.dumps(summary, indent=2))
    return 0 if delivered and not state.pending_events else 1


async def cmd_config(args) -> int:
    """Print the effective configuration."""
    print(json.dumps(load_config(args).to_dict(), indent=2, default=str))
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="CLI tool for activity-sync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--config", help="YAML or JSON config file")
    parser.add_argument("--base-url", help="Base URL of the activity API")
    parser.add_argument("--user-id", help="User ID sent with each batch")
    parser.add_argument("--app-id", help="Application ID sent with each batch")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # send command
    send_parser = subparsers.add_parser("send", help="Send events from a JSON-lines file")
    send_parser.add_argument("file", help="Path to a JSON-lines file of events")
    send_parser.add_argument("--sink", choices=["http", "console", "file"], help="Override sink type")
    send_parser.add_argument("--output", default="activity.jsonl", help="Output path for the file sink")
    send_parser.add_argument("--batch-size", type=int, help="Events per batch")
    send_parser.add_argument("--batch-timeout", type=float, help="Seconds before a partial batch is sent")

    # config command
    subparsers.add_parser("config", help="Print the effective configuration")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "send" and not Path(args.file).exists():
        print(f"Error: {args.file} not found", file=sys.stderr)
        return 1

    try:
        if args.command == "send":
            return asyncio.run(cmd_send(args))
        elif args.command == "config":
            return asyncio.run(cmd_config(args))
    except ActivitySyncError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
