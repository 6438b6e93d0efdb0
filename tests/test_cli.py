"""Tests for the command line interface."""

import argparse
import json

import pytest

from activity_sync.cli import cmd_send, read_events
from activity_sync.errors import ActivitySyncError


def send_args(path, **overrides) -> argparse.Namespace:
    args = dict(
        config=None,
        base_url=None,
        user_id=None,
        app_id=None,
        file=str(path),
        sink="file",
        output=None,
        batch_size=2,
        batch_timeout=10.0,
    )
    args.update(overrides)
    return argparse.Namespace(**args)


@pytest.fixture
def events_file(tmp_path):
    path = tmp_path / "events.jsonl"
    lines = [
        {"type": "page_view", "action": "view", "target": "/"},
        {"type": "button_click", "action": "click", "target": "buy"},
        {"type": "custom", "action": "checkout", "eventData": {"total": 12}},
    ]
    path.write_text("\n".join(json.dumps(line) for line in lines) + "\n\n")
    return path


class TestReadEvents:
    def test_reads_jsonl(self, events_file):
        events = read_events(str(events_file))
        assert [e.action for e in events] == ["view", "click", "checkout"]

    def test_invalid_line(self, tmp_path):
        path = tmp_path / "bad.jsonl"
        path.write_text('{"type": "page_view"}\n')

        with pytest.raises(ActivitySyncError):
            read_events(str(path))


class TestSend:
    @pytest.mark.asyncio
    async def test_send_to_file(self, events_file, tmp_path, capsys):
        output = tmp_path / "delivered.jsonl"

        code = await cmd_send(send_args(events_file, output=str(output)))

        assert code == 0
        delivered = [json.loads(line) for line in output.read_text().splitlines()]
        assert [e["action"] for e in delivered] == ["view", "click", "checkout"]
        summary = json.loads(capsys.readouterr().out)
        assert summary["sent"] == 3
        assert summary["batches"] == 2
        assert summary["pending"] == 0

    @pytest.mark.asyncio
    async def test_http_requires_identity(self, events_file, monkeypatch):
        monkeypatch.delenv("ACTIVITY_SYNC_USER_ID", raising=False)
        monkeypatch.delenv("ACTIVITY_SYNC_APP_ID", raising=False)

        assert await cmd_send(send_args(events_file, sink="http")) == 1
