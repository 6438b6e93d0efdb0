"""Tests for configuration loading."""

import json

import pytest

from activity_sync.config import ActivityConfig, Config, SyncConfig
from activity_sync.errors import ConfigurationError
from activity_sync.polling.poller import AdaptivePollerConfig


class TestConfig:
    def test_defaults(self):
        config = Config()
        assert config.sync.default_interval == 30.0
        assert config.sync.idle_timeout == 300.0
        assert config.activity.batch_size == 5
        assert config.activity.batch_timeout == 2.0
        assert config.activity.ttl == 2592000.0

    def test_identity_from_environment(self, monkeypatch):
        monkeypatch.setenv("ACTIVITY_SYNC_USER_ID", "user123")
        monkeypatch.setenv("ACTIVITY_SYNC_APP_ID", "app456")
        monkeypatch.setenv("ACTIVITY_SYNC_API_URL", "https://api.example.com")

        config = Config()

        assert config.user_id == "user123"
        assert config.app_id == "app456"
        assert config.api_base_url == "https://api.example.com"

    def test_from_dict(self):
        config = Config.from_dict({
            "user_id": "u1",
            "app_id": "web",
            "sync": {"active_interval": 5.0},
            "activity": {"batch_size": 20, "sink_type": "console"},
        })

        assert config.user_id == "u1"
        assert config.sync.active_interval == 5.0
        assert config.sync.default_interval == 30.0
        assert config.activity.batch_size == 20
        assert config.activity.sink_type == "console"

    def test_unknown_section_key(self):
        with pytest.raises(ConfigurationError):
            Config.from_dict({"activity": {"batch_sz": 3}})

    def test_unknown_top_level_key(self):
        with pytest.raises(ConfigurationError):
            Config.from_dict({"telemetry": {}})

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "activity.yaml"
        path.write_text(
            "user_id: u1\n"
            "app_id: web\n"
            "sync:\n"
            "  idle_timeout: 120\n"
            "activity:\n"
            "  auto_cleanup: false\n"
        )

        config = Config.load(str(path))

        assert config.sync.idle_timeout == 120
        assert config.activity.auto_cleanup is False

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert Config.from_yaml(str(path)).activity.batch_size == 5

    def test_from_json(self, tmp_path):
        path = tmp_path / "activity.json"
        path.write_text(json.dumps({"activity": {"batch_timeout": 0.5}}))

        assert Config.load(str(path)).activity.batch_timeout == 0.5

    def test_to_dict_round_trip(self):
        config = Config(user_id="u1", app_id="web", activity=ActivityConfig(batch_size=9))
        assert Config.from_dict(config.to_dict()) == config


class TestSyncConfig:
    def test_poller_config(self):
        poller_config = SyncConfig(active_interval=1.0).poller_config()
        assert poller_config == AdaptivePollerConfig(active_interval=1.0)

    def test_invalid_interval_rejected(self):
        with pytest.raises(ConfigurationError):
            SyncConfig(idle_timeout=0).poller_config()
