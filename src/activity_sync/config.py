"""Configuration for activity-sync."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from typing import Any

from .errors import ConfigurationError
from .polling.poller import AdaptivePollerConfig


@dataclass
class SyncConfig:
    """Adaptive sync polling configuration (seconds)."""
    enabled: bool = True
    default_interval: float = 30.0
    active_interval: float = 10.0
    idle_interval: float = 60.0
    idle_timeout: float = 300.0  # 5 minutes

    def poller_config(self) -> AdaptivePollerConfig:
        return AdaptivePollerConfig(
            default_interval=self.default_interval,
            active_interval=self.active_interval,
            idle_interval=self.idle_interval,
            idle_timeout=self.idle_timeout,
        )


@dataclass
class ActivityConfig:
    """Activity tracking configuration."""
    enabled: bool = True

    # Batching
    batch_size: int = 5
    batch_timeout: float = 2.0

    # Expiry of unsent events
    auto_cleanup: bool = True
    ttl: float = 30 * 24 * 60 * 60.0  # 30 days
    cleanup_interval: float = 60.0

    # Queue
    max_pending: int = 10000

    # Delivery
    sink_type: str = "http"  # http | console | file
    sink_config: dict[str, Any] = field(default_factory=dict)


@dataclass
class Config:
    """
    Main configuration container.

    Identity fields can be set via:
    - Constructor arguments / config file
    - Environment variables (ACTIVITY_SYNC_*)
    """
    api_base_url: str = field(
        default_factory=lambda: os.environ.get("ACTIVITY_SYNC_API_URL", "http://localhost:8000")
    )
    user_id: str | None = field(
        default_factory=lambda: os.environ.get("ACTIVITY_SYNC_USER_ID")
    )
    app_id: str | None = field(
        default_factory=lambda: os.environ.get("ACTIVITY_SYNC_APP_ID")
    )
    sync: SyncConfig = field(default_factory=SyncConfig)
    activity: ActivityConfig = field(default_factory=ActivityConfig)

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        """Create config from dictionary."""
        try:
            identity = {
                key: data[key] for key in ("api_base_url", "user_id", "app_id") if key in data
            }
            unknown = set(data) - {"api_base_url", "user_id", "app_id", "sync", "activity"}
            if unknown:
                raise TypeError(f"unexpected keys {sorted(unknown)}")
            return cls(
                sync=SyncConfig(**(data.get("sync") or {})),
                activity=ActivityConfig(**(data.get("activity") or {})),
                **identity,
            )
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_yaml(cls, path: str) -> Config:
        """Load config from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, path: str) -> Config:
        """Load config from JSON file."""
        import json
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: str) -> Config:
        """Load config from a YAML or JSON file, chosen by extension."""
        if path.endswith(".json"):
            return cls.from_json(path)
        return cls.from_yaml(path)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
