"""Activity event types."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ActivityEventType(str, Enum):
    """Category of a tracked activity."""
    PAGE_VIEW = "page_view"
    BUTTON_CLICK = "button_click"
    FORM_SUBMIT = "form_submit"
    API_CALL = "api_call"
    NAVIGATION = "navigation"
    SEARCH = "search"
    DOWNLOAD = "download"
    UPLOAD = "upload"
    SHARE = "share"
    CUSTOM = "custom"


@dataclass(frozen=True, slots=True)
class ActivityEvent:
    """
    A single tracked occurrence.

    The tracker never looks inside ``event_data`` or ``metadata``; only
    ``type``, ``action`` and ``target`` are routing fields.
    """
    type: ActivityEventType
    action: str
    target: str | None = None

    # Opaque payloads
    event_data: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    # Assigned when tracked unless the caller supplies one
    timestamp: datetime | None = None

    def with_timestamp(self, when: datetime | None = None) -> ActivityEvent:
        """Return this event stamped with ``when`` (default now), keeping an existing stamp."""
        if self.timestamp is not None:
            if self.timestamp.tzinfo is None:
                # Naive stamps are taken as UTC
                return replace(self, timestamp=self.timestamp.replace(tzinfo=timezone.utc))
            return self
        return replace(self, timestamp=when or datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Convert to the payload shape expected by the activity API."""
        return {
            "type": self.type.value,
            "action": self.action,
            "target": self.target,
            "eventData": self.event_data,
            "metadata": self.metadata,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ActivityEvent:
        """Build an event from API (camelCase) or snake_case keys."""
        timestamp = data.get("timestamp")
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)
        return cls(
            type=ActivityEventType(data.get("type", ActivityEventType.CUSTOM.value)),
            action=data["action"],
            target=data.get("target"),
            event_data=dict(data.get("eventData") or data.get("event_data") or {}),
            metadata=dict(data.get("metadata") or {}),
            timestamp=timestamp,
        )


@dataclass(frozen=True, slots=True)
class ActivityBatch:
    """An ordered group of events delivered to a sink together."""
    events: tuple[ActivityEvent, ...]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def size(self) -> int:
        return len(self.events)

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self):
        return iter(self.events)

    def to_dicts(self) -> list[dict[str, Any]]:
        return [event.to_dict() for event in self.events]


@dataclass(frozen=True, slots=True)
class ActivityTrackerState:
    """Point-in-time snapshot of an ActivityTracker."""
    pending_events: tuple[ActivityEvent, ...]
    is_active: bool
    last_batch_sent: datetime | None
    total_events_tracked: int
    total_events_sent: int
