"""Change events and connection states.

Learn: The backend delivers row changes as loose payload dicts:
    {"eventType": "INSERT" | "UPDATE" | "DELETE", "new": {...}, "old": {...}}

ChangeEvent normalises that into a tagged record so the rest of the sync
layer never has to poke at wire keys. Empty rows ({}), which the backend
sends for the side of the change that does not exist, become None.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class EventKind(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


ALL_EVENTS: tuple[EventKind, ...] = (EventKind.INSERT, EventKind.UPDATE, EventKind.DELETE)


class ChannelStatus(str, Enum):
    """Status strings reported by the backend for a channel."""

    SUBSCRIBED = "SUBSCRIBED"
    CHANNEL_ERROR = "CHANNEL_ERROR"
    CLOSED = "CLOSED"


class ChannelState(str, Enum):
    """Lifecycle of a single registered channel."""

    SUBSCRIBING = "subscribing"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    DISCONNECTED = "disconnected"


class ConnectionState(str, Enum):
    """Process-wide connection health, collapsed across all channels."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    RECONNECTING = "reconnecting"

    @property
    def label(self) -> str:
        return _STATE_LABELS[self]


_STATE_LABELS = {
    ConnectionState.CONNECTED: "Live",
    ConnectionState.RECONNECTING: "Reconnecting...",
    ConnectionState.DISCONNECTED: "Offline",
}


def normalize_events(events) -> tuple[EventKind, ...]:
    """Coerce a list of kinds (enum members or wire strings) to a tuple of EventKind."""
    return tuple(EventKind(e) for e in events)


def _row(value: Any) -> Optional[dict]:
    if not value:
        return None
    if not isinstance(value, dict):
        raise ValueError(f"row must be an object, got {type(value).__name__}")
    return dict(value)


@dataclass(frozen=True)
class ChangeEvent:
    """One row change delivered on a channel."""

    kind: EventKind
    record: Optional[dict] = None
    previous_record: Optional[dict] = None
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_payload(cls, payload: dict) -> "ChangeEvent":
        """Build from the backend payload shape.

        Raises ValueError on an unknown eventType or a row that is not an object.
        """
        if not isinstance(payload, dict):
            raise ValueError("payload must be an object")
        kind = EventKind(payload.get("eventType"))
        return cls(
            kind=kind,
            record=_row(payload.get("new")),
            previous_record=_row(payload.get("old")),
            raw=payload,
        )

    @property
    def row_id(self) -> Any:
        """Primary key of the affected row (from the new row, else the old one)."""
        row = self.record or self.previous_record or {}
        return row.get("id")
